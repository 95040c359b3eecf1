#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Exact hypervolume computation for minimization problems.

Two objectives are handled by a sweep over the points sorted by the
first objective, more objectives by the exclusive hypervolume recursion
of While, Bradstreet and Barone (WFG). Points which are not strictly
better than the reference point in every objective do not contribute.

>>> from mocma.hv import HyperVolume
>>> HyperVolume([2, 2]).compute([[0.5, 1.5], [1.5, 0.5]])
1.25
>>> HyperVolume([1, 1, 1]).compute([[0, 0, 0.5], [0.5, 0.5, 0]])
0.625
>>> HyperVolume([1, 1, 1]).compute([[2, 0, 0]])
0.0

"""
from __future__ import division

import numpy as np
from moarchiving import BiobjectiveNondominatedSortedList


def _as_array(points, dimension=None):
    points = np.asarray(points, dtype=float)
    if points.size == 0:
        return np.zeros((0, dimension or 0))
    if points.ndim != 2:
        raise ValueError("points must be a sequence of objective vectors,"
                         " got an array of shape %s" % str(points.shape))
    return points


def nondominated(points):
    """return a boolean mask of the rows of `points` not weakly dominated
    by another row.

    Of several equal rows only the first one is kept.

    >>> from mocma.hv import nondominated
    >>> nondominated([[1, 2], [2, 1], [2, 2], [1, 2]]).tolist()
    [True, True, False, False]
    """
    points = _as_array(points)
    n = len(points)
    if n == 0:
        return np.zeros(0, dtype=bool)
    # le[j, i]: row j is no worse than row i in all objectives
    le = np.all(points[:, None, :] <= points[None, :, :], axis=2)
    lt = np.any(points[:, None, :] < points[None, :, :], axis=2)
    earlier = np.tri(n, k=-1, dtype=bool).T  # earlier[j, i] == j < i
    beaten = le & (lt | earlier)
    np.fill_diagonal(beaten, False)
    return ~np.any(beaten, axis=0)


def _hypervolume_2d(points, reference_point):
    order = np.lexsort((points[:, 1], points[:, 0]))
    volume = 0.0
    best_f2 = reference_point[1]
    front = []
    for x, y in points[order]:
        if y < best_f2:
            front.append((x, y))
            best_f2 = y
    for i, (x, y) in enumerate(front):
        next_x = front[i + 1][0] if i + 1 < len(front) else reference_point[0]
        volume += (next_x - x) * (reference_point[1] - y)
    return float(volume)


def _wfg(points, reference_point):
    """hypervolume of non-dominated `points` which are all in the domain"""
    if len(points) == 0:
        return 0.0
    if len(points) == 1:
        return float(np.prod(reference_point - points[0]))
    if points.shape[1] == 2:
        return _hypervolume_2d(points, reference_point)
    # processing the points worst-last in the last objective keeps the
    # limit sets small
    points = points[np.argsort(points[:, -1])[::-1]]
    volume = 0.0
    for k in range(len(points)):
        inclusive = np.prod(reference_point - points[k])
        limit = np.maximum(points[k + 1:], points[k])
        if len(limit):
            limit = limit[nondominated(limit)]
        volume += inclusive - _wfg(limit, reference_point)
    return float(volume)


class HyperVolume(object):
    """Hypervolume of a set of objective vectors w.r.t. a fixed reference point.

    ``HyperVolume(reference_point).compute(front)`` accepts any sequence of
    objective vectors, dominated vectors and duplicates included.
    """
    def __init__(self, reference_point):
        self.reference_point = np.asarray(reference_point, dtype=float)

    def _in_domain(self, front):
        front = _as_array(front, len(self.reference_point))
        if len(front) and front.shape[1] != len(self.reference_point):
            raise ValueError("objective vectors of length %d do not match the"
                             " reference point of length %d"
                             % (front.shape[1], len(self.reference_point)))
        return front[np.all(front < self.reference_point, axis=1)]

    def compute(self, front):
        """return the hypervolume dominated by `front`"""
        front = self._in_domain(front)
        if len(front) == 0:
            return 0.0
        return _wfg(front[nondominated(front)], self.reference_point)

    def contributions(self, front):
        """return the exclusive hypervolume contribution of each element of `front`.

        The contribution of a point is the loss of hypervolume when the
        point is removed, hence dominated points and duplicates contribute
        zero.

        >>> from mocma.hv import HyperVolume
        >>> HyperVolume([3, 3]).contributions([[0, 2], [1, 1], [2, 0], [1, 1]]).tolist()
        [1.0, 0.0, 1.0, 0.0]
        >>> HyperVolume([3, 3]).contributions([[0, 2], [1, 1], [2, 0]]).tolist()
        [1.0, 1.0, 1.0]
        """
        front = _as_array(front, len(self.reference_point))
        res = np.zeros(len(front))
        inside = np.all(front < self.reference_point, axis=1)
        keep = nondominated(front) & inside
        if front.shape[1] == 2:
            return self._contributions_2d(front, keep)
        total = self.compute(front)
        for i in np.flatnonzero(keep):
            res[i] = total - self.compute(np.delete(front, i, axis=0))
        return np.maximum(res, 0)

    def _contributions_2d(self, front, keep):
        res = np.zeros(len(front))
        duplicated = np.zeros(len(front), dtype=bool)
        for i in np.flatnonzero(keep):
            duplicated[i] = np.sum(np.all(front == front[i], axis=1)) > 1
        candidates = set(np.flatnonzero(keep & ~duplicated))
        # neighbors among all non-dominated points, duplicates included
        indices = np.flatnonzero(keep)
        indices = indices[np.argsort(front[indices, 0], kind='stable')]
        for pos, i in enumerate(indices):
            if i not in candidates:
                continue
            right = front[indices[pos + 1], 0] if pos + 1 < len(indices) else self.reference_point[0]
            upper = front[indices[pos - 1], 1] if pos > 0 else self.reference_point[1]
            res[i] = (right - front[i, 0]) * (upper - front[i, 1])
        return res


def hypervolume(points, reference_point):
    """return the hypervolume of `points` w.r.t. `reference_point` as `float`.

    Two objectives use `moarchiving.BiobjectiveNondominatedSortedList`,
    more objectives `HyperVolume`.

    >>> from mocma.hv import hypervolume
    >>> hypervolume([[0.5, 1.5], [1.5, 0.5], [3, 0]], [2, 2])
    1.25
    """
    points = _as_array(points, len(reference_point))
    if len(points) == 0:
        return 0.0
    if points.shape[1] == 2:
        return float(BiobjectiveNondominatedSortedList(
            points.tolist(), [float(r) for r in reference_point]).hypervolume)
    return HyperVolume(reference_point).compute(points)


def contributions(points, reference_point):
    """return the exclusive hypervolume contribution of each of `points`,
    see `HyperVolume.contributions`"""
    return HyperVolume(reference_point).contributions(points)
