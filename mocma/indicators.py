#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Quality indicators over sets of objective vectors (minimization).

An indicator has two methods, `value` and `least_contributor`. The
selection of the MO-CMA-ES only needs `least_contributor`, which returns
the index of the vector whose removal deteriorates the indicator the
least. Ties are broken in favor of the smallest index.

Three indicators are available:

- `HypervolumeIndicator`: exact hypervolume contributions.
- `AdditiveEpsilonIndicator`: loss in additive epsilon-approximation
  quality w.r.t. the full set.
- `LeastContributorApproximator`: Monte Carlo estimate of the hypervolume
  contributions with racing.

>>> import mocma
>>> front = [[0, 2], [1, 1.1], [2, 0], [0.5, 1.8]]
>>> mocma.HypervolumeIndicator([3, 3]).least_contributor(front)
3
>>> mocma.AdditiveEpsilonIndicator().least_contributor(front)
3

"""
from __future__ import division

import abc

import numpy as np

from . import hv


class ReferencePointError(ValueError):
    """an objective vector is worse than the reference point"""


def _as_points(points):
    points = np.asarray(points, dtype=float)
    if points.ndim != 2:
        raise ValueError("expected a sequence of objective vectors, got an"
                         " array of shape %s" % str(points.shape))
    return points


def _check_size(points):
    if len(points) < 2:
        raise ValueError("a least contributor is only defined for two or more"
                         " points, got %d" % len(points))


def reference_point_of(points, reference_point=None, offset=1.0):
    """return the reference point to compute the hypervolume of `points`.

    Without a given `reference_point`, the worst value in each objective
    plus `offset` is used. A given `reference_point` must be weakly
    dominated by each of the `points`, otherwise `ReferencePointError` is
    raised.

    >>> from mocma.indicators import reference_point_of
    >>> reference_point_of([[0, 2], [1, 1]]).tolist()
    [2.0, 3.0]
    >>> try:
    ...     reference_point_of([[0, 2], [1, 1]], [3, 1.5])
    ... except ValueError: pass
    ... else: raise AssertionError("no ReferencePointError raised")
    """
    points = _as_points(points)
    if reference_point is None:
        return np.max(points, axis=0) + offset
    reference_point = np.asarray(reference_point, dtype=float)
    if len(reference_point) != points.shape[1]:
        raise ValueError("reference point of length %d does not match %d"
                         " objectives" % (len(reference_point), points.shape[1]))
    worse = np.any(points > reference_point, axis=1)
    if np.any(worse):
        raise ReferencePointError(
            "%d objective vector(s) do not dominate the reference point %s,"
            " the first is %s" % (np.sum(worse), str(reference_point.tolist()),
                                  str(points[np.argmax(worse)].tolist())))
    return reference_point


class Indicator(abc.ABC):
    """Interface of a quality indicator over a set of objective vectors."""

    @abc.abstractmethod
    def value(self, points):
        """return the indicator value of `points`"""

    @abc.abstractmethod
    def least_contributor(self, points):
        """return the index of the least contributing element of `points`"""


class HypervolumeIndicator(Indicator):
    """Hypervolume indicator w.r.t. a fixed or an adaptive reference point.

    With ``reference_point=None`` the reference point is the worst value of
    the given points in each objective plus `offset`. With a given
    reference point, every vector must dominate it or `ReferencePointError`
    is raised.

    >>> from mocma import HypervolumeIndicator
    >>> indicator = HypervolumeIndicator([2, 2])
    >>> indicator.value([[0.5, 1.5], [1.5, 0.5]])
    1.25
    >>> indicator.contributions([[0.5, 1.5], [1.5, 0.5], [1, 1]]).tolist()
    [0.25, 0.25, 0.25]
    >>> indicator.least_contributor([[0.5, 1.5], [1.5, 0.5], [1, 1]])
    0

    On a front of identical points every index is a least contributor,
    the first one is returned.
    """
    def __init__(self, reference_point=None, offset=1.0):
        self.reference_point = reference_point
        self.offset = offset

    def value(self, points):
        points = _as_points(points)
        if len(points) == 0:
            return 0.0
        return hv.hypervolume(points, reference_point_of(
            points, self.reference_point, self.offset))

    def contributions(self, points):
        """return the exclusive hypervolume of each element of `points`"""
        points = _as_points(points)
        return hv.contributions(points, reference_point_of(
            points, self.reference_point, self.offset))

    def least_contributor(self, points):
        points = _as_points(points)
        _check_size(points)
        return int(np.argmin(self.contributions(points)))


class AdditiveEpsilonIndicator(Indicator):
    """Additive epsilon indicator.

    ``epsilon(points, reference_set)`` is the smallest value which,
    subtracted from all `points`, makes them weakly dominate every element
    of `reference_set`. Smaller is better.

    The least contributor is the element whose removal leads to the
    smallest epsilon value of the remaining points w.r.t. all points.

    >>> from mocma import AdditiveEpsilonIndicator
    >>> AdditiveEpsilonIndicator.epsilon([[1, 1]], [[0, 2], [2, 0]])
    1.0
    >>> AdditiveEpsilonIndicator([[0, 0]]).value([[1, 0.5], [0.5, 2]])
    1.0
    >>> AdditiveEpsilonIndicator().least_contributor([[0, 2], [1, 1], [1, 1], [2, 0]])
    1
    """
    def __init__(self, reference_set=None):
        self.reference_set = reference_set

    @staticmethod
    def epsilon(points, reference_set):
        points = _as_points(points)
        reference_set = _as_points(reference_set)
        # eps[a, r] = max_k (points[a, k] - reference_set[r, k])
        eps = np.max(points[:, None, :] - reference_set[None, :, :], axis=2)
        return float(np.max(np.min(eps, axis=0)))

    def value(self, points):
        """return the epsilon value of `points` w.r.t. the reference set.

        Without reference set, the ideal point of `points` is used.
        """
        points = _as_points(points)
        if self.reference_set is None:
            return self.epsilon(points, np.min(points, axis=0)[None, :])
        return self.epsilon(points, self.reference_set)

    def losses(self, points):
        """return the epsilon value of `points` without element ``i`` w.r.t.
        all `points` for each ``i``"""
        points = _as_points(points)
        eps = np.max(points[:, None, :] - points[None, :, :], axis=2)
        return np.array([np.max(np.min(np.delete(eps, i, axis=0), axis=0))
                         for i in range(len(points))])

    def least_contributor(self, points):
        points = _as_points(points)
        _check_size(points)
        return int(np.argmin(self.losses(points)))


class LeastContributorApproximator(Indicator):
    """Approximate the hypervolume least contributor by sampling.

    For each point, the region dominated exclusively by it lies in a box
    between the point and the nearest "shadowing" points. Uniform samples
    in that box estimate the contribution. Rounds of `sample_size` samples
    are drawn for all remaining candidates and candidates whose lower
    confidence bound exceeds the smallest upper bound are discarded
    (racing, with confidence parameter `delta`). After `max_rounds`
    rounds, the candidate with smallest estimate is returned.

    The returned index is only with high probability a least contributor,
    in particular when contributions are close to each other. This is the
    price for avoiding the exact computation which is expensive for many
    objectives, not an error.

    `value` computes the exact hypervolume.

    >>> from mocma import LeastContributorApproximator
    >>> approximator = LeastContributorApproximator([3, 3], seed=3)
    >>> approximator.least_contributor([[0, 2], [0.9, 1.1], [1, 0.5], [2, 0]])
    1
    """
    def __init__(self, reference_point=None, offset=1.0, sample_size=200,
                 max_rounds=50, delta=1e-2, seed=None):
        self.reference_point = reference_point
        self.offset = offset
        self.sample_size = sample_size
        self.max_rounds = max_rounds
        self.delta = delta
        self.random_generator = np.random.default_rng(seed)

    def value(self, points):
        points = _as_points(points)
        if len(points) == 0:
            return 0.0
        return hv.hypervolume(points, reference_point_of(
            points, self.reference_point, self.offset))

    @staticmethod
    def bounding_boxes(points, reference_point):
        """return the upper corners of the boxes containing the exclusive
        contributions of `points`, which must be mutually non-dominated"""
        n, m = points.shape
        upper = np.tile(reference_point, (n, 1))
        for i in range(n):
            for j in range(m):
                others = np.delete(np.arange(n), i)
                rest = np.delete(np.arange(m), j)
                # q shadows point i in objective j if it is no worse in all
                # other objectives
                shadowing = np.all(points[others][:, rest] <= points[i, rest], axis=1)
                if np.any(shadowing):
                    upper[i, j] = min(upper[i, j], np.min(points[others][shadowing, j]))
        return upper

    def least_contributor(self, points):
        points = _as_points(points)
        _check_size(points)
        reference_point = reference_point_of(points, self.reference_point, self.offset)
        # of several equal points the first one is marked
        weakly_dominated = ~hv.nondominated(points[::-1])[::-1]
        if np.any(weakly_dominated):  # contributes nothing
            return int(np.argmax(weakly_dominated))
        upper = self.bounding_boxes(points, reference_point)
        volumes = np.prod(np.maximum(upper - points, 0), axis=1)
        if np.any(volumes <= 0):
            return int(np.argmax(volumes <= 0))
        n, m = points.shape
        hits = np.zeros(n)
        counts = np.zeros(n)
        estimates = np.array(volumes)
        active = np.ones(n, dtype=bool)
        log_term = np.log(2 * n * max(self.max_rounds, 1) / self.delta)
        for _ in range(self.max_rounds):
            for i in np.flatnonzero(active):
                samples = points[i] + self.random_generator.random(
                    (self.sample_size, m)) * (upper[i] - points[i])
                others = np.delete(points, i, axis=0)
                dominated = np.any(np.all(others[None, :, :] <= samples[:, None, :],
                                          axis=2), axis=1)
                hits[i] += self.sample_size - np.sum(dominated)
                counts[i] += self.sample_size
            estimates = volumes * hits / counts
            radius = volumes * np.sqrt(log_term / (2 * counts))
            best_upper = np.min((estimates + radius)[active])
            active &= estimates - radius <= best_upper
            if np.sum(active) == 1:
                break
        candidates = np.flatnonzero(active)
        return int(candidates[np.argmin(estimates[candidates])])
