#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Archive of mutually non-dominated objective vectors in any dimension.

Two objectives are better served by
`moarchiving.BiobjectiveNondominatedSortedList`, see `archive_class`.
"""
from __future__ import division

from moarchiving import BiobjectiveNondominatedSortedList

from .hv import HyperVolume


class NonDominatedList(list):
    """A list of objective vectors (`tuple` s) none of which weakly
    dominates another one.

    With a reference point, only vectors strictly better than the
    reference point in all objectives are kept.

    >>> from mocma.nondominatedarchive import NonDominatedList as NDA
    >>> a = NDA([[1, 0.5, 1], [0, 1, 1], [0, 2, 1], [3, 0, 0]], [2, 2, 2])
    >>> sorted(a)
    [(0, 1, 1), (1, 0.5, 1)]
    >>> a.add([0.5, 0.5, 1.5])
    True
    >>> len(a), a.dominates([1, 1, 1]), a.dominates([0.1, 0.1, 0.1])
    (3, True, False)
    >>> a.hypervolume
    2.625
    """

    def __init__(self, list_of_f_tuples=None, reference_point=None):
        if list_of_f_tuples is not None and len(list_of_f_tuples):
            list.__init__(self, [tuple(f) for f in list_of_f_tuples])
        self.reference_point = (None if reference_point is None
                                else [float(r) for r in reference_point])
        self._hypervolume = None
        self.prune()

    def add(self, f_tuple):
        """add `f_tuple` if it is in the domain and not weakly dominated,
        and remove the elements it dominates.

        Return `True` if `f_tuple` was added.
        """
        f_tuple = tuple(f_tuple)
        if not self.in_domain(f_tuple) or self.dominates(f_tuple):
            return False
        self[:] = [f for f in self if not self._weakly_dominates(f_tuple, f)]
        self.append(f_tuple)
        self._hypervolume = None
        return True

    def add_list(self, list_of_f_tuples):
        """add all elements of `list_of_f_tuples`, return the number of
        added elements"""
        return sum(self.add(f_tuple) for f_tuple in list_of_f_tuples)

    def remove(self, f_tuple):
        """remove element `f_tuple`, raise `ValueError` if ``f_tuple not in self``"""
        list.remove(self, tuple(f_tuple))
        self._hypervolume = None

    def prune(self):
        """remove out-of-domain, dominated and repeated elements.

        Of several equal elements the first one is kept.
        """
        pruned = []
        for f in self:
            if not self.in_domain(f):
                continue
            if any(self._weakly_dominates(g, f) for g in pruned):
                continue
            pruned = [g for g in pruned if not self._weakly_dominates(f, g)]
            pruned.append(f)
        self[:] = pruned
        self._hypervolume = None

    @staticmethod
    def _weakly_dominates(f1, f2):
        for a, b in zip(f1, f2):
            if a > b:
                return False
        return True

    def dominates(self, f_tuple):
        """return `True` if any element of `self` dominates or is equal to `f_tuple`.

        >>> from mocma.nondominatedarchive import NonDominatedList as NDA
        >>> a = NDA([[0.39, 0.075, 1], [0.0087, 0.14, 1]])
        >>> a.dominates(a[0])
        True
        >>> a.dominates([-1, 33, 1]) or a.dominates([33, -1, 1])
        False
        """
        return any(self._weakly_dominates(f, f_tuple) for f in self)

    def dominators(self, f_tuple, number_only=False):
        """return the list of elements weakly dominating `f_tuple`, or their
        number if `number_only`"""
        res = [f for f in self if self._weakly_dominates(f, f_tuple)]
        return len(res) if number_only else res

    def in_domain(self, f_tuple, reference_point=None):
        """return `True` if `f_tuple` is strictly better than the reference
        point in all objectives or if there is no reference point"""
        if reference_point is None:
            reference_point = self.reference_point
        if reference_point is None:
            return True
        return all(f < r for f, r in zip(f_tuple, reference_point))

    @property
    def hypervolume(self):
        """hypervolume w.r.t. the reference point, raise `ValueError` without
        reference point"""
        if self.reference_point is None:
            raise ValueError("to compute the hypervolume a reference"
                             " point is needed (must be given initially)")
        if self._hypervolume is None:
            self._hypervolume = HyperVolume(self.reference_point).compute(self)
        return self._hypervolume

    def contributing_hypervolume(self, f_tuple):
        """return the hypervolume improvement when adding `f_tuple`, or the
        contribution of `f_tuple` if it is in `self`"""
        if self.reference_point is None:
            raise ValueError("to compute the hypervolume a reference"
                             " point is needed (must be given initially)")
        f_tuple = tuple(f_tuple)
        hypervolume = HyperVolume(self.reference_point)
        if f_tuple in self:
            return self.hypervolume - hypervolume.compute(
                [f for f in self if f != f_tuple])
        return hypervolume.compute(list(self) + [f_tuple]) - self.hypervolume


def archive_class(number_of_objectives):
    """return the non-dominated archive class for `number_of_objectives`"""
    if number_of_objectives == 2:
        return BiobjectiveNondominatedSortedList
    return NonDominatedList
