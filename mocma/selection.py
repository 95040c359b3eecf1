#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Non-dominated sorting and indicator based environmental selection.

>>> from mocma.selection import fast_non_dominated_sort
>>> fast_non_dominated_sort([[1, 1], [0, 2], [2, 2], [3, 3], [2, 0]])
[[0, 1, 4], [2], [3]]

"""
from __future__ import division

import numpy as np


def dominates(f1, f2):
    """return `True` if `f1` Pareto-dominates `f2` (minimization).

    >>> from mocma.selection import dominates
    >>> dominates([0, 1], [1, 1]), dominates([1, 1], [1, 1]), dominates([0, 2], [2, 0])
    (True, False, False)
    """
    f1, f2 = np.asarray(f1), np.asarray(f2)
    return bool(np.all(f1 <= f2) and np.any(f1 < f2))


def domination_matrix(fitness):
    """return the boolean matrix ``D`` where ``D[p, q]`` means that
    ``fitness[p]`` dominates ``fitness[q]``"""
    fitness = np.asarray(fitness, dtype=float)
    le = np.all(fitness[:, None, :] <= fitness[None, :, :], axis=2)
    lt = np.any(fitness[:, None, :] < fitness[None, :, :], axis=2)
    return le & lt


def fast_non_dominated_sort(fitness):
    """return the list of non-domination fronts of `fitness`.

    Each front is a list of indices into `fitness` in increasing order,
    the first front contains the non-dominated vectors. Equal vectors
    share the same front.
    """
    fitness = np.asarray(fitness, dtype=float)
    if len(fitness) == 0:
        return []
    dominated_by = domination_matrix(fitness)
    count = np.sum(dominated_by, axis=0)  # number of dominating vectors
    fronts = []
    front = np.flatnonzero(count == 0)
    while len(front):
        fronts.append(front.tolist())
        count[front] = -1
        count -= np.sum(dominated_by[front], axis=0)
        front = np.flatnonzero(count == 0)
    return fronts


def ranks(fitness):
    """return the front index of each element of `fitness`, starting at zero"""
    res = np.zeros(len(fitness), dtype=int)
    for rank, front in enumerate(fast_non_dominated_sort(fitness)):
        res[front] = rank
    return res


class IndicatorBasedSelection(object):
    """Select `mu` out of a population by non-dominated sorting and an indicator.

    Calling the instance with a population of individuals, which have
    attributes `penalized_fitness`, `rank` and `selected`, sets the `rank`
    of all individuals to their front index and their `selected` flag such
    that exactly `mu` of them are selected. Whole fronts are selected in
    order of rank as long as they fit. From the first front which does not
    fit, the critical front, the least contributor w.r.t. `indicator` is
    removed iteratively until the front fits into the remaining slots.

    >>> import mocma
    >>> from mocma.selection import IndicatorBasedSelection
    >>> population = [mocma.Individual([0.]) for _ in range(4)]
    >>> for ind, f in zip(population, [[0, 2], [1, 1.1], [2, 0], [0.5, 1.8]]):
    ...     ind.penalized_fitness = f
    >>> selection = IndicatorBasedSelection(mocma.HypervolumeIndicator([3, 3]), 3)
    >>> selection(population)
    [0, 1, 2]
    >>> [ind.selected for ind in population], [ind.rank for ind in population]
    ([True, True, True, False], [0, 0, 0, 0])
    """
    def __init__(self, indicator, mu):
        if mu < 1:
            raise ValueError("mu must be a positive integer, was %s" % str(mu))
        self.indicator = indicator
        self.mu = mu

    def __call__(self, population):
        """set `rank` and `selected` of each individual in `population`.

        Return the sorted list of indices of the selected individuals.
        """
        if len(population) < self.mu:
            raise ValueError("cannot select %d out of %d individuals"
                             % (self.mu, len(population)))
        fitness = np.asarray([ind.penalized_fitness for ind in population],
                             dtype=float)
        fronts = fast_non_dominated_sort(fitness)
        for rank, front in enumerate(fronts):
            for i in front:
                population[i].rank = rank
                population[i].selected = False
        slots = self.mu
        for front in fronts:
            if slots == 0:
                break
            front = list(front)
            while len(front) > slots:  # critical front
                del front[self.indicator.least_contributor(fitness[front])]
            for i in front:
                population[i].selected = True
            slots -= len(front)
        return sorted(i for i in range(len(population)) if population[i].selected)
