#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Evaluation of search points with penalization of infeasible points."""
from __future__ import division

import numpy as np

DEFAULT_PENALTY_FACTOR = 1e-6


class PenalizingEvaluator(object):
    """Evaluate an objective function, penalizing constraint violations.

    A feasible point is evaluated as is. An infeasible point is evaluated
    at the closest feasible point (as given by the objective function),
    which yields the unpenalized objective values, and the penalized values
    are the unpenalized ones plus ``penalty_factor`` times the squared
    distance between the two points in each objective.

    Calling the evaluator returns the tuple ``(penalized, unpenalized)``.
    Each call evaluates the objective function exactly once.

    >>> import cma, mocma
    >>> fitness = mocma.FitFun(cma.ff.sphere, lambda x: cma.ff.sphere(x - 1),
    ...                        dimension=2, bounds=[0, 2])
    >>> evaluate = mocma.PenalizingEvaluator(penalty_factor=0.5)
    >>> penalized, unpenalized = evaluate(fitness, [3, 1])
    >>> unpenalized.tolist(), penalized.tolist()
    ([5.0, 1.0], [5.5, 1.5])
    >>> fitness.evaluation_counter
    1
    >>> [f.tolist() for f in evaluate(fitness, [1, 1])]
    [[2.0, 0.0], [2.0, 0.0]]
    """
    def __init__(self, penalty_factor=DEFAULT_PENALTY_FACTOR):
        if penalty_factor < 0:
            raise ValueError("penalty factor must be non-negative, was %s"
                             % str(penalty_factor))
        self.penalty_factor = penalty_factor

    @staticmethod
    def objective_values(objective_function, x):
        """return the values of `objective_function` at `x`, calling its
        `evaluate` method if it is not callable"""
        if callable(objective_function):
            return np.asarray(objective_function(x), dtype=float)
        return np.asarray(objective_function.evaluate(x), dtype=float)

    def __call__(self, objective_function, x):
        x = np.asarray(x, dtype=float)
        is_feasible = getattr(objective_function, 'is_feasible', None)
        if is_feasible is None or is_feasible(x):
            unpenalized = self.objective_values(objective_function, x)
            return unpenalized.copy(), unpenalized
        feasible = np.asarray(objective_function.closest_feasible(x), dtype=float)
        unpenalized = self.objective_values(objective_function, feasible)
        penalized = unpenalized + self.penalty_factor * np.sum((x - feasible)**2)
        return penalized, unpenalized

    def evaluate(self, objective_function, individual):
        """evaluate `individual` and set its fitness attributes"""
        (individual.penalized_fitness,
         individual.unpenalized_fitness) = self(objective_function, individual.search_point)
        return individual
