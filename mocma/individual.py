#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""A candidate solution of the MO-CMA-ES with its own (1+1)-CMA-ES state.

See: Igel, Hansen and Roth. "Covariance Matrix Adaptation for
Multi-objective Optimization." Evolutionary Computation 15(1), 2007.
"""
from __future__ import division

import copy
import warnings

import numpy as np

DEFAULT_SUCCESS_THRESHOLD = 0.44
DEFAULT_MIN_STEP_SIZE = 1e-20


class Individual(object):
    """Search point, objective values and search strategy of one individual.

    The strategy consists of a step-size, a smoothed success probability,
    an evolution path and a covariance matrix. `mutate` samples a new
    search point and `update` adapts the strategy depending on
    `success_count`, which is set from outside, namely by the optimizer
    depending on the fate of the offspring in the selection.

    >>> import numpy as np
    >>> from mocma import Individual
    >>> ind = Individual(np.zeros(3), step_size=0.5)
    >>> ind.mutate(np.random.default_rng(1))
    >>> assert np.all(ind.search_point != 0)
    >>> ind.success_count = 1
    >>> ind.update()
    >>> assert ind.step_size > 0.5 and ind.success_count == 0
    >>> for _ in range(10):
    ...     ind.update()  # no successes
    >>> assert 0 < ind.step_size < 0.5

    Attributes
    ==========
    - `search_point`: `numpy.ndarray`, fixed dimension.
    - `step_size`: positive `float`, never below `min_step_size`.
    - `penalized_fitness`, `unpenalized_fitness`: `numpy.ndarray` or `None`
      before the first evaluation.
    - `rank`: front index in the last selection.
    - `selected`: whether the last selection kept the individual.
    - `age`: number of survived generations.
    - `success_count`: number of successful offspring since the last update.
    """
    def __init__(self, search_point, step_size=1.0,
                 success_threshold=DEFAULT_SUCCESS_THRESHOLD,
                 target_success_probability=None,
                 min_step_size=DEFAULT_MIN_STEP_SIZE):
        self.search_point = np.array(search_point, dtype=float)
        if self.search_point.ndim != 1 or len(self.search_point) == 0:
            raise ValueError("search point must be a non-empty vector, got %s"
                             % str(search_point))
        if not step_size > 0:
            raise ValueError("step size must be positive, was %s" % str(step_size))
        n = len(self.search_point)
        self.step_size = float(step_size)
        self.min_step_size = min_step_size
        self.penalized_fitness = None
        self.unpenalized_fitness = None
        self.rank = 0
        self.selected = False
        self.age = 0
        self.success_count = 0.0

        # strategy parameters of the (1+1)-CMA-ES
        self.target_success_probability = (1 / (5 + 0.5**0.5)
            if target_success_probability is None else target_success_probability)
        self.success_threshold = success_threshold
        self.damping = 1 + n / 2
        self.success_rate_learning_rate = (self.target_success_probability /
                                           (2 + self.target_success_probability))
        self.evolution_path_learning_rate = 2 / (n + 2)
        self.covariance_learning_rate = 2 / (n**2 + 6)

        self.success_probability = self.target_success_probability
        self.evolution_path = np.zeros(n)
        self.covariance = np.eye(n)
        self.cholesky_factor = np.eye(n)
        self.last_step = np.zeros(n)
        self._needs_covariance_update = False

    @property
    def dimension(self):
        return len(self.search_point)

    def copy(self):
        """return an independent copy of `self`"""
        return copy.deepcopy(self)

    def mutate(self, random_generator=None):
        """move `search_point` by a step from N(0, step_size**2 C).

        `random_generator` is a `numpy.random.Generator`, the step only
        depends on its state.
        """
        if random_generator is None:
            random_generator = np.random.default_rng()
        z = random_generator.standard_normal(self.dimension)
        self.last_step = np.dot(self.cholesky_factor, z)
        self.search_point = self.search_point + self.step_size * self.last_step
        self._needs_covariance_update = True

    def update(self):
        """adapt the strategy parameters from `success_count` and reset it.

        The success probability is smoothed with the observed success rate,
        the step-size is increased when it exceeds the target success
        probability and decreased otherwise. Freshly mutated individuals
        also adapt the covariance matrix with their last step.
        """
        rate = min(1.0, self.success_count)
        c_p = self.success_rate_learning_rate
        p_target = self.target_success_probability
        self.success_probability = (1 - c_p) * self.success_probability + c_p * rate
        self.step_size *= np.exp((self.success_probability - p_target) /
                                 (self.damping * (1 - p_target)))
        self.step_size = max(float(self.step_size), self.min_step_size)
        if self._needs_covariance_update:
            self._update_covariance()
            self._needs_covariance_update = False
        self.success_count = 0.0

    def _update_covariance(self):
        c_c = self.evolution_path_learning_rate
        c_cov = self.covariance_learning_rate
        if self.success_probability < self.success_threshold:
            self.evolution_path = ((1 - c_c) * self.evolution_path +
                                   (c_c * (2 - c_c))**0.5 * self.last_step)
            self.covariance = ((1 - c_cov) * self.covariance +
                               c_cov * np.outer(self.evolution_path, self.evolution_path))
        else:
            self.evolution_path = (1 - c_c) * self.evolution_path
            self.covariance = ((1 - c_cov) * self.covariance +
                               c_cov * (np.outer(self.evolution_path, self.evolution_path)
                                        + c_c * (2 - c_c) * self.covariance))
        self._set_cholesky_factor()

    def _set_cholesky_factor(self):
        try:
            self.cholesky_factor = np.linalg.cholesky(self.covariance)
        except np.linalg.LinAlgError:
            warnings.warn("covariance matrix not positive definite, repaired"
                          " (condition %.1e)" % np.linalg.cond(self.covariance))
            symmetric = (self.covariance + self.covariance.T) / 2
            eigenvalues, eigenvectors = np.linalg.eigh(symmetric)
            eigenvalues = np.maximum(eigenvalues, 1e-12 * max(1.0, np.max(eigenvalues)))
            self.covariance = np.dot(eigenvectors * eigenvalues, eigenvectors.T)
            self.cholesky_factor = np.linalg.cholesky(self.covariance)

    def __repr__(self):
        return ("<%s rank=%d selected=%s age=%d step_size=%.3e f=%s>"
                % (self.__class__.__name__, self.rank, self.selected, self.age,
                   self.step_size, None if self.unpenalized_fitness is None
                   else np.round(self.unpenalized_fitness, 6).tolist()))
