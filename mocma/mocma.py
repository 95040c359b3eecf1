#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
This module contains the implementation of the multiobjective covariance
matrix adaptation evolution strategy with indicator based selection,
MO-CMA-ES, defined in [Igel, Hansen and Roth. "Covariance Matrix
Adaptation for Multi-objective Optimization." Evolutionary Computation
15(1), 2007] with the improved step-size adaptation of [Voss, Hansen and
Igel. "Improved Step Size Adaptation for the MO-CMA-ES." GECCO 2010].

A population of `mu` individuals, each with its own (1+1)-CMA-ES
strategy, generates `mu` offspring per iteration, one per parent. The
next population is selected out of parents and offspring by
non-dominated sorting and, on the critical front, by the contribution
to a quality indicator, by default the hypervolume.

>>> import cma, mocma
>>> fitness = mocma.FitFun(cma.ff.sphere, lambda x: cma.ff.sphere(x - 1),
...                        dimension=3, bounds=[-5, 5])
>>> moes = mocma.MOCMA({'mu': 5, 'reference_point': [200, 200], 'seed': 4,
...                     'verb_disp': 0, 'verb_log': 0})
>>> moes = moes.optimize(fitness, iterations=40)
>>> len(moes.result), moes.countiter, moes.countevals
(5, 40, 210)
>>> assert moes.hypervolume > 0
>>> point, value = moes.result[0]
>>> assert len(point) == 3 and len(value) == 2

"""
from __future__ import division
__author__ = "The mocma developers"
__license__ = "BSD 3-clause"
__version__ = "0.1.0"

import collections
import enum
import os
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from . import hv
from .evaluation import DEFAULT_PENALTY_FACTOR, PenalizingEvaluator
from .indicators import (AdditiveEpsilonIndicator, HypervolumeIndicator,
                         LeastContributorApproximator, reference_point_of)
from .individual import (DEFAULT_MIN_STEP_SIZE, DEFAULT_SUCCESS_THRESHOLD,
                         Individual)
from .mocma_logger import MOCMADataLogger
from .nondominatedarchive import archive_class
from .selection import IndicatorBasedSelection

ResultSet = collections.namedtuple('ResultSet', ['point', 'value'])
"""a search point and its unpenalized objective values"""


class NotionOfSuccess(enum.Enum):
    """when an offspring counts as successful.

    ``INDIVIDUAL_BASED``: the offspring is selected and its rank is not
    worse than the rank of its parent.
    ``POPULATION_BASED``: the offspring is selected.
    """
    INDIVIDUAL_BASED = 'individual'
    POPULATION_BASED = 'population'

    @classmethod
    def from_value(cls, value):
        """return the member for `value`, accepting also strings like
        ``'individual'``, ``'PopulationBased'`` or ``'population_based'``"""
        if isinstance(value, cls):
            return value
        key = str(value).lower().replace('_', '').replace('-', '')
        for notion in cls:
            if key in (notion.value, notion.value + 'based'):
                return notion
        raise ValueError("notion of success must be one of %s, was %s"
                         % (str([n.value for n in cls]), repr(value)))


class MOCMAOptions(dict):
    """`dict` of `MOCMA` options with defaults, validated on creation.

    >>> from mocma import MOCMAOptions
    >>> opts = MOCMAOptions({'mu': 10, 'notion_of_success': 'population'})
    >>> opts['mu'], opts['notion_of_success'].name, opts['initial_sigma']
    (10, 'POPULATION_BASED', 1.0)
    >>> try:
    ...     MOCMAOptions({'popsize': 10})
    ... except ValueError: pass
    ... else: raise AssertionError("invalid key accepted")
    """
    defaults = {
        'mu': 100,  # number of parents and of offspring
        'penalty_factor': DEFAULT_PENALTY_FACTOR,
        'success_threshold': DEFAULT_SUCCESS_THRESHOLD,  # cuts off evolution path updates
        'notion_of_success': NotionOfSuccess.INDIVIDUAL_BASED,
        'initial_sigma': 1.0,
        'reference_point': None,  # for the hypervolume, None means adaptive
        'seed': None,  # None draws a seed which is then stored
        'min_sigma': DEFAULT_MIN_STEP_SIZE,
        'archive': True,  # keep all non-dominated unpenalized objective values
        'n_jobs': 0,  # evaluate in a thread pool if > 1
        'verb_disp': 100,
        'verb_log': 1,
        'verb_filename': 'outmocma' + os.sep,
    }

    def __init__(self, opts=None):
        dict.__init__(self, self.defaults)
        if opts is None:
            opts = {}
        if not isinstance(opts, dict):
            raise ValueError("options must be a dictionary or None, was %s"
                             % str(type(opts)))
        unvalid_keys = [k for k in opts if k not in self.defaults]
        if unvalid_keys:
            raise ValueError('The following keys of opts are not valid: '
                             + ', '.join(str(k) for k in unvalid_keys) + '.')
        self.update(opts)
        self.check()

    def check(self):
        """validate and normalize the values, raise `ValueError`"""
        mu = self['mu']
        if isinstance(mu, bool) or int(mu) != mu or mu < 1:
            raise ValueError("mu must be a positive integer, was %s" % str(mu))
        self['mu'] = int(mu)
        if not self['penalty_factor'] >= 0:
            raise ValueError("penalty_factor must be non-negative, was %s"
                             % str(self['penalty_factor']))
        if not 0 < self['success_threshold'] <= 1:
            raise ValueError("success_threshold must be in (0, 1], was %s"
                             % str(self['success_threshold']))
        for key in ('initial_sigma', 'min_sigma'):
            if not self[key] > 0:
                raise ValueError("%s must be positive, was %s" % (key, str(self[key])))
        self['initial_sigma'] = float(self['initial_sigma'])
        self['notion_of_success'] = NotionOfSuccess.from_value(self['notion_of_success'])
        if self['reference_point'] is not None:
            self['reference_point'] = [float(r) for r in self['reference_point']]
        if self['seed'] is None:
            self['seed'] = np.random.SeedSequence().entropy
        elif int(self['seed']) != self['seed'] or self['seed'] < 0:
            raise ValueError("seed must be a non-negative integer, was %s"
                             % str(self['seed']))
        if self['n_jobs'] is not None and self['n_jobs'] < 0:
            raise ValueError("n_jobs must be non-negative, was %s" % str(self['n_jobs']))
        return self


class MOCMA(object):
    """MO-CMA-ES with indicator based selection.

    Calling Sequences
    =================

    - ``moes = MOCMA(options, indicator=None)``

    - ``moes.init(objective_function, starting_point=None)``

    - ``result = moes.step(objective_function)``, the list of `mu`
      `ResultSet` s ``(point, value)`` of the current population, where
      ``value`` are the unpenalized objective values.

    - ``moes.optimize(objective_function, iterations)`` combines both.

    Arguments
    =========
    `options`
        a `dict` or `MOCMAOptions`, see ``MOCMAOptions.defaults``.
    `indicator`
        decides about the survivors in the critical front. Default is
        `HypervolumeIndicator` with ``options['reference_point']``, see
        also `EpsilonMOCMA` and `ApproximatedVolumeMOCMA`.

    A configured ``options['reference_point']`` is used by the selection,
    not only for display and logging. It must be dominated by every
    penalized objective vector which reaches the selection, otherwise
    `init` or `step` raise `ReferencePointError`. Without it, the
    reference point adapts to the population.

    The objective function is minimized. It provides
    `number_of_variables`, `number_of_objectives`,
    `propose_starting_point(random_generator)`, returns the objective
    values when called or, if not callable, from its `evaluate` method,
    and may provide `is_feasible` and `closest_feasible` for constraints,
    see `ObjectiveFunction`.

    Attributes
    ==========
    - `population`: the list of ``2 * mu`` `Individual` s, the parents
      in the first `mu` slots after each `step`.
    - `countiter`, `countevals`: iteration and evaluation counters.
    - `archive`: non-dominated unpenalized objective values of all
      evaluations, `None` with ``options['archive'] == False``.
    - `result`: the list returned by the last `step`.
    - `logger`: a `MOCMADataLogger` writing every ``verb_log`` iterations.

    Randomness depends only on ``options['seed']``, the iteration and the
    offspring index, hence results do not depend on ``options['n_jobs']``.
    """
    def __init__(self, options=None, indicator=None):
        self.opts = options if isinstance(options, MOCMAOptions) else MOCMAOptions(options)
        self.mu = self.opts['mu']
        self.reference_point = self.opts['reference_point']
        self.notion_of_success = self.opts['notion_of_success']
        self.indicator = indicator if indicator is not None else self._default_indicator()
        self.selection = IndicatorBasedSelection(self.indicator, self.mu)
        self.evaluator = PenalizingEvaluator(self.opts['penalty_factor'])
        self.population = []
        self.result = []
        self.archive = None
        self.countiter = 0
        self.countevals = 0
        self.success_ratio = 0.0
        self.logger = MOCMADataLogger(self.opts['verb_filename'],
                                      modulo=self.opts['verb_log']).register(self)

    def _default_indicator(self):
        return HypervolumeIndicator(self.reference_point)

    def _random_generator(self, stream, index):
        """return the random number generator of offspring `index` in
        iteration `stream`, stream 0 is for the initialization"""
        return np.random.default_rng([self.opts['seed'], stream, index])

    @property
    def initialized(self):
        return len(self.population) > 0

    def init(self, objective_function, starting_point=None):
        """create and evaluate ``2 * mu`` individuals.

        Search points are proposed by the objective function unless
        `starting_point` is given, in which case all individuals start
        there.
        """
        n = objective_function.number_of_variables
        m = objective_function.number_of_objectives
        if n < 1 or m < 1:
            raise ValueError("the objective function must have at least one variable"
                             " and one objective, has %d and %d" % (n, m))
        if self.reference_point is not None and len(self.reference_point) != m:
            raise ValueError("reference point of length %d does not match %d objectives"
                             % (len(self.reference_point), m))
        if starting_point is not None and np.size(starting_point) != n:
            raise ValueError("starting point of size %d does not match %d variables"
                             % (np.size(starting_point), n))
        self.population = []
        for i in range(2 * self.mu):
            if starting_point is None:
                x = objective_function.propose_starting_point(self._random_generator(0, i))
            else:
                x = np.ravel(starting_point)
            if np.size(x) != n:
                raise ValueError("proposed starting point of size %d does not match"
                                 " %d variables" % (np.size(x), n))
            self.population.append(Individual(
                x, step_size=self.opts['initial_sigma'],
                success_threshold=self.opts['success_threshold'],
                min_step_size=self.opts['min_sigma']))
        self.countiter = 0
        self.countevals = 0
        self.archive = None
        self._evaluate(objective_function, self.population)
        if getattr(self.indicator, 'reference_point', None) is not None:
            # raises ReferencePointError
            reference_point_of([ind.penalized_fitness for ind in self.population],
                               self.indicator.reference_point)
        self.result = [ResultSet(ind.search_point.copy(), ind.unpenalized_fitness.copy())
                       for ind in self.population[:self.mu]]
        return self

    def _evaluate(self, objective_function, individuals):
        """evaluate `individuals` and add them to the archive.

        With ``n_jobs > 1`` the evaluations run in a thread pool and this
        method returns when all of them are done.
        """
        n_jobs = self.opts['n_jobs'] or 0
        if n_jobs > 1 and len(individuals) > 1:
            with ThreadPoolExecutor(max_workers=n_jobs) as executor:
                futures = [executor.submit(self.evaluator.evaluate,
                                           objective_function, individual)
                           for individual in individuals]
                for future in futures:
                    future.result()  # raises the exception of the evaluation
        else:
            for individual in individuals:
                self.evaluator.evaluate(objective_function, individual)
        self.countevals += len(individuals)
        if self.opts['archive']:
            values = [ind.unpenalized_fitness.tolist() for ind in individuals]
            if self.archive is None:
                self.archive = archive_class(len(values[0]))(values, self.reference_point)
            else:
                self.archive.add_list(values)

    def _is_successful(self, offspring, parent):
        if self.notion_of_success is NotionOfSuccess.POPULATION_BASED:
            return offspring.selected
        return offspring.selected and offspring.rank <= parent.rank

    @staticmethod
    def partition(population):
        """return `population` with the selected individuals first, both
        parts in their original order"""
        return ([ind for ind in population if ind.selected] +
                [ind for ind in population if not ind.selected])

    def step(self, objective_function):
        """execute one iteration and return the list of `ResultSet` s of
        the new parents"""
        if not self.initialized:
            raise RuntimeError("call init(objective_function) before step()")
        mu = self.mu
        self.countiter += 1
        for i in range(mu):
            offspring = self.population[i].copy()
            offspring.mutate(self._random_generator(self.countiter, i))
            offspring.age = 0
            self.population[mu + i] = offspring
        self._evaluate(objective_function, self.population[mu:])

        self.selection(self.population)
        successes = 0
        for i in range(mu):
            offspring, parent = self.population[mu + i], self.population[i]
            if self._is_successful(offspring, parent):
                offspring.success_count += 1
                parent.success_count += 1
                successes += 1
        self.success_ratio = successes / mu

        self.population = self.partition(self.population)
        self.result = []
        for individual in self.population[:mu]:
            individual.age += 1
            individual.update()
            self.result.append(ResultSet(individual.search_point.copy(),
                                         individual.unpenalized_fitness.copy()))
        self.logger.add()
        return self.result

    def optimize(self, objective_function, iterations=None, maxfun=None,
                 verb_disp=None, callback=None):
        """call `init` if necessary and then `step` until `iterations`
        further iterations are done or `maxfun` evaluations are reached.

        `callback` is a callable or a list of callables which are called
        with `self` after each iteration. Return `self`.
        """
        if iterations is None and maxfun is None:
            raise ValueError("either iterations or maxfun must be given")
        if verb_disp is None:
            verb_disp = self.opts['verb_disp']
        if callback is None:
            callback = []
        elif callable(callback):
            callback = [callback]
        if not self.initialized:
            self.init(objective_function)
        citer = 0
        while ((iterations is None or citer < iterations) and
               (maxfun is None or self.countevals < maxfun)):
            self.step(objective_function)
            citer += 1
            for c in callback:
                c(self)
            self.disp(verb_disp)
        if verb_disp:
            self.disp(1)
        return self

    @property
    def parents(self):
        return self.population[:self.mu]

    def _front_mask(self):
        return hv.nondominated([ind.unpenalized_fitness for ind in self.parents])

    @property
    def pareto_front(self):
        """non-dominated unpenalized objective values of the parents"""
        if not self.initialized:
            return []
        mask = self._front_mask()
        return [ind.unpenalized_fitness.tolist()
                for ind, keep in zip(self.parents, mask) if keep]

    @property
    def pareto_set(self):
        """the search points belonging to `pareto_front`"""
        if not self.initialized:
            return []
        mask = self._front_mask()
        return [ind.search_point.copy() for ind, keep in zip(self.parents, mask) if keep]

    @property
    def hypervolume(self):
        """hypervolume of `pareto_front` w.r.t. the reference point, `None`
        without reference point"""
        if self.reference_point is None:
            return None
        if not self.initialized:
            return 0.0
        return hv.hypervolume(self.pareto_front, self.reference_point)

    def disp_annotation(self):
        """print annotation line for `disp` ()"""
        self.has_been_called = True
        print('Iterat #Fevals   Hypervolume    sigmas  min&max sigma  success\n'
              + '(median)'.rjust(40) + 'ratio'.rjust(22))

    def disp(self, modulo=None):
        """print current state variables in a single-line.

        Prints only if ``iteration_counter % modulo == 0``.

        :See also: `disp_annotation`.
        """
        if modulo is None:
            modulo = self.opts['verb_disp']
        if modulo and self.initialized:
            if not hasattr(self, 'has_been_called'):
                self.disp_annotation()
            if self.countiter > 0 and (self.countiter < 4 or self.countiter % modulo < 1):
                sigmas = [ind.step_size for ind in self.parents]
                hypervolume = self.hypervolume
                print(' '.join((repr(self.countiter).rjust(5),
                                repr(self.countevals).rjust(6),
                                '%.15e' % hypervolume if hypervolume is not None
                                else 'None'.rjust(21),
                                '%6.2e' % np.median(sigmas),
                                '%6.0e' % min(sigmas),
                                '%6.0e' % max(sigmas),
                                '%.2f' % self.success_ratio)))
        return self


class EpsilonMOCMA(MOCMA):
    """`MOCMA` with the `AdditiveEpsilonIndicator` selection, which needs no
    reference point"""
    def _default_indicator(self):
        return AdditiveEpsilonIndicator()


class ApproximatedVolumeMOCMA(MOCMA):
    """`MOCMA` with the hypervolume least contributor approximated by
    sampling, see `LeastContributorApproximator`, which makes sense with
    many objectives"""
    def _default_indicator(self):
        return LeastContributorApproximator(self.reference_point, seed=self.opts['seed'])
