#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Multiobjective functions to be optimized (minimized) by `MOCMA`.

An objective function provides `number_of_variables`,
`number_of_objectives`, `propose_starting_point`, and is called with a
search point to return the vector of objective values. Box constrained
functions also provide `is_feasible` and `closest_feasible`.
"""
from __future__ import division

import threading

import numpy as np


class ObjectiveFunction(object):
    """Base class of a multiobjective function with optional box constraints.

    Derived classes implement `evaluate`. Calling the instance evaluates
    and increments `evaluation_counter`, also when called from several
    threads.

    `bounds` is ``None`` or a pair ``[lower, upper]`` where each element is
    a scalar or a sequence of length `number_of_variables`.
    """
    name = None

    def __init__(self, number_of_variables, number_of_objectives, bounds=None):
        if number_of_variables < 1 or number_of_objectives < 1:
            raise ValueError("need at least one variable and one objective, got"
                             " %s and %s" % (str(number_of_variables),
                                             str(number_of_objectives)))
        self.number_of_variables = number_of_variables
        self.number_of_objectives = number_of_objectives
        self.evaluation_counter = 0
        self._lock = threading.Lock()
        self.lower_bounds = self.upper_bounds = None
        if bounds is not None:
            if len(bounds) != 2:
                raise ValueError("bounds must be a pair [lower, upper], got %s"
                                 % str(bounds))
            self.lower_bounds, self.upper_bounds = [
                np.array(np.broadcast_to(np.asarray(b, dtype=float),
                                         (number_of_variables,)))
                for b in bounds]
            if np.any(self.lower_bounds > self.upper_bounds):
                raise ValueError("lower bounds must not exceed upper bounds")

    @property
    def bounds(self):
        if self.lower_bounds is None:
            return None
        return [self.lower_bounds, self.upper_bounds]

    def evaluate(self, x):
        raise NotImplementedError

    def __call__(self, x):
        with self._lock:
            self.evaluation_counter += 1
        return np.asarray(self.evaluate(np.asarray(x, dtype=float)), dtype=float)

    def propose_starting_point(self, random_generator=None):
        """return a uniform random point in the bounds, or in [-5, 5]**n"""
        if random_generator is None:
            random_generator = np.random.default_rng()
        if self.lower_bounds is None:
            return 10 * random_generator.random(self.number_of_variables) - 5
        return self.lower_bounds + random_generator.random(
            self.number_of_variables) * (self.upper_bounds - self.lower_bounds)

    def is_feasible(self, x):
        if self.lower_bounds is None:
            return True
        x = np.asarray(x)
        return bool(np.all(x >= self.lower_bounds) and np.all(x <= self.upper_bounds))

    def closest_feasible(self, x):
        """return the projection of `x` onto the box"""
        if self.lower_bounds is None:
            return np.array(x, dtype=float)
        return np.clip(x, self.lower_bounds, self.upper_bounds)

    def __getstate__(self):
        state = dict(self.__dict__)
        del state['_lock']
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._lock = threading.Lock()


class FitFun(ObjectiveFunction):
    """Define a callable multiobjective function from single objective ones.

    Example::

        >>> import cma, mocma
        >>> fitness = mocma.FitFun(cma.ff.sphere, lambda x: cma.ff.sphere(x - 1),
        ...                        dimension=3)
        >>> fitness([0, 0, 0]).tolist()
        [0.0, 3.0]
        >>> fitness.number_of_objectives, fitness.evaluation_counter
        (2, 1)

    When `x0` is given, `propose_starting_point` returns `x0`, otherwise a
    uniform random point in the `bounds` or in [-5, 5]**dimension.
    """
    def __init__(self, *callables, **kwargs):
        dimension = kwargs.pop('dimension', None)
        bounds = kwargs.pop('bounds', None)
        x0 = kwargs.pop('x0', None)
        if kwargs:
            raise TypeError("unexpected keyword arguments %s" % str(list(kwargs)))
        if x0 is not None:
            x0 = np.array(x0, dtype=float)
            if dimension is None:
                dimension = len(x0)
        if dimension is None:
            raise ValueError("either `dimension` or `x0` must be given")
        if x0 is not None and len(x0) != dimension:
            raise ValueError("x0 of length %d does not match dimension %d"
                             % (len(x0), dimension))
        super(FitFun, self).__init__(dimension, len(callables), bounds)
        self.callables = callables
        self.x0 = x0

    def evaluate(self, x):
        return [f(x) for f in self.callables]

    def propose_starting_point(self, random_generator=None):
        if self.x0 is not None:
            return np.array(self.x0)
        return super(FitFun, self).propose_starting_point(random_generator)


class ZDT4(ObjectiveFunction):
    """Bi-objective benchmark ZDT4 with 21**(n-1) local Pareto fronts.

    The first variable lies in [0, 1], the others in [-5, 5]. The Pareto
    front is ``f2 = 1 - sqrt(f1)`` for ``f1`` in [0, 1].

    See: Zitzler, Deb and Thiele. "Comparison of Multiobjective
    Evolutionary Algorithms: Empirical Results." Evolutionary Computation
    8(2), 2000.

    >>> import numpy as np, mocma
    >>> zdt4 = mocma.ZDT4(10)
    >>> f = zdt4(np.hstack([0.25, np.zeros(9)]))
    >>> assert np.allclose(f, [0.25, 0.5])
    >>> zdt4.is_feasible(np.ones(10)), zdt4.is_feasible(-np.ones(10))
    (True, False)
    """
    name = 'ZDT4'

    def __init__(self, number_of_variables=10):
        lower = np.full(number_of_variables, -5.)
        upper = np.full(number_of_variables, 5.)
        lower[0], upper[0] = 0, 1
        super(ZDT4, self).__init__(number_of_variables, 2, [lower, upper])

    def evaluate(self, x):
        n = len(x)
        g = 1 + 10 * (n - 1) + np.sum(x[1:]**2 - 10 * np.cos(4 * np.pi * x[1:]))
        return [x[0], g * (1 - (x[0] / g)**0.5)]

    @staticmethod
    def reference_front(number_of_points=100):
        f1 = np.linspace(0, 1, number_of_points)
        return np.vstack([f1, 1 - f1**0.5]).T


class DTLZ3(ObjectiveFunction):
    """Benchmark DTLZ3, scalable in the number of variables and objectives.

    The variables lie in [0, 1]. The Pareto front is the part of the unit
    sphere in the positive orthant, reached when the last
    ``n - m + 1`` variables equal 0.5.

    See: Deb, Thiele, Laumanns and Zitzler. "Scalable Test Problems for
    Evolutionary Multi-Objective Optimization." 2001.

    >>> import numpy as np, mocma
    >>> dtlz3 = mocma.DTLZ3(5, 3)
    >>> f = dtlz3([0.3, 0.6, 0.5, 0.5, 0.5])
    >>> assert np.isclose(np.sum(f**2), 1)
    """
    name = 'DTLZ3'

    def __init__(self, number_of_variables=10, number_of_objectives=2):
        if number_of_variables < number_of_objectives:
            raise ValueError("DTLZ3 needs at least as many variables (%d) as"
                             " objectives (%d)" % (number_of_variables,
                                                   number_of_objectives))
        super(DTLZ3, self).__init__(number_of_variables, number_of_objectives, [0, 1])

    def evaluate(self, x):
        m = self.number_of_objectives
        tail = x[m - 1:]
        g = 100 * (len(tail) + np.sum((tail - 0.5)**2 - np.cos(20 * np.pi * (tail - 0.5))))
        res = []
        for i in range(m):
            f = 1 + g
            f *= np.prod(np.cos(x[:m - 1 - i] * np.pi / 2))
            if i > 0:
                f *= np.sin(x[m - 1 - i] * np.pi / 2)
            res.append(f)
        return res

    def reference_front(self, number_of_points=100):
        """return points of the bi-objective Pareto front"""
        if self.number_of_objectives != 2:
            raise ValueError("reference front only available for two objectives,"
                             " not for %d" % self.number_of_objectives)
        f1 = np.linspace(0, 1, number_of_points)
        return np.vstack([f1, (1 - f1**2)**0.5]).T
