#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""File data logger for `MOCMA`, in the manner of `cma.CMADataLogger`."""
from __future__ import division

import os
import time

import numpy as np
from cma import interfaces


class MOCMADataLogger(interfaces.BaseDataLogger):
    """data logger for class `MOCMA`.

    The logger is identified by its name prefix and (over-)writes or
    reads the according data files. Two loggers with the same name prefix
    in the same working folder overwrite each other.

    Examples
    ========
    ::

        import cma, mocma
        moes = mocma.MOCMA({'mu': 10, 'reference_point': [25, 25]})
        moes.optimize(mocma.FitFun(cma.ff.sphere, lambda x: cma.ff.sphere(x - 1),
                                   dimension=5, bounds=[-1, 2]), 100)
        moes.logger.plot()  # needs matplotlib

        logger = mocma.MOCMADataLogger('outmocma/').load()
        logger.data['hypervolume'][:, 2]  # hypervolume versus iteration

    Details
    =======
    Each file contains a header line starting with ``%`` and then lines of
    ``iteration evaluations value[s]``. After `load`, the `data` attribute
    maps the file name trail to a 2-D `numpy.ndarray` with these columns.

    :See: `load` (), `plot` ()
    """
    default_prefix = 'outmocma' + os.sep
    file_names = ('hypervolume', 'hypervolume_archive', 'len_archive',
                  'sigmas', 'success_ratio')
    column_names = {'hypervolume': 'hypervolume',
                    'hypervolume_archive': 'hypervolume of archive',
                    'len_archive': 'length archive',
                    'sigmas': 'median sigma, min sigma, max sigma',
                    'success_ratio': 'ratio of successful offspring'}

    def __init__(self, name_prefix=default_prefix, modulo=1, append=False):
        """initialize logging of data from a `MOCMA` instance, default
        ``modulo=1`` means logging with each call of `add`
        """
        interfaces.BaseDataLogger.__init__(self)
        if name_prefix is None:
            name_prefix = MOCMADataLogger.default_prefix
        self.name_prefix = os.path.abspath(os.path.join(*os.path.split(name_prefix)))
        if name_prefix.endswith((os.sep, '/')):
            self.name_prefix = self.name_prefix + os.sep
        self.modulo = modulo
        """how often to record data, allows calling `add` without args"""
        self.append = append
        """append to previous data"""
        self.counter = 0
        """number of calls to `add`"""
        self.last_iteration = 0
        self.registered = False
        self._data = {}  # read through the `data` property

    def register(self, es, append=None, modulo=None):
        """register a `MOCMA` instance for logging,
        ``append=True`` appends to previous data logged under the same name,
        by default previous data are overwritten.
        """
        self.es = es
        if append is not None:
            self.append = append
        if modulo is not None:
            self.modulo = modulo
        self.registered = True
        return self

    def initialize(self, modulo=None):
        """reset logger, overwrite original files, `modulo`: log only every modulo call"""
        if modulo is not None:
            self.modulo = modulo
        if not self.registered:
            raise AttributeError('call register() before initialize()')
        self.counter = 0
        self.last_iteration = 0
        if not self.modulo:
            return self

        if os.path.dirname(self.name_prefix):
            try:
                os.makedirs(os.path.dirname(self.name_prefix))
            except OSError:
                pass  # folder exists

        strseedtime = 'seed=%s, %s' % (str(self.es.opts['seed']), time.asctime())
        for name in self.file_names:
            fn = self.name_prefix + name + '.dat'
            try:
                with open(fn, 'w') as f:
                    f.write('% # columns="iteration, evaluation, ' +
                            self.column_names[name] + '", ' + strseedtime + '\n')
            except (IOError, OSError):
                print('could not open/write file ' + fn)
        return self

    def add(self, es=None, more_data=(), modulo=None):
        """append some logging data from `MOCMA` class instance `es`,
        if ``number_of_times_called % modulo`` equals to zero, never if ``modulo==0``.

        `more_data` is appended to the line in ``success_ratio.dat``.
        """
        mod = modulo if modulo is not None else self.modulo
        self.counter += 1
        if not mod or (self.counter > 3 and (self.counter - 1) % mod):
            return self
        if es is None:
            try:
                es = self.es
            except AttributeError:
                raise AttributeError('call `add` with argument `es` or'
                                     ' ``register(es)`` before ``add()``')
        elif not self.registered:
            self.register(es)

        if self.counter == 1 and not self.append:
            self.initialize()
            self.counter = 1

        # --- INTERFACE, can be changed if necessary ---
        evals = es.countevals
        iteration = es.countiter
        if iteration <= self.last_iteration:
            return self
        hypervolume = es.hypervolume
        hypervolume = np.nan if hypervolume is None else float(hypervolume)
        hypervolume_archive = np.nan
        len_archive = 0
        if es.archive is not None:
            len_archive = len(es.archive)
            if es.reference_point is not None:
                hypervolume_archive = float(es.archive.hypervolume)
        sigmas = [ind.step_size for ind in es.population[:es.mu]]
        values = {'hypervolume': [hypervolume],
                  'hypervolume_archive': [hypervolume_archive],
                  'len_archive': [len_archive],
                  'sigmas': [np.median(sigmas), min(sigmas), max(sigmas)],
                  'success_ratio': [es.success_ratio] + list(more_data)}
        # --- end interface ---

        try:
            for name in self.file_names:
                with open(self.name_prefix + name + '.dat', 'a') as f:
                    f.write(' '.join([str(iteration), str(evals)] +
                                     [repr(float(v)) for v in values[name]]) + '\n')
        except (IOError, OSError):
            if iteration <= 1:
                print('could not open/write file(s) ' + self.name_prefix + '*.dat')
        self.last_iteration = iteration
        return self

    def load(self, name_prefix=None):
        """load data from the ``.dat`` files into the `data` dictionary"""
        if name_prefix is None:
            name_prefix = self.name_prefix
        self._data = {}
        for name in self.file_names:
            fn = name_prefix + name + '.dat'
            try:
                self._data[name] = np.loadtxt(fn, comments='%', ndmin=2)
            except (IOError, OSError):
                print('could not read file ' + fn)
        return self

    def plot(self, iabscissa=1, fig=None):
        """plot hypervolume, archive length, step-sizes and success ratio
        versus evaluations (``iabscissa=1``) or iterations (``iabscissa=0``).

        Needs `matplotlib`.
        """
        from matplotlib import pyplot
        self.load()
        if not self.data:
            return self
        pyplot.figure(fig)
        panels = (('hypervolume', 'hypervolume_archive'), ('sigmas',),
                  ('len_archive',), ('success_ratio',))
        for ipanel, names in enumerate(panels):
            pyplot.subplot(2, 2, ipanel + 1)
            for name in names:
                if name not in self.data or not len(self.data[name]):
                    continue
                values = self.data[name]
                labels = self.column_names[name].split(', ')
                for k in range(2, values.shape[1]):
                    plot = pyplot.semilogy if name == 'sigmas' else pyplot.plot
                    plot(values[:, iabscissa], values[:, k],
                         label=labels[k - 2] if k - 2 < len(labels) else None)
            pyplot.grid(True)
            pyplot.legend(fontsize=7)
            pyplot.xlabel('function evaluations' if iabscissa == 1 else 'iterations')
        return self
