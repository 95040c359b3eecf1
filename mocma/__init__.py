"""
This package contains an implementation of the multiobjective covariance
matrix adaptation evolution strategy MO-CMA-ES, defined in the paper
[Igel, Hansen and Roth. "Covariance Matrix Adaptation for Multi-objective
Optimization." Evolutionary Computation 15(1), 2007.], with the step-size
adaptation of [Voss, Hansen and Igel. "Improved Step Size Adaptation for
the MO-CMA-ES." GECCO 2010.].

Selection uses non-dominated sorting and a quality indicator on the
critical front: the hypervolume (`MOCMA`), the additive epsilon
indicator (`EpsilonMOCMA`) or a sampling approximation of the hypervolume
least contributor (`ApproximatedVolumeMOCMA`).

Example::

    import cma, mocma
    fitness = mocma.FitFun(cma.ff.sphere, lambda x: cma.ff.sphere(x - 1),
                           dimension=10, bounds=[-1, 2])
    # every objective vector must dominate the reference point
    moes = mocma.MOCMA({'mu': 20, 'reference_point': [50, 50]})
    moes.optimize(fitness, iterations=1000)
    moes.pareto_front  # the non-dominated objective values
    moes.logger.plot()  # needs matplotlib


:Author: The mocma developers

:License: BSD 3-Clause, see LICENSE file.

"""
from . import (evaluation, hv, indicators, individual, mocma, mocma_logger,
               nondominatedarchive, objectives, selection)

from .mocma import (MOCMA, EpsilonMOCMA, ApproximatedVolumeMOCMA, MOCMAOptions,
                    NotionOfSuccess, ResultSet)

from .mocma import __author__, __license__, __version__

from .individual import Individual

from .evaluation import PenalizingEvaluator

from .indicators import (Indicator, HypervolumeIndicator, AdditiveEpsilonIndicator,
                         LeastContributorApproximator, ReferencePointError)

from .selection import IndicatorBasedSelection, fast_non_dominated_sort

from .objectives import ObjectiveFunction, FitFun, ZDT4, DTLZ3

from .mocma_logger import MOCMADataLogger

from .nondominatedarchive import NonDominatedList
