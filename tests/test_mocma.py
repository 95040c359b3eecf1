import os
import types

import cma
import numpy as np
import pytest

import mocma
from mocma import MOCMA, MOCMAOptions, NotionOfSuccess

QUIET = {'verb_disp': 0, 'verb_log': 0}


def linear_front_problem():
    """Pareto front ``{(t, 1 - t): t in [0, 1]}`` at ``x[1:] == 0``"""
    return mocma.FitFun(lambda x: x[0], lambda x: 1 - x[0] + np.sum(x[1:]**2),
                        dimension=3, bounds=[[0, -1, -1], [1, 1, 1]])


def options(**kwargs):
    opts = dict(QUIET)
    opts.update(kwargs)
    return opts


@pytest.mark.parametrize("opts", [{'mu': 0}, {'mu': 2.5}, {'popsize': 3},
                                  {'notion_of_success': 'best'},
                                  {'initial_sigma': 0}, {'min_sigma': -1},
                                  {'penalty_factor': -1}, {'success_threshold': 0},
                                  {'seed': -1}, {'n_jobs': -2}])
def test_invalid_options(opts):
    with pytest.raises(ValueError):
        MOCMAOptions(opts)


def test_options_defaults_and_conversions():
    opts = MOCMAOptions()
    assert opts['mu'] == 100 and opts['penalty_factor'] == 1e-6
    assert opts['success_threshold'] == 0.44 and opts['initial_sigma'] == 1.0
    assert opts['notion_of_success'] is NotionOfSuccess.INDIVIDUAL_BASED
    assert opts['reference_point'] is None and opts['seed'] is not None
    for value in ('population', 'PopulationBased', 'population_based',
                  NotionOfSuccess.POPULATION_BASED):
        opts = MOCMAOptions({'notion_of_success': value})
        assert opts['notion_of_success'] is NotionOfSuccess.POPULATION_BASED
    assert MOCMAOptions({'reference_point': (1, 2)})['reference_point'] == [1.0, 2.0]


def test_step_before_init():
    with pytest.raises(RuntimeError):
        MOCMA(options(mu=3)).step(linear_front_problem())


def test_init():
    fitness = linear_front_problem()
    moes = MOCMA(options(mu=4, initial_sigma=0.3, seed=1)).init(fitness)
    assert len(moes.population) == 8
    assert moes.countevals == 8 == fitness.evaluation_counter
    assert moes.countiter == 0
    for individual in moes.population:
        assert individual.step_size == 0.3
        assert fitness.is_feasible(individual.search_point)
        np.testing.assert_array_equal(individual.penalized_fitness,
                                      individual.unpenalized_fitness)
    assert len(moes.result) == 4


def test_init_with_starting_point():
    moes = MOCMA(options(mu=3)).init(linear_front_problem(), [0.5, 0, 0])
    for individual in moes.population:
        np.testing.assert_array_equal(individual.search_point, [0.5, 0, 0])
    with pytest.raises(ValueError):
        MOCMA(options(mu=3)).init(linear_front_problem(), [0.5, 0])


def test_reference_point_must_match_the_objectives():
    with pytest.raises(ValueError):
        MOCMA(options(mu=3, reference_point=[1, 1, 1])).init(linear_front_problem())


def test_reference_point_not_dominated_is_an_error():
    fitness = mocma.FitFun(lambda x: x[0], lambda x: 1 - x[0], dimension=1, bounds=[0, 1])
    with pytest.raises(mocma.ReferencePointError):
        MOCMA(options(mu=3, reference_point=[-1, -1])).init(fitness)
    # offspring worse than the reference point are reported by the selection
    moes = MOCMA(options(mu=3, reference_point=[0.5, 1.5], initial_sigma=1.0, seed=0))
    moes.init(fitness, [0.1])
    with pytest.raises(mocma.ReferencePointError):
        for _ in range(50):
            moes.step(fitness)


@pytest.mark.parametrize("notion", ['individual', 'population'])
def test_step_selects_mu_survivors(notion):
    fitness = linear_front_problem()
    mu = 6
    moes = MOCMA(options(mu=mu, seed=3, notion_of_success=notion))
    moes.init(fitness)
    for iteration in range(1, 21):
        result = moes.step(fitness)
        assert len(result) == mu
        assert len(moes.population) == 2 * mu
        assert [ind.selected for ind in moes.population] == [True] * mu + [False] * mu
        assert all(ind.age >= 1 for ind in moes.population[:mu])
        assert all(ind.success_count == 0 for ind in moes.population[:mu])
        for (point, value), individual in zip(result, moes.population):
            np.testing.assert_array_equal(point, individual.search_point)
            np.testing.assert_array_equal(value, individual.unpenalized_fitness)
        assert moes.countiter == iteration
        assert moes.countevals == 2 * mu + iteration * mu == fitness.evaluation_counter
        assert 0 <= moes.success_ratio <= 1


def test_notions_of_success():
    moes = MOCMA(options(mu=1, notion_of_success='individual'))
    parent, offspring = mocma.Individual([0.]), mocma.Individual([0.])
    parent.rank, offspring.rank, offspring.selected = 0, 1, True
    assert not moes._is_successful(offspring, parent)
    offspring.rank = 0
    assert moes._is_successful(offspring, parent)
    offspring.selected = False
    assert not moes._is_successful(offspring, parent)
    moes = MOCMA(options(mu=1, notion_of_success='population'))
    offspring.rank, offspring.selected = 1, True
    assert moes._is_successful(offspring, parent)


def test_partition_is_stable():
    population = [mocma.Individual([float(i)]) for i in range(6)]
    for individual, selected in zip(population, [False, True, False, True, True, False]):
        individual.selected = selected
    partitioned = MOCMA.partition(population)
    assert [ind.search_point[0] for ind in partitioned] == [1, 3, 4, 0, 2, 5]


def run(steps=15, **kwargs):
    fitness = linear_front_problem()
    moes = MOCMA(options(mu=5, initial_sigma=0.3, **kwargs))
    moes.init(fitness)
    for _ in range(steps):
        moes.step(fitness)
    return moes


def test_same_seed_same_run():
    a, b = run(seed=12), run(seed=12)
    for x, y in zip(a.population, b.population):
        np.testing.assert_array_equal(x.search_point, y.search_point)
        assert x.step_size == y.step_size
        assert x.selected == y.selected and x.rank == y.rank
    c = run(seed=13)
    assert any(np.any(x.search_point != y.search_point)
               for x, y in zip(a.population, c.population))


def test_results_do_not_depend_on_the_number_of_jobs():
    a, b = run(seed=5, n_jobs=0), run(seed=5, n_jobs=3)
    for x, y in zip(a.population, b.population):
        np.testing.assert_array_equal(x.search_point, y.search_point)
        np.testing.assert_array_equal(x.penalized_fitness, y.penalized_fitness)
        assert x.step_size == y.step_size
    assert a.countevals == b.countevals


@pytest.mark.parametrize("n_jobs", [0, 2])
def test_exceptions_of_the_objective_propagate(n_jobs):
    calls = []

    def failing(x):
        calls.append(1)
        if len(calls) > 12:
            raise ArithmeticError("evaluation failed")
        return x[0]
    fitness = mocma.FitFun(failing, lambda x: 1 - x[0], dimension=2)
    moes = MOCMA(options(mu=5, n_jobs=n_jobs))
    moes.init(fitness)
    with pytest.raises(ArithmeticError):
        moes.step(fitness)


@pytest.fixture(scope="module")
def linear_front_run():
    fitness = linear_front_problem()
    moes = MOCMA(options(mu=20, initial_sigma=0.3, reference_point=[2, 5], seed=8,
                         archive=False))
    moes.init(fitness)
    hypervolumes = []
    for _ in range(300):
        moes.step(fitness)
        hypervolumes.append(moes.hypervolume)
    return moes, np.asarray(hypervolumes)


def test_converges_to_the_linear_front(linear_front_run):
    moes, hypervolumes = linear_front_run
    front = np.asarray([value for point, value in moes.result])
    assert np.mean(np.sum(front, axis=1) - 1) < 1e-2
    # the hypervolume of the whole front w.r.t. [2, 5] is 2 * 5 - 0.5
    assert 9.5 - 0.1 < hypervolumes[-1] <= 9.5
    assert front[:, 0].max() - front[:, 0].min() > 0.9


def test_greedy_pruning_keeps_the_hypervolume_approximately_non_decreasing(linear_front_run):
    moes, hypervolumes = linear_front_run
    # removing least contributors one at a time from a front larger than
    # mu is not optimal for the hypervolume of the mu survivors, small
    # losses between generations are expected
    largest_loss = np.max(hypervolumes[:-1] - hypervolumes[1:])
    assert largest_loss <= 1e-3 * hypervolumes[-1]
    assert hypervolumes[-1] > hypervolumes[0]


def test_penalized_and_unpenalized_agree_without_penalty():
    moes = run(penalty_factor=0, seed=2)
    for individual in moes.population:
        np.testing.assert_array_equal(individual.penalized_fitness,
                                      individual.unpenalized_fitness)


def test_archive():
    moes = run(seed=4, reference_point=[2, 5])
    assert len(moes.archive) > 0
    archived = np.asarray(list(moes.archive))
    assert np.all(mocma.hv.nondominated(archived))
    # the archive contains or dominates the current front
    for value in moes.pareto_front:
        assert any(np.all(np.asarray(a) <= value) for a in moes.archive)
    assert float(moes.archive.hypervolume) >= moes.hypervolume - 1e-12
    assert run(seed=4, archive=False).archive is None


def test_three_objective_archive():
    fitness = mocma.DTLZ3(4, 3)
    moes = MOCMA(options(mu=4, seed=0, initial_sigma=0.1))
    moes.optimize(fitness, iterations=3)
    assert isinstance(moes.archive, mocma.NonDominatedList)
    assert len(moes.archive) > 0


@pytest.mark.parametrize("optimizer", [mocma.EpsilonMOCMA, mocma.ApproximatedVolumeMOCMA,
                                       mocma.MOCMA])
def test_indicator_variants(optimizer):
    fitness = mocma.DTLZ3(5, 3)
    moes = optimizer(options(mu=6, seed=1, initial_sigma=0.1))
    moes.optimize(fitness, iterations=10)
    assert moes.countiter == 10
    assert sum(ind.selected for ind in moes.population) == 6
    assert len(moes.pareto_front) >= 1
    assert len(moes.pareto_set) == len(moes.pareto_front)


def test_indicator_by_construction():
    indicator = mocma.AdditiveEpsilonIndicator()
    moes = MOCMA(options(mu=3), indicator=indicator)
    assert moes.selection.indicator is indicator
    assert isinstance(mocma.EpsilonMOCMA(options(mu=3)).indicator,
                      mocma.AdditiveEpsilonIndicator)
    assert isinstance(mocma.ApproximatedVolumeMOCMA(options(mu=3)).indicator,
                      mocma.LeastContributorApproximator)


def test_optimize():
    fitness = mocma.FitFun(cma.ff.sphere, lambda x: cma.ff.sphere(x - 1), dimension=4)
    moes = MOCMA(options(mu=5, seed=3))
    calls = []
    moes.optimize(fitness, maxfun=60, callback=calls.append)
    assert moes.countevals >= 60 and moes.countevals - 5 < 60
    assert len(calls) == moes.countiter and calls[0] is moes
    moes.optimize(fitness, iterations=2)
    assert moes.countiter == len(calls) + 2
    with pytest.raises(ValueError):
        moes.optimize(fitness)
    assert moes.hypervolume is None


def test_disp(capsys):
    moes = run(steps=0, seed=1, reference_point=[2, 5])
    moes.optimize(linear_front_problem(), iterations=5, verb_disp=2)
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith('Iterat')
    assert len([line for line in lines if line.strip().startswith(('1 ', '2 ', '3 ', '4 '))]) >= 4


def test_data_logger(tmp_path):
    prefix = str(tmp_path) + os.sep
    moes = MOCMA({'mu': 4, 'seed': 2, 'verb_disp': 0, 'verb_log': 1,
                  'verb_filename': prefix, 'reference_point': [2, 5]})
    moes.optimize(linear_front_problem(), iterations=7)
    for name in mocma.MOCMADataLogger.file_names:
        assert os.path.exists(prefix + name + '.dat')
    logger = mocma.MOCMADataLogger(prefix).load()
    assert logger.data['hypervolume'].shape == (7, 3)
    assert logger.data['sigmas'].shape == (7, 5)
    np.testing.assert_array_equal(logger.data['hypervolume'][:, 0], np.arange(1, 8))
    assert logger.data['hypervolume'][-1, 2] == pytest.approx(moes.hypervolume)
    assert logger.data['len_archive'][-1, 2] == len(moes.archive)
    with open(prefix + 'hypervolume.dat') as f:
        assert 'seed=2' in f.readline()


def test_logger_data_is_read_through_the_data_property(tmp_path):
    prefix = str(tmp_path) + os.sep
    assert mocma.MOCMADataLogger(prefix).data == {}
    for optimizer in (MOCMA, mocma.EpsilonMOCMA, mocma.ApproximatedVolumeMOCMA):
        moes = optimizer(options(mu=3, verb_log=1, verb_filename=prefix))
        assert moes.logger.data == {}
    moes.optimize(linear_front_problem(), iterations=2)
    logger = mocma.MOCMADataLogger(prefix).load()
    assert sorted(logger.data) == sorted(mocma.MOCMADataLogger.file_names)
    assert logger.data['success_ratio'].shape == (2, 3)


@pytest.mark.parametrize("dimension, bounds, reference_point",
                         [(5, [-5, 5], [200, 200]), (10, [-1, 2], [50, 50]),
                          (5, [-1, 2], [25, 25])])
def test_reference_point_dominated_by_the_whole_box(dimension, bounds, reference_point):
    fitness = mocma.FitFun(cma.ff.sphere, lambda x: cma.ff.sphere(x - 1),
                           dimension=dimension, bounds=bounds)
    moes = MOCMA(options(mu=20, reference_point=reference_point, seed=1))
    moes.optimize(fitness, iterations=10)
    assert moes.countiter == 10
    assert moes.hypervolume > 0


def test_objective_with_evaluate_method_only():
    fitness = linear_front_problem()
    objective = types.SimpleNamespace(
        number_of_variables=3, number_of_objectives=2,
        propose_starting_point=fitness.propose_starting_point,
        evaluate=fitness, is_feasible=fitness.is_feasible,
        closest_feasible=fitness.closest_feasible)
    moes = MOCMA(options(mu=4, seed=6)).optimize(objective, iterations=5)
    assert moes.countevals == 8 + 5 * 4 == fitness.evaluation_counter
    assert len(moes.result) == 4
