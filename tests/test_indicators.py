import numpy as np
import pytest

import mocma
from mocma.indicators import reference_point_of

INDICATORS = [mocma.HypervolumeIndicator(), mocma.HypervolumeIndicator([10, 10]),
              mocma.AdditiveEpsilonIndicator(),
              mocma.LeastContributorApproximator(seed=1)]


@pytest.mark.parametrize("indicator", INDICATORS, ids=lambda i: type(i).__name__)
def test_least_contributor_needs_two_points(indicator):
    with pytest.raises(ValueError):
        indicator.least_contributor([[1, 2]])
    with pytest.raises(ValueError):
        indicator.least_contributor(np.zeros((0, 2)))


@pytest.mark.parametrize("indicator", INDICATORS, ids=lambda i: type(i).__name__)
def test_identical_points_have_a_least_contributor(indicator):
    assert indicator.least_contributor([[1, 2]] * 4) in range(4)


def test_reference_point_must_be_dominated():
    indicator = mocma.HypervolumeIndicator([2, 2])
    with pytest.raises(mocma.ReferencePointError):
        indicator.least_contributor([[1, 1], [0, 3]])
    with pytest.raises(ValueError):
        indicator.value([[3, 0]])
    # weak domination is fine, such a point contributes nothing
    assert indicator.contributions([[1, 1], [0, 2]]).tolist() == [1.0, 0.0]


def test_adaptive_reference_point():
    points = [[0, 3], [1, 1], [4, 0]]
    assert reference_point_of(points).tolist() == [5, 4]
    assert reference_point_of(points, offset=0.5).tolist() == [4.5, 3.5]
    assert mocma.HypervolumeIndicator().value(points) == pytest.approx(
        mocma.HypervolumeIndicator([5, 4]).value(points))


def test_hypervolume_least_contributor_is_argmin_of_contributions():
    rng = np.random.default_rng(5)
    points = rng.dirichlet([1, 1, 1], size=12)
    indicator = mocma.HypervolumeIndicator([1, 1, 1])
    contributions = indicator.contributions(points)
    assert indicator.least_contributor(points) == int(np.argmin(contributions))


def test_epsilon_indicator():
    epsilon = mocma.AdditiveEpsilonIndicator.epsilon
    assert epsilon([[0, 0]], [[1, 1]]) == -1
    assert epsilon([[1, 1], [0, 2]], [[0, 2], [2, 0]]) == 1
    indicator = mocma.AdditiveEpsilonIndicator()
    # all losses are equal
    assert indicator.least_contributor([[0, 2], [1, 1], [2, 0]]) == 0
    assert indicator.least_contributor([[0, 2], [2, 0], [1, 1], [1.1, 1]]) == 3
    np.testing.assert_allclose(indicator.losses([[0, 2], [1, 1], [2, 0]]), [1, 1, 1])


def test_approximator_finds_a_clear_least_contributor_in_two_objectives():
    points = [[0, 4], [1, 3], [2, 2], [3, 1], [4, 0], [2.5, 1.6]]
    approximator = mocma.LeastContributorApproximator([5, 5], seed=2)
    assert approximator.least_contributor(points) == 5
    assert mocma.HypervolumeIndicator([5, 5]).least_contributor(points) == 5


def test_approximator_finds_a_clear_least_contributor_in_three_objectives():
    points = [[0, 0, 3], [0, 3, 0], [3, 0, 0], [1, 1, 1], [1.1, 1.1, 0.95]]
    exact = mocma.HypervolumeIndicator([4, 4, 4])
    contributions = np.sort(exact.contributions(points))
    assert contributions[1] > 3 * contributions[0]
    assert exact.least_contributor(points) == 4
    for seed in range(3):
        approximator = mocma.LeastContributorApproximator([4, 4, 4], seed=seed)
        assert approximator.least_contributor(points) == 4


def test_approximator_prefers_dominated_points():
    approximator = mocma.LeastContributorApproximator(seed=0)
    assert approximator.least_contributor([[0, 2], [1, 1], [2, 0], [1.5, 1.5]]) == 3
    assert approximator.least_contributor([[0, 2], [1, 1], [2, 0], [1, 1]]) == 1


def test_approximator_value_is_exact():
    points = [[0.5, 1.5], [1.5, 0.5]]
    assert mocma.LeastContributorApproximator([2, 2]).value(points) == 1.25
