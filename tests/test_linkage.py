"""Tests for the linkage strategies."""

import numpy as np
import pytest

from agglomerative import InvalidConfigurationError, UnsupportedOperationError
from agglomerative.linkage import (
    LINKAGES,
    AverageLinkage,
    CentroidLinkage,
    CompleteLinkage,
    MedianLinkage,
    SingleLinkage,
    WardLinkage,
    WeightedAverageLinkage,
    get_linkage,
)


def test_all_seven_strategies_are_registered():
    assert sorted(LINKAGES) == [
        "average", "centroid", "complete", "median", "single", "ward", "weighted_average",
    ]


def test_single_and_complete():
    assert SingleLinkage().linkage_distance(98.0, 89.0, 5.0, 1, 1, 1) == 89.0
    assert CompleteLinkage().linkage_distance(98.0, 89.0, 5.0, 1, 1, 1) == 98.0


def test_median_linkage_distance():
    median = MedianLinkage()

    # d(0,1)=98, d(0,2)=89, d(1,2)=5
    assert median.linkage_distance(98.0, 89.0, 5.0, 1, 1, 1) == 92.25
    # d(4,2)=1, d(4,5)=74, d(2,5)=89
    assert median.linkage_distance(1.0, 74.0, 89.0, 1, 1, 1) == 15.25


def test_ward_linkage_distance():
    ward = WardLinkage()

    assert ward.linkage_distance(98.0, 89.0, 5.0, 1, 1, 1) == pytest.approx(123.4166, abs=1e-4)
    assert ward.linkage_distance(1.0, 74.0, 89.0, 1, 1, 1) == 27.75


def test_centroid_linkage_distance():
    centroid = CentroidLinkage()

    # Singletons: same as median
    assert centroid.linkage_distance(98.0, 89.0, 5.0, 1, 1, 1) == pytest.approx(92.25)
    assert centroid.linkage_distance(4.0, 10.0, 3.0, 2, 1, 1) == pytest.approx(18.0 / 3 - 6.0 / 9)


def test_weighted_average_linkage_distance():
    assert WeightedAverageLinkage().linkage_distance(1.0, 2.0, 7.0, 2, 3, 4) == pytest.approx(1.6)


def test_average_linkage_is_mean_of_cross_pairs():
    # x = {a}, i = {b, c}, j = {d}; item distances a-b=1, a-c=3, a-d=8
    d_xi = (1.0 + 3.0) / 2
    d_xj = 8.0
    expected = (1.0 + 3.0 + 8.0) / 3

    assert AverageLinkage().linkage_distance(d_xi, d_xj, 2.0, 2, 1, 1) == pytest.approx(expected)


def test_strategies_are_vectorized():
    d_xi = np.array([1.0, 4.0, 6.0])
    d_xj = np.array([2.0, 3.0, 9.0])
    n_x = np.array([1.0, 2.0, 3.0])

    for strategy in LINKAGES.values():
        row = strategy.linkage_distance(d_xi, d_xj, 5.0, 2, 3, n_x)
        assert np.shape(row) == (3,)
        for k in range(3):
            assert row[k] == pytest.approx(strategy.linkage_distance(d_xi[k], d_xj[k], 5.0, 2, 3, n_x[k]))


def test_item_cluster_distance_reductions():
    distances = np.array([8.0, 32.0])

    assert SingleLinkage().item_cluster_distance(distances) == 8.0
    assert CompleteLinkage().item_cluster_distance(distances) == 32.0
    assert AverageLinkage().item_cluster_distance(distances) == 20.0
    assert WeightedAverageLinkage().item_cluster_distance(distances) == 20.0


@pytest.mark.parametrize("name", ["centroid", "median", "ward"])
def test_cardinality_strategies_do_not_classify(name):
    strategy = get_linkage(name)

    assert not strategy.supports_classification
    with pytest.raises(UnsupportedOperationError):
        strategy.item_cluster_distance(np.array([1.0]))


def test_only_single_and_complete_are_monotonic():
    assert {name for name, s in LINKAGES.items() if s.monotonic} == {"single", "complete"}


def test_get_linkage_names_and_aliases():
    assert get_linkage("single") is LINKAGES["single"]
    assert get_linkage("UPGMA") is LINKAGES["average"]
    assert get_linkage("Weighted-Average") is LINKAGES["weighted_average"]
    assert get_linkage("wpgmc") is LINKAGES["median"]
    assert get_linkage("minimum variance") is LINKAGES["ward"]

    strategy = WardLinkage()
    assert get_linkage(strategy) is strategy


def test_get_linkage_rejects_unknown():
    with pytest.raises(InvalidConfigurationError):
        get_linkage("furthest")
    with pytest.raises(InvalidConfigurationError):
        get_linkage(42)
