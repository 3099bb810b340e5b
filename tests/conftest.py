"""Shared fixtures for the agglomerative clustering tests."""

import numpy as np
import pytest

# Twelve points on a small grid, and their squared Euclidean distances
DATA12 = [[10, 3], [3, 10], [2, 8], [2, 5], [3, 8], [10, 3],
          [1, 3], [8, 1], [2, 9], [2, 5], [3, 3], [9, 4]]

EXPECTED_LOWER_TRIANGLE = [
    [98.0],
    [89.0, 5.0],
    [68.0, 26.0, 9.0],
    [74.0, 4.0, 1.0, 10.0],
    [0.0, 98.0, 89.0, 68.0, 74.0],
    [81.0, 53.0, 26.0, 5.0, 29.0, 81.0],
    [8.0, 106.0, 85.0, 52.0, 74.0, 8.0, 53.0],
    [100.0, 2.0, 1.0, 16.0, 2.0, 100.0, 37.0, 100.0],
    [68.0, 26.0, 9.0, 0.0, 10.0, 68.0, 5.0, 52.0, 16.0],
    [49.0, 49.0, 26.0, 5.0, 25.0, 49.0, 4.0, 29.0, 37.0, 5.0],
    [2.0, 72.0, 65.0, 50.0, 52.0, 2.0, 65.0, 10.0, 74.0, 50.0, 37.0],
]

FOUR_POINTS = [(0, 0), (0, 1), (5, 5), (5, 6)]


@pytest.fixture
def data12():
    return [list(item) for item in DATA12]


@pytest.fixture
def expected_lower_triangle():
    return [list(row) for row in EXPECTED_LOWER_TRIANGLE]


@pytest.fixture
def four_points():
    return list(FOUR_POINTS)


@pytest.fixture
def random_points():
    rng = np.random.default_rng(7)
    return rng.normal(size=(25, 2))
