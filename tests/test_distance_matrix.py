"""Tests for the compact distance matrix."""

import numpy as np
import pytest

from agglomerative import DistanceMatrix, InvalidConfigurationError, LinkageInvariantError
from agglomerative.distance_matrix import resolve_distance_function
from utils.distances import default_distance, euclidean_distance


def test_initialize_matches_expected_lower_triangle(data12, expected_lower_triangle):
    matrix = DistanceMatrix.initialize(data12)

    assert len(matrix) == len(data12)
    rows = matrix.to_lower_triangle()
    for row_index, row in enumerate(rows):
        assert len(row) == row_index + 1
    assert rows == expected_lower_triangle


def test_vectorized_and_callable_paths_agree(data12):
    fast = DistanceMatrix.initialize(data12)
    slow = DistanceMatrix.initialize(data12, lambda a, b: default_distance(a, b))

    assert np.allclose(slow.to_square(), fast.to_square())


def test_callable_is_called_once_per_pair(data12):
    calls = []

    def counting_distance(a, b):
        calls.append((tuple(a), tuple(b)))
        return euclidean_distance(a, b)

    DistanceMatrix.initialize(data12, counting_distance)
    n = len(data12)
    assert len(calls) == n * (n - 1) // 2


def test_default_distance_ignores_non_numeric_attributes():
    matrix = DistanceMatrix.initialize([(0, 0, "red"), (3, 4, "blue"), (0, 1, "red")])

    assert matrix.read(1, 0) == 25.0
    assert matrix.read(2, 0) == 1.0


def test_read_is_symmetric_with_zero_diagonal(expected_lower_triangle):
    matrix = DistanceMatrix.from_lower_triangle(expected_lower_triangle)

    assert matrix.read(3, 2) == 9.0
    assert matrix.read(2, 3) == 9.0
    assert matrix.read(5, 5) == 0
    for a in range(len(matrix)):
        assert matrix.read(a, a) == 0
        for b in range(len(matrix)):
            assert matrix.read(a, b) == matrix.read(b, a)


def test_read_out_of_bounds_raises(expected_lower_triangle):
    matrix = DistanceMatrix.from_lower_triangle(expected_lower_triangle)

    with pytest.raises(IndexError):
        matrix.read(12, 0)
    with pytest.raises(IndexError):
        matrix.read(0, -1)


def test_initialize_needs_two_points():
    with pytest.raises(InvalidConfigurationError):
        DistanceMatrix.initialize([])
    with pytest.raises(InvalidConfigurationError):
        DistanceMatrix.initialize([[1, 2]])


def test_initialize_rejects_negative_distances():
    with pytest.raises(InvalidConfigurationError):
        DistanceMatrix.initialize([[0], [1]], lambda a, b: -1.0)


def test_closest_pair_takes_first_minimum_in_scan_order(expected_lower_triangle):
    matrix = DistanceMatrix.from_lower_triangle(expected_lower_triangle)

    # d(5,0) and d(9,3) are both 0; row 5 is scanned first
    assert matrix.closest_pair() == (5, 0, 0.0)


def test_apply_merge_compacts_slots_and_appends_new_row():
    matrix = DistanceMatrix.from_lower_triangle([[1.0], [2.0, 3.0], [4.0, 5.0, 6.0]])

    matrix.apply_merge(2, 0, [10.0, 20.0])

    assert len(matrix) == 3
    # Old slots 1 and 3 move to 0 and 1; the merged cluster is last
    assert matrix.to_lower_triangle() == [[5.0], [10.0, 20.0]]

    matrix.apply_merge(0, 2, [7.0])
    assert matrix.to_lower_triangle() == [[7.0]]


def test_apply_merge_accepts_slots_in_any_order():
    first = DistanceMatrix.from_lower_triangle([[1.0], [2.0, 3.0], [4.0, 5.0, 6.0]])
    second = DistanceMatrix.from_lower_triangle([[1.0], [2.0, 3.0], [4.0, 5.0, 6.0]])

    first.apply_merge(3, 1, [8.0, 9.0])
    second.apply_merge(1, 3, [8.0, 9.0])

    assert first.to_lower_triangle() == second.to_lower_triangle()


def test_apply_merge_rejects_wrong_row_length():
    matrix = DistanceMatrix.from_lower_triangle([[1.0], [2.0, 3.0]])

    with pytest.raises(LinkageInvariantError):
        matrix.apply_merge(1, 0, [1.0, 2.0])


def test_distances_from_lists_every_slot(expected_lower_triangle):
    matrix = DistanceMatrix.from_lower_triangle(expected_lower_triangle)

    row = matrix.distances_from(2)
    assert row.tolist() == [89.0, 5.0, 0.0, 9.0, 1.0, 89.0, 26.0, 85.0, 1.0, 9.0, 26.0, 65.0]


def test_to_square_is_symmetric(data12):
    square = DistanceMatrix.initialize(data12).to_square()

    assert square.shape == (12, 12)
    assert np.allclose(square, square.T)
    assert np.all(np.diag(square) == 0)


def test_released_matrix_cannot_be_read(data12):
    matrix = DistanceMatrix.initialize(data12)
    matrix.release()

    assert matrix.released
    with pytest.raises(LinkageInvariantError):
        matrix.read(1, 0)


def test_resolve_distance_function():
    assert resolve_distance_function(None) is default_distance
    assert resolve_distance_function("Euclidean") is euclidean_distance
    with pytest.raises(InvalidConfigurationError):
        resolve_distance_function("mahalanobis")
    with pytest.raises(InvalidConfigurationError):
        resolve_distance_function(3)


def test_mixed_column_matches_default_distance():
    data = [[0, "a"], [1, 2], [5, 3]]

    matrix = DistanceMatrix.initialize(data)

    assert matrix.read(2, 1) == default_distance(data[2], data[1]) == 17.0
    assert matrix.read(1, 0) == default_distance(data[1], data[0]) == 1.0
    assert matrix.read(2, 0) == default_distance(data[2], data[0]) == 25.0
