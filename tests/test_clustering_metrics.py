"""Tests for the clustering validation metrics."""

import math

import numpy as np
import pytest

from utils.clustering_metrics import (
    compute_clustering_metrics,
    f_measure_score,
    purity_score,
    silhouette_from_distances,
)

X = np.array([[0.0, 0.0], [0.0, 1.0], [5.0, 0.0], [5.0, 1.0]])
Y_TRUE = np.array([0, 0, 1, 1])


def test_purity_and_f_measure():
    y_pred = np.array([0, 0, 0, 1])

    assert purity_score(Y_TRUE, y_pred) == pytest.approx(0.75)
    assert f_measure_score(Y_TRUE, y_pred) == pytest.approx(0.73333, abs=1e-5)


def test_perfect_partition():
    metrics = compute_clustering_metrics(X, Y_TRUE, np.array([1, 1, 0, 0]))

    assert metrics["ari"] == pytest.approx(1.0)
    assert metrics["purity"] == pytest.approx(1.0)
    assert metrics["f_measure"] == pytest.approx(1.0)
    assert metrics["davies_bouldin"] < 1
    assert "silhouette" not in metrics


def test_silhouette_from_precomputed_distances():
    distances = np.sqrt(((X[:, None, :] - X[None, :, :]) ** 2).sum(axis=-1))

    metrics = compute_clustering_metrics(X, Y_TRUE, Y_TRUE, distances=distances)

    assert metrics["silhouette"] == pytest.approx(silhouette_from_distances(distances, Y_TRUE))
    assert metrics["silhouette"] > 0.7


def test_single_cluster_has_no_internal_index():
    distances = np.zeros((4, 4))

    metrics = compute_clustering_metrics(X, Y_TRUE, np.zeros(4, dtype=int), distances=distances)

    assert math.isnan(metrics["davies_bouldin"])
    assert math.isnan(metrics["silhouette"])
    assert metrics["purity"] == pytest.approx(0.5)
