"""
Clustering validation metrics.

Internal indexes (silhouette, Davies-Bouldin) judge a partition on its own;
external indexes (ARI, purity, F-measure) compare it with known classes. The
scikit-learn implementations are used where they exist; purity and F-measure
are computed from the contingency table.

References
----------
[1] Rousseeuw, P.J., "Silhouettes: a graphical aid to the interpretation and
    validation of cluster analysis", 1987, Journal of Computational and Applied
    Mathematics, 20, pp. 53-65.
[2] Hubert, L., Arabie, P., "Comparing partitions", 1985, Journal of
    Classification, 2, pp. 193-218.
"""

from typing import Dict, Optional

import numpy as np
from sklearn.metrics import (
    adjusted_rand_score,
    davies_bouldin_score,
    silhouette_score,
)
from sklearn.metrics.cluster import contingency_matrix


def silhouette_from_distances(distances: np.ndarray, labels: np.ndarray) -> float:
    """
    Mean silhouette coefficient from a precomputed square distance matrix [1].

    Parameters
    ----------
    distances : np.ndarray
        Symmetric (n_samples, n_samples) matrix with a zero diagonal.
    labels : np.ndarray
        Cluster label of each sample (2 <= n_labels <= n_samples - 1).
    """
    return float(silhouette_score(distances, labels, metric="precomputed"))


def purity_score(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Share of points belonging to the majority class of their cluster.

    Purity = (1 / N) * sum_k max_j n_kj
    """
    # Rows = classes, columns = clusters
    table = contingency_matrix(y_true, y_pred)
    return float(table.max(axis=0).sum() / table.sum())


def f_measure_score(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Class-size weighted F-measure of the best matching cluster per class.

    F = sum_i (n_i / N) * max_j F(i, j)
    """
    table = contingency_matrix(y_true, y_pred).astype(float)
    class_sizes = table.sum(axis=1, keepdims=True)
    cluster_sizes = table.sum(axis=0, keepdims=True)

    precision = table / cluster_sizes
    recall = table / class_sizes
    with np.errstate(divide="ignore", invalid="ignore"):
        f_table = np.where(table > 0, 2 * precision * recall / (precision + recall), 0.0)

    weights = class_sizes.ravel() / table.sum()
    return float(np.sum(weights * f_table.max(axis=1)))


def compute_clustering_metrics(
    X: np.ndarray,
    y_true: np.ndarray,
    y_pred: np.ndarray,
    distances: Optional[np.ndarray] = None
) -> Dict[str, float]:
    """
    Computes a suite of validation metrics for one partition.

    Parameters
    ----------
    X : np.ndarray
        Feature matrix (used by the Davies-Bouldin index).
    y_true : np.ndarray
        Ground-truth classes.
    y_pred : np.ndarray
        Cluster labels.
    distances : np.ndarray, optional
        Precomputed square distance matrix; adds the silhouette coefficient.

    Returns
    -------
    Dict[str, float]
        'ari', 'purity', 'f_measure', 'davies_bouldin' and, when distances are
        given, 'silhouette'. Indexes that need at least 2 clusters (and fewer
        clusters than samples) are NaN otherwise.
    """
    n_labels = len(np.unique(y_pred))
    partition_is_valid = 2 <= n_labels <= len(y_pred) - 1

    metrics = {
        "ari": float(adjusted_rand_score(y_true, y_pred)),
        "purity": purity_score(y_true, y_pred),
        "f_measure": f_measure_score(y_true, y_pred),
        "davies_bouldin": float(davies_bouldin_score(X, y_pred)) if partition_is_valid else float("nan"),
    }
    if distances is not None:
        metrics["silhouette"] = (
            silhouette_from_distances(distances, y_pred) if partition_is_valid else float("nan")
        )
    return metrics
