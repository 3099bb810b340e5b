"""
Utilities package initialization.

Exposes the distance functions and the clustering validation metrics to the
top-level utils package for cleaner imports throughout the project.
"""

from .distances import (
    DISTANCE_FUNCTIONS,
    default_distance,
    squared_euclidean_distance,
    euclidean_distance,
    manhattan_distance,
    sup_distance,
    hamming_distance,
    simple_matching_distance,
    cosine_distance,
    numeric_attributes,
)

from .clustering_metrics import (
    compute_clustering_metrics,
    silhouette_from_distances,
    purity_score,
    f_measure_score
)
