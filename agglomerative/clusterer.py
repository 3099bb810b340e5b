"""
Agglomerative (hierarchical) clustering.

This module provides the estimator-style entry point of the engine. Every data
point starts in its own cluster; the two closest clusters are merged until the
requested number of clusters is reached, or until the closest pair is farther
apart than an optional cutoff. The distance between clusters is maintained by
one of seven linkage strategies (see `agglomerative.linkage`).

Typical usage:

    clusterer = AgglomerativeClusterer(n_clusters=3, linkage="average")
    labels = clusterer.fit_predict(X)
    clusterer.classify([0.5, 1.2])

References
----------
[1] Everitt, B.S., Landau, S., Leese, M., "Cluster Analysis", 4th ed., 2001,
    Arnold, London.
[2] Johnson, S.C., "Hierarchical clustering schemes", 1967, Psychometrika,
    32(3), pp. 241-254.
[3] Jain, A.K., Dubes, R.C., "Algorithms for Clustering Data", 1988, Prentice Hall.
"""

from typing import Any, Callable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from scipy.spatial.distance import cdist

from utils.clustering_metrics import silhouette_from_distances
from utils.distances import PDIST_METRICS

from .dataset import Dataset
from .dendrogram import Dendrogram, DendrogramRecorder
from .distance_matrix import DistanceMatrix, resolve_distance_function
from .errors import InvalidConfigurationError, UnsupportedOperationError
from .linkage import LinkageStrategy, get_linkage
from .merge_loop import BuildState, MergeLoop
from .registry import materialize

DataInput = Union[Dataset, np.ndarray, pd.DataFrame, Sequence[Sequence[Any]]]


class AgglomerativeClusterer:
    """
    Hierarchical clusterer with a pluggable linkage strategy.

    Parameters
    ----------
    n_clusters : int, default=1
        Number of clusters at which merging stops.
    linkage : str or LinkageStrategy, default='single'
        'single', 'complete', 'average', 'weighted_average', 'centroid',
        'median' or 'ward'.
    distance_function : None, str or callable, optional
        Distance between two data items. Defaults to the squared Euclidean
        distance of the numeric attributes (non-numeric ones are ignored).
    max_distance : float, optional
        Stop merging as soon as the closest pair of clusters is farther apart
        than this value, even if more than `n_clusters` clusters remain.
    record_history : bool, default=False
        If True, keeps the partition after each merge in `dendrogram_`.
    history_depth : int, optional
        Keep only the last `history_depth` partitions of the history.
    verbose : bool, default=False
        If True, prints the merges to console.
    """

    def __init__(
        self,
        n_clusters: int = 1,
        linkage: Union[str, LinkageStrategy] = "single",
        distance_function: Union[None, str, Callable[[Any, Any], float]] = None,
        max_distance: Optional[float] = None,
        record_history: bool = False,
        history_depth: Optional[int] = None,
        verbose: bool = False
    ):
        self.n_clusters = n_clusters
        self.linkage = get_linkage(linkage)
        self.distance_function = resolve_distance_function(distance_function)
        self.max_distance = max_distance
        self.record_history = record_history or history_depth is not None
        self.history_depth = history_depth
        self.verbose = verbose

        self.data_set_: Optional[Dataset] = None
        self.clusters_: Optional[List[Dataset]] = None
        self.index_clusters_: Optional[List[List[int]]] = None
        self.labels_: Optional[np.ndarray] = None
        self.n_clusters_: Optional[int] = None
        self.n_merges_ = 0
        self.merge_distances_: List[float] = []
        self.stopped_by_distance_ = False
        self.dendrogram_: Optional[Dendrogram] = None
        self.state_: Optional[BuildState] = None

    @property
    def supports_classification(self) -> bool:
        return self.linkage.supports_classification

    def fit(self, X: DataInput) -> "AgglomerativeClusterer":
        """
        Builds the clusters of X.

        Parameters
        ----------
        X : Dataset, array-like of shape (n_samples, n_features) or DataFrame
            Data items to cluster. Attributes may be numeric or categorical as
            long as the distance function handles them.

        Returns
        -------
        self

        Raises
        ------
        InvalidConfigurationError
            Before any merge, if the data or the parameters cannot give a build.
        """
        dataset = Dataset.from_any(X)
        # The recorder rejects a bad depth with a plain ValueError
        if self.history_depth is not None and self.history_depth < 1:
            raise InvalidConfigurationError(f"history_depth must be positive, got {self.history_depth}.")

        recorder = DendrogramRecorder(self.history_depth) if self.record_history else None
        loop = MergeLoop(
            self.linkage,
            self.n_clusters,
            max_distance=self.max_distance,
            observers=[recorder] if recorder is not None else [],
            verbose=self.verbose,
        )
        result = loop.run(dataset, self.distance_function)

        self.data_set_ = dataset
        self.index_clusters_ = result.index_clusters
        self.clusters_ = materialize(result.index_clusters, dataset)
        self.n_clusters_ = len(result.index_clusters)
        self.n_merges_ = result.n_merges
        self.merge_distances_ = result.merge_distances
        self.stopped_by_distance_ = result.stopped_by_distance
        self.dendrogram_ = recorder.dendrogram() if recorder is not None else None
        self.state_ = loop.state

        labels = np.empty(len(dataset), dtype=int)
        for label, indices in enumerate(result.index_clusters):
            labels[indices] = label
        self.labels_ = labels
        return self

    build = fit

    def fit_predict(self, X: DataInput) -> np.ndarray:
        """Builds the clusters and returns the label of every point."""
        self.fit(X)
        return self.labels_

    def _check_fitted(self) -> None:
        if self.clusters_ is None:
            raise ValueError("Model has not been fitted yet. Call fit() first.")

    def _check_classification(self) -> None:
        if not self.supports_classification:
            raise UnsupportedOperationError(
                f"Classification of new data is not supported by {self.linkage.name} linkage."
            )
        self._check_fitted()

    def _distances_to_points(self, dataset: Dataset) -> np.ndarray:
        """
        Distances from new items to every fitted point, shape (n_items, n_points).

        Numeric data with a metric known to scipy goes through `cdist`; any
        other case calls the distance function on each pair.
        """
        metric = PDIST_METRICS.get(self.distance_function)
        if (metric is not None and dataset.is_numeric and self.data_set_.is_numeric
                and dataset.n_attributes == self.data_set_.n_attributes):
            return cdist(dataset.numeric_matrix(), self.data_set_.numeric_matrix(), metric=metric)

        distances = [
            [self.distance_function(item, point) for point in self.data_set_]
            for item in dataset
        ]
        return np.array(distances, dtype=float).reshape(len(dataset), len(self.data_set_))

    def _nearest_cluster(self, distances: np.ndarray) -> int:
        cluster_distances = [
            self.linkage.item_cluster_distance(distances[indices])
            for indices in self.index_clusters_
        ]
        return int(np.argmin(cluster_distances))

    def classify(self, data_item: Sequence[Any]) -> int:
        """
        Returns the index (0-based) of the cluster a new data item belongs to.

        The item goes to the cluster at minimum linkage distance: nearest member
        for single linkage, farthest member for complete linkage, mean member
        distance for the average linkages. Ties go to the lowest index.

        Raises
        ------
        UnsupportedOperationError
            For centroid, median and Ward linkage, whose distances depend on
            merge bookkeeping that cannot be replayed for a new item.
        """
        self._check_classification()
        distances = self._distances_to_points(Dataset([data_item]))
        return self._nearest_cluster(distances[0])

    def predict(self, X: DataInput) -> np.ndarray:
        """Classifies every item of X (see `classify`)."""
        self._check_classification()
        distances = self._distances_to_points(Dataset.from_any(X))
        return np.array([self._nearest_cluster(row) for row in distances], dtype=int)

    def silhouette(self) -> float:
        """
        Mean silhouette coefficient of the built partition.

        Item-level distances come from the configured distance function.
        """
        self._check_fitted()
        if not 2 <= self.n_clusters_ <= len(self.data_set_) - 1:
            raise ValueError(
                f"Silhouette needs between 2 and {len(self.data_set_) - 1} clusters, got {self.n_clusters_}."
            )
        distances = DistanceMatrix.initialize(self.data_set_, self.distance_function).to_square()
        return silhouette_from_distances(distances, self.labels_)


def build(
    dataset: DataInput,
    n_clusters: int = 1,
    linkage: Union[str, LinkageStrategy] = "single",
    max_distance: Optional[float] = None,
    distance_function: Union[None, str, Callable[[Any, Any], float]] = None,
    **kwargs
) -> AgglomerativeClusterer:
    """Builds and returns a fitted `AgglomerativeClusterer`."""
    clusterer = AgglomerativeClusterer(
        n_clusters=n_clusters,
        linkage=linkage,
        distance_function=distance_function,
        max_distance=max_distance,
        **kwargs
    )
    return clusterer.fit(dataset)
