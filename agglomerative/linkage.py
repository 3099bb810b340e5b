"""
Linkage strategies for agglomerative clustering.

A linkage strategy answers one question: once clusters `i` and `j` are merged,
how far is every other cluster `x` from the union? All seven strategies are
instances of the Lance-Williams recurrence [1], so the answer only needs the
three distances already stored in the matrix, d(x,i), d(x,j) and d(i,j), plus
the cluster cardinalities for the size-aware variants:

    D(x, i U j) = a_i d(x,i) + a_j d(x,j) + b d(i,j) + g |d(x,i) - d(x,j)|

The formulas are vectorized: `d_xi`, `d_xj` and `n_x` may be numpy arrays
holding one entry per surviving cluster.

Centroid and median linkage are not monotonic: a merged cluster can be closer
to a third cluster than either of its parts were (an "inversion" in the
dendrogram). This is a property of the methods, not an error.

References
----------
[1] Lance, G.N., Williams, W.T., "A general theory of classificatory sorting
    strategies: 1. Hierarchical systems", 1967, The Computer Journal, 9(4),
    pp. 373-380.
[2] Ward, J.H., "Hierarchical grouping to optimize an objective function",
    1963, Journal of the American Statistical Association, 58, pp. 236-244.
[3] Sokal, R.R., Michener, C.D., "A statistical method for evaluating systematic
    relationships", 1958, University of Kansas Science Bulletin, 38.
"""

from typing import Dict, Union

import numpy as np

from .errors import InvalidConfigurationError, UnsupportedOperationError

ArrayLike = Union[float, np.ndarray]


class LinkageStrategy:
    """
    Base class of the linkage strategies.

    Attributes
    ----------
    name : str
        Registry key of the strategy.
    supports_classification : bool
        Whether a new data item can be assigned to a built cluster using only
        item-level distances.
    monotonic : bool
        Whether successive merge distances are guaranteed not to decrease.
    """

    name = "base"
    supports_classification = False
    monotonic = False

    def linkage_distance(
        self,
        d_xi: ArrayLike,
        d_xj: ArrayLike,
        d_ij: float,
        n_i: int,
        n_j: int,
        n_x: ArrayLike
    ) -> ArrayLike:
        """
        Distance from cluster(s) `x` to the union of clusters `i` and `j`.

        Parameters
        ----------
        d_xi, d_xj : float or np.ndarray
            Current distances from `x` to `i` and to `j`.
        d_ij : float
            Current distance between `i` and `j`.
        n_i, n_j : int
            Cardinalities of `i` and `j` before the merge.
        n_x : int or np.ndarray
            Cardinality of `x`.
        """
        raise NotImplementedError

    def item_cluster_distance(self, distances: np.ndarray) -> float:
        """
        Reduces the distances from a new item to the members of one cluster.

        Raises
        ------
        UnsupportedOperationError
            For strategies that rely on cardinality bookkeeping.
        """
        raise UnsupportedOperationError(
            f"Classification of new data is not supported by {self.name} linkage."
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SingleLinkage(LinkageStrategy):
    """Nearest neighbour: D(x, i U j) = min(d(x,i), d(x,j))."""

    name = "single"
    supports_classification = True
    monotonic = True

    def linkage_distance(self, d_xi, d_xj, d_ij, n_i, n_j, n_x):
        return np.minimum(d_xi, d_xj)

    def item_cluster_distance(self, distances):
        return float(np.min(distances))


class CompleteLinkage(LinkageStrategy):
    """Farthest neighbour: D(x, i U j) = max(d(x,i), d(x,j))."""

    name = "complete"
    supports_classification = True
    monotonic = True

    def linkage_distance(self, d_xi, d_xj, d_ij, n_i, n_j, n_x):
        return np.maximum(d_xi, d_xj)

    def item_cluster_distance(self, distances):
        return float(np.max(distances))


class AverageLinkage(LinkageStrategy):
    """
    Unweighted pair-group average (UPGMA).

    The distance between two clusters is the mean over every cross pair of
    items. The recurrence works on the item-level sums S(x,k) = n_x n_k d(x,k):
    the union's sum is S(x,i) + S(x,j), divided by its n_x (n_i + n_j) pairs.
    """

    name = "average"
    supports_classification = True

    def linkage_distance(self, d_xi, d_xj, d_ij, n_i, n_j, n_x):
        pair_sum = n_x * n_i * np.asarray(d_xi, dtype=float) + n_x * n_j * np.asarray(d_xj, dtype=float)
        return pair_sum / (n_x * (n_i + n_j))

    def item_cluster_distance(self, distances):
        return float(np.mean(distances))


class WeightedAverageLinkage(LinkageStrategy):
    """D(x, i U j) = (n_i d(x,i) + n_j d(x,j)) / (n_i + n_j)."""

    name = "weighted_average"
    supports_classification = True

    def linkage_distance(self, d_xi, d_xj, d_ij, n_i, n_j, n_x):
        return (1.0 * n_i * np.asarray(d_xi, dtype=float) + n_j * np.asarray(d_xj, dtype=float)) / (n_i + n_j)

    def item_cluster_distance(self, distances):
        return float(np.mean(distances))


class CentroidLinkage(LinkageStrategy):
    """
    Unweighted pair-group centroid (UPGMC).

    D(x, i U j) = (n_i d(x,i) + n_j d(x,j)) / (n_i + n_j)
                  - n_i n_j d(i,j) / (n_i + n_j)^2

    Exact for squared Euclidean distances between centroids.
    """

    name = "centroid"

    def linkage_distance(self, d_xi, d_xj, d_ij, n_i, n_j, n_x):
        n_ij = n_i + n_j
        return ((1.0 * n_i * np.asarray(d_xi, dtype=float) + n_j * np.asarray(d_xj, dtype=float)) / n_ij
                - 1.0 * n_i * n_j * d_ij / n_ij ** 2)


class MedianLinkage(LinkageStrategy):
    """Weighted pair-group centroid (WPGMC): 0.5 d(x,i) + 0.5 d(x,j) - 0.25 d(i,j)."""

    name = "median"

    def linkage_distance(self, d_xi, d_xj, d_ij, n_i, n_j, n_x):
        return 0.5 * np.asarray(d_xi, dtype=float) + 0.5 * np.asarray(d_xj, dtype=float) - 0.25 * d_ij


class WardLinkage(LinkageStrategy):
    """
    Minimum variance linkage [2].

    D(x, i U j) = ((n_i + n_x) d(x,i) + (n_j + n_x) d(x,j)) / (n_i + n_j + n_x)
                  - n_x d(i,j) / (n_i + n_j)^2
    """

    name = "ward"

    def linkage_distance(self, d_xi, d_xj, d_ij, n_i, n_j, n_x):
        n_x = np.asarray(n_x, dtype=float)
        weighted = ((n_i + n_x) * np.asarray(d_xi, dtype=float)
                    + (n_j + n_x) * np.asarray(d_xj, dtype=float))
        return weighted / (n_i + n_j + n_x) - n_x * d_ij / (n_i + n_j) ** 2


LINKAGES: Dict[str, LinkageStrategy] = {
    strategy.name: strategy
    for strategy in (
        SingleLinkage(),
        CompleteLinkage(),
        AverageLinkage(),
        WeightedAverageLinkage(),
        CentroidLinkage(),
        MedianLinkage(),
        WardLinkage(),
    )
}

_ALIASES = {
    "upgma": "average",
    "wpgma": "weighted_average",
    "weighted": "weighted_average",
    "upgmc": "centroid",
    "wpgmc": "median",
    "minimum_variance": "ward",
}


def get_linkage(linkage: Union[str, LinkageStrategy]) -> LinkageStrategy:
    """
    Resolves a linkage name (or passes a strategy instance through).

    Names are case-insensitive; '-' and ' ' are read as '_'.
    """
    if isinstance(linkage, LinkageStrategy):
        return linkage
    if not isinstance(linkage, str):
        raise InvalidConfigurationError(
            f"linkage must be a name or a LinkageStrategy, got {type(linkage).__name__}."
        )

    key = linkage.strip().lower().replace("-", "_").replace(" ", "_")
    key = _ALIASES.get(key, key)
    if key not in LINKAGES:
        raise InvalidConfigurationError(
            f"Linkage '{linkage}' not supported. Valid options: {sorted(LINKAGES)}"
        )
    return LINKAGES[key]
