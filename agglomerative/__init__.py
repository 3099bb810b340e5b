"""
Agglomerative Hierarchical Clustering Package.

Every data point starts as its own cluster and the two closest clusters are
merged until a target number of clusters (or a distance cutoff) is reached.
Cluster distances are kept in a compact distance matrix, computed once and
updated on each merge with the Lance-Williams recurrence of the chosen linkage.

Modules
-------
- clusterer: AgglomerativeClusterer, the estimator-style entry point.
- linkage: The seven linkage strategies (single, complete, average,
  weighted_average, centroid, median, ward).
- merge_loop: The build state machine shared by every linkage.
- distance_matrix: Compact triangular distance matrix addressed by slot.
- registry: Original point indices held by each active cluster.
- dendrogram: Merge history recorder and SciPy-style linkage matrix.
- dataset: Dataset abstraction consumed by the engine.
- errors: Error taxonomy.
"""

from .errors import (
    ClusteringError,
    InvalidConfigurationError,
    UnsupportedOperationError,
    LinkageInvariantError,
)
from .dataset import Dataset
from .linkage import LINKAGES, LinkageStrategy, get_linkage
from .distance_matrix import DistanceMatrix
from .registry import ClusterRegistry, compact_slots
from .merge_loop import BuildState, MergeEvent, MergeLoop, MergeObserver, MergeResult
from .dendrogram import Dendrogram, DendrogramEntry, DendrogramRecorder
from .clusterer import AgglomerativeClusterer, build
