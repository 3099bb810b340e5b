"""
Dendrogram recording for agglomerative clustering.

`DendrogramRecorder` is a merge-loop observer: it snapshots the partition at
the start of the build and after every merge, and keeps the SciPy-style
linkage rows of all merges. Recording only reads the cluster registry, so the
live distance matrix is never touched.

An optional depth keeps only the last `depth` partitions, the final one
included. The window follows the merges actually made, so a build stopped
early by a distance cutoff still ends its history with its final partition.
"""

from collections import deque
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .merge_loop import MergeEvent, MergeObserver
from .registry import ClusterRegistry

Partition = Tuple[Tuple[int, ...], ...]


@dataclass(frozen=True)
class DendrogramEntry:
    """
    Partition of the data after `step` merges (step 0 is all singletons).

    `distance` and `merged_nodes` describe the merge that produced it and are
    None for the initial partition.
    """

    step: int
    partition: Partition
    distance: Optional[float] = None
    merged_nodes: Optional[Tuple[int, int]] = None

    @property
    def n_clusters(self) -> int:
        return len(self.partition)

    @property
    def sizes(self) -> List[int]:
        return [len(cluster) for cluster in self.partition]


class Dendrogram:
    """
    Merge history of one build.

    Parameters
    ----------
    entries : list of DendrogramEntry
        Recorded partitions, in merge order.
    linkage_rows : list of list
        `[left_node, right_node, distance, size]` for every merge.
    n_points : int
        Number of data points (leaves).
    """

    def __init__(self, entries: List[DendrogramEntry], linkage_rows: List[List[float]], n_points: int):
        self.entries = list(entries)
        self._linkage_rows = [list(row) for row in linkage_rows]
        self.n_points = n_points

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[DendrogramEntry]:
        return iter(self.entries)

    @property
    def cluster_tree(self) -> List[Partition]:
        """Recorded partitions, most merged first (the final partition leads)."""
        return [entry.partition for entry in reversed(self.entries)]

    @property
    def merge_distances(self) -> List[float]:
        """Distance of every merge, in merge order (not limited by the depth)."""
        return [row[2] for row in self._linkage_rows]

    def partition_at(self, n_clusters: int) -> Partition:
        """The recorded partition with exactly `n_clusters` clusters."""
        for entry in self.entries:
            if entry.n_clusters == n_clusters:
                return entry.partition
        raise KeyError(f"No recorded partition with {n_clusters} clusters.")

    def has_inversions(self) -> bool:
        """True when some merge happened at a lower distance than the previous one."""
        distances = self.merge_distances
        return any(later < earlier for earlier, later in zip(distances, distances[1:]))

    def linkage_matrix(self) -> np.ndarray:
        """
        Merge history in the format of `scipy.cluster.hierarchy.linkage`.

        Row k is `[left_node, right_node, distance, size]`; leaves are numbered
        `0..n-1` and the cluster created by row k is `n + k`.
        """
        if not self._linkage_rows:
            return np.empty((0, 4), dtype=float)
        return np.array(self._linkage_rows, dtype=float)


class DendrogramRecorder(MergeObserver):
    """
    Observer that builds a `Dendrogram` while the merge loop runs.

    Parameters
    ----------
    depth : int, optional
        Keep only the last `depth` partitions. None keeps all of them.
    """

    def __init__(self, depth: Optional[int] = None):
        if depth is not None and depth < 1:
            raise ValueError("depth must be a positive integer.")
        self.depth = depth
        self._entries = deque(maxlen=depth)
        self._linkage_rows: List[List[float]] = []
        self._n_points = 0

    def on_start(self, registry: ClusterRegistry, total_merges: int) -> None:
        # Oldest entries fall off the left end once `depth` is reached
        self._entries = deque(maxlen=self.depth)
        self._linkage_rows = []
        self._n_points = len(registry)
        self._entries.append(DendrogramEntry(step=0, partition=registry.partition()))

    def on_merge(self, event: MergeEvent, registry: ClusterRegistry) -> None:
        self._linkage_rows.append([event.left_node, event.right_node, event.distance, event.size])
        self._entries.append(DendrogramEntry(
            step=event.step,
            partition=registry.partition(),
            distance=event.distance,
            merged_nodes=(event.left_node, event.right_node),
        ))

    def dendrogram(self) -> Dendrogram:
        return Dendrogram(list(self._entries), self._linkage_rows, self._n_points)
