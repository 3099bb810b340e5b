"""
Cluster Index Registry.

During a build, clusters are never materialized: each active cluster is a list
of original data-point indices, identified by its slot (its position in the
active list). A merge removes the two source slots and appends the union at
the last slot, so every slot after a removed one shifts down. The distance
matrix has to follow exactly the same relabeling; both structures therefore
compact their slots with the single function `compact_slots`.

Each slot also carries a node id in the SciPy linkage numbering: leaves are
`0..n-1` and the k-th merge creates node `n + k`.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple, TypeVar

import numpy as np

T = TypeVar("T")


def compact_slots(items: List[T], slot_i: int, slot_j: int, merged: T) -> List[T]:
    """
    Removes slots `slot_i` and `slot_j` and appends `merged` as the last slot.

    The larger slot is deleted first so the position of the smaller one is
    still valid. The list is modified in place and returned.
    """
    if slot_i == slot_j:
        raise ValueError("Cannot merge a slot with itself.")
    high, low = max(slot_i, slot_j), min(slot_i, slot_j)
    if low < 0 or high >= len(items):
        raise IndexError(f"Slots ({slot_i}, {slot_j}) out of range for {len(items)} clusters.")

    del items[high]
    del items[low]
    items.append(merged)
    return items


@dataclass(frozen=True)
class MergeRecord:
    """Bookkeeping of one structural merge in the registry."""

    left_node: int
    right_node: int
    new_node: int
    size: int
    members: Tuple[int, ...]


class ClusterRegistry:
    """
    Per-slot member lists of the active clusters.

    Parameters
    ----------
    index_clusters : list of list of int
        Original point indices held by each slot.
    node_ids : list of int
        Linkage node id of each slot.
    next_node : int
        Id given to the next merged cluster.
    """

    def __init__(self, index_clusters: List[List[int]], node_ids: List[int], next_node: int):
        if len(index_clusters) != len(node_ids):
            raise ValueError("index_clusters and node_ids must have the same length.")
        self._members = index_clusters
        self._node_ids = node_ids
        self._sizes = [len(members) for members in index_clusters]
        self._next_node = next_node

    @classmethod
    def singletons(cls, n_points: int) -> "ClusterRegistry":
        """One cluster per data point: [[0], [1], ..., [n-1]]."""
        return cls([[i] for i in range(n_points)], list(range(n_points)), n_points)

    def __len__(self) -> int:
        return len(self._members)

    def members(self, slot: int) -> List[int]:
        return list(self._members[slot])

    def node_id(self, slot: int) -> int:
        return self._node_ids[slot]

    def size(self, slot: int) -> int:
        return self._sizes[slot]

    def sizes(self) -> np.ndarray:
        """Cardinality of every active cluster, in slot order."""
        return np.asarray(self._sizes, dtype=float)

    def index_clusters(self) -> List[List[int]]:
        return [list(members) for members in self._members]

    def partition(self) -> Tuple[Tuple[int, ...], ...]:
        """Immutable copy of the current partition."""
        return tuple(tuple(members) for members in self._members)

    def merge(self, slot_i: int, slot_j: int) -> MergeRecord:
        """
        Unions the clusters at `slot_i` and `slot_j` into a new last slot.

        Members of the cluster at the larger slot come first.
        """
        high, low = max(slot_i, slot_j), min(slot_i, slot_j)
        merged = self._members[high] + self._members[low]
        record = MergeRecord(
            left_node=self._node_ids[low],
            right_node=self._node_ids[high],
            new_node=self._next_node,
            size=len(merged),
            members=tuple(merged),
        )

        compact_slots(self._members, high, low, merged)
        compact_slots(self._node_ids, high, low, self._next_node)
        compact_slots(self._sizes, high, low, len(merged))
        self._next_node += 1
        return record


def materialize(index_clusters: Sequence[Sequence[int]], dataset) -> list:
    """Cuts one dataset fragment per index cluster, in slot order."""
    return [dataset.subset(list(indices)) for indices in index_clusters]
