"""
Merge loop (build controller) of agglomerative clustering.

The loop is one state machine shared by every linkage strategy:

    INITIALIZING -> SCANNING -> MERGING -> (back to SCANNING) -> FINALIZING -> DONE

1. INITIALIZING: compute the distance matrix and one singleton cluster per
   data point.
2. SCANNING: stop if the number of active clusters has reached the target;
   otherwise find the closest pair. If a cutoff is set and the closest pair is
   farther apart than it, stop as well.
3. MERGING: ask the linkage strategy for the distances from every surviving
   cluster to the union, then merge the pair in the distance matrix and in the
   registry (the same slot compaction on both), and notify the observers.
4. FINALIZING: release the distance matrix and hand back the surviving index
   sets.

History capture (dendrograms) and progress reporting attach as observers; the
loop itself never changes per linkage type. No randomness is involved: equal
inputs always give the same merges in the same order.
"""

import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Union

import numpy as np

from .dataset import Dataset
from .distance_matrix import DistanceMatrix
from .errors import InvalidConfigurationError, LinkageInvariantError
from .linkage import LinkageStrategy
from .registry import ClusterRegistry


class BuildState(Enum):
    INITIALIZING = "initializing"
    SCANNING = "scanning"
    MERGING = "merging"
    FINALIZING = "finalizing"
    DONE = "done"


@dataclass(frozen=True)
class MergeEvent:
    """
    One merge, as seen by the observers.

    Slots are the positions of the two clusters before the merge
    (`slot_i > slot_j`); node ids follow the SciPy linkage numbering.
    """

    step: int
    total_merges: int
    slot_i: int
    slot_j: int
    distance: float
    left_node: int
    right_node: int
    new_node: int
    size: int
    n_clusters: int


class MergeObserver:
    """Receives the build events. Every hook is optional."""

    def on_start(self, registry: ClusterRegistry, total_merges: int) -> None:
        pass

    def on_merge(self, event: MergeEvent, registry: ClusterRegistry) -> None:
        pass

    def on_finish(self, registry: ClusterRegistry) -> None:
        pass


@dataclass
class MergeResult:
    """Outcome of one run of the merge loop."""

    index_clusters: List[List[int]]
    events: List[MergeEvent] = field(default_factory=list)
    stopped_by_distance: bool = False

    @property
    def n_merges(self) -> int:
        return len(self.events)

    @property
    def merge_distances(self) -> List[float]:
        return [event.distance for event in self.events]


class MergeLoop:
    """
    Runs the agglomeration for one linkage strategy.

    Parameters
    ----------
    linkage : LinkageStrategy
        Strategy used to update the distance matrix after each merge.
    n_clusters : int
        Number of clusters at which the loop stops.
    max_distance : float, optional
        Cutoff: the loop also stops as soon as the closest pair is farther
        apart than this value.
    observers : sequence of MergeObserver
        Notified at start, after every merge and at the end.
    verbose : bool, default=False
        If True, prints every merge to console.
    """

    def __init__(
        self,
        linkage: LinkageStrategy,
        n_clusters: int,
        max_distance: Optional[float] = None,
        observers: Sequence[MergeObserver] = (),
        verbose: bool = False
    ):
        self.linkage = linkage
        self.n_clusters = n_clusters
        self.max_distance = max_distance
        self.observers = list(observers)
        self.verbose = verbose
        self.state = BuildState.INITIALIZING

    def _validate(self, n_points: int) -> None:
        """Rejects configurations under which no build can start."""
        if n_points < 2:
            raise InvalidConfigurationError(
                f"At least 2 data points are needed to build clusters, got {n_points}."
            )
        if isinstance(self.n_clusters, bool) or not isinstance(self.n_clusters, numbers.Integral):
            raise InvalidConfigurationError(f"n_clusters must be an integer, got {self.n_clusters!r}.")
        if self.n_clusters <= 0:
            raise InvalidConfigurationError(f"n_clusters must be positive, got {self.n_clusters}.")
        if self.n_clusters > n_points:
            raise InvalidConfigurationError(
                f"n_clusters ({self.n_clusters}) cannot exceed the number of points ({n_points})."
            )
        if self.max_distance is not None and not self.max_distance >= 0:
            raise InvalidConfigurationError(f"max_distance must be non-negative, got {self.max_distance}.")

    def run(
        self,
        dataset: Dataset,
        distance_function: Union[None, str, Callable[[Any, Any], float]] = None
    ) -> MergeResult:
        """
        Builds the clusters of `dataset`.

        Raises
        ------
        InvalidConfigurationError
            Before any distance is computed, if the dataset or the target
            cannot give a build.
        """
        self.state = BuildState.INITIALIZING
        self._validate(len(dataset))
        matrix = DistanceMatrix.initialize(dataset, distance_function)
        registry = ClusterRegistry.singletons(len(dataset))
        total_merges = len(dataset) - self.n_clusters

        if self.verbose:
            print(f"[{self.linkage.name}] {len(dataset)} points -> {self.n_clusters} clusters "
                  f"({total_merges} merges planned)")

        for observer in self.observers:
            observer.on_start(registry, total_merges)

        result = MergeResult(index_clusters=[])
        while len(registry) > self.n_clusters:
            self.state = BuildState.SCANNING
            slot_i, slot_j, distance = matrix.closest_pair()
            if self.max_distance is not None and distance > self.max_distance:
                result.stopped_by_distance = True
                if self.verbose:
                    print(f"[{self.linkage.name}] Stopped: closest pair at {distance:.4f} "
                          f"exceeds max_distance={self.max_distance}")
                break

            self.state = BuildState.MERGING
            event = self._merge(matrix, registry, slot_i, slot_j, len(result.events) + 1, total_merges)
            result.events.append(event)

            for observer in self.observers:
                observer.on_merge(event, registry)

        self.state = BuildState.FINALIZING
        result.index_clusters = registry.index_clusters()
        for observer in self.observers:
            observer.on_finish(registry)
        matrix.release()

        if self.verbose:
            print(f"[{self.linkage.name}] Done: {len(result.index_clusters)} clusters "
                  f"after {result.n_merges} merges")
        self.state = BuildState.DONE
        return result

    def _merge(
        self,
        matrix: DistanceMatrix,
        registry: ClusterRegistry,
        slot_i: int,
        slot_j: int,
        step: int,
        total_merges: int
    ) -> MergeEvent:
        """Applies one merge to the matrix and the registry, in lockstep."""
        n_active = len(registry)
        if len(matrix) != n_active:
            raise LinkageInvariantError(
                f"Distance matrix has {len(matrix)} slots but the registry has {n_active}."
            )

        d_ij = matrix.read(slot_i, slot_j)
        d_xi = matrix.distances_from(slot_i)
        d_xj = matrix.distances_from(slot_j)
        sizes = registry.sizes()

        # Surviving slots, in the order they keep after the merge
        survivors = np.ones(n_active, dtype=bool)
        survivors[[slot_i, slot_j]] = False

        new_row = self.linkage.linkage_distance(
            d_xi[survivors],
            d_xj[survivors],
            d_ij,
            registry.size(slot_i),
            registry.size(slot_j),
            sizes[survivors],
        )
        matrix.apply_merge(slot_i, slot_j, np.asarray(new_row, dtype=float))
        record = registry.merge(slot_i, slot_j)

        if len(matrix) != len(registry) or len(registry) != n_active - 1:
            raise LinkageInvariantError(
                f"Merge left {len(matrix)} matrix slots and {len(registry)} clusters, "
                f"expected {n_active - 1}."
            )

        if self.verbose:
            print(f"  Merge {step}/{total_merges}: slots ({slot_i}, {slot_j}) "
                  f"at distance {d_ij:.4f} -> {len(registry)} clusters")

        return MergeEvent(
            step=step,
            total_merges=total_merges,
            slot_i=max(slot_i, slot_j),
            slot_j=min(slot_i, slot_j),
            distance=d_ij,
            left_node=record.left_node,
            right_node=record.right_node,
            new_node=record.new_node,
            size=record.size,
            n_clusters=len(registry),
        )
