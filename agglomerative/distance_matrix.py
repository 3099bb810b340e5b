"""
Compact distance matrix between the active clusters of a build.

The matrix is computed once, at the start of a build (O(n^2) distance
evaluations), and then updated incrementally on every merge. Conceptually it is
the strictly lower-triangular table

    [
      [d(1,0)],
      [d(2,0), d(2,1)],
      ...
      [d(n-1,0), d(n-1,1), ..., d(n-1,n-2)]
    ]

indexed by active-cluster slots. Physically the distances live in a condensed
vector with the layout of `scipy.spatial.distance.pdist`, addressed by stable
storage handles. A slot list maps each active slot to its handle; a merge
compacts that list and the merged cluster reuses the handle of the smaller
slot, so only the `n - 2` distances to the new cluster are written and no row
or column is physically moved.

References
----------
[1] Lance, G.N., Williams, W.T., "A general theory of classificatory sorting
    strategies: 1. Hierarchical systems", 1967, The Computer Journal, 9(4),
    pp. 373-380.
[2] Mullner, D., "Modern hierarchical, agglomerative clustering algorithms",
    2011, arXiv:1109.2378.
"""

from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.spatial.distance import pdist

from utils.distances import DISTANCE_FUNCTIONS, PDIST_METRICS, DistanceFunction, default_distance

from .dataset import Dataset
from .errors import InvalidConfigurationError, LinkageInvariantError
from .registry import compact_slots


def resolve_distance_function(
    distance_function: Union[None, str, Callable[[Any, Any], float]]
) -> DistanceFunction:
    """
    Resolves the user-facing distance option to a callable.

    Parameters
    ----------
    distance_function : None, str or callable
        - None: squared Euclidean distance over numeric attributes.
        - str: a name from `utils.distances.DISTANCE_FUNCTIONS`.
        - callable: used as is, `(item_a, item_b) -> float`.
    """
    if distance_function is None:
        return default_distance
    if isinstance(distance_function, str):
        key = distance_function.strip().lower().replace("-", "_")
        if key not in DISTANCE_FUNCTIONS:
            raise InvalidConfigurationError(
                f"Distance '{distance_function}' not supported. "
                f"Valid options: {sorted(DISTANCE_FUNCTIONS)}"
            )
        return DISTANCE_FUNCTIONS[key]
    if callable(distance_function):
        return distance_function
    raise InvalidConfigurationError(
        f"distance_function must be None, a name or a callable, got {type(distance_function).__name__}."
    )


class DistanceMatrix:
    """
    Distances between the active clusters, addressed by slot.

    Parameters
    ----------
    condensed : np.ndarray
        Pairwise distances of `n_points` items in `pdist` condensed order.
    n_points : int
        Number of initial clusters (one per data point).
    """

    def __init__(self, condensed: np.ndarray, n_points: int):
        expected = n_points * (n_points - 1) // 2
        condensed = np.asarray(condensed, dtype=float)
        if condensed.shape != (expected,):
            raise ValueError(
                f"Condensed matrix for {n_points} points must have {expected} entries, got {condensed.shape}."
            )
        self._values: Optional[np.ndarray] = condensed.copy()
        self._n = n_points
        # slot -> storage handle
        self._slots: List[int] = list(range(n_points))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def initialize(
        cls,
        points: Union[Dataset, Sequence[Sequence[Any]], np.ndarray],
        distance_fn: Union[None, str, Callable[[Any, Any], float]] = None
    ) -> "DistanceMatrix":
        """
        Computes every pairwise distance between `points` once.

        Named numeric metrics on numeric data go through `scipy`'s `pdist`;
        any other distance function is called on each pair `(a, b)`, `a` being
        the later item in input order.

        Raises
        ------
        InvalidConfigurationError
            If there are fewer than 2 points, or the distance function returns
            a negative or NaN value.
        """
        dataset = Dataset.from_any(points)
        n_points = len(dataset)
        if n_points < 2:
            raise InvalidConfigurationError(
                f"At least 2 data points are needed to build clusters, got {n_points}."
            )

        distance_fn = resolve_distance_function(distance_fn)
        values = None
        metric = PDIST_METRICS.get(distance_fn)
        if metric is not None and dataset.is_numeric:
            values = pdist(dataset.numeric_matrix(), metric=metric)

        if values is None:
            values = np.empty(n_points * (n_points - 1) // 2, dtype=float)
            items = dataset.data_items
            position = 0
            # Condensed order is row-major over the upper triangle: (0,1), (0,2), ...
            for j in range(n_points):
                for i in range(j + 1, n_points):
                    values[position] = distance_fn(items[i], items[j])
                    position += 1

        if np.isnan(values).any() or (values < 0).any():
            raise InvalidConfigurationError("Distance function returned a negative or NaN distance.")

        return cls(values, n_points)

    @classmethod
    def from_lower_triangle(cls, rows: Sequence[Sequence[float]]) -> "DistanceMatrix":
        """Builds a matrix from its list-of-rows view (see module docstring)."""
        n_points = len(rows) + 1
        matrix = cls(np.zeros(n_points * (n_points - 1) // 2), n_points)
        for a, row in enumerate(rows, start=1):
            if len(row) != a:
                raise ValueError(f"Row {a - 1} must have {a} entries, got {len(row)}.")
            for b, value in enumerate(row):
                matrix._values[matrix._condensed_index(a, b)] = value
        return matrix

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _condensed_index(self, handle_a, handle_b):
        """Position of the pair in the condensed vector (works on arrays)."""
        i = np.minimum(handle_a, handle_b)
        j = np.maximum(handle_a, handle_b)
        return self._n * i - (i * (i + 1)) // 2 + (j - i - 1)

    def _storage(self) -> np.ndarray:
        if self._values is None:
            raise LinkageInvariantError("Distance matrix has been released.")
        return self._values

    def _check_slot(self, slot: int) -> None:
        if not 0 <= slot < len(self._slots):
            raise IndexError(f"Slot {slot} out of range for {len(self._slots)} active clusters.")

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def released(self) -> bool:
        return self._values is None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def read(self, slot_a: int, slot_b: int) -> float:
        """Distance between the clusters at two slots (0 for the same slot)."""
        values = self._storage()
        self._check_slot(slot_a)
        self._check_slot(slot_b)
        if slot_a == slot_b:
            return 0.0
        if slot_b > slot_a:
            slot_a, slot_b = slot_b, slot_a
        return float(values[self._condensed_index(self._slots[slot_a], self._slots[slot_b])])

    def distances_from(self, slot: int) -> np.ndarray:
        """Distances from `slot` to every active slot, in slot order."""
        values = self._storage()
        self._check_slot(slot)
        handles = np.asarray(self._slots)
        handle = self._slots[slot]
        out = np.zeros(len(handles), dtype=float)
        others = handles != handle
        out[others] = values[self._condensed_index(handle, handles[others])]
        return out

    def closest_pair(self) -> Tuple[int, int, float]:
        """
        Finds the two closest active clusters.

        Rows are scanned in ascending slot order and columns in ascending slot
        order within each row; the first strict minimum wins, so ties resolve
        the same way on every run.

        Returns
        -------
        tuple
            (slot_i, slot_j, distance) with slot_i > slot_j.
        """
        values = self._storage()
        if len(self._slots) < 2:
            raise LinkageInvariantError("At least 2 active clusters are needed to find a pair.")

        handles = np.asarray(self._slots)
        best_distance = np.inf
        best_pair = (1, 0)
        for a in range(1, len(handles)):
            row = values[self._condensed_index(handles[a], handles[:a])]
            b = int(np.argmin(row))
            if row[b] < best_distance:
                best_distance = float(row[b])
                best_pair = (a, b)
        return best_pair[0], best_pair[1], float(best_distance)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def apply_merge(self, slot_i: int, slot_j: int, new_row: Sequence[float]) -> None:
        """
        Replaces the clusters at `slot_i` and `slot_j` by their union.

        Parameters
        ----------
        slot_i, slot_j : int
            Slots of the merged clusters (any order).
        new_row : sequence of float
            Distance from every surviving cluster to the merged one, in the
            slot order that remains once both slots are removed.
        """
        values = self._storage()
        self._check_slot(slot_i)
        self._check_slot(slot_j)
        new_row = np.asarray(new_row, dtype=float)
        if new_row.shape != (len(self._slots) - 2,):
            raise LinkageInvariantError(
                f"Merged row must hold {len(self._slots) - 2} distances, got {new_row.shape}."
            )

        high, low = max(slot_i, slot_j), min(slot_i, slot_j)
        handle = self._slots[low]
        compact_slots(self._slots, high, low, handle)

        survivors = np.asarray(self._slots[:-1], dtype=int)
        if len(survivors):
            values[self._condensed_index(handle, survivors)] = new_row

    def release(self) -> None:
        """Drops the storage once the build no longer needs it."""
        self._values = None

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def to_lower_triangle(self) -> List[List[float]]:
        return [[self.read(a, b) for b in range(a)] for a in range(1, len(self))]

    def to_square(self) -> np.ndarray:
        square = np.zeros((len(self), len(self)), dtype=float)
        for a in range(len(self)):
            square[a] = self.distances_from(a)
        return square
