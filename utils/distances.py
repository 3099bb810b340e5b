"""
Distance functions between data items.

Every function follows the same contract: it receives two data items (ordered,
fixed-width feature vectors) and returns a non-negative float. Items may mix
numeric and categorical attributes; the numeric metrics are meant to be fed
numeric attributes only, which is what `default_distance` does for the
clustering engine.

The numeric metrics work on numpy vectors. The Minkowski ones also have a
`scipy.spatial.distance` counterpart (see `PDIST_METRICS`), used by the engine
to compute whole distance matrices at once when the data is fully numeric.

References
----------
[1] Deza, M.M., Deza, E., "Encyclopedia of Distances", 2009, Springer.
[2] Sokal, R.R., Michener, C.D., "A statistical method for evaluating systematic
    relationships", 1958, University of Kansas Science Bulletin, 38, pp. 1409-1438.
"""

import math
import numbers
from typing import Any, Callable, Dict, List, Sequence

import numpy as np

DistanceFunction = Callable[[Sequence[Any], Sequence[Any]], float]


def is_numeric(value: Any) -> bool:
    """True for real numbers, False for booleans and everything else."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def numeric_attributes(item: Sequence[Any]) -> List[float]:
    """Returns the numeric attributes of an item, keeping their order."""
    return [float(value) for value in item if is_numeric(value)]


def _difference(a: Sequence[float], b: Sequence[float]) -> np.ndarray:
    return np.asarray(a, dtype=float) - np.asarray(b, dtype=float)


def squared_euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Euclidean distance to the power of 2.

    Cheaper than `euclidean_distance` and preserves its ordering, which is all
    the hierarchical linkages need.
    """
    diff = _difference(a, b)
    return float(np.dot(diff, diff))


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    return float(np.linalg.norm(_difference(a, b)))


def manhattan_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """City block (L1) distance."""
    return float(np.abs(_difference(a, b)).sum())


def sup_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Chebyshev (L-infinity) distance: the largest attribute difference."""
    return float(np.abs(_difference(a, b)).max(initial=0.0))


def hamming_distance(a: Sequence[Any], b: Sequence[Any]) -> float:
    """Number of positions where the two items differ (any attribute type)."""
    return float(sum(1 for value_a, value_b in zip(a, b) if value_a != value_b))


def simple_matching_distance(a: Sequence[Any], b: Sequence[Any]) -> float:
    """
    Distance derived from the simple matching coefficient [2].

    Similarity is the share of attribute values of `a` also present in `b`
    (counted from both sides); the distance is `1 / similarity - 1`, so
    identical items are at 0 and items sharing nothing are at infinity.
    """
    if not a and not b:
        return 0.0
    similarity = 0.0
    for value in a:
        if value in b:
            similarity += 2
    similarity /= (len(a) + len(b))
    if similarity == 0:
        return math.inf
    return 1.0 / similarity - 1


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """One minus the cosine similarity. A zero vector is at distance 1."""
    u = np.asarray(a, dtype=float)
    v = np.asarray(b, dtype=float)
    magnitude = np.linalg.norm(u) * np.linalg.norm(v)
    if magnitude < 1e-12:
        return 1.0
    # Rounding can push the similarity slightly above 1
    return float(max(0.0, 1.0 - np.dot(u, v) / magnitude))


def default_distance(a: Sequence[Any], b: Sequence[Any]) -> float:
    """
    Squared Euclidean distance restricted to numeric attributes.

    Non-numeric attributes (labels, categories) are ignored. If the two items
    do not hold the same number of numeric attributes, the extra ones of the
    longer item are ignored too.
    """
    u, v = numeric_attributes(a), numeric_attributes(b)
    width = min(len(u), len(v))
    return squared_euclidean_distance(u[:width], v[:width])


DISTANCE_FUNCTIONS: Dict[str, DistanceFunction] = {
    "default": default_distance,
    "squared_euclidean": squared_euclidean_distance,
    "euclidean": euclidean_distance,
    "manhattan": manhattan_distance,
    "sup": sup_distance,
    "chebyshev": sup_distance,
    "hamming": hamming_distance,
    "simple_matching": simple_matching_distance,
    "cosine": cosine_distance,
}

# Functions with an exact scipy.spatial.distance counterpart on numeric data
PDIST_METRICS: Dict[DistanceFunction, str] = {
    default_distance: "sqeuclidean",
    squared_euclidean_distance: "sqeuclidean",
    euclidean_distance: "euclidean",
    manhattan_distance: "cityblock",
    sup_distance: "chebyshev",
}
