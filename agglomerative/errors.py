"""
Error taxonomy of the agglomerative clustering engine.

Three conditions are kept apart so callers can react to each one:
invalid configuration (raised before a build starts), unsupported
operations (classifying fresh data under a linkage that cannot do it) and
internal invariant violations (bugs, never caught by the engine).
"""


class ClusteringError(Exception):
    """Base error for the clustering engine."""


class InvalidConfigurationError(ClusteringError, ValueError):
    """Raised when build parameters or the dataset fail validation."""


class UnsupportedOperationError(ClusteringError, NotImplementedError):
    """Raised when a linkage strategy cannot perform the requested operation."""


class LinkageInvariantError(ClusteringError, RuntimeError):
    """Raised when the distance matrix and the cluster registry disagree."""
