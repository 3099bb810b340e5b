"""
Dataset abstraction consumed by the clustering engine.

A `Dataset` is an ordered collection of data items (fixed-width feature
vectors, numeric and/or categorical attributes) with optional attribute labels.
The engine never loads, validates or normalizes data: it only reads items by
position, asks for the numeric matrix when a vectorized distance computation is
possible, and cuts the final clusters out of the dataset as fragments.
"""

from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from utils.distances import is_numeric


class Dataset:
    """
    Ordered, immutable collection of data items.

    Parameters
    ----------
    data_items : sequence of sequences
        The data points, one feature vector per item.
    data_labels : sequence of str, optional
        Attribute names, one per feature.
    indices : sequence of int, optional
        Position of each item in the dataset it was cut from. Defaults to
        `0..n-1` for a root dataset.
    """

    def __init__(
        self,
        data_items: Sequence[Sequence[Any]],
        data_labels: Optional[Sequence[str]] = None,
        indices: Optional[Sequence[int]] = None
    ):
        self.data_items: Tuple[Tuple[Any, ...], ...] = tuple(tuple(item) for item in data_items)
        self.data_labels = list(data_labels) if data_labels is not None else None
        if indices is None:
            indices = range(len(self.data_items))
        self.indices: Tuple[int, ...] = tuple(int(i) for i in indices)

        if len(self.indices) != len(self.data_items):
            raise ValueError("indices and data_items must have the same length.")

    @classmethod
    def from_any(cls, X: Union["Dataset", np.ndarray, pd.DataFrame, Sequence[Sequence[Any]]]) -> "Dataset":
        """
        Wraps the supported input types into a Dataset.

        DataFrame column names become the attribute labels. A 1-D array or a
        flat list of scalars is read as one single-attribute item per value.
        """
        if isinstance(X, Dataset):
            return X
        if isinstance(X, pd.DataFrame):
            items = list(X.itertuples(index=False, name=None))
            return cls(items, data_labels=[str(c) for c in X.columns])

        if isinstance(X, np.ndarray):
            if X.ndim == 1:
                X = X.reshape(-1, 1)
            return cls(X.tolist())

        items = list(X)
        if items and not isinstance(items[0], (list, tuple, np.ndarray)):
            items = [[value] for value in items]
        return cls(items)

    def __len__(self) -> int:
        return len(self.data_items)

    def __getitem__(self, position: int) -> Tuple[Any, ...]:
        return self.data_items[position]

    def __iter__(self):
        return iter(self.data_items)

    def __repr__(self) -> str:
        return f"Dataset(n_items={len(self)}, indices={list(self.indices)})"

    @property
    def n_attributes(self) -> int:
        return len(self.data_items[0]) if self.data_items else 0

    def subset(self, positions: Sequence[int]) -> "Dataset":
        """
        Returns the fragment holding the items at `positions`, in that order.

        The fragment keeps the original indices of its items.
        """
        return Dataset(
            [self.data_items[p] for p in positions],
            data_labels=self.data_labels,
            indices=[self.indices[p] for p in positions],
        )

    def _numeric_columns(self) -> Optional[List[int]]:
        """Columns whose values are numeric for every item, or None if ragged."""
        width = self.n_attributes
        if any(len(item) != width for item in self.data_items):
            return None
        return [
            col for col in range(width)
            if all(is_numeric(item[col]) for item in self.data_items)
        ]

    @property
    def is_numeric(self) -> bool:
        """True when every attribute of every item is numeric."""
        columns = self._numeric_columns()
        return columns is not None and len(columns) == self.n_attributes > 0

    def numeric_matrix(self) -> Optional[np.ndarray]:
        """
        Float matrix of the all-numeric attributes, shape (n_items, n_numeric).

        Returns None for ragged data or when no attribute is numeric.
        """
        columns = self._numeric_columns()
        if not columns:
            return None
        return np.array(
            [[item[col] for col in columns] for item in self.data_items],
            dtype=float
        )
