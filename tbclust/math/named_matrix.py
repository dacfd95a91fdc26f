"""
Named Matrix implementation for tbclust.

This module provides a data structure for numeric tables with named rows
(countries) and columns (observation years). A NamedMatrix is immutable:
subsetting operations return new matrices and never touch the original.
"""

import logging
from typing import Any, List, Optional, Union

import numpy as np
import pandas as pd

from tbclust.math.validation import as_numeric_matrix, check_labels

# Set up logging
logger = logging.getLogger(__name__)


class IndexHash:
    """
    Maintains an ordered index of names with fast lookup.
    """

    def __init__(self, names: Optional[List[Any]] = None):
        """
        Initialize an IndexHash with optional initial names.

        Args:
            names: Optional list of initial names
        """
        self._names = [] if names is None else list(names)
        self._index_hash = {name: idx for idx, name in enumerate(self._names)}

    def get_names(self) -> List[Any]:
        """Return the ordered list of names."""
        return self._names.copy()

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: Any) -> bool:
        return name in self._index_hash


class NamedMatrix:
    """
    A numeric matrix with named rows and columns.

    Uses a pandas DataFrame as the underlying storage. Values are validated
    on construction: every row must have the same number of finite numeric
    observations and row/column labels must be unique.
    """

    def __init__(self,
                 matrix: Optional[Union[np.ndarray, pd.DataFrame, List[List[Any]]]] = None,
                 rownames: Optional[List[Any]] = None,
                 colnames: Optional[List[Any]] = None):
        """
        Initialize a NamedMatrix.

        Args:
            matrix: Matrix data (numpy array, pandas DataFrame or nested lists)
            rownames: List of row names (defaults to the DataFrame index or 0..n-1)
            colnames: List of column names (defaults to the DataFrame columns or 0..m-1)

        Raises:
            InputShapeError: if the data is ragged, non-numeric, incomplete,
                or the labels are duplicated or of the wrong length
        """
        if matrix is None:
            values = np.empty((0, 0 if colnames is None else len(colnames)))
        else:
            if isinstance(matrix, pd.DataFrame):
                if rownames is None:
                    rownames = list(matrix.index)
                if colnames is None:
                    colnames = list(matrix.columns)
            if isinstance(matrix, (list, tuple)) and len(matrix) == 0:
                values = np.empty((0, 0 if colnames is None else len(colnames)))
            else:
                values = as_numeric_matrix(matrix)

        rows = check_labels(rownames, values.shape[0], 'row')
        cols = check_labels(colnames, values.shape[1], 'column')

        self._row_index = IndexHash(rows)
        self._col_index = IndexHash(cols)
        self._matrix = pd.DataFrame(values, index=rows, columns=cols)

    @classmethod
    def _from_frame(cls, frame: pd.DataFrame) -> 'NamedMatrix':
        # Frames handed in here come from an already validated matrix
        result = cls.__new__(cls)
        result._matrix = frame
        result._row_index = IndexHash(list(frame.index))
        result._col_index = IndexHash(list(frame.columns))
        return result

    @property
    def matrix(self) -> pd.DataFrame:
        """Get a copy of the underlying DataFrame."""
        return self._matrix.copy()

    @property
    def values(self) -> np.ndarray:
        """Get the matrix as a numpy array (a copy)."""
        return self._matrix.values.copy()

    @property
    def shape(self):
        return self._matrix.shape

    def rownames(self) -> List[Any]:
        """Get the list of row names."""
        return self._row_index.get_names()

    def colnames(self) -> List[Any]:
        """Get the list of column names."""
        return self._col_index.get_names()

    def rowname_subset(self, rownames: List[Any]) -> 'NamedMatrix':
        """
        Create a subset of the matrix with only the specified rows.

        Row order follows the order of ``rownames``; names that are not in
        the matrix are ignored.

        Args:
            rownames: List of row names to include

        Returns:
            A new NamedMatrix with only the specified rows
        """
        valid_rows = [row for row in rownames if row in self._row_index]
        return NamedMatrix._from_frame(self._matrix.loc[valid_rows].copy())

    def __len__(self) -> int:
        return len(self._row_index)

    def __repr__(self) -> str:
        return f"NamedMatrix(rows={len(self.rownames())}, cols={len(self.colnames())})"

    def __str__(self) -> str:
        return (f"NamedMatrix with {len(self.rownames())} rows and "
                f"{len(self.colnames())} columns\n{self._matrix}")

