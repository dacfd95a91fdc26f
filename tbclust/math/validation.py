"""
Input validation shared by the reducer and the clusterer.

Both stages fail fast: the checks here run before any decomposition or
iteration so that malformed tables never produce partial results.
"""

import logging
from typing import Any, List, Optional, Sequence

import numpy as np
import pandas as pd

from tbclust.errors import InputShapeError, ParameterError

logger = logging.getLogger(__name__)


def as_numeric_matrix(data: Any) -> np.ndarray:
    """
    Convert data into a finite two-dimensional float array.

    Args:
        data: numpy array, pandas DataFrame or a sequence of row sequences

    Returns:
        A new float64 array of shape (n_rows, n_cols)

    Raises:
        InputShapeError: for ragged rows, non-numeric cells, missing values
            or anything that is not two-dimensional
    """
    if isinstance(data, pd.DataFrame):
        values = data.values
    elif isinstance(data, np.ndarray):
        values = data
    else:
        try:
            rows = list(data)
        except TypeError as e:
            raise InputShapeError(f"Expected a table of rows, got {type(data).__name__}") from e
        if any(np.ndim(row) != 1 for row in rows):
            raise InputShapeError("Expected a sequence of rows, each a sequence of values")
        lengths = {len(row) for row in rows}
        if len(lengths) > 1:
            raise InputShapeError(
                f"Ragged rows: found row lengths {sorted(lengths)}"
            )
        values = rows

    try:
        matrix = np.array(values, dtype=float)
    except (ValueError, TypeError) as e:
        raise InputShapeError(f"Non-numeric value in matrix: {e}") from e

    if matrix.ndim != 2:
        raise InputShapeError(
            f"Expected a two-dimensional table, got {matrix.ndim} dimension(s)"
        )

    if not np.all(np.isfinite(matrix)):
        bad_rows, bad_cols = np.where(~np.isfinite(matrix))
        raise InputShapeError(
            f"Missing or non-finite values at {len(bad_rows)} cell(s), "
            f"first at row {bad_rows[0]}, column {bad_cols[0]}"
        )

    return matrix


def check_labels(labels: Optional[Sequence[Any]], expected: int, kind: str) -> List[Any]:
    """
    Check that a label list has the right length and no duplicates.

    Args:
        labels: Row or column labels (None means positional labels)
        expected: Required number of labels
        kind: 'row' or 'column', used in error messages

    Returns:
        The labels as a list
    """
    if labels is None:
        return list(range(expected))

    labels = list(labels)
    if len(labels) != expected:
        raise InputShapeError(
            f"Expected {expected} {kind} labels, got {len(labels)}"
        )

    seen = set()
    duplicates = []
    for label in labels:
        if label in seen:
            duplicates.append(label)
        seen.add(label)
    if duplicates:
        raise InputShapeError(f"Duplicate {kind} labels: {duplicates[:5]}")

    return labels


def check_k(k: Any, n_rows: int) -> int:
    """Validate a cluster count against the number of rows."""
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise ParameterError(f"k must be an integer, got {k!r}")
    if k < 1 or k > n_rows:
        raise ParameterError(f"k must be in [1, {n_rows}], got {k}")
    return int(k)


def check_positive_int(value: Any, name: str) -> int:
    """Validate a strictly positive integer parameter."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 1:
        raise ParameterError(f"{name} must be a positive integer, got {value!r}")
    return int(value)
