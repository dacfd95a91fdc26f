"""
CSV loading for yearly observation tables.

The expected layout is one header row holding the year columns
(``X1990`` .. ``X2007``) and a label column (country name, first by
default). Numeric cells may carry thousands separators (``"1,234"``);
they are stripped before parsing. Anything that cannot be parsed, and any
missing cell, is rejected with an InputShapeError.
"""

import logging
from typing import Any, Union

import pandas as pd

from tbclust.errors import InputShapeError
from tbclust.math.named_matrix import NamedMatrix

logger = logging.getLogger(__name__)


def _parse_numeric_column(column: pd.Series, labels: pd.Series, thousands: str) -> pd.Series:
    missing = column.isna()
    if missing.any():
        row = labels[missing.values].iloc[0]
        raise InputShapeError(
            f"Missing value in column {column.name!r} for row {row!r} "
            f"({int(missing.sum())} missing in total)"
        )

    if pd.api.types.is_numeric_dtype(column):
        return column.astype(float)

    text = column.astype(str).str.strip()
    if thousands:
        text = text.str.replace(thousands, '', regex=False)
    numeric = pd.to_numeric(text, errors='coerce')

    bad = numeric.isna()
    if bad.any():
        position = int(bad.values.argmax())
        raise InputShapeError(
            f"Non-numeric value {column.iloc[position]!r} in column {column.name!r} "
            f"for row {labels.iloc[position]!r}"
        )
    return numeric.astype(float)


def load_dataframe(frame: pd.DataFrame,
                   label_column: Union[int, str] = 0,
                   thousands: str = ',') -> NamedMatrix:
    """
    Build a NamedMatrix from a DataFrame holding a label column.

    Args:
        frame: Raw table, one row per entity
        label_column: Position or name of the label column
        thousands: Thousands separator to strip from text cells

    Returns:
        NamedMatrix with one row per entity and one column per observation
    """
    if isinstance(label_column, int):
        if not 0 <= label_column < frame.shape[1]:
            raise InputShapeError(
                f"Label column {label_column} out of range for {frame.shape[1]} columns"
            )
        label_name = frame.columns[label_column]
    else:
        if label_column not in frame.columns:
            raise InputShapeError(f"Label column {label_column!r} not found")
        label_name = label_column

    if frame.shape[1] < 2:
        raise InputShapeError("Table needs a label column and at least one observation column")

    labels = frame[label_name]
    if labels.isna().any():
        raise InputShapeError(f"Missing row label(s) in column {label_name!r}")
    labels = labels.astype(str).str.strip().reset_index(drop=True)

    observations = frame.drop(columns=[label_name]).reset_index(drop=True)
    cleaned = pd.DataFrame({
        name: _parse_numeric_column(observations[name], labels, thousands)
        for name in observations.columns
    })

    return NamedMatrix(cleaned.values, labels.tolist(), [str(c) for c in observations.columns])


def load_csv(source: Any,
             label_column: Union[int, str] = 0,
             thousands: str = ',') -> NamedMatrix:
    """
    Load a CSV file (path or file-like object) into a NamedMatrix.

    Args:
        source: Path or buffer accepted by pandas.read_csv
        label_column: Position or name of the label column
        thousands: Thousands separator to strip from numeric cells

    Returns:
        NamedMatrix

    Raises:
        InputShapeError: for ragged rows, non-numeric or missing cells,
            duplicate labels, or an empty file
    """
    try:
        frame = pd.read_csv(source, dtype=str, skipinitialspace=True)
    except pd.errors.EmptyDataError as e:
        raise InputShapeError(f"No data in {source!r}") from e
    except pd.errors.ParserError as e:
        raise InputShapeError(f"Malformed CSV: {e}") from e

    nmat = load_dataframe(frame, label_column=label_column, thousands=thousands)
    logger.info(f"Loaded {len(nmat.rownames())} rows x {len(nmat.colnames())} columns")
    return nmat
