"""Normalized prediction frames.

Every prediction has one row per input row. Scalar types use a single
``.pred_<type>`` column; curve and quantile types use a single ``.pred``
column whose cells are small DataFrames.
"""

from typing import Sequence

import numpy as np
import pandas as pd

from ..specs.types import PredictionType

PRED_COLUMN = ".pred"
ROW_COLUMN = ".row"
TIME_COLUMN = ".time"
QUANTILE_COLUMN = ".quantile"
PENALTY_COLUMN = "penalty"

VALUE_COLUMNS = {
    PredictionType.TIME: ".pred_time",
    PredictionType.LINEAR_PRED: ".pred_linear_pred",
    PredictionType.SURVIVAL: ".pred_survival",
    PredictionType.HAZARD: ".pred_hazard",
    PredictionType.QUANTILE: ".pred_quantile",
}

# Column indexing the nested frames of each curve-like type.
INDEX_COLUMNS = {
    PredictionType.SURVIVAL: TIME_COLUMN,
    PredictionType.HAZARD: TIME_COLUMN,
    PredictionType.QUANTILE: QUANTILE_COLUMN,
}


def is_nested(type_: PredictionType) -> bool:
    """Whether predictions of this type are nested frames."""
    return type_ in INDEX_COLUMNS


def format_values(type_: PredictionType, values: np.ndarray) -> pd.DataFrame:
    """Frame for a scalar prediction type."""
    return pd.DataFrame({VALUE_COLUMNS[type_]: np.asarray(values, dtype=float).ravel()})


def format_curves(type_: PredictionType, index: Sequence[float], values: np.ndarray) -> pd.DataFrame:
    """Nested frame for a curve-like prediction type.

    Args:
        type_: Survival, hazard or quantile.
        index: Evaluation times or quantile levels.
        values: Predictions. Shape: (n_rows, len(index))
    """
    index = np.asarray(index, dtype=float)
    values = np.atleast_2d(np.asarray(values, dtype=float))
    cells = [
        pd.DataFrame({INDEX_COLUMNS[type_]: index, VALUE_COLUMNS[type_]: row})
        for row in values
    ]
    return pd.DataFrame({PRED_COLUMN: cells})


def format_multi(
    type_: PredictionType,
    penalties: Sequence[float],
    values: Sequence[np.ndarray],
    index: Sequence[float] = (),
) -> pd.DataFrame:
    """Nested frame with one block of predictions per penalty.

    Args:
        type_: Prediction type.
        penalties: Sorted penalty values.
        values: One array per penalty; shape (n_rows,) for scalar types or
            (n_rows, len(index)) for curve types.
        index: Evaluation times or quantile levels for curve types.

    Returns:
        Frame with a single ``.pred`` column. Scalar types give cells with
        columns ``[penalty, .pred_<type>]``; curve types give cells with
        ``[penalty, <index>, .pred_<type>]`` ordered by index, then penalty.
    """
    penalties = np.asarray(penalties, dtype=float)
    value_column = VALUE_COLUMNS[type_]

    if not is_nested(type_):
        stacked = np.column_stack([np.asarray(v, dtype=float).ravel() for v in values])
        cells = [
            pd.DataFrame({PENALTY_COLUMN: penalties, value_column: row})
            for row in stacked
        ]
        return pd.DataFrame({PRED_COLUMN: cells})

    index = np.asarray(index, dtype=float)
    # (n_penalties, n_rows, n_index) -> per row (n_index, n_penalties)
    stacked = np.stack([np.atleast_2d(np.asarray(v, dtype=float)) for v in values])
    cells = []
    for i in range(stacked.shape[1]):
        block = stacked[:, i, :].T
        cells.append(
            pd.DataFrame(
                {
                    PENALTY_COLUMN: np.tile(penalties, len(index)),
                    INDEX_COLUMNS[type_]: np.repeat(index, len(penalties)),
                    value_column: block.ravel(),
                }
            )
        )
    return pd.DataFrame({PRED_COLUMN: cells})


def unnest(frame: pd.DataFrame, column: str = PRED_COLUMN) -> pd.DataFrame:
    """Flatten a nested prediction column into long format.

    The result gains a ``.row`` column holding the (0-based) position of the
    row each nested frame came from.
    """
    pieces = []
    for position, cell in enumerate(frame[column]):
        piece = cell.copy()
        piece.insert(0, ROW_COLUMN, position)
        pieces.append(piece)
    if not pieces:
        return pd.DataFrame(columns=[ROW_COLUMN])
    return pd.concat(pieces, ignore_index=True)
