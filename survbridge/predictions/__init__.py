"""Normalized prediction shapes."""

from .format import (
    INDEX_COLUMNS,
    PENALTY_COLUMN,
    PRED_COLUMN,
    QUANTILE_COLUMN,
    ROW_COLUMN,
    TIME_COLUMN,
    VALUE_COLUMNS,
    format_curves,
    format_multi,
    format_values,
    is_nested,
    unnest,
)

__all__ = [
    "INDEX_COLUMNS",
    "PENALTY_COLUMN",
    "PRED_COLUMN",
    "QUANTILE_COLUMN",
    "ROW_COLUMN",
    "TIME_COLUMN",
    "VALUE_COLUMNS",
    "format_curves",
    "format_multi",
    "format_values",
    "is_nested",
    "unnest",
]
