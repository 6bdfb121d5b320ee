"""Fitting specifications and predicting from the result."""

from .model_fit import (
    DEFAULT_QUANTILES,
    ModelFit,
    eval_times,
    event_indicator,
    fit,
    quantile_levels,
)

__all__ = [
    "DEFAULT_QUANTILES",
    "ModelFit",
    "eval_times",
    "event_indicator",
    "fit",
    "quantile_levels",
]
