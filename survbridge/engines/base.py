"""Common surface of engine adapters."""

from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..errors import ConfigurationError
from .baseline import restricted_mean_time


class SurvivalEngine:
    """Adapter between a third-party survival estimator and ModelFit.

    Subclasses wrap one estimator, translate the normalized inputs
    (a float design matrix, times, boolean events and an optional frame of
    strata columns) into its calling convention, and return plain numpy
    arrays from the ``predict_*`` methods.

    Attributes:
        model: Fitted third-party estimator (None before ``fit``).
        event_times_: Sorted unique event times seen during ``fit``.
    """

    #: Whether ``fit`` accepts strata columns.
    supports_strata = False

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.model = None
        self.feature_names_: Tuple[str, ...] = ()
        self.event_times_ = np.zeros(0)

    def fit(
        self,
        X: pd.DataFrame,
        time: np.ndarray,
        event: np.ndarray,
        strata: Optional[pd.DataFrame] = None,
    ) -> "SurvivalEngine":
        """Fit the wrapped estimator.

        Args:
            X: Design matrix (n_samples, n_features).
            time: Observed times (n_samples,).
            event: Event indicators as booleans (n_samples,).
            strata: Strata columns for engines that stratify (n_samples, k).

        Returns:
            Self for chaining.
        """
        if strata is not None and not self.supports_strata:
            raise ConfigurationError(f"{type(self).__name__} does not support strata")
        self.feature_names_ = tuple(X.columns)
        self.event_times_ = np.unique(np.asarray(time, dtype=float)[np.asarray(event, dtype=bool)])
        self._fit(X, np.asarray(time, dtype=float), np.asarray(event, dtype=bool), strata)
        return self

    def _fit(self, X, time, event, strata) -> None:
        raise NotImplementedError

    def _unsupported(self, type_: str):
        return ConfigurationError(f"{type(self).__name__} cannot predict type '{type_}'")

    def predict_linear_pred(self, X: pd.DataFrame, strata=None, **kwargs) -> np.ndarray:
        """Linear predictor per row. Shape: (n_samples,)"""
        raise self._unsupported("linear_pred")

    def predict_survival(self, X: pd.DataFrame, times: Sequence[float], strata=None, **kwargs) -> np.ndarray:
        """Survival probabilities. Shape: (n_samples, n_times)"""
        raise self._unsupported("survival")

    def predict_hazard(self, X: pd.DataFrame, times: Sequence[float], strata=None, **kwargs) -> np.ndarray:
        """Hazard rates. Shape: (n_samples, n_times)"""
        raise self._unsupported("hazard")

    def predict_quantile(self, X: pd.DataFrame, quantiles: Sequence[float], strata=None, **kwargs) -> np.ndarray:
        """Event-time quantiles. Shape: (n_samples, n_quantiles)"""
        raise self._unsupported("quantile")

    def predict_time(self, X: pd.DataFrame, strata=None, **kwargs) -> np.ndarray:
        """Restricted mean survival time up to the last training event.

        Shape: (n_samples,)
        """
        if len(self.event_times_) == 0:
            return np.full(len(X), np.nan)
        survival = self.predict_survival(X, self.event_times_, strata=strata, **kwargs)
        return restricted_mean_time(self.event_times_, survival)

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.kwargs.items())
        return f"{type(self).__name__}({args})"
