"""Adapters for lifelines regression fitters."""

import logging
from typing import Dict, Sequence

import numpy as np
import pandas as pd
from lifelines import CoxPHFitter, LogLogisticAFTFitter, LogNormalAFTFitter, WeibullAFTFitter

from ..errors import ConfigurationError
from .base import SurvivalEngine

logger = logging.getLogger(__name__)

DURATION_COL = "duration"
EVENT_COL = "event"

# Parametric family -> (fitter, parameter carrying the covariates' location)
DISTRIBUTIONS = {
    "weibull": (WeibullAFTFitter, "lambda_"),
    "lognormal": (LogNormalAFTFitter, "mu_"),
    "loglogistic": (LogLogisticAFTFitter, "alpha_"),
}


def _by_row(curves: pd.DataFrame, n_rows: int) -> np.ndarray:
    """lifelines returns times x subjects; stratified output may be reordered."""
    return curves.reindex(columns=range(n_rows)).T.to_numpy(dtype=float)


class _LifelinesEngine(SurvivalEngine):
    """Frames handed to lifelines use positional column names.

    Encoded column names such as ``rx[T.b]`` are not valid formula terms
    inside lifelines, so covariates become ``x0, x1, ...`` and strata
    columns ``s0, s1, ...``.
    """

    def _rename(self, X: pd.DataFrame, strata=None) -> pd.DataFrame:
        frame = X.reset_index(drop=True).rename(columns=self.columns_)
        if strata is not None:
            frame = pd.concat(
                [frame, strata.reset_index(drop=True).rename(columns=self.strata_columns_)],
                axis=1,
            )
        return frame

    def _training_frame(self, X, time, event, strata=None) -> pd.DataFrame:
        self.columns_: Dict[str, str] = {name: f"x{i}" for i, name in enumerate(X.columns)}
        self.strata_columns_: Dict[str, str] = {}
        if strata is not None:
            self.strata_columns_ = {name: f"s{i}" for i, name in enumerate(strata.columns)}
        frame = self._rename(X, strata)
        frame[DURATION_COL] = time
        frame[EVENT_COL] = event.astype(int)
        return frame

    def _coefficients(self, params: pd.Series) -> pd.Series:
        original = {renamed: name for name, renamed in self.columns_.items()}
        return params.rename(index=original)


class CoxPHEngine(_LifelinesEngine):
    """``lifelines.CoxPHFitter`` with native stratification.

    Args:
        **kwargs: Passed to ``CoxPHFitter`` (``penalizer``, ``l1_ratio``,
            ``baseline_estimation_method``, ...).
    """

    supports_strata = True

    def _fit(self, X, time, event, strata) -> None:
        frame = self._training_frame(X, time, event, strata)
        self.model = CoxPHFitter(**self.kwargs)
        self.model.fit(
            frame,
            duration_col=DURATION_COL,
            event_col=EVENT_COL,
            strata=list(self.strata_columns_.values()) or None,
        )

    def _frame(self, X, strata) -> pd.DataFrame:
        if not self.strata_columns_:
            return self._rename(X)
        if strata is None:
            raise ConfigurationError("Strata columns are required to predict from a stratified fit")
        return self._rename(X, strata)

    def predict_linear_pred(self, X, strata=None, **kwargs) -> np.ndarray:
        coefficients = self._coefficients(self.model.params_)
        return X[list(coefficients.index)].to_numpy(dtype=float) @ coefficients.to_numpy(dtype=float)

    def predict_survival(self, X, times: Sequence[float], strata=None, **kwargs) -> np.ndarray:
        curves = self.model.predict_survival_function(self._frame(X, strata), times=times)
        return _by_row(curves, len(X))


class ParametricEngine(_LifelinesEngine):
    """Accelerated failure time models from lifelines.

    Args:
        dist: One of ``weibull``, ``lognormal``, ``loglogistic``.
        **kwargs: Passed to the fitter (``penalizer``, ``fit_intercept``, ...).
    """

    def __init__(self, dist: str = "weibull", **kwargs):
        if dist not in DISTRIBUTIONS:
            raise ConfigurationError(
                f"Unknown distribution '{dist}'. Available: {sorted(DISTRIBUTIONS)}"
            )
        super().__init__(dist=dist, **kwargs)
        self.dist = dist
        self._fitter_kwargs = kwargs

    def _fit(self, X, time, event, strata) -> None:
        fitter_class, _ = DISTRIBUTIONS[self.dist]
        self.model = fitter_class(**self._fitter_kwargs)
        self.model.fit(
            self._training_frame(X, time, event),
            duration_col=DURATION_COL,
            event_col=EVENT_COL,
        )
        logger.debug("%s converged: log-likelihood %.4f", fitter_class.__name__, self.model.log_likelihood_)

    def predict_linear_pred(self, X, strata=None, **kwargs) -> np.ndarray:
        _, location = DISTRIBUTIONS[self.dist]
        coefficients = self._coefficients(self.model.params_.loc[location])
        intercept = float(coefficients.get("Intercept", 0.0))
        columns = [name for name in coefficients.index if name != "Intercept"]
        return intercept + X[columns].to_numpy(dtype=float) @ coefficients[columns].to_numpy(dtype=float)

    def predict_time(self, X, strata=None, **kwargs) -> np.ndarray:
        return np.asarray(self.model.predict_expectation(self._rename(X)), dtype=float).ravel()

    def predict_survival(self, X, times: Sequence[float], strata=None, **kwargs) -> np.ndarray:
        curves = self.model.predict_survival_function(self._rename(X), times=times)
        return _by_row(curves, len(X))

    def predict_hazard(self, X, times: Sequence[float], strata=None, **kwargs) -> np.ndarray:
        curves = self.model.predict_hazard(self._rename(X), times=times)
        return _by_row(curves, len(X))

    def predict_quantile(self, X, quantiles: Sequence[float], strata=None, **kwargs) -> np.ndarray:
        frame = self._rename(X)
        # predict_percentile(p) is the time at which survival drops to p.
        columns = [
            np.asarray(self.model.predict_percentile(frame, p=1.0 - q), dtype=float).ravel()
            for q in quantiles
        ]
        return np.column_stack(columns)
