"""Adapters for scikit-survival estimators."""

import logging
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd
from sksurv.ensemble import GradientBoostingSurvivalAnalysis, RandomSurvivalForest
from sksurv.linear_model import CoxnetSurvivalAnalysis
from sksurv.tree import SurvivalTree
from sksurv.util import Surv

from ..errors import ConfigurationError
from .base import SurvivalEngine
from .baseline import StratifiedBreslow, evaluate_sksurv_functions

logger = logging.getLogger(__name__)


def strata_labels(strata: Optional[pd.DataFrame]) -> Optional[np.ndarray]:
    """Collapse strata columns into one label per row."""
    if strata is None:
        return None
    if strata.shape[1] == 1:
        return strata.iloc[:, 0].to_numpy()
    return strata.astype(str).agg(", ".join, axis=1).to_numpy()


def _as_array(X: pd.DataFrame) -> np.ndarray:
    return X.to_numpy(dtype=float)


class CoxnetEngine(SurvivalEngine):
    """Elastic-net Cox model fit along a whole penalty path.

    The path is fit once; predictions at any penalty interpolate the
    coefficients and rebuild a Breslow baseline from the training linear
    predictors, one baseline per stratum.

    ``CoxnetSurvivalAnalysis`` has no stratified likelihood, so the
    coefficient path ignores strata. Strata only select the baseline hazard,
    and a warning is logged when they are given.

    Args:
        **kwargs: Passed to ``CoxnetSurvivalAnalysis`` (``l1_ratio``,
            ``n_alphas``, ``alpha_min_ratio``, ...).
    """

    supports_strata = True

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._baselines: Dict[float, StratifiedBreslow] = {}

    def _fit(self, X, time, event, strata) -> None:
        if strata is not None:
            logger.warning(
                "The coxnet path is fit without stratification; strata (%s) only "
                "select per-stratum baseline hazards",
                ", ".join(map(str, strata.columns)),
            )
        self.model = CoxnetSurvivalAnalysis(**self.kwargs)
        self.model.fit(_as_array(X), Surv.from_arrays(event=event, time=time))
        self._train_X = _as_array(X)
        self._train_time = time
        self._train_event = event
        self._train_labels = strata_labels(strata)
        self._baselines = {}
        logger.debug(
            "Coxnet path fit with %d penalties in [%.4g, %.4g]",
            len(self.model.alphas_),
            self.model.alphas_.min(),
            self.model.alphas_.max(),
        )

    def _check_penalty(self, penalty) -> float:
        if penalty is None:
            raise ConfigurationError("A penalty value is required to predict from a coxnet path")
        return float(penalty)

    def _linear_pred(self, X: np.ndarray, penalty: float) -> np.ndarray:
        # CoxnetSurvivalAnalysis.predict centers X on the training means.
        offset = self.model.predict(np.zeros((1, X.shape[1])), alpha=penalty)
        return np.asarray(self.model.predict(X, alpha=penalty) - offset, dtype=float)

    def _baseline(self, penalty: float) -> StratifiedBreslow:
        if penalty not in self._baselines:
            train_lp = self._linear_pred(self._train_X, penalty)
            self._baselines[penalty] = StratifiedBreslow(
                train_lp, self._train_time, self._train_event, self._train_labels
            )
        return self._baselines[penalty]

    def predict_linear_pred(self, X, strata=None, penalty=None, **kwargs) -> np.ndarray:
        """Uncentered ``x'beta`` at ``penalty``."""
        return self._linear_pred(_as_array(X), self._check_penalty(penalty))

    def predict_survival(self, X, times: Sequence[float], strata=None, penalty=None, **kwargs) -> np.ndarray:
        penalty = self._check_penalty(penalty)
        labels = strata_labels(strata)
        if labels is None and self._train_labels is not None:
            raise ConfigurationError("Strata columns are required to predict from a stratified fit")
        lp = self.predict_linear_pred(X, penalty=penalty)
        return self._baseline(penalty).survival(lp, times, labels)


class _StepFunctionEngine(SurvivalEngine):
    """Estimators exposing ``predict_survival_function`` step functions."""

    estimator_class = None

    def _fit(self, X, time, event, strata) -> None:
        self.model = self.estimator_class(**self.kwargs)
        self.model.fit(_as_array(X), Surv.from_arrays(event=event, time=time))

    def predict_survival(self, X, times: Sequence[float], strata=None, **kwargs) -> np.ndarray:
        functions = self.model.predict_survival_function(_as_array(X))
        return evaluate_sksurv_functions(functions, times)


class RandomForestEngine(_StepFunctionEngine):
    """``sksurv.ensemble.RandomSurvivalForest``."""

    estimator_class = RandomSurvivalForest


class BoostedTreeEngine(_StepFunctionEngine):
    """``sksurv.ensemble.GradientBoostingSurvivalAnalysis`` with Cox loss."""

    estimator_class = GradientBoostingSurvivalAnalysis

    def predict_linear_pred(self, X, strata=None, **kwargs) -> np.ndarray:
        return np.asarray(self.model.predict(_as_array(X)), dtype=float)


class DecisionTreeEngine(_StepFunctionEngine):
    """``sksurv.tree.SurvivalTree``."""

    estimator_class = SurvivalTree
