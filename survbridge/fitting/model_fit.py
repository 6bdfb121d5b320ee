"""Fitting dispatcher and normalized prediction entry points."""

import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..engines.base import SurvivalEngine
from ..errors import ConfigurationError
from ..formula import (
    Node,
    SurvivalFormula,
    apply_design,
    build_design,
    check_strata_remaining,
    drop_strata,
    find_strata,
    has_strata,
    parse_formula,
    variables,
)
from ..predictions.format import format_curves, format_multi, format_values, is_nested
from ..specs.config import ModelSpec, TranslatedSpec
from ..specs.types import PredictionType

logger = logging.getLogger(__name__)

DEFAULT_QUANTILES = tuple(np.arange(1, 10) / 10)


def event_indicator(values: pd.Series) -> np.ndarray:
    """Convert an event column to booleans.

    Booleans and 0/1 codes are used as they are; 1/2 codes follow the
    ``Surv()`` convention where 2 marks an event.

    Raises:
        ValueError: For any other coding.
    """
    array = values.to_numpy()
    if array.dtype == bool:
        return array
    codes = set(np.unique(array).tolist())
    if codes <= {0, 1}:
        return array.astype(bool)
    if codes <= {1, 2}:
        return array == 2
    raise ValueError(
        f"Event column '{values.name}' must be boolean, 0/1 or 1/2 coded; "
        f"found values {sorted(codes, key=str)}"
    )


def eval_times(time) -> np.ndarray:
    """Validate evaluation times for survival and hazard predictions.

    Missing, infinite and negative times are dropped with a warning, as are
    duplicates. Order is otherwise preserved.

    Raises:
        ValueError: If ``time`` is None or nothing usable is left.
    """
    if time is None:
        raise ValueError("`time` is required for survival and hazard predictions")
    times = np.atleast_1d(np.asarray(time, dtype=float))

    usable = np.isfinite(times) & (times >= 0)
    if not usable.all():
        logger.warning("Dropping %d eval time(s) that are missing, infinite or negative", (~usable).sum())
        times = times[usable]

    _, first = np.unique(times, return_index=True)
    if len(first) < len(times):
        logger.warning("Dropping %d duplicated eval time(s)", len(times) - len(first))
        times = times[np.sort(first)]

    if len(times) == 0:
        raise ValueError("No usable eval times were given")
    return times


def quantile_levels(quantile) -> np.ndarray:
    """Validate quantile levels; defaults to 0.1, 0.2, ..., 0.9."""
    levels = np.atleast_1d(np.asarray(DEFAULT_QUANTILES if quantile is None else quantile, dtype=float))
    if len(levels) == 0 or not np.all((levels > 0) & (levels < 1)):
        raise ValueError(f"Quantile levels must be in (0, 1), got {quantile!r}")
    return levels


def _single_number(value, name: str) -> float:
    if isinstance(value, (list, tuple, np.ndarray)):
        raise ConfigurationError(
            f"`{name}` must be a single number for predict(); use multi_predict() for several values"
        )
    return float(value)


def _expand(values: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Put predictions for complete rows back among all rows (NaN elsewhere)."""
    values = np.asarray(values, dtype=float)
    result = np.full((len(mask),) + values.shape[1:], np.nan)
    result[mask] = values
    return result


@dataclass
class ModelFit:
    """A fitted specification.

    Attributes:
        spec: The specification that was fit.
        translated: Engine translation used for the fit.
        formula: Formula as given.
        rhs: Right-hand side used for the design matrix (strata removed).
        strata: Stratification variables handed to the engine.
        engine: Fitted engine adapter.
        design: formulaic model spec used to encode new data.
        n_obs: Rows used for fitting.
        elapsed: Fit time in seconds.
    """

    spec: ModelSpec
    translated: TranslatedSpec
    formula: SurvivalFormula
    rhs: Node
    strata: List[str]
    engine: SurvivalEngine
    design: Any
    n_obs: int
    elapsed: float
    predictors: List[str] = field(default_factory=list)

    @property
    def prediction_types(self) -> Tuple[PredictionType, ...]:
        return self.translated.info.prediction_types

    def extract_fit_engine(self):
        """The fitted third-party estimator."""
        return self.engine.model

    def _resolve_type(self, type_) -> PredictionType:
        type_ = PredictionType.TIME if type_ is None else PredictionType.parse(type_)
        if type_ not in self.prediction_types:
            raise ConfigurationError(
                f"Prediction type '{type_.value}' is not available for {self.spec.model} "
                f"with the {self.spec.engine} engine. "
                f"Available types: {', '.join(t.value for t in self.prediction_types)}"
            )
        return type_

    def _prepare(self, new_data: pd.DataFrame) -> Tuple[np.ndarray, pd.DataFrame, Optional[pd.DataFrame]]:
        required = self.predictors + [name for name in self.strata if name not in self.predictors]
        missing = [name for name in required if name not in new_data.columns]
        if missing:
            raise ValueError(f"new_data is missing required columns: {missing}")

        mask = new_data[required].notna().all(axis=1).to_numpy()
        complete = new_data.loc[mask]
        if mask.any():
            X = apply_design(self.design, complete).reset_index(drop=True)
        else:
            X = pd.DataFrame(columns=list(self.engine.feature_names_), dtype=float)
        strata = complete[self.strata].reset_index(drop=True) if self.strata else None
        return mask, X, strata

    def _predict_array(self, type_, X, strata, index, kwargs) -> np.ndarray:
        if len(X) == 0:
            return np.zeros((0, len(index))) if is_nested(type_) else np.zeros(0)
        if type_ is PredictionType.TIME:
            return self.engine.predict_time(X, strata=strata, **kwargs)
        if type_ is PredictionType.LINEAR_PRED:
            return self.engine.predict_linear_pred(X, strata=strata, **kwargs)
        if type_ is PredictionType.SURVIVAL:
            return self.engine.predict_survival(X, index, strata=strata, **kwargs)
        if type_ is PredictionType.HAZARD:
            return self.engine.predict_hazard(X, index, strata=strata, **kwargs)
        return self.engine.predict_quantile(X, index, strata=strata, **kwargs)

    def _index(self, type_: PredictionType, time, quantile) -> np.ndarray:
        if type_ in (PredictionType.SURVIVAL, PredictionType.HAZARD):
            return eval_times(time)
        if type_ is PredictionType.QUANTILE:
            return quantile_levels(quantile)
        return np.zeros(0)

    def predict(
        self,
        new_data: pd.DataFrame,
        type: Union[str, PredictionType, None] = None,
        time: Union[float, Sequence[float], None] = None,
        quantile: Union[float, Sequence[float], None] = None,
        penalty: Optional[float] = None,
    ) -> pd.DataFrame:
        """Predict in a normalized shape.

        Args:
            new_data: Rows to predict; needs the predictor and strata columns.
            type: ``time`` (default), ``linear_pred``, ``survival``,
                ``hazard`` or ``quantile``.
            time: Evaluation times for ``survival`` and ``hazard``.
            quantile: Quantile levels for ``quantile``.
            penalty: Penalty to predict at, for engines fit along a penalty
                path. Defaults to the specification's penalty.

        Returns:
            One row per row of ``new_data``.
        """
        type_ = self._resolve_type(type)
        kwargs = dict(self.translated.predict_args)
        if penalty is not None:
            if "penalty" not in self.translated.info.predict_args:
                raise ConfigurationError(
                    f"`penalty` can only be set at prediction time for engines fit along a "
                    f"penalty path; the {self.spec.engine} engine for {self.spec.model} is not"
                )
            kwargs["penalty"] = _single_number(penalty, "penalty")

        index = self._index(type_, time, quantile)
        mask, X, strata = self._prepare(new_data)
        values = _expand(self._predict_array(type_, X, strata, index, kwargs), mask)

        if is_nested(type_):
            return format_curves(type_, index, values)
        return format_values(type_, values)

    def multi_predict(
        self,
        new_data: pd.DataFrame,
        type: Union[str, PredictionType, None] = None,
        penalty: Union[float, Sequence[float], None] = None,
        time: Union[float, Sequence[float], None] = None,
        quantile: Union[float, Sequence[float], None] = None,
    ) -> pd.DataFrame:
        """Predict at several penalty values from one fit.

        The fit is not repeated: each penalty is one more prediction call
        against the fitted path.

        Returns:
            Frame with a single ``.pred`` column; see
            :func:`survbridge.predictions.format_multi`.
        """
        if "penalty" not in self.translated.info.predict_args:
            raise ConfigurationError(
                f"multi_predict() is not available for {self.spec.model} with the "
                f"{self.spec.engine} engine"
            )
        type_ = self._resolve_type(type)

        if penalty is None:
            penalty = self.translated.predict_args["penalty"]
        penalties = np.unique(np.atleast_1d(np.asarray(penalty, dtype=float)))
        if len(penalties) == 0 or np.any(penalties < 0):
            raise ValueError(f"penalty values must be non-negative, got {penalty!r}")

        index = self._index(type_, time, quantile)
        if type_ in (PredictionType.SURVIVAL, PredictionType.HAZARD):
            index = np.sort(index)

        mask, X, strata = self._prepare(new_data)
        values = []
        for value in penalties:
            kwargs = dict(self.translated.predict_args, penalty=float(value))
            values.append(_expand(self._predict_array(type_, X, strata, index, kwargs), mask))

        return format_multi(type_, penalties, values, index)

    def __str__(self) -> str:
        return (
            f"{self.spec.model} fit with the {self.spec.engine} engine\n"
            f"Formula: {self.formula}\n"
            f"Observations: {self.n_obs}; fit time: {self.elapsed:.3f}s\n"
            f"Estimator: {self.engine!r}"
        )


def fit(spec: ModelSpec, formula: Union[str, SurvivalFormula], data: pd.DataFrame) -> ModelFit:
    """Fit a specification to data.

    Args:
        spec: Model specification.
        formula: ``"Surv(time, event) ~ ..."`` text or a parsed formula.
        data: Training data.

    Returns:
        ModelFit.

    Raises:
        ConfigurationError: If the formula places ``strata()`` where the
            engine cannot take it, or has no predictors.
        ValueError: If columns are missing or the outcome is malformed.
    """
    translated = spec.translate()
    info = translated.info
    if isinstance(formula, str):
        formula = parse_formula(formula)

    rhs = formula.rhs
    strata: List[str] = []
    if info.supports_strata:
        rhs = drop_strata(formula.rhs)
        strata = find_strata(formula.rhs)
        check_strata_remaining(rhs)
    elif has_strata(rhs):
        raise ConfigurationError(
            f"The {spec.engine} engine for {spec.model} does not support strata(); "
            f"remove it from the formula: {formula}"
        )

    predictors = variables(rhs)
    required = []
    for name in [formula.time, formula.event] + predictors + strata:
        if name not in required:
            required.append(name)
    missing = [name for name in required if name not in data.columns]
    if missing:
        raise ValueError(f"data is missing columns used in the formula: {missing}")

    complete = data[required].notna().all(axis=1)
    if not complete.all():
        logger.warning("Dropping %d row(s) with missing values before fitting", (~complete).sum())
    data = data.loc[complete]

    X, design = build_design(rhs, data)
    if X.shape[1] == 0:
        raise ConfigurationError(f"The formula has no predictors after removing strata: {formula}")
    X = X.reset_index(drop=True)

    durations = data[formula.time].to_numpy(dtype=float)
    if np.any(durations < 0):
        raise ValueError(f"Column '{formula.time}' contains negative times")
    events = event_indicator(data[formula.event])
    strata_frame = data[strata].reset_index(drop=True) if strata else None

    engine = translated.build_engine()
    start = perf_counter()
    engine.fit(X, durations, events, strata=strata_frame)
    elapsed = perf_counter() - start

    logger.info(
        "Fit %s (%s engine) on %d rows x %d columns%s in %.2fs",
        spec.model,
        spec.engine,
        X.shape[0],
        X.shape[1],
        f", strata: {', '.join(strata)}" if strata else "",
        elapsed,
    )

    return ModelFit(
        spec=spec,
        translated=translated,
        formula=formula,
        rhs=rhs,
        strata=strata,
        engine=engine,
        design=design,
        n_obs=X.shape[0],
        elapsed=elapsed,
        predictors=predictors,
    )
