"""Engine adapters wrapping third-party survival estimators."""

from .base import SurvivalEngine
from .baseline import (
    StratifiedBreslow,
    breslow_estimator,
    evaluate_sksurv_functions,
    evaluate_step_function,
    restricted_mean_time,
)
from .lifelines_engines import CoxPHEngine, ParametricEngine, DISTRIBUTIONS
from .sksurv_engines import (
    BoostedTreeEngine,
    CoxnetEngine,
    DecisionTreeEngine,
    RandomForestEngine,
    strata_labels,
)

__all__ = [
    "SurvivalEngine",
    # Baseline helpers
    "StratifiedBreslow",
    "breslow_estimator",
    "evaluate_sksurv_functions",
    "evaluate_step_function",
    "restricted_mean_time",
    # lifelines
    "CoxPHEngine",
    "ParametricEngine",
    "DISTRIBUTIONS",
    # scikit-survival
    "BoostedTreeEngine",
    "CoxnetEngine",
    "DecisionTreeEngine",
    "RandomForestEngine",
    "strata_labels",
]
