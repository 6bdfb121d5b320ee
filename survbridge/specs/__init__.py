"""Model specifications and the model/engine registry."""

from .types import Mode, PredictionType
from .registry import (
    DEFAULT_ENGINES,
    ENGINES,
    MODEL_ARGS,
    EngineInfo,
    available_engines,
    get_engine,
)
from .config import (
    ModelSpec,
    TranslatedSpec,
    boost_tree,
    decision_tree,
    proportional_hazards,
    rand_forest,
    survival_reg,
)

__all__ = [
    # Types
    "Mode",
    "PredictionType",
    # Registry
    "DEFAULT_ENGINES",
    "ENGINES",
    "MODEL_ARGS",
    "EngineInfo",
    "available_engines",
    "get_engine",
    # Specifications
    "ModelSpec",
    "TranslatedSpec",
    "boost_tree",
    "decision_tree",
    "proportional_hazards",
    "rand_forest",
    "survival_reg",
]
