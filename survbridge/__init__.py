"""Survival model specifications with interchangeable engines."""

from .errors import ConfigurationError, FormulaSyntaxError
from .fitting import ModelFit, fit
from .formula import check_strata_remaining, drop_strata, parse_expression, parse_formula
from .predictions import unnest
from .specs import (
    ModelSpec,
    boost_tree,
    decision_tree,
    proportional_hazards,
    rand_forest,
    survival_reg,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "ConfigurationError",
    "FormulaSyntaxError",
    # Specifications
    "ModelSpec",
    "boost_tree",
    "decision_tree",
    "proportional_hazards",
    "rand_forest",
    "survival_reg",
    # Fitting
    "ModelFit",
    "fit",
    "unnest",
    # Formulas
    "check_strata_remaining",
    "drop_strata",
    "parse_expression",
    "parse_formula",
]
