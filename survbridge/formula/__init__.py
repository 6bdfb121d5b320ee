"""Formula parsing and rewriting."""

from .nodes import (
    Add,
    Call,
    Interaction,
    Intercept,
    Mul,
    Node,
    Strata,
    SurvivalFormula,
    Term,
    variables,
    walk,
)
from .parser import parse_expression, parse_formula, tokenize
from .strata import check_strata_remaining, drop_strata, find_strata, has_strata
from .formulaic_bridge import apply_design, build_design, to_formulaic

__all__ = [
    # Tree
    "Add",
    "Call",
    "Interaction",
    "Intercept",
    "Mul",
    "Node",
    "Strata",
    "SurvivalFormula",
    "Term",
    "variables",
    "walk",
    # Parsing
    "parse_expression",
    "parse_formula",
    "tokenize",
    # Stratification
    "check_strata_remaining",
    "drop_strata",
    "find_strata",
    "has_strata",
    # Design matrices
    "apply_design",
    "build_design",
    "to_formulaic",
]
