"""Design matrices for formula trees, built with formulaic."""

import re

import pandas as pd
from formulaic import ModelSpec, model_matrix

from .nodes import Add, Call, Interaction, Intercept, Mul, Node, Strata, Term

_PY_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

INTERCEPT_COLUMN = "Intercept"


def _name(name: str) -> str:
    if _PY_IDENTIFIER.match(name):
        return name
    return f"`{name}`"


def to_formulaic(node: Node) -> str:
    """Render a tree as a formulaic right-hand side.

    formulaic evaluates terms as Python, so names that are not Python
    identifiers (``ph.ecog``) are backtick-quoted. Strata terms must be
    removed beforehand.
    """
    if isinstance(node, Term):
        return _name(node.name)
    if isinstance(node, Intercept):
        return "1"
    if isinstance(node, Strata):
        raise ValueError(f"Cannot build a design matrix containing {node}")
    if isinstance(node, Call):
        return f"{node.name}({', '.join(to_formulaic(arg) for arg in node.args)})"
    if isinstance(node, Add):
        return f"{to_formulaic(node.left)} + {to_formulaic(node.right)}"
    if isinstance(node, Mul):
        return f"({to_formulaic(node.left)}) * ({to_formulaic(node.right)})"
    if isinstance(node, Interaction):
        return f"({to_formulaic(node.left)}):({to_formulaic(node.right)})"
    raise TypeError(f"Unknown formula node: {node!r}")


def _drop_intercept(matrix) -> pd.DataFrame:
    frame = pd.DataFrame(matrix)
    if INTERCEPT_COLUMN in frame.columns:
        frame = frame.drop(columns=INTERCEPT_COLUMN)
    return frame.astype(float)


def build_design(node: Node, data: pd.DataFrame):
    """Encode predictors for fitting.

    The intercept column is dropped: survival engines carry their own
    baseline.

    Returns:
        Tuple of (design matrix, formulaic ModelSpec for re-encoding new data).
    """
    matrix = model_matrix(to_formulaic(node), data)
    return _drop_intercept(matrix), matrix.model_spec


def apply_design(model_spec: ModelSpec, data: pd.DataFrame) -> pd.DataFrame:
    """Encode new data with the encoding learned at fit time."""
    return _drop_intercept(model_spec.get_model_matrix(data))
