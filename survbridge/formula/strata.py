"""Stratification term handling.

Engines that take stratification as a separate argument need the
``strata()`` term removed from the formula first. Only terms on the additive
top level can be removed; anything nested inside an interaction is left in
place and rejected by :func:`check_strata_remaining`.
"""

import logging
from typing import List, Optional

from ..errors import ConfigurationError
from .nodes import Add, Intercept, Node, Strata, walk

logger = logging.getLogger(__name__)


def _without_strata(node: Node) -> Optional[Node]:
    """Remove top-level strata terms; None means nothing is left."""
    if isinstance(node, Strata):
        return None
    if not isinstance(node, Add):
        return node

    left = _without_strata(node.left)
    right = _without_strata(node.right)
    if left is None:
        return right
    if right is None:
        return left
    if left is node.left and right is node.right:
        return node
    return Add(left, right)


def drop_strata(node: Node) -> Node:
    """Remove ``strata()`` terms from the additive top level of a formula.

    Sub-expressions other than ``+`` are returned as they are, so a term such
    as ``x * (y + strata(s))`` keeps its stratification marker. When nothing
    is removed the input object itself is returned.

    Args:
        node: Right-hand side expression tree.

    Returns:
        The tree without top-level strata terms; ``Intercept()`` if the
        formula consisted only of strata terms.
    """
    result = _without_strata(node)
    if result is None:
        return Intercept()
    return result


def find_strata(node: Node) -> List[str]:
    """Variables of the top-level strata terms, in formula order."""
    if isinstance(node, Strata):
        return [node.name]
    if isinstance(node, Add):
        names = find_strata(node.left)
        names.extend(name for name in find_strata(node.right) if name not in names)
        return names
    return []


def has_strata(node: Node) -> bool:
    """Whether a strata term appears anywhere in the tree."""
    return any(isinstance(item, Strata) for item in walk(node))


def check_strata_remaining(node: Node) -> None:
    """Fail if any stratification term is left in the tree.

    Args:
        node: Expression tree, usually the output of :func:`drop_strata`.

    Raises:
        ConfigurationError: If a ``strata()`` term is found at any depth.
    """
    nested = [item for item in walk(node) if isinstance(item, Strata)]
    if nested:
        terms = ", ".join(str(item) for item in nested)
        logger.debug("Residual stratification terms in %s: %s", node, terms)
        raise ConfigurationError(
            f"Stratification must be nested under a chain of `+` calls; "
            f"cannot extract {terms} from: {node}"
        )
