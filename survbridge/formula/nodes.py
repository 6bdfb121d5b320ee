"""Expression tree for R-style model formulas.

Nodes are frozen dataclasses, so trees compare structurally and are never
mutated in place. Rewrites build new trees and reuse untouched subtrees.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Tuple, Union

_IDENTIFIER = re.compile(r"^[A-Za-z_.][A-Za-z0-9_.]*$")

# Binding strength used when rendering; higher binds tighter.
_PRECEDENCE = {"Add": 1, "Mul": 2, "Interaction": 3}


def _quote(name: str) -> str:
    if _IDENTIFIER.match(name):
        return name
    return f"`{name}`"


@dataclass(frozen=True)
class Term:
    """A plain variable reference."""

    name: str

    def __str__(self) -> str:
        return _quote(self.name)


@dataclass(frozen=True)
class Strata:
    """Stratification marker, ``strata(name)``."""

    name: str

    def __str__(self) -> str:
        return f"strata({_quote(self.name)})"


@dataclass(frozen=True)
class Intercept:
    """The literal ``1``; also the empty additive identity."""

    def __str__(self) -> str:
        return "1"


@dataclass(frozen=True)
class Call:
    """A function term such as ``log(age)``."""

    name: str
    args: Tuple["Node", ...]

    def __str__(self) -> str:
        return f"{self.name}({', '.join(str(arg) for arg in self.args)})"


@dataclass(frozen=True)
class Add:
    """``left + right``."""

    left: "Node"
    right: "Node"

    def __str__(self) -> str:
        return _render_binary(self, "+")


@dataclass(frozen=True)
class Mul:
    """``left * right`` (main effects plus interaction)."""

    left: "Node"
    right: "Node"

    def __str__(self) -> str:
        return _render_binary(self, "*")


@dataclass(frozen=True)
class Interaction:
    """``left:right`` (interaction only)."""

    left: "Node"
    right: "Node"

    def __str__(self) -> str:
        return _render_binary(self, ":", spaced=False)


Node = Union[Term, Strata, Intercept, Call, Add, Mul, Interaction]
BinaryNode = (Add, Mul, Interaction)


def _precedence(node: "Node") -> int:
    return _PRECEDENCE.get(type(node).__name__, 4)


def _render_binary(node, op: str, spaced: bool = True) -> str:
    own = _precedence(node)
    left = str(node.left)
    right = str(node.right)
    if _precedence(node.left) < own:
        left = f"({left})"
    # Operators are left-associative, so an equal-precedence right operand
    # was grouped explicitly.
    if _precedence(node.right) <= own:
        right = f"({right})"
    if spaced:
        return f"{left} {op} {right}"
    return f"{left}{op}{right}"


def children(node: "Node") -> Tuple["Node", ...]:
    """Direct sub-expressions of a node."""
    if isinstance(node, BinaryNode):
        return (node.left, node.right)
    if isinstance(node, Call):
        return node.args
    return ()


def walk(node: "Node") -> Iterator["Node"]:
    """Yield every node of the tree, depth first, left to right."""
    yield node
    for child in children(node):
        yield from walk(child)


def variables(node: "Node") -> List[str]:
    """Variable names referenced anywhere in the tree, first occurrence order."""
    names: List[str] = []
    for item in walk(node):
        if isinstance(item, (Term, Strata)) and item.name not in names:
            names.append(item.name)
    return names


@dataclass(frozen=True)
class SurvivalFormula:
    """``Surv(time, event) ~ rhs``.

    Attributes:
        time: Column holding observed times.
        event: Column holding event indicators.
        rhs: Right-hand side expression tree.
    """

    time: str
    event: str
    rhs: "Node"

    def with_rhs(self, rhs: "Node") -> "SurvivalFormula":
        """Return a copy with a different right-hand side."""
        return SurvivalFormula(time=self.time, event=self.event, rhs=rhs)

    def __str__(self) -> str:
        return f"Surv({_quote(self.time)}, {_quote(self.event)}) ~ {self.rhs}"
