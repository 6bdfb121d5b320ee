"""Recursive-descent parser for R-style survival formulas.

Supported grammar, loosest binding first::

    formula := expr "~" expr
    expr    := product ("+" product)*
    product := inter ("*" inter)*
    inter   := atom (":" atom)*
    atom    := NAME | NAME "(" args ")" | NUMBER | "(" expr ")"

Names may contain dots (``ph.ecog``); anything else goes in backticks.
"""

import re
from typing import List, Optional, Tuple

from ..errors import FormulaSyntaxError
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
)

_TOKEN = re.compile(
    r"\s*(?:"
    r"(?P<name>[A-Za-z_.][A-Za-z0-9_.]*)"
    r"|`(?P<quoted>[^`]+)`"
    r"|(?P<number>\d+(?:\.\d*)?)"
    r"|(?P<op>[~+*:(),])"
    r")"
)

Token = Tuple[str, str, int]


def tokenize(text: str) -> List[Token]:
    """Split formula text into ``(kind, value, position)`` tokens.

    Raises:
        FormulaSyntaxError: On characters outside the grammar.
    """
    tokens: List[Token] = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN.match(text, pos)
        if match is None or match.end() == pos:
            raise FormulaSyntaxError(
                f"Unexpected character {text[pos]!r} at position {pos} in formula: {text}"
            )
        kind = match.lastgroup
        value = match.group(kind)
        start = match.start(kind)
        if kind == "quoted":
            kind = "name"
        tokens.append((kind, value, start))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0

    def peek(self) -> Optional[Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def accept(self, op: str) -> bool:
        token = self.peek()
        if token is not None and token[0] == "op" and token[1] == op:
            self.index += 1
            return True
        return False

    def expect(self, op: str) -> None:
        if not self.accept(op):
            self.error(f"expected {op!r}")

    def error(self, message: str) -> None:
        token = self.peek()
        where = f"at position {token[2]}" if token else "at end of input"
        raise FormulaSyntaxError(f"Invalid formula ({message} {where}): {self.text}")

    def at_end(self) -> bool:
        return self.index == len(self.tokens)

    def expr(self) -> Node:
        node = self.product()
        while self.accept("+"):
            node = Add(node, self.product())
        return node

    def product(self) -> Node:
        node = self.inter()
        while self.accept("*"):
            node = Mul(node, self.inter())
        return node

    def inter(self) -> Node:
        node = self.atom()
        while self.accept(":"):
            node = Interaction(node, self.atom())
        return node

    def atom(self) -> Node:
        token = self.peek()
        if token is None:
            self.error("expected a term")
        kind, value, _ = token

        if kind == "op" and value == "(":
            self.index += 1
            node = self.expr()
            self.expect(")")
            return node

        if kind == "number":
            self.index += 1
            if float(value) != 1.0:
                raise FormulaSyntaxError(
                    f"Only the intercept literal 1 is supported, got {value}: {self.text}"
                )
            return Intercept()

        if kind != "name":
            self.error("expected a term")

        self.index += 1
        if not self.accept("("):
            return Term(value)

        args: List[Node] = []
        if not self.accept(")"):
            args.append(self.expr())
            while self.accept(","):
                args.append(self.expr())
            self.expect(")")

        if value == "strata":
            if len(args) != 1 or not isinstance(args[0], Term):
                raise FormulaSyntaxError(
                    f"strata() takes exactly one variable name: {self.text}"
                )
            return Strata(args[0].name)
        return Call(value, tuple(args))


def parse_expression(text: str) -> Node:
    """Parse a formula right-hand side such as ``"age + strata(inst)"``."""
    parser = _Parser(text)
    if parser.at_end():
        raise FormulaSyntaxError("Formula expression is empty")
    node = parser.expr()
    if not parser.at_end():
        parser.error("unexpected token")
    return node


def parse_formula(text: str) -> SurvivalFormula:
    """Parse ``"Surv(time, event) ~ rhs"`` into a SurvivalFormula.

    Raises:
        FormulaSyntaxError: If the text does not parse or the left-hand side
            is not a two-argument ``Surv()`` call on column names.
    """
    parser = _Parser(text)
    if parser.at_end():
        raise FormulaSyntaxError("Formula is empty")
    lhs = parser.expr()
    parser.expect("~")
    rhs = parser.expr()
    if not parser.at_end():
        parser.error("unexpected token")

    if not (
        isinstance(lhs, Call)
        and lhs.name == "Surv"
        and len(lhs.args) == 2
        and all(isinstance(arg, Term) for arg in lhs.args)
    ):
        raise FormulaSyntaxError(
            f"The left-hand side must be Surv(time, event), got {lhs}: {text}"
        )

    time, event = lhs.args
    return SurvivalFormula(time=time.name, event=event.name, rhs=rhs)
