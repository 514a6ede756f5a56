"""Restricted arithmetic for default-value formulas.

Formulas come from stored template configuration, so they are never handed to
``eval``. The grammar is::

    expr   := term (("+" | "-") term)*
    term   := factor (("*" | "/") factor)*
    factor := ("+" | "-") factor | NUMBER | "(" expr ")"
    NUMBER := digits with an optional fraction and exponent ("2.5", "1e-05")

``{field}`` placeholders are substituted from the job data before parsing.
"""

from __future__ import annotations

import math
import re
from typing import Any, List, Mapping, Tuple, Union

from .conditions import to_text

Number = Union[int, float]

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")
_TOKEN = re.compile(r"\s*(?:((?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)|(.))")
_MAX_LENGTH = 500
_MAX_DEPTH = 32


class FormulaError(ValueError):
    pass


def substitute_fields(formula: str, data: Mapping[str, Any]) -> str:
    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in data:
            raise FormulaError(f"Unknown field in formula: {name}")
        return to_text(data[name])

    return _PLACEHOLDER.sub(_replace, formula)


def _tokenize(expression: str) -> List[Tuple[str, str]]:
    tokens: List[Tuple[str, str]] = []
    pos = 0
    expression = expression.rstrip()
    while pos < len(expression):
        match = _TOKEN.match(expression, pos)
        if match is None:
            raise FormulaError(f"Unexpected input at position {pos}")
        number, symbol = match.groups()
        if number is not None:
            tokens.append(("num", number))
        elif symbol in "+-*/()":
            tokens.append(("op", symbol))
        else:
            raise FormulaError(f"Unsupported character {symbol!r} in formula")
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, tokens: List[Tuple[str, str]]):
        self._tokens = tokens
        self._pos = 0
        self._depth = 0

    def _peek(self) -> Tuple[str, str]:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return ("end", "")

    def _take(self) -> Tuple[str, str]:
        token = self._peek()
        self._pos += 1
        return token

    def parse(self) -> float:
        value = self._expr()
        kind, text = self._peek()
        if kind != "end":
            raise FormulaError(f"Unexpected token {text!r}")
        return value

    def _expr(self) -> float:
        value = self._term()
        while self._peek() in (("op", "+"), ("op", "-")):
            _, op = self._take()
            rhs = self._term()
            value = value + rhs if op == "+" else value - rhs
        return value

    def _term(self) -> float:
        value = self._factor()
        while self._peek() in (("op", "*"), ("op", "/")):
            _, op = self._take()
            rhs = self._factor()
            if op == "*":
                value = value * rhs
            else:
                if rhs == 0:
                    raise FormulaError("Division by zero")
                value = value / rhs
        return value

    def _factor(self) -> float:
        kind, text = self._take()
        if kind == "op" and text in "+-":
            self._depth += 1
            if self._depth > _MAX_DEPTH:
                raise FormulaError("Formula is nested too deeply")
            value = self._factor()
            self._depth -= 1
            return -value if text == "-" else value
        if kind == "num":
            return float(text)
        if (kind, text) == ("op", "("):
            self._depth += 1
            if self._depth > _MAX_DEPTH:
                raise FormulaError("Formula is nested too deeply")
            value = self._expr()
            self._depth -= 1
            if self._take() != ("op", ")"):
                raise FormulaError("Missing closing parenthesis")
            return value
        raise FormulaError("Unexpected end of formula" if kind == "end" else f"Unexpected token {text!r}")


def evaluate_expression(expression: str) -> Number:
    if len(expression) > _MAX_LENGTH:
        raise FormulaError("Formula is too long")
    tokens = _tokenize(expression)
    if not tokens:
        raise FormulaError("Empty formula")
    result = _Parser(tokens).parse()
    if not math.isfinite(result):
        raise FormulaError("Formula result is not finite")
    if result.is_integer():
        return int(result)
    return result


def evaluate_formula(formula: str, data: Mapping[str, Any]) -> Number:
    return evaluate_expression(substitute_fields(formula, data))
