"""Arithmetic expressions over KPI identifiers.

Formula text comes from configuration rows, so it is tokenized and parsed into
a small tree instead of being handed to a code-execution primitive. Grammar:

    expr    := term (("+" | "-") term)*
    term    := unary (("*" | "/") unary)*
    unary   := ("+" | "-") unary | primary
    primary := NUMBER | IDENT | "(" expr ")"

Evaluation is total: absent identifiers, division by zero and parse failures
all surface as None.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import FrozenSet, List, Mapping, Optional, Union

from .environment import ValueEnvironment

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32
MAX_TOKENS = 512


class ExpressionError(ValueError):
    """Raised when an expression cannot be tokenized or parsed."""


class _Absent(Exception):
    """Internal short-circuit: an identifier has no value."""


class _DivisionByZero(Exception):
    """Internal short-circuit: a divisor evaluated to zero."""


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    pos: int


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    left: "Node"
    op: str
    right: "Node"


Node = Union[Number, Identifier, UnaryOp, BinaryOp]

_OPERATORS = {"+", "-", "*", "/", "(", ")"}


def _is_digit(ch: str) -> bool:
    # ASCII only; str.isdigit() also admits superscripts and other scripts.
    return "0" <= ch <= "9"


def tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    length = len(text)
    while pos < length:
        ch = text[pos]
        if ch.isspace():
            pos += 1
            continue
        if ch in _OPERATORS:
            tokens.append(Token(ch, ch, pos))
            pos += 1
            continue
        if ch.isascii() and (ch.isalpha() or ch == "_"):
            start = pos
            pos += 1
            while pos < length and text[pos].isascii() and (text[pos].isalnum() or text[pos] == "_"):
                pos += 1
            tokens.append(Token("IDENT", text[start:pos], start))
            continue
        if _is_digit(ch) or ch == ".":
            start = pos
            seen_dot = False
            while pos < length and (_is_digit(text[pos]) or text[pos] == "."):
                if text[pos] == ".":
                    if seen_dot:
                        raise ExpressionError(f"Malformed number at position {start}")
                    seen_dot = True
                pos += 1
            literal = text[start:pos]
            if literal == ".":
                raise ExpressionError(f"Malformed number at position {start}")
            tokens.append(Token("NUMBER", literal, start))
            continue
        raise ExpressionError(f"Unexpected character {ch!r} at position {pos}")
    return tokens


class _Parser:
    def __init__(self, tokens: List[Token], max_depth: int):
        self.tokens = tokens
        self.pos = 0
        self.max_depth = max_depth
        self.depth = 0

    def parse(self) -> Node:
        if not self.tokens:
            raise ExpressionError("Empty expression")
        if len(self.tokens) > MAX_TOKENS:
            raise ExpressionError(f"Expression longer than {MAX_TOKENS} tokens")
        node = self._expr()
        if self.pos < len(self.tokens):
            token = self.tokens[self.pos]
            raise ExpressionError(f"Unexpected {token.value!r} at position {token.pos}")
        return node

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > self.max_depth:
            raise ExpressionError(f"Expression nested deeper than {self.max_depth}")

    def _expr(self) -> Node:
        node = self._term()
        while self._match("+", "-"):
            op = self.tokens[self.pos - 1].kind
            node = BinaryOp(node, op, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while self._match("*", "/"):
            op = self.tokens[self.pos - 1].kind
            node = BinaryOp(node, op, self._unary())
        return node

    def _unary(self) -> Node:
        if self._match("+", "-"):
            op = self.tokens[self.pos - 1].kind
            self._enter()
            try:
                return UnaryOp(op, self._unary())
            finally:
                self.depth -= 1
        return self._primary()

    def _primary(self) -> Node:
        if self._match("NUMBER"):
            return Number(float(self.tokens[self.pos - 1].value))
        if self._match("IDENT"):
            return Identifier(self.tokens[self.pos - 1].value)
        if self._match("("):
            self._enter()
            try:
                node = self._expr()
            finally:
                self.depth -= 1
            if not self._match(")"):
                raise ExpressionError("Expected ')' to close expression")
            return node
        if self.pos >= len(self.tokens):
            raise ExpressionError("Unexpected end of expression")
        token = self.tokens[self.pos]
        raise ExpressionError(f"Unexpected {token.value!r} at position {token.pos}")

    def _match(self, *kinds: str) -> bool:
        if self.pos < len(self.tokens) and self.tokens[self.pos].kind in kinds:
            self.pos += 1
            return True
        return False


@lru_cache(maxsize=1024)
def parse(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Node:
    """Parse expression text into a tree. Raises ExpressionError."""
    return _Parser(tokenize(text), max_depth).parse()


def identifiers(node: Node) -> FrozenSet[str]:
    if isinstance(node, Identifier):
        return frozenset({node.name})
    if isinstance(node, UnaryOp):
        return identifiers(node.operand)
    if isinstance(node, BinaryOp):
        return identifiers(node.left) | identifiers(node.right)
    return frozenset()


def _eval(node: Node, env: ValueEnvironment) -> float:
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Identifier):
        value = env.get_value(node.name)
        if value is None:
            raise _Absent(node.name)
        return value
    if isinstance(node, UnaryOp):
        operand = _eval(node.operand, env)
        return -operand if node.op == "-" else operand
    left = _eval(node.left, env)
    right = _eval(node.right, env)
    if node.op == "+":
        return left + right
    if node.op == "-":
        return left - right
    if node.op == "*":
        return left * right
    if right == 0:
        raise _DivisionByZero()
    return left / right


def evaluate_tree(node: Node, env: ValueEnvironment) -> Optional[float]:
    try:
        result = _eval(node, env)
    except _Absent as exc:
        logger.debug("Identifier %s has no value; expression yields None", exc.args[0])
        return None
    except _DivisionByZero:
        logger.debug("Division by zero; expression yields None")
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def evaluate(
    text: str,
    env: Union[ValueEnvironment, Mapping[str, Optional[float]]],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Optional[float]:
    """Evaluate `text` against `env`; None for absent data, x/0 or bad syntax."""
    try:
        tree = parse(str(text).strip(), max_depth)
    except ExpressionError as exc:
        logger.debug("Unparseable expression %r: %s", text, exc)
        return None
    if not isinstance(env, ValueEnvironment):
        env = ValueEnvironment(env)
    return evaluate_tree(tree, env)


def is_valid(text: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> bool:
    try:
        parse(str(text).strip(), max_depth)
    except ExpressionError:
        return False
    return True
