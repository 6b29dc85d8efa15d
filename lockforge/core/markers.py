"""Environment marker expressions.

Markers are parsed once into a small tree of ``Comparison`` and ``BoolOp``
nodes and evaluated against a plain ``{variable: value}`` mapping::

    marker     := and_expr ("or" and_expr)*
    and_expr   := atom ("and" atom)*
    atom       := "(" marker ")" | operand op operand
    operand    := VARIABLE | QUOTED_STRING
    op         := "==" | "!=" | "<" | "<=" | ">" | ">=" | "~=" | "===" | "in" | "not in"

Comparisons first try PEP 440 version semantics (``Specifier(op + rhs)``
containing ``lhs``).  When either side is not a version only ``==``, ``===``
and ``!=`` fall back to string comparison; ordering operators on non-version
strings raise ``MarkerEvaluationError``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import NoReturn

from packaging.specifiers import InvalidSpecifier, Specifier
from packaging.utils import canonicalize_name
from packaging.version import InvalidVersion

from lockforge.core.errors import InvalidMarkerError, MarkerEvaluationError

MARKER_VARIABLES: frozenset[str] = frozenset({
    "implementation_name",
    "implementation_version",
    "os_name",
    "platform_machine",
    "platform_python_implementation",
    "platform_release",
    "platform_system",
    "platform_version",
    "python_full_version",
    "python_version",
    "sys_platform",
    "extra",
})

_TOKEN_RE = re.compile(
    r"""
    (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<op>===|==|!=|~=|<=|>=|<|>)
  | (?P<string>'[^']*'|"[^"]*")
  | (?P<word>[A-Za-z_][A-Za-z0-9_.]*)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    value: str
    position: int


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise InvalidMarkerError(
                f"Unexpected character {text[pos]!r} at position {pos}",
                context={"marker": text},
            )
        kind = match.lastgroup or ""
        tokens.append(_Token(kind, match.group(kind), match.start()))
        pos = match.end()
    return tokens


# ---------------------------------------------------------------------------
# Expression tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Variable:
    name: str

    def resolve(self, context: Mapping[str, str]) -> str:
        try:
            return context[self.name]
        except KeyError:
            if self.name == "extra":
                return ""
            raise MarkerEvaluationError(
                f"Marker variable {self.name!r} is not defined by the environment",
                hint="Supply the value in the environment's marker values.",
            ) from None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Literal:
    value: str

    def resolve(self, context: Mapping[str, str]) -> str:
        return self.value

    def __str__(self) -> str:
        return repr(self.value)


Operand = Variable | Literal


@dataclass(frozen=True, slots=True)
class Comparison:
    left: Operand
    op: str
    right: Operand

    def evaluate(self, context: Mapping[str, str]) -> bool:
        lhs = self.left.resolve(context)
        rhs = self.right.resolve(context)
        if _names_extra(self.left) or _names_extra(self.right):
            lhs, rhs = canonicalize_name(lhs), canonicalize_name(rhs)

        if self.op == "in":
            return lhs in rhs
        if self.op == "not in":
            return lhs not in rhs

        try:
            return Specifier(f"{self.op}{rhs}").contains(lhs, prereleases=True)
        except (InvalidSpecifier, InvalidVersion):
            pass

        if self.op in ("==", "==="):
            return lhs == rhs
        if self.op == "!=":
            return lhs != rhs
        raise MarkerEvaluationError(
            f"Cannot compare {lhs!r} {self.op} {rhs!r}: not versions",
            context={"marker": str(self)},
        )

    def __str__(self) -> str:
        return f"{self.left} {self.op} {self.right}"


@dataclass(frozen=True, slots=True)
class BoolOp:
    op: str  # "and" | "or"
    operands: tuple[Comparison | BoolOp, ...]

    def evaluate(self, context: Mapping[str, str]) -> bool:
        if self.op == "and":
            return all(node.evaluate(context) for node in self.operands)
        return any(node.evaluate(context) for node in self.operands)

    def __str__(self) -> str:
        parts = []
        for node in self.operands:
            text = str(node)
            if isinstance(node, BoolOp) and node.op != self.op:
                text = f"({text})"
            parts.append(text)
        return f" {self.op} ".join(parts)


MarkerNode = Comparison | BoolOp


def _names_extra(operand: Operand) -> bool:
    return isinstance(operand, Variable) and operand.name == "extra"


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _Parser:
    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens = _tokenize(text)
        self._index = 0

    def parse(self) -> MarkerNode:
        if not self._tokens:
            raise InvalidMarkerError("Empty marker expression")
        node = self._parse_or()
        if self._index < len(self._tokens):
            self._fail(self._tokens[self._index], "end of marker")
        return node

    def _parse_or(self) -> MarkerNode:
        operands = [self._parse_and()]
        while self._accept_word("or"):
            operands.append(self._parse_and())
        return operands[0] if len(operands) == 1 else BoolOp("or", tuple(operands))

    def _parse_and(self) -> MarkerNode:
        operands = [self._parse_atom()]
        while self._accept_word("and"):
            operands.append(self._parse_atom())
        return operands[0] if len(operands) == 1 else BoolOp("and", tuple(operands))

    def _parse_atom(self) -> MarkerNode:
        token = self._peek()
        if token is not None and token.kind == "lparen":
            self._index += 1
            node = self._parse_or()
            closing = self._next("')'")
            if closing.kind != "rparen":
                self._fail(closing, "')'")
            return node
        left = self._parse_operand()
        op = self._parse_op()
        right = self._parse_operand()
        return Comparison(left, op, right)

    def _parse_operand(self) -> Operand:
        token = self._next("a marker variable or quoted string")
        if token.kind == "string":
            return Literal(token.value[1:-1])
        if token.kind == "word" and token.value in MARKER_VARIABLES:
            return Variable(token.value)
        self._fail(token, "a marker variable or quoted string")

    def _parse_op(self) -> str:
        token = self._next("a comparison operator")
        if token.kind == "op":
            return token.value
        if token.kind == "word" and token.value == "in":
            return "in"
        if token.kind == "word" and token.value == "not":
            follow = self._next("'in'")
            if follow.kind == "word" and follow.value == "in":
                return "not in"
            self._fail(follow, "'in'")
        self._fail(token, "a comparison operator")

    def _peek(self) -> _Token | None:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _next(self, expected: str) -> _Token:
        token = self._peek()
        if token is None:
            raise InvalidMarkerError(
                f"Unexpected end of marker, expected {expected}",
                context={"marker": self._text},
            )
        self._index += 1
        return token

    def _accept_word(self, word: str) -> bool:
        token = self._peek()
        if token is not None and token.kind == "word" and token.value == word:
            self._index += 1
            return True
        return False

    def _fail(self, token: _Token, expected: str) -> NoReturn:
        raise InvalidMarkerError(
            f"Expected {expected} at position {token.position}, found {token.value!r}",
            context={"marker": self._text},
        )


class Marker:
    """A parsed marker expression.

    Two markers are equal when their trees are equal, regardless of
    whitespace in the source text.
    """

    __slots__ = ("text", "tree")

    def __init__(self, text: str) -> None:
        self.text = text
        self.tree = _Parser(text).parse()

    def evaluate(self, context: Mapping[str, str]) -> bool:
        return self.tree.evaluate(context)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Marker):
            return NotImplemented
        return self.tree == other.tree

    def __hash__(self) -> int:
        return hash(self.tree)

    def __str__(self) -> str:
        return str(self.tree)

    def __repr__(self) -> str:
        return f"<Marker({str(self)!r})>"


def parse_marker(text: str) -> Marker:
    """Parse *text*, raising ``InvalidMarkerError`` on bad syntax."""
    return Marker(text)
