"""Lexer and parser for the expression language used inside template blocks.

Print blocks (``<%= ... %>``) hold a single expression. Code blocks
(``<% ... %>``) hold zero or more statements. A block statement such as
``if (name) {`` may be closed by a ``}`` in a later code block, so statements
are parsed one block at a time into a flat list and the block structure is
checked when the whole template is compiled (see :mod:`seedling.compiler`).

Supported syntax
----------------
Literals
    ``1``, ``2.5``, ``"text"``, ``'text'``, ``true``, ``false``, ``null``,
    ``undefined`` and arrays such as ``[a, "b"]``.
Operators, from lowest to highest precedence
    ``c ? a : b``, ``??``, ``||``, ``&&``, ``== != === !==``,
    ``< <= > >= in``, ``+ -``, ``* / %``, unary ``! - +`` and the postfix
    forms ``a.b``, ``a[b]`` and ``f(a, b)``.
Statements
    ``if (x) {``, ``} else if (x) {``, ``} else {``, ``}``,
    ``for (x of xs) {``, ``for (key, value of mapping) {``,
    ``let x = 1`` (``const`` and ``var`` are accepted too), ``x += 1`` and
    bare expressions.

Differences from JavaScript
---------------------------
Values are Python objects and operators follow Python rules where the two
languages disagree:

* ``===`` and ``!==`` behave like ``==`` and ``!=``, so ``1 === true`` is
  true.
* ``x in y`` tests membership: an item of a sequence, a substring of a
  string or a key of a mapping. It does not look up object attributes.
* Truthiness is Python's, so empty arrays, strings and mappings are false.
* ``/`` always divides as floats. Whole numbers print without a fraction,
  so ``4 / 2`` prints ``2``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Union

from .errors import ExpressionSyntaxError

__all__ = [
    "Array",
    "Assign",
    "Binary",
    "Call",
    "Close",
    "Conditional",
    "Else",
    "ElseIf",
    "ExprStatement",
    "For",
    "If",
    "Index",
    "Literal",
    "Logical",
    "Member",
    "Name",
    "Unary",
    "parse_expression",
    "parse_statements",
]


_LEXEME_PATTERN = re.compile(
    r"""
    (?P<space>\s+)
  | (?P<number>(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?)
  | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
  | (?P<name>[A-Za-z_$][A-Za-z0-9_$]*)
  | (?P<op>===|!==|==|!=|<=|>=|&&|\|\||\?\?|\+=|[-+*/%<>!=?:.,;()\[\]{}])
    """,
    re.VERBOSE | re.DOTALL,
)
_ESCAPE_PATTERN = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
    "\n": "",
}

_CONSTANTS = {"true": True, "false": False, "null": None, "undefined": None}
_DECLARATIONS = frozenset({"let", "const", "var"})
_RESERVED = frozenset({"if", "else", "for", "in", *_DECLARATIONS, *_CONSTANTS})

_EQUALITY_OPERATORS = ("===", "!==", "==", "!=")
_RELATIONAL_OPERATORS = ("<=", ">=", "<", ">")


@dataclass(frozen=True, slots=True)
class _Lexeme:
    kind: str
    value: str
    position: int


# Expression nodes


@dataclass(frozen=True, slots=True)
class Literal:
    value: Any


@dataclass(frozen=True, slots=True)
class Name:
    name: str


@dataclass(frozen=True, slots=True)
class Array:
    items: tuple["Expression", ...]


@dataclass(frozen=True, slots=True)
class Member:
    target: "Expression"
    name: str


@dataclass(frozen=True, slots=True)
class Index:
    target: "Expression"
    key: "Expression"


@dataclass(frozen=True, slots=True)
class Call:
    function: "Expression"
    arguments: tuple["Expression", ...]


@dataclass(frozen=True, slots=True)
class Unary:
    operator: str
    operand: "Expression"


@dataclass(frozen=True, slots=True)
class Binary:
    operator: str
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True, slots=True)
class Logical:
    """Short-circuiting ``&&``, ``||`` and ``??``."""

    operator: str
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True, slots=True)
class Conditional:
    test: "Expression"
    then: "Expression"
    otherwise: "Expression"


Expression = Union[Literal, Name, Array, Member, Index, Call, Unary, Binary, Logical, Conditional]


# Statement nodes


@dataclass(frozen=True, slots=True)
class If:
    test: Expression


@dataclass(frozen=True, slots=True)
class ElseIf:
    test: Expression


@dataclass(frozen=True, slots=True)
class Else:
    pass


@dataclass(frozen=True, slots=True)
class For:
    targets: tuple[str, ...]
    iterable: Expression


@dataclass(frozen=True, slots=True)
class Close:
    pass


@dataclass(frozen=True, slots=True)
class Assign:
    name: str
    operator: str
    value: Expression


@dataclass(frozen=True, slots=True)
class ExprStatement:
    expression: Expression


Statement = Union[If, ElseIf, Else, For, Close, Assign, ExprStatement]


def _unescape(match: re.Match[str]) -> str:
    escape = match.group(1)
    if escape.startswith("u") and len(escape) == 5:
        return chr(int(escape[1:], 16))
    return _SIMPLE_ESCAPES.get(escape, escape)


def _lex(source: str) -> list[_Lexeme]:
    lexemes: list[_Lexeme] = []
    position = 0
    while position < len(source):
        match = _LEXEME_PATTERN.match(source, position)
        if match is None:
            raise ExpressionSyntaxError(
                f"unexpected character {source[position]!r}", source, position
            )
        kind = match.lastgroup or ""
        if kind != "space":
            lexemes.append(_Lexeme(kind, match.group(), position))
        position = match.end()
    lexemes.append(_Lexeme("eof", "", len(source)))
    return lexemes


class _Parser:
    def __init__(self, source: str) -> None:
        self.source = source
        self.lexemes = _lex(source)
        self.index = 0

    # Cursor helpers

    @property
    def current(self) -> _Lexeme:
        return self.lexemes[self.index]

    def advance(self) -> _Lexeme:
        lexeme = self.lexemes[self.index]
        if lexeme.kind != "eof":
            self.index += 1
        return lexeme

    def at_op(self, *values: str) -> bool:
        return self.current.kind == "op" and self.current.value in values

    def at_keyword(self, *values: str) -> bool:
        return self.current.kind == "name" and self.current.value in values

    def at_end(self) -> bool:
        return self.current.kind == "eof"

    def peek_op(self, offset: int, *values: str) -> bool:
        position = min(self.index + offset, len(self.lexemes) - 1)
        lexeme = self.lexemes[position]
        return lexeme.kind == "op" and lexeme.value in values

    def error(self, message: str) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(message, self.source, self.current.position)

    def expect_op(self, value: str) -> None:
        if not self.at_op(value):
            raise self.error(f"expected {value!r}, found {self._describe()}")
        self.advance()

    def expect_keyword(self, value: str) -> None:
        if not self.at_keyword(value):
            raise self.error(f"expected {value!r}, found {self._describe()}")
        self.advance()

    def expect_name(self) -> str:
        lexeme = self.current
        if lexeme.kind != "name" or lexeme.value in _RESERVED:
            raise self.error(f"expected a name, found {self._describe()}")
        self.advance()
        return lexeme.value

    def _describe(self) -> str:
        if self.at_end():
            return "end of input"
        return repr(self.current.value)

    # Statements

    def statements(self) -> list[Statement]:
        statements: list[Statement] = []
        while not self.at_end():
            if self.at_op(";"):
                self.advance()
            elif self.at_op("}"):
                self.advance()
                statements.append(Close())
                if self.at_keyword("else"):
                    statements.append(self.else_clause())
            elif self.at_keyword("else"):
                statements.append(self.else_clause())
            elif self.at_keyword("if"):
                self.advance()
                statements.append(If(self.parenthesized()))
                self.expect_op("{")
            elif self.at_keyword("for"):
                statements.append(self.for_header())
            elif self.at_keyword(*_DECLARATIONS):
                self.advance()
                name = self.expect_name()
                self.expect_op("=")
                statements.append(Assign(name, "=", self.expression()))
            elif self.current.kind == "name" and self.peek_op(1, "=", "+="):
                name = self.expect_name()
                operator = self.advance().value
                statements.append(Assign(name, operator, self.expression()))
            else:
                statements.append(ExprStatement(self.expression()))
        return statements

    def else_clause(self) -> Statement:
        self.expect_keyword("else")
        if self.at_keyword("if"):
            self.advance()
            test = self.parenthesized()
            self.expect_op("{")
            return ElseIf(test)
        self.expect_op("{")
        return Else()

    def for_header(self) -> For:
        self.expect_keyword("for")
        self.expect_op("(")
        if self.at_keyword(*_DECLARATIONS):
            self.advance()
        targets = [self.expect_name()]
        if self.at_op(","):
            self.advance()
            targets.append(self.expect_name())
        self.expect_keyword("of")
        iterable = self.expression()
        self.expect_op(")")
        self.expect_op("{")
        return For(tuple(targets), iterable)

    def parenthesized(self) -> Expression:
        self.expect_op("(")
        expression = self.expression()
        self.expect_op(")")
        return expression

    # Expressions, lowest precedence first

    def expression(self) -> Expression:
        return self.conditional()

    def conditional(self) -> Expression:
        test = self.coalesce()
        if not self.at_op("?"):
            return test
        self.advance()
        then = self.conditional()
        self.expect_op(":")
        return Conditional(test, then, self.conditional())

    def coalesce(self) -> Expression:
        left = self.logical_or()
        while self.at_op("??"):
            self.advance()
            left = Logical("??", left, self.logical_or())
        return left

    def logical_or(self) -> Expression:
        left = self.logical_and()
        while self.at_op("||"):
            self.advance()
            left = Logical("||", left, self.logical_and())
        return left

    def logical_and(self) -> Expression:
        left = self.equality()
        while self.at_op("&&"):
            self.advance()
            left = Logical("&&", left, self.equality())
        return left

    def equality(self) -> Expression:
        left = self.relational()
        while self.at_op(*_EQUALITY_OPERATORS):
            operator = self.advance().value
            left = Binary(operator, left, self.relational())
        return left

    def relational(self) -> Expression:
        left = self.additive()
        while self.at_op(*_RELATIONAL_OPERATORS) or self.at_keyword("in"):
            operator = self.advance().value
            left = Binary(operator, left, self.additive())
        return left

    def additive(self) -> Expression:
        left = self.multiplicative()
        while self.at_op("+", "-"):
            operator = self.advance().value
            left = Binary(operator, left, self.multiplicative())
        return left

    def multiplicative(self) -> Expression:
        left = self.unary()
        while self.at_op("*", "/", "%"):
            operator = self.advance().value
            left = Binary(operator, left, self.unary())
        return left

    def unary(self) -> Expression:
        if self.at_op("!", "-", "+"):
            operator = self.advance().value
            return Unary(operator, self.unary())
        return self.postfix()

    def postfix(self) -> Expression:
        expression = self.primary()
        while True:
            if self.at_op("."):
                self.advance()
                if self.current.kind != "name":
                    raise self.error(f"expected a property name, found {self._describe()}")
                expression = Member(expression, self.advance().value)
            elif self.at_op("["):
                self.advance()
                key = self.expression()
                self.expect_op("]")
                expression = Index(expression, key)
            elif self.at_op("("):
                self.advance()
                expression = Call(expression, self.sequence(")"))
            else:
                return expression

    def sequence(self, closer: str) -> tuple[Expression, ...]:
        items: list[Expression] = []
        while not self.at_op(closer):
            items.append(self.expression())
            if not self.at_op(","):
                break
            self.advance()
        self.expect_op(closer)
        return tuple(items)

    def primary(self) -> Expression:
        lexeme = self.current
        if lexeme.kind == "number":
            self.advance()
            if any(marker in lexeme.value for marker in ".eE"):
                return Literal(float(lexeme.value))
            return Literal(int(lexeme.value))
        if lexeme.kind == "string":
            self.advance()
            return Literal(_ESCAPE_PATTERN.sub(_unescape, lexeme.value[1:-1]))
        if lexeme.kind == "name":
            if lexeme.value in _CONSTANTS:
                self.advance()
                return Literal(_CONSTANTS[lexeme.value])
            return Name(self.expect_name())
        if self.at_op("("):
            return self.parenthesized()
        if self.at_op("["):
            self.advance()
            return Array(self.sequence("]"))
        if self.at_end():
            raise self.error("expected an expression, found end of input")
        raise self.error(f"unexpected {self._describe()}")


def parse_expression(source: str) -> Expression:
    """Parse the body of a print block into a single expression."""

    parser = _Parser(source)
    expression = parser.expression()
    if not parser.at_end():
        raise parser.error(f"unexpected {parser._describe()} after expression")
    return expression


def parse_statements(source: str) -> list[Statement]:
    """Parse the body of a code block. Whitespace-only source yields no statements."""

    return _Parser(source).statements()
