"""Turn template tokens into an executable Python program."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterable, Union

from .errors import ExpressionSyntaxError
from .expressions import (
    Array,
    Assign,
    Binary,
    Call,
    Close,
    Conditional,
    Else,
    ElseIf,
    Expression,
    ExprStatement,
    For,
    If,
    Index,
    Literal,
    Logical,
    Member,
    Name,
    Statement,
    Unary,
    parse_expression,
    parse_statements,
)
from .runtime import OUTPUT_VARIABLE
from .tokenizer import Token, TokenKind

__all__ = [
    "Append",
    "CodeBuilder",
    "Emit",
    "Execute",
    "Program",
    "apply_trim",
    "build_program",
    "compile_template",
    "generate_source",
]


_LEADING_WHITESPACE = re.compile(r"^\s+")
_TRAILING_WHITESPACE = re.compile(r"\s+$")

_OUTPUT = f"_env[{OUTPUT_VARIABLE!r}]"

_PLAIN_BINARY = {
    "-": "-",
    "*": "*",
    "/": "/",
    "%": "%",
    "==": "==",
    "===": "==",
    "!=": "!=",
    "!==": "!=",
    "<": "<",
    "<=": "<=",
    ">": ">",
    ">=": ">=",
    "in": "in",
}
_PLAIN_UNARY = {"!": "not ", "-": "-", "+": "+"}


@dataclass(frozen=True, slots=True)
class Emit:
    text: str


@dataclass(frozen=True, slots=True)
class Append:
    expression: str


@dataclass(frozen=True, slots=True)
class Execute:
    statement: str


Operation = Union[Emit, Append, Execute]
Program = tuple[Operation, ...]


def apply_trim(tokens: list[Token]) -> list[Token]:
    """Strip whitespace from text tokens next to trimming delimiters.

    Text tokens in ``tokens`` are replaced in place and the list is returned
    for convenience. A text token sandwiched between two trimming blocks is
    stripped on both sides.
    """

    for index, token in enumerate(tokens):
        if token.is_text or token.trim is None:
            continue

        if token.trim.after and index + 1 < len(tokens) and tokens[index + 1].is_text:
            following = tokens[index + 1]
            tokens[index + 1] = replace(following, value=_LEADING_WHITESPACE.sub("", following.value))

        if token.trim.before and index > 0 and tokens[index - 1].is_text:
            preceding = tokens[index - 1]
            tokens[index - 1] = replace(preceding, value=_TRAILING_WHITESPACE.sub("", preceding.value))

    return tokens


def build_program(tokens: Iterable[Token]) -> Program:
    """Map each token to one rendering operation."""

    operations: list[Operation] = []
    for token in tokens:
        if token.kind is TokenKind.TEXT:
            operations.append(Emit(token.value))
        elif token.kind is TokenKind.PRINT:
            operations.append(Append(token.value))
        else:
            operations.append(Execute(token.value))
    return tuple(operations)


def compile_template(tokens: Iterable[Token]) -> Program:
    """Run the trim pass over a copy of ``tokens`` and assemble the program."""

    return build_program(apply_trim(list(tokens)))


class CodeBuilder:
    """Accumulate indented lines of Python source."""

    INDENT_STEP = 4

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._indent = 0
        self._suites: list[int] = []

    def add_line(self, line: str) -> None:
        self._lines.append(" " * self._indent + line)

    def open_suite(self, header: str) -> None:
        self.add_line(header)
        self._suites.append(len(self._lines))
        self._indent += self.INDENT_STEP

    def close_suite(self) -> None:
        if len(self._lines) == self._suites.pop():
            self.add_line("pass")
        self._indent -= self.INDENT_STEP

    def __str__(self) -> str:
        return "\n".join(self._lines) + "\n"


def expression_source(node: Expression) -> str:
    """Return Python source evaluating ``node`` against ``_env``."""

    if isinstance(node, Literal):
        return repr(node.value)
    if isinstance(node, Name):
        return f"_rt.lookup(_env, {node.name!r})"
    if isinstance(node, Array):
        return "[" + ", ".join(expression_source(item) for item in node.items) + "]"
    if isinstance(node, Member):
        return f"_rt.attribute({expression_source(node.target)}, {node.name!r})"
    if isinstance(node, Index):
        return f"_rt.item({expression_source(node.target)}, {expression_source(node.key)})"
    if isinstance(node, Call):
        arguments = ", ".join(expression_source(argument) for argument in node.arguments)
        return f"{expression_source(node.function)}({arguments})"
    if isinstance(node, Unary):
        return f"({_PLAIN_UNARY[node.operator]}{expression_source(node.operand)})"
    if isinstance(node, Binary):
        left = expression_source(node.left)
        right = expression_source(node.right)
        if node.operator == "+":
            return f"_rt.add({left}, {right})"
        return f"({left} {_PLAIN_BINARY[node.operator]} {right})"
    if isinstance(node, Logical):
        left = expression_source(node.left)
        right = expression_source(node.right)
        if node.operator == "??":
            return f"_rt.coalesce({left}, lambda: {right})"
        keyword = "and" if node.operator == "&&" else "or"
        return f"({left} {keyword} {right})"
    if isinstance(node, Conditional):
        return (
            f"({expression_source(node.then)} if {expression_source(node.test)} "
            f"else {expression_source(node.otherwise)})"
        )
    raise TypeError(f"unsupported expression node {type(node).__name__}")


class _SourceWriter:
    """Write a program as Python source while tracking open blocks."""

    def __init__(self) -> None:
        self.builder = CodeBuilder()
        self.blocks: list[str] = []
        self.after_if = False

    def write(self, program: Program) -> str:
        for operation in program:
            if isinstance(operation, Emit):
                if operation.text:
                    self.builder.add_line(f"{_OUTPUT} += {operation.text!r}")
                    self.after_if = False
            elif isinstance(operation, Append):
                expression = expression_source(parse_expression(operation.expression))
                self.builder.add_line(f"{_OUTPUT} += _rt.to_text({expression})")
                self.after_if = False
            else:
                for statement in parse_statements(operation.statement):
                    self.statement(statement, operation.statement)

        if self.blocks:
            raise ExpressionSyntaxError(f"unclosed {self.blocks[-1]!r} block, expected '}}'")
        return str(self.builder)

    def statement(self, statement: Statement, source: str) -> None:
        if isinstance(statement, Close):
            if not self.blocks:
                raise ExpressionSyntaxError("unexpected '}' with no open block", source)
            closed = self.blocks.pop()
            self.builder.close_suite()
            self.after_if = closed == "if"
            return

        if isinstance(statement, (ElseIf, Else)) and not self.after_if:
            raise ExpressionSyntaxError("'else' must directly follow the '}' of an if block", source)
        self.after_if = False

        if isinstance(statement, If):
            self.open("if", f"if {expression_source(statement.test)}:")
        elif isinstance(statement, ElseIf):
            self.open("if", f"elif {expression_source(statement.test)}:")
        elif isinstance(statement, Else):
            self.open("else", "else:")
        elif isinstance(statement, For):
            targets = ", ".join(f"_env[{target!r}]" for target in statement.targets)
            iterable = expression_source(statement.iterable)
            self.open("for", f"for {targets} in _rt.iterate({iterable}, {len(statement.targets)}):")
        elif isinstance(statement, Assign):
            value = expression_source(statement.value)
            if statement.operator == "+=":
                value = f"_rt.add(_rt.lookup(_env, {statement.name!r}), {value})"
            self.builder.add_line(f"_env[{statement.name!r}] = {value}")
        elif isinstance(statement, ExprStatement):
            self.builder.add_line(expression_source(statement.expression))

    def open(self, kind: str, header: str) -> None:
        self.blocks.append(kind)
        self.builder.open_suite(header)


def generate_source(program: Program) -> str:
    """Return the Python source for ``program``.

    Literal text is embedded through :func:`repr`, so quotes, backslashes and
    newlines in the template never change the structure of the program.

    Raises
    ------
    ExpressionSyntaxError
        If a block's source is malformed or braces do not balance.
    """

    return _SourceWriter().write(program)
