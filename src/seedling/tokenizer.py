"""Split template text into text, print and code tokens."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .errors import TemplateSyntaxError

__all__ = [
    "CODE_OPENERS",
    "CLOSERS",
    "PRINT_OPENERS",
    "Token",
    "TokenKind",
    "Trim",
    "tokenize",
]


_DELIMITER_PATTERN = re.compile(r"(<%-?=?|-?%>)")

CODE_OPENERS = frozenset({"<%", "<%-"})
PRINT_OPENERS = frozenset({"<%=", "<%-="})
CLOSERS = frozenset({"%>", "-%>"})

UNCLOSED_MESSAGE = "Parse error: Unclosed expression, missing closing delimiter"


class TokenKind(str, Enum):
    """Kinds of token produced by :func:`tokenize`."""

    TEXT = "text"
    PRINT = "print"
    CODE = "code"


@dataclass(frozen=True, slots=True)
class Trim:
    """Whitespace trimming requested by a block's delimiters."""

    before: bool = False
    after: bool = False


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: str
    trim: Trim | None = None

    @property
    def is_text(self) -> bool:
        return self.kind is TokenKind.TEXT


def tokenize(template: str) -> list[Token]:
    """Return the tokens of ``template`` in source order.

    Delimiters cannot nest, so a block is always exactly three pieces of the
    split input: the opener, the raw source and the closer. Any other piece
    is literal text, including empty strings between adjacent delimiters and
    stray closers.

    Raises
    ------
    TemplateSyntaxError
        If an opener is not followed by its source and a closer.
    """

    pieces = _DELIMITER_PATTERN.split(template)
    tokens: list[Token] = []

    index = 0
    while index < len(pieces):
        piece = pieces[index]
        if piece in CODE_OPENERS or piece in PRINT_OPENERS:
            if index + 2 >= len(pieces) or pieces[index + 2] not in CLOSERS:
                raise TemplateSyntaxError(UNCLOSED_MESSAGE)

            kind = TokenKind.CODE if piece in CODE_OPENERS else TokenKind.PRINT
            trim = Trim(before=piece.startswith("<%-"), after=pieces[index + 2] == "-%>")
            tokens.append(Token(kind, pieces[index + 1], trim))
            index += 3
            continue

        tokens.append(Token(TokenKind.TEXT, piece))
        index += 1

    return tokens
