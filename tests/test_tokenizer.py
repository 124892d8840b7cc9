from __future__ import annotations

import pytest

from seedling.errors import TemplateSyntaxError
from seedling.tokenizer import Token, TokenKind, Trim, tokenize


def test_tokenize_text_print_and_code():
    tokens = tokenize("a<%= b %>c<% d %>e")

    assert tokens == [
        Token(TokenKind.TEXT, "a"),
        Token(TokenKind.PRINT, " b ", Trim()),
        Token(TokenKind.TEXT, "c"),
        Token(TokenKind.CODE, " d ", Trim()),
        Token(TokenKind.TEXT, "e"),
    ]


@pytest.mark.parametrize(
    "template, kind, trim",
    [
        ("<% x %>", TokenKind.CODE, Trim(before=False, after=False)),
        ("<%- x %>", TokenKind.CODE, Trim(before=True, after=False)),
        ("<% x -%>", TokenKind.CODE, Trim(before=False, after=True)),
        ("<%- x -%>", TokenKind.CODE, Trim(before=True, after=True)),
        ("<%= x %>", TokenKind.PRINT, Trim(before=False, after=False)),
        ("<%-= x %>", TokenKind.PRINT, Trim(before=True, after=False)),
        ("<%= x -%>", TokenKind.PRINT, Trim(before=False, after=True)),
        ("<%-= x -%>", TokenKind.PRINT, Trim(before=True, after=True)),
    ],
)
def test_delimiter_variants(template: str, kind: TokenKind, trim: Trim):
    (_, block, _) = tokenize(template)

    assert block.kind is kind
    assert block.value == " x "
    assert block.trim == trim


def test_adjacent_blocks_keep_empty_text_between():
    kinds = [token.kind for token in tokenize("<%= a %><%= b %>")]

    assert kinds == [TokenKind.TEXT, TokenKind.PRINT, TokenKind.TEXT, TokenKind.PRINT, TokenKind.TEXT]


def test_empty_block():
    assert tokenize("<%%>") == [Token(TokenKind.TEXT, ""), Token(TokenKind.CODE, "", Trim()), Token(TokenKind.TEXT, "")]


def test_stray_closer_is_text():
    tokens = tokenize("50%> done")

    assert all(token.is_text for token in tokens)
    assert "".join(token.value for token in tokens) == "50%> done"


def test_tokens_partition_the_template():
    template = "Dear <%= name %>,\n<% if (vip) { -%>\n  Welcome back!\n<%- } %>\nBye"
    tokens = tokenize(template)

    stripped = template
    for delimiter in ["<%=", "<%-", "-%>", "<%", "%>"]:
        stripped = stripped.replace(delimiter, "")
    assert "".join(token.value for token in tokens) == stripped


@pytest.mark.parametrize(
    "template",
    [
        "Hello <%= name",
        "Hello <% if (x) {",
        "<%",
        "<% a <% b %>",
        "<%= a <%= b %> %>",
    ],
)
def test_unclosed_or_nested_blocks_raise(template: str):
    with pytest.raises(TemplateSyntaxError, match="Unclosed expression, missing closing delimiter"):
        tokenize(template)
