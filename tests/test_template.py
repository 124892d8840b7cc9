from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from seedling.errors import ExpressionSyntaxError, TemplateSyntaxError
from seedling.template import TemplateRenderer, default_template_dir, render, render_tokens
from seedling.tokenizer import tokenize


def test_print_variable():
    assert render("Hello, <%= name %>!", {"name": "World"}) == "Hello, World!"


def test_if_statement():
    template = "Hello<% if (name) { %>, <%=name%><% } %>!"

    assert render(template, {"name": "World"}) == "Hello, World!"
    assert render(template, {"name": ""}) == "Hello!"


@pytest.mark.parametrize(
    "template, expected",
    [
        ("<%=foo%>   Bar", "Foo   Bar"),
        ("<%=foo-%>   Bar", "FooBar"),
        ("Foo <% if (true) {} %> Bar", "Foo  Bar"),
        ("Foo <% if (true) {} -%> Bar", "Foo Bar"),
        ("Bar   <%=foo%>", "Bar   Foo"),
        ("Bar   <%-=foo%>", "BarFoo"),
        ("Foo  <% if (true) {} %> Bar", "Foo   Bar"),
        ("Foo  <%- if (true) {} %> Bar", "Foo Bar"),
        ("Bar <%=foo%> Baz", "Bar Foo Baz"),
        ("Bar <%-=foo-%> Baz", "BarFooBaz"),
        ("Foo  <%- if (true) {} -%> Bar", "FooBar"),
        ("<%- if (true) {} %>Foo", "Foo"),
        ("Foo<% if (true) {} -%>", "Foo"),
        ("<%-=foo%>Foo", "FooFoo"),
        ("Foo<%=foo -%>", "FooFoo"),
        ("<%=foo -%><%-=foo %>", "FooFoo"),
        ("X<% if (foo) {} -%><%- if (foo) {} %>X", "XX"),
    ],
)
def test_trim_modifiers(template: str, expected: str):
    assert render(template, {"foo": "Foo"}) == expected


def test_trim_handles_new_lines():
    template = """
    <%- %>Foo
    <%  -%>
  """

    assert render(template) == "Foo\n    "


def test_trim_keeps_interior_whitespace():
    assert render("<%- %> a  b <% -%>") == " a  b "
    assert render("<% -%> a  b <%- %>") == "a  b"


def test_sandwiched_text_is_trimmed_on_both_sides():
    assert render("<%= 1 -%>  \n mid \n  <%-= 2 %>") == "1mid2"


@pytest.mark.parametrize(
    "template",
    [
        'What "Foo" Bar',
        "It's 'quoted'",
        "line one\nline two\r\n",
        "back\\slash \\n stays literal",
        "%> stray closer",
        "",
    ],
)
def test_text_without_blocks_is_unchanged(template: str):
    assert render(template, {}) == template


def test_code_blocks_print_nothing():
    assert render("a<% 1 + 2 %>b<% 'text' %>c") == "abc"


def test_else_branches():
    template = "<% if (n > 1) { %>many<% } else if (n == 1) { %>one<% } else { %>none<% } %>"

    assert render(template, {"n": 3}) == "many"
    assert render(template, {"n": 1}) == "one"
    assert render(template, {"n": 0}) == "none"


def test_else_in_a_separate_block():
    template = "<% if (flag) { %>yes<% } %><% else { %>no<% } %>"

    assert render(template, {"flag": False}) == "no"


def test_for_loop_over_sequence():
    template = "<% for (const item of items) { %>[<%= item %>]<% } %>"

    assert render(template, {"items": ["a", "b", "c"]}) == "[a][b][c]"


def test_for_loop_over_mapping():
    template = "<% for (key, value of options) { %><%= key %>=<%= value %>;<% } %>"

    assert render(template, {"options": {"a": 1, "b": 2}}) == "a=1;b=2;"


def test_for_loop_over_mapping_keys():
    assert render("<% for (key of options) { %><%= key %><% } %>", {"options": {"x": 1, "y": 2}}) == "xy"


def test_nested_blocks_across_tokens():
    template = (
        "<% for (row of rows) { -%>\n"
        "<% if (row.show) { %><%= row.name %>\n<% } -%>\n"
        "<% } -%>\n"
    )
    rows = [{"name": "a", "show": True}, {"name": "b", "show": False}, {"name": "c", "show": True}]

    assert render(template, {"rows": rows}) == "a\nc\n"


def test_assignments():
    template = "<% let total = 0; for (n of numbers) { total += n } %><%= total %>"

    assert render(template, {"numbers": [1, 2, 3]}) == "6"


def test_string_concatenation():
    assert render("<%= 'v' + version %>", {"version": 2}) == "v2"
    assert render("<% let x = 'a' %><%= x + 1 %>") == "a1"


def test_member_index_and_call():
    user = SimpleNamespace(name="ada", tags=["x", "y"])

    assert render("<%= user.name.upper() %>", {"user": user}) == "ADA"
    assert render("<%= user.tags[1] %>", {"user": user}) == "y"
    assert render("<%= config.missing ?? 'fallback' %>", {"config": {}}) == "fallback"
    assert render("<%= config['key'] %>", {"config": {"key": "value"}}) == "value"


def test_operators():
    data = {"a": 2, "b": 3, "items": ["x"]}

    assert render("<%= a * b + 1 %>", data) == "7"
    assert render("<%= (a + b) * 2 %>", data) == "10"
    assert render("<%= a < b ? 'lt' : 'ge' %>", data) == "lt"
    assert render("<%= a === 2 && b !== 2 %>", data) == "true"
    assert render("<%= !a || 'x' in items %>", data) == "true"
    assert render("<%= -a %>", data) == "-2"
    assert render("<%= [a, b][1] %>", data) == "3"


def test_printed_values():
    assert render("[<%= value %>]", {"value": None}) == "[]"
    assert render("<%= true %>/<%= false %>") == "true/false"
    assert render("<%= 2.5 %>") == "2.5"


def test_whole_number_division_prints_without_fraction():
    assert render("<%= 4 / 2 %>") == "2"
    assert render("<%= 7 / 2 %>") == "3.5"
    assert render("<%= 'v' + 6 / 3 %>") == "v2"


def test_string_literal_escapes():
    assert render(r"<%= 'it\'s\n' %>") == "it's\n"
    assert render(r'<%= "é" %>') == "é"


def test_unclosed_block_raises():
    with pytest.raises(TemplateSyntaxError, match="Unclosed expression"):
        render("Hello <%= name", {"name": "World"})


def test_nested_block_raises():
    with pytest.raises(TemplateSyntaxError):
        render("<% if (a) { <%= b %> } %>", {"a": True, "b": 1})


@pytest.mark.parametrize(
    "template",
    [
        "<% } %>",
        "<% if (a) { %>open",
        "<% else { %><% } %>",
        "<% if (a) { %>x<% } %>between<% else { %>y<% } %>",
        "<%= %>",
        "<%= a + %>",
        "<% if a { } %>",
        "<%= a b %>",
        "<%= @ %>",
    ],
)
def test_malformed_blocks_raise(template: str):
    with pytest.raises(ExpressionSyntaxError):
        render(template, {"a": True})


def test_runtime_errors_propagate():
    with pytest.raises(NameError):
        render("<%= missing %>")
    with pytest.raises(ZeroDivisionError):
        render("<%= 1 / 0 %>")


def test_environment_is_fresh_for_every_render():
    data = {"name": "original"}

    assert render("<% name = 'changed'; leaked = 1 %><%= name %>", data) == "changed"
    assert data == {"name": "original"}
    with pytest.raises(NameError):
        render("<%= leaked %>")


def test_render_tokens_does_not_modify_tokens():
    tokens = tokenize("<%= a -%>   b")

    assert render_tokens(tokens, {"a": 1}) == "1b"
    assert tokens[-1].value == "   b"


def test_render_file_writes_target(tmp_path: Path):
    (tmp_path / "greeting.tmpl").write_text("Hi <%= name %>", encoding="utf-8")
    target = tmp_path / "out" / "greeting.txt"

    rendered = TemplateRenderer(tmp_path).render_file("greeting.tmpl", {"name": "Demo"}, target=target)

    assert rendered == "Hi Demo"
    assert target.read_text(encoding="utf-8") == "Hi Demo"


def test_render_file_missing_template(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        TemplateRenderer(tmp_path).render_file("missing.tmpl", {})


def test_bundled_templates_exist():
    template_dir = default_template_dir()

    for name in ["pyproject.toml.tmpl", "package_init.py.tmpl", "test_package.py.tmpl"]:
        assert (template_dir / name).is_file()
    for layout in ["src", "flat"]:
        assert (template_dir / layout / "ruff.toml.tmpl").is_file()
