"""
Тесты парсера инструкций и правил встроенных тегов.
"""

import pytest

from stencil.errors import ParseError
from stencil.template.core.nodes import (
    BlockNode,
    ExtendsNode,
    ForNode,
    FromImportNode,
    IfNode,
    ImportNode,
    IncludeNode,
    MacroNode,
    SetNode,
)
from stencil.template.nodes import PrintNode, TextNode


class TestTemplateParser:
    """Структура AST для встроенных тегов."""

    def test_text_and_print(self, engine):
        template = engine.from_string("Hello {{ name }}!")
        assert [type(n) for n in template.body] == [TextNode, PrintNode, TextNode]

    def test_if_elseif_else(self, engine):
        template = engine.from_string("{% if a %}1{% elseif b %}2{% elif c %}3{% else %}4{% endif %}")
        (node,) = template.body
        assert isinstance(node, IfNode)
        assert len(node.branches) == 3
        assert node.else_body[0].text == "4"

    def test_for_with_two_targets_and_else(self, engine):
        template = engine.from_string("{% for k, v in m %}{{ k }}{% else %}empty{% endfor %}")
        (node,) = template.body
        assert isinstance(node, ForNode)
        assert node.targets == ("k", "v")
        assert node.else_body[0].text == "empty"

    def test_set(self, engine):
        (node,) = engine.from_string("{% set x = 1 + 2 %}").body
        assert isinstance(node, SetNode) and node.name == "x"
        assert SetNode.declarative

    def test_block_with_repeated_name(self, engine):
        template = engine.from_string("{% block head %}x{% endblock head %}")
        assert isinstance(template.blocks["head"], BlockNode)

    def test_nested_blocks_are_collected(self, engine):
        template = engine.from_string("{% block outer %}{% block inner %}{% endblock %}{% endblock %}")
        assert set(template.blocks) == {"outer", "inner"}

    def test_extends(self, engine):
        template = engine.from_string('{% extends "base" %}{% block a %}{% endblock %}')
        assert isinstance(template.body[0], ExtendsNode)
        assert template.extends.value == "base"

    def test_macro(self, engine):
        template = engine.from_string("{% macro greet(name, greeting='hi') %}{{ greeting }}{% endmacro greet %}")
        node = template.macros["greet"]
        assert isinstance(node, MacroNode)
        assert [p.name for p in node.parameters] == ["name", "greeting"]
        assert node.parameters[0].default is None
        assert node.parameters[1].default.value == "hi"

    def test_imports_and_include(self, engine):
        template = engine.from_string(
            '{% import "a" %}{% import "b" as ns %}'
            '{% from "c" import x, y as z %}'
            '{% include "d" with {"k": 1} only %}'
        )
        first, second, third, fourth = template.body
        assert isinstance(first, ImportNode) and first.alias is None
        assert isinstance(second, ImportNode) and second.alias == "ns"
        assert isinstance(third, FromImportNode) and third.names == (("x", None), ("y", "z"))
        assert isinstance(fourth, IncludeNode) and fourth.only and fourth.variables is not None


class TestParseErrors:
    """Синтаксические ошибки инструкций."""

    def test_unknown_tag(self, engine):
        with pytest.raises(ParseError, match="Unknown tag 'frobnicate'"):
            engine.from_string("{% frobnicate %}")

    def test_stray_end_tag(self, engine):
        with pytest.raises(ParseError, match="Unexpected 'endif' outside of 'if'"):
            engine.from_string("text{% endif %}")

    def test_missing_end_tag(self, engine):
        with pytest.raises(ParseError, match="Unexpected end of template, expected .*'endfor'"):
            engine.from_string("{% for x in xs %}body")

    def test_error_reports_template_and_line(self, engine):
        with pytest.raises(ParseError) as exc:
            engine.from_string("line1\nline2 {% if %}", "page.html")
        assert exc.value.template_name == "page.html"
        assert exc.value.line == 2
        assert "(template 'page.html', line 2)" in str(exc.value)

    def test_extends_must_come_first(self, engine):
        with pytest.raises(ParseError, match="'extends' must be the first statement"):
            engine.from_string('hello {% extends "base" %}')

    def test_extends_after_whitespace_is_allowed(self, engine):
        template = engine.from_string('\n  {% extends "base" %}')
        assert template.extends is not None

    def test_duplicate_block(self, engine):
        with pytest.raises(ParseError, match="Block 'a' is defined more than once"):
            engine.from_string("{% block a %}{% endblock %}{% block a %}{% endblock %}")

    def test_mismatched_endblock_name(self, engine):
        with pytest.raises(ParseError, match="closed with 'endblock b'"):
            engine.from_string("{% block a %}{% endblock b %}")

    def test_duplicate_macro_parameter(self, engine):
        with pytest.raises(ParseError, match="Duplicate parameter 'a'"):
            engine.from_string("{% macro m(a, a) %}{% endmacro %}")

    def test_for_requires_in(self, engine):
        with pytest.raises(ParseError, match="Expected 'in'"):
            engine.from_string("{% for x of xs %}{% endfor %}")

    def test_missing_tag_end(self, engine):
        with pytest.raises(ParseError, match="Expected execute_end"):
            engine.from_string("{% set x = 1 2 %}")
