"""
Тесты макросов, импорта и подключения шаблонов.
"""

import pytest

from stencil.errors import ArityError, RecursionLimitError, RenderError, TemplateNotFound, TemplateTypeError
from stencil.template.core import MacroNamespace

from tests.infrastructure import make_engine, render, render_named


HELLO = "{% macro hi(name, greeting='Hello') %}{{ greeting }}, {{ name }}!{% endmacro %}"

FORMS = (
    "{% macro input(name) %}<{{ name }}>{% endmacro %}"
    "{% macro row(name) %}[{{ input(name) }}]{% endmacro %}"
)


class TestMacroCalls:
    """Вызов макросов и связывание аргументов."""

    def test_positional_and_default(self):
        assert render(HELLO + "{{ hi('Ann') }}") == "Hello, Ann!"

    def test_keyword_argument(self):
        assert render(HELLO + "{{ hi(greeting='Hey', name='Bob') }}") == "Hey, Bob!"

    def test_definition_renders_nothing(self):
        assert render("a" + HELLO + "b") == "ab"

    def test_macro_output_is_a_string_value(self):
        assert render(HELLO + "{{ hi('x')|upper }}") == "HELLO, X!"

    def test_default_sees_earlier_parameters(self):
        assert render("{% macro m(a, b=a ~ '!') %}{{ b }}{% endmacro %}{{ m('x') }}") == "x!"

    def test_recursive_macro(self):
        source = "{% macro count(n) %}{{ n }}{% if n > 0 %}{{ count(n - 1) }}{% endif %}{% endmacro %}{{ count(3) }}"
        assert render(source) == "3210"

    def test_unbounded_recursion_hits_limit(self):
        source = "{% macro forever() %}{{ forever() }}{% endmacro %}{{ forever() }}"
        with pytest.raises(RecursionLimitError, match="Maximum recursion depth 5"):
            render(source, max_recursion_depth=5)


class TestMacroArity:
    """Несоответствие аргументов списку параметров."""

    def test_too_many_arguments(self):
        with pytest.raises(ArityError, match="takes at most 2 arguments, got 3"):
            render(HELLO + "{{ hi(1, 2, 3) }}")

    def test_missing_required_argument(self):
        with pytest.raises(ArityError, match="missing required argument 'name'"):
            render(HELLO + "{{ hi() }}")

    def test_unexpected_keyword(self):
        with pytest.raises(ArityError, match="unexpected argument 'mood'"):
            render(HELLO + "{{ hi('a', mood=1) }}")

    def test_duplicate_argument(self):
        with pytest.raises(ArityError, match="multiple values for argument 'name'"):
            render(HELLO + "{{ hi('a', name='b') }}")

    def test_arity_error_is_render_error(self):
        assert issubclass(ArityError, RenderError)


class TestMacroIsolation:
    """Макрос не видит локальных переменных вызывающего."""

    def test_loop_variable_is_not_visible(self):
        source = "{% macro show() %}[{{ secret }}]{% endmacro %}{% for secret in ['x'] %}{{ show() }}{% endfor %}"
        assert render(source) == "[]"

    def test_top_level_set_is_not_visible(self):
        source = "{% macro show() %}[{{ secret }}]{% endmacro %}{% set secret = 1 %}{{ show() }}"
        assert render(source) == "[]"

    def test_render_variables_and_globals_are_visible(self):
        source = "{% macro show() %}{{ user }}/{{ site }}{% endmacro %}{{ show() }}"
        assert render(source, {"user": "u"}, globals={"site": "s"}) == "u/s"

    def test_set_inside_macro_does_not_leak(self):
        source = "{% macro m() %}{% set x = 2 %}{{ x }}{% endmacro %}{% set x = 1 %}{{ m() }}{{ x }}"
        assert render(source) == "21"

    def test_parameter_shadows_render_variable(self):
        assert render(HELLO + "{{ hi('param') }}", {"name": "outer"}) == "Hello, param!"


class TestImport:
    """import / from ... import."""

    def test_import_as_namespace(self):
        templates = {"forms": FORMS, "page": '{% import "forms" as f %}{{ f.input("x") }}'}
        assert render_named(templates, "page") == "<x>"

    def test_namespace_is_a_mapping_of_macros(self):
        engine = make_engine({"forms": FORMS})
        captured = {}
        template = engine.from_string('{% import "forms" as f %}{{ keep(f) }}')
        assert template.render({"keep": lambda ns: captured.update(ns=ns)}) == ""
        namespace = captured["ns"]
        assert isinstance(namespace, MacroNamespace)
        assert sorted(namespace) == ["input", "row"]

    def test_import_without_alias(self):
        templates = {"forms": FORMS, "page": '{% import "forms" %}{{ input("y") }}'}
        assert render_named(templates, "page") == "<y>"

    def test_from_import_with_alias(self):
        templates = {"forms": FORMS, "page": '{% from "forms" import input as field, row %}{{ field("z") }}{{ row("r") }}'}
        assert render_named(templates, "page") == "<z>[<r>]"

    def test_imported_macro_uses_sibling_macros(self):
        templates = {"forms": FORMS, "page": '{% from "forms" import row %}{{ row("x") }}'}
        assert render_named(templates, "page") == "[<x>]"

    def test_from_import_missing_macro(self):
        templates = {"forms": FORMS, "page": '{% from "forms" import nope %}'}
        with pytest.raises(RenderError, match="Macro 'nope' not found in template 'forms'"):
            render_named(templates, "page")

    def test_import_missing_template(self):
        with pytest.raises(TemplateNotFound):
            render_named({"page": '{% import "nowhere" as n %}'}, "page")

    def test_import_in_child_template_is_visible_in_blocks(self):
        templates = {
            "forms": FORMS,
            "base": "{% block body %}{% endblock %}",
            "page": '{% extends "base" %}{% import "forms" as f %}{% block body %}{{ f.row("b") }}{% endblock %}',
        }
        assert render_named(templates, "page") == "[<b>]"


class TestInclude:
    """Подключение шаблонов."""

    PART = {"part": "{{ who }}|{{ local }}"}

    def test_include_shares_variables(self):
        templates = dict(self.PART, main="{% set local = 'L' %}{% include 'part' %}")
        assert render_named(templates, "main", {"who": "W"}) == "W|L"

    def test_include_with(self):
        templates = dict(self.PART, main="{% include 'part' with {'local': 'X'} %}")
        assert render_named(templates, "main", {"who": "W"}) == "W|X"

    def test_include_only(self):
        templates = dict(self.PART, main="{% include 'part' with {'local': 'X'} only %}")
        assert render_named(templates, "main", {"who": "W"}) == "|X"

    def test_include_sees_loop_variables(self):
        templates = {"part": "{{ who }}", "main": "{% for who in ['a', 'b'] %}{% include 'part' %}{% endfor %}"}
        assert render_named(templates, "main") == "ab"

    def test_include_changes_do_not_leak(self):
        templates = {"part": "{% set who = 'changed' %}", "main": "{% include 'part' %}{{ who }}"}
        assert render_named(templates, "main", {"who": "W"}) == "W"

    def test_include_with_requires_mapping(self):
        templates = dict(self.PART, main="{% include 'part' with [1] %}")
        with pytest.raises(TemplateTypeError, match="expects a mapping"):
            render_named(templates, "main")

    def test_include_missing_template(self):
        with pytest.raises(TemplateNotFound, match="Template 'nope' not found") as exc:
            render_named({"main": "\n{% include 'nope' %}"}, "main")
        assert exc.value.line == 2

    def test_self_include_hits_recursion_limit(self):
        with pytest.raises(RecursionLimitError):
            render_named({"self": "x{% include 'self' %}"}, "self", max_recursion_depth=3)
