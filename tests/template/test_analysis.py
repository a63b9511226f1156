"""
Тесты статического анализа шаблонов и обхода AST.
"""

from stencil.template.analysis import find_referenced_templates, find_undeclared_names
from stencil.template.nodes import Name, PrintNode
from stencil.template.visitor import NodeVisitor, iter_child_nodes


class TestReferencedTemplates:

    def test_literal_targets_in_order(self, engine):
        template = engine.from_string(
            "{% extends 'base' %}{% import 'forms' as f %}"
            "{% block b %}{% include 'part' %}{% include name %}"
            "{% from 'x' import y %}{% include 'part' %}{% endblock %}"
        )
        assert find_referenced_templates(template) == ["base", "forms", "part", "x"]

    def test_no_references(self, engine):
        assert find_referenced_templates(engine.from_string("{{ a }}")) == []

    def test_references_inside_macros_and_loops(self, engine):
        template = engine.from_string(
            "{% macro m() %}{% include 'in_macro' %}{% endmacro %}"
            "{% for x in xs %}{% if x %}{% include 'in_loop' %}{% endif %}{% endfor %}"
        )
        assert find_referenced_templates(template) == ["in_macro", "in_loop"]


class TestUndeclaredNames:

    def test_bound_names_are_excluded(self, engine):
        template = engine.from_string(
            "{% set a = 1 %}{{ a }}{{ b }}"
            "{% for i in items %}{{ i }}{{ loop.index }}{% endfor %}"
            "{% macro m(p) %}{{ p }}{{ q }}{% endmacro %}{{ m(1) }}"
        )
        assert find_undeclared_names(template) == ["b", "items", "q"]

    def test_import_aliases_are_bound(self, engine):
        template = engine.from_string(
            "{% import 'forms' as f %}{% from 'x' import y, z as w %}{{ f.a() }}{{ y() }}{{ w() }}{{ z }}"
        )
        assert find_undeclared_names(template) == ["z"]

    def test_names_in_macro_defaults_filters_and_maps(self, engine):
        template = engine.from_string(
            "{% macro m(a=dflt) %}{% endmacro %}"
            "{{ v|default(fallback) }}{{ {key: val} }}{% include 'p' with {'k': extra} %}"
        )
        assert find_undeclared_names(template) == ["dflt", "v", "fallback", "val", "extra"]

    def test_parent_is_builtin(self, engine):
        template = engine.from_string("{% block x %}{{ parent() }}{% endblock %}")
        assert find_undeclared_names(template) == []


class TestNodeVisitor:

    def test_visit_dispatches_by_class_name(self, engine):
        class PrintCounter(NodeVisitor):
            def __init__(self):
                self.prints = 0

            def visit_PrintNode(self, node):
                self.prints += 1
                self.generic_visit(node)

        counter = PrintCounter()
        counter.visit_all(engine.from_string("{{ a }}{% if b %}{{ c }}{% else %}{{ d }}{% endif %}").body)
        assert counter.prints == 3

    def test_iter_child_nodes(self, engine):
        (node,) = engine.from_string("{{ a }}").body
        assert isinstance(node, PrintNode)
        assert list(iter_child_nodes(node)) == [Name(name="a", line=1)]
