"""
Static template analysis.

Answers questions about a compiled template without rendering it:
which other templates it statically references and which variables
it expects from the render context.
"""

from __future__ import annotations

from typing import List, Set

from ..core.nodes import (
    ExtendsNode,
    ForNode,
    FromImportNode,
    ImportNode,
    IncludeNode,
    MacroNode,
    SetNode,
)
from ..nodes import Expression, Literal, Name
from ..template import Template
from ..visitor import NodeVisitor

# Names the evaluator resolves itself
_BUILTIN_NAMES = {"parent", "loop"}


class _ReferenceCollector(NodeVisitor):
    """Collects string literal targets of extends/include/import tags."""

    def __init__(self):
        self.references: List[str] = []

    def _add(self, expression: Expression) -> None:
        if isinstance(expression, Literal) and isinstance(expression.value, str):
            if expression.value not in self.references:
                self.references.append(expression.value)

    def visit_ExtendsNode(self, node: ExtendsNode) -> None:
        self._add(node.expression)
        self.generic_visit(node)

    def visit_IncludeNode(self, node: IncludeNode) -> None:
        self._add(node.template)
        self.generic_visit(node)

    def visit_ImportNode(self, node: ImportNode) -> None:
        self._add(node.template)
        self.generic_visit(node)

    def visit_FromImportNode(self, node: FromImportNode) -> None:
        self._add(node.template)
        self.generic_visit(node)


class _NameCollector(NodeVisitor):
    """Collects names that are read and names that the template binds itself."""

    def __init__(self):
        self.read: List[str] = []
        self.bound: Set[str] = set()

    def visit_Name(self, node: Name) -> None:
        if node.name not in self.read:
            self.read.append(node.name)

    def visit_SetNode(self, node: SetNode) -> None:
        self.bound.add(node.name)
        self.generic_visit(node)

    def visit_ForNode(self, node: ForNode) -> None:
        self.bound.update(node.targets)
        self.generic_visit(node)

    def visit_MacroNode(self, node: MacroNode) -> None:
        self.bound.add(node.name)
        self.bound.update(p.name for p in node.parameters)
        self.generic_visit(node)

    def visit_ImportNode(self, node: ImportNode) -> None:
        if node.alias is not None:
            self.bound.add(node.alias)
        self.generic_visit(node)

    def visit_FromImportNode(self, node: FromImportNode) -> None:
        self.bound.update(alias or name for name, alias in node.names)
        self.generic_visit(node)


def find_referenced_templates(template: Template) -> List[str]:
    """
    Returns names of templates referenced via extends/include/import.

    Only string literals are reported; targets computed at render
    time cannot be known statically and are skipped.
    """
    collector = _ReferenceCollector()
    collector.visit_all(template.body)
    return collector.references


def find_undeclared_names(template: Template) -> List[str]:
    """
    Returns names the template reads but never binds.

    Bindings are set targets, loop variables, macro names and parameters
    and import aliases anywhere in the template. Names in the result are
    expected from the render context, the engine globals, or imported macros.
    """
    collector = _NameCollector()
    collector.visit_all(template.body)
    ignored = collector.bound | _BUILTIN_NAMES
    return [name for name in collector.read if name not in ignored]


__all__ = ["find_referenced_templates", "find_undeclared_names"]
