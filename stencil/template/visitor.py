"""
Обход AST шаблона.

Посетитель вызывает visit_<ИмяКласса> для узла, если такой метод есть,
иначе generic_visit, который обходит дочерние узлы во всех полях
dataclass-узла (включая кортежи и пары). Так анализ обходит и узлы
расширений, о которых ядро ничего не знает.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Iterable, Iterator

from .nodes import Node


def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Перечисляет прямые дочерние узлы в порядке полей."""
    if not dataclasses.is_dataclass(node):
        return
    for field in dataclasses.fields(node):
        yield from _nodes_in(getattr(node, field.name))


def _nodes_in(value: Any) -> Iterator[Node]:
    if isinstance(value, Node):
        yield value
    elif isinstance(value, (tuple, list)):
        for item in value:
            yield from _nodes_in(item)
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        # Вспомогательные записи (параметры макроса) не являются узлами
        for field in dataclasses.fields(value):
            yield from _nodes_in(getattr(value, field.name))


class NodeVisitor:
    """
    Базовый посетитель узлов.

    Подклассы определяют visit_IfNode, visit_Name и т. п.; для остальных
    узлов вызывается generic_visit, посещающий детей.
    """

    def visit(self, node: Node) -> Any:
        """Visit a node."""
        method = "visit_" + node.__class__.__name__
        visitor = getattr(self, method, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: Node) -> None:
        """Called if no explicit visitor function exists for a node."""
        for child in iter_child_nodes(node):
            self.visit(child)

    def visit_all(self, nodes: Iterable[Node]) -> None:
        for node in nodes:
            self.visit(node)


__all__ = ["NodeVisitor", "iter_child_nodes"]
