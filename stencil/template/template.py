"""
Скомпилированный шаблон.

Неизменяемый результат лексера и парсера: тело верхнего уровня, выражение
extends, а также определения блоков и макросов по именам. Шаблон не хранит
состояния рендеринга и может рендериться одновременно из разных потоков.
"""

from __future__ import annotations

import io
from types import MappingProxyType
from typing import Any, Mapping, Optional, TextIO, Tuple, TYPE_CHECKING

from .nodes import Expression, RenderableNode

if TYPE_CHECKING:
    from ..engine import Engine


class Template:
    """
    Скомпилированный шаблон.

    Attributes:
        name: Имя (идентичность) шаблона
        body: Узлы верхнего уровня
        extends: Выражение родительского шаблона или None
        blocks: Имя блока -> узел блока (включая вложенные блоки)
        macros: Имя макроса -> узел определения макроса
    """

    def __init__(
        self,
        engine: "Engine",
        name: str,
        body: Tuple[RenderableNode, ...],
        extends: Optional[Expression] = None,
        blocks: Optional[Mapping[str, RenderableNode]] = None,
        macros: Optional[Mapping[str, RenderableNode]] = None,
    ):
        self._engine = engine
        self.name = name
        self.body = tuple(body)
        self.extends = extends
        self.blocks: Mapping[str, RenderableNode] = MappingProxyType(dict(blocks or {}))
        self.macros: Mapping[str, RenderableNode] = MappingProxyType(dict(macros or {}))

    @property
    def engine(self) -> "Engine":
        return self._engine

    def render(self, context: Optional[Mapping[str, Any]] = None) -> str:
        """Рендерит шаблон и возвращает результат строкой."""
        buffer = io.StringIO()
        self.render_to(buffer, context)
        return buffer.getvalue()

    def render_to(self, sink: TextIO, context: Optional[Mapping[str, Any]] = None) -> None:
        """
        Рендерит шаблон в поток вывода.

        Записанное до ошибки остается в sink.
        """
        self._engine.renderer.render_template(self, context or {}, sink)

    def __repr__(self) -> str:
        return f"<Template {self.name!r}>"


__all__ = ["Template"]
