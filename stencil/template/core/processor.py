"""
Процессор встроенных тегов.

Исполняет узлы if / for / set / block / import / from-import / include
в контексте рендеринга. Узлы extends и macro ничего не выводят: их
обрабатывают наследование и привязка макросов.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterator, Optional, TextIO, Tuple

from .macros import MacroNamespace
from .nodes import BlockNode, ForNode, FromImportNode, IfNode, ImportNode, IncludeNode, SetNode
from ..context import EvaluationContext
from ..handlers import TemplateHandlers
from ..values import ValueKind, describe, is_truthy, iterate, kind_of, sized_length
from ...errors import RecursionLimitError, RenderError, TemplateTypeError

logger = logging.getLogger(__name__)

_SENTINEL = object()


class CoreNodeProcessor:
    """
    Исполнитель встроенных узлов.

    Все изменяемое состояние рендеринга хранится в EvaluationContext.
    """

    def __init__(self, handlers: TemplateHandlers):
        """
        Args:
            handlers: Обработчики ядра (вычисление, рендеринг тел, загрузка шаблонов)
        """
        self.handlers = handlers

    def process_if(self, node: IfNode, context: EvaluationContext, sink: TextIO) -> None:
        """Рендерит тело первой ветки с истинным условием или else."""
        for condition, body in node.branches:
            if is_truthy(self.handlers.evaluate(condition, context)):
                self.handlers.render_nodes(body, context, sink)
                return
        if node.else_body:
            self.handlers.render_nodes(node.else_body, context, sink)

    def process_for(self, node: ForNode, context: EvaluationContext, sink: TextIO) -> None:
        """
        Рендерит тело цикла для каждого элемента.

        Каждая итерация получает собственную область видимости с переменными
        цикла и loop; присваивания внутри тела после цикла не видны.

        Raises:
            RenderError: Значение не итерируемо
            RecursionLimitError: Превышен max_loop_iterations
        """
        iterable = self.handlers.evaluate(node.iterable, context)
        kind = kind_of(iterable)

        if kind == ValueKind.UNDEFINED:
            if context.strict:
                raise RenderError(f"Cannot iterate over {describe(iterable)}", line=node.line)
            iterable = ()
        elif kind in (ValueKind.NULL, ValueKind.STRING, ValueKind.NUMBER, ValueKind.BOOL):
            raise RenderError(f"Cannot iterate over {describe(iterable)}", line=node.line)

        pairs = len(node.targets) == 2
        try:
            items = iterate(iterable, pairs=pairs and kind == ValueKind.MAPPING)
        except TemplateTypeError as e:
            raise RenderError(e.message, line=node.line) from e

        length = sized_length(iterable)
        limit = context.config.max_loop_iterations
        iterated = False

        for index, (item, is_last) in enumerate(_with_last(items)):
            if limit is not None and index >= limit:
                raise RecursionLimitError(f"Loop exceeded max_loop_iterations ({limit})", line=node.line)
            iterated = True

            variables = self._bind_targets(node, item)
            variables["loop"] = self._loop_metadata(index, is_last, length)
            with context.scope(variables):
                self.handlers.render_nodes(node.body, context, sink)

        if not iterated and node.else_body:
            self.handlers.render_nodes(node.else_body, context, sink)

    @staticmethod
    def _bind_targets(node: ForNode, item: Any) -> Dict[str, Any]:
        if len(node.targets) == 1:
            return {node.targets[0]: item}
        try:
            key, value = item
        except (TypeError, ValueError):
            raise RenderError(
                f"Cannot unpack {describe(item)} into '{node.targets[0]}, {node.targets[1]}'",
                line=node.line,
            )
        return {node.targets[0]: key, node.targets[1]: value}

    @staticmethod
    def _loop_metadata(index: int, is_last: bool, length: Optional[int]) -> Dict[str, Any]:
        loop: Dict[str, Any] = {
            "index": index,
            "index1": index + 1,
            "first": index == 0,
            "last": is_last,
        }
        if length is not None:
            loop["length"] = length
            loop["revindex"] = length - index - 1
        return loop

    def process_set(self, node: SetNode, context: EvaluationContext, sink: TextIO) -> None:
        context.set(node.name, self.handlers.evaluate(node.value, context))

    def process_block(self, node: BlockNode, context: EvaluationContext, sink: TextIO) -> None:
        self.handlers.render_block(node, context, sink)

    def process_import(self, node: ImportNode, context: EvaluationContext, sink: TextIO) -> None:
        """
        {% import "x" as ns %} кладет пространство имен в переменную ns;
        без as все макросы шаблона становятся видимыми напрямую.
        """
        template = self._resolve(node.template, node.line, context)
        macros = self.handlers.template_macros(template, context)
        if node.alias is not None:
            context.set(node.alias, MacroNamespace(template.name, macros))
        else:
            context.add_macros(macros)
        logger.debug(f"Imported {len(macros)} macros from '{template.name}'")

    def process_from_import(self, node: FromImportNode, context: EvaluationContext, sink: TextIO) -> None:
        """
        Raises:
            RenderError: В шаблоне нет запрошенного макроса
        """
        template = self._resolve(node.template, node.line, context)
        macros = self.handlers.template_macros(template, context)

        selected: Dict[str, Any] = {}
        for name, alias in node.names:
            if name not in macros:
                raise RenderError(f"Macro '{name}' not found in template '{template.name}'", line=node.line)
            selected[alias or name] = macros[name]
        context.add_macros(selected)

    def process_include(self, node: IncludeNode, context: EvaluationContext, sink: TextIO) -> None:
        """
        Рендерит подключаемый шаблон с копией текущих переменных
        (или только с переданными через with при only).
        """
        template = self._resolve(node.template, node.line, context)

        variables: Dict[str, Any] = {} if node.only else context.snapshot()
        if node.variables is not None:
            extra = self.handlers.evaluate(node.variables, context)
            if not isinstance(extra, Mapping):
                raise TemplateTypeError(f"'include ... with' expects a mapping, got {describe(extra)}", line=node.line)
            variables.update(extra)

        self.handlers.render_include(template, variables, context, sink)

    def process_nothing(self, node: Any, context: EvaluationContext, sink: TextIO) -> None:
        """Для узлов, которые ничего не выводят (extends, macro)."""
        pass

    def _resolve(self, expression, line: int, context: EvaluationContext):
        reference = self.handlers.evaluate(expression, context)
        return self.handlers.resolve_template(reference, context, line)


def _with_last(items: Iterator[Any]) -> Iterator[Tuple[Any, bool]]:
    """Помечает последний элемент, заглядывая на один элемент вперед."""
    previous = _SENTINEL
    for item in items:
        if previous is not _SENTINEL:
            yield previous, False
        previous = item
    if previous is not _SENTINEL:
        yield previous, True


__all__ = ["CoreNodeProcessor"]
