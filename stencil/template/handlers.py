"""
Внутренние обработчики ядра для расширений.

Предоставляет типизированный интерфейс для взаимодействия расширений
с ядром шаблонизатора, избегая зависимости от конкретного рендерера.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol, Sequence, TextIO, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from .context import EvaluationContext
    from .nodes import BlockDefinition, Expression, RenderableNode
    from .template import Template


@runtime_checkable
class TemplateHandlers(Protocol):
    """
    Протокол для внутренних обработчиков шаблонизатора.

    Реализуется рендерером; передается расширениям при инициализации реестра.
    """

    def render_nodes(self, nodes: Sequence["RenderableNode"], context: "EvaluationContext", sink: TextIO) -> None:
        """
        Рендерит последовательность узлов в sink.

        Args:
            nodes: Узлы тела
            context: Контекст текущего рендеринга
            sink: Поток вывода с методом write
        """
        ...

    def evaluate(self, expression: "Expression", context: "EvaluationContext") -> Any:
        """Вычисляет выражение в контексте."""
        ...

    def resolve_template(self, reference: Any, context: "EvaluationContext", line: int = 0) -> "Template":
        """
        Разрешает ссылку на шаблон (имя или готовый Template).

        Raises:
            TemplateNotFound: Загрузчик не знает такого шаблона
        """
        ...

    def render_block(self, block: "BlockDefinition", context: "EvaluationContext", sink: TextIO) -> None:
        """Рендерит наиболее производное определение блока."""
        ...

    def render_parent(self, context: "EvaluationContext", line: int = 0) -> str:
        """Рендерит следующее (менее производное) определение текущего блока."""
        ...

    def render_include(
        self,
        template: "Template",
        variables: Mapping[str, Any],
        context: "EvaluationContext",
        sink: TextIO,
    ) -> None:
        """Рендерит шаблон во вложенном контексте с указанными переменными."""
        ...

    def template_macros(self, template: "Template", context: "EvaluationContext") -> Dict[str, Any]:
        """Возвращает вызываемые макросы шаблона, привязанные к текущему рендерингу."""
        ...

    def call_value(
        self,
        function: Any,
        args: Sequence[Any],
        kwargs: Optional[Mapping[str, Any]],
        context: "EvaluationContext",
        line: int = 0,
    ) -> Any:
        """Вызывает значение, оборачивая посторонние исключения в RenderError."""
        ...


__all__ = ["TemplateHandlers"]
