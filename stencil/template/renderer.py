"""
Рендерер шаблонов.

Обходит AST и пишет результат в поток вывода. Текст и {{ выражения }}
обрабатываются ядром, остальные узлы - обработчиками из реестра.
Реализует TemplateHandlers: через него расширения вызывают функции ядра.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, TYPE_CHECKING

from . import inheritance
from .context import EvaluationContext
from .evaluator import ExpressionEvaluator
from .nodes import BlockDefinition, Expression, MacroDefinition, PrintNode, RenderableNode, TextNode
from .registry import ExtensionRegistry
from .template import Template
from .values import describe, to_string
from ..errors import RenderError, TemplateError, TemplateNotFound, TemplateTypeError

if TYPE_CHECKING:
    from ..engine import Engine

logger = logging.getLogger(__name__)


class Renderer:
    """
    Рендерер шаблонов.

    Не хранит состояния рендеринга: все изменяемое живет в EvaluationContext,
    поэтому один рендерер обслуживает одновременные рендеринги.
    """

    def __init__(self, engine: "Engine", registry: ExtensionRegistry):
        """
        Args:
            engine: Движок для загрузки шаблонов и доступа к конфигурации
            registry: Реестр расширений
        """
        self.engine = engine
        self.registry = registry
        self.evaluator = ExpressionEvaluator(registry, self)

    def render_template(self, template: Template, variables: Mapping[str, Any], sink: TextIO) -> None:
        """
        Рендерит шаблон с новым контекстом.

        Raises:
            RenderError: При ошибке рендеринга
        """
        context = EvaluationContext(
            template,
            variables,
            self.engine.config,
            globals=self.engine.config.globals,
        )
        self._render_with_inheritance(template, context, sink)

    def _render_with_inheritance(self, template: Template, context: EvaluationContext, sink: TextIO) -> None:
        # Цепочка разрешается до вывода: циклическое наследование не дает частичного результата
        chain = inheritance.resolve_chain(template, context, self)
        context.block_chains = inheritance.build_block_chains(chain)

        macros: Dict[str, Any] = {}
        for ancestor in reversed(chain):
            macros.update(self.template_macros(ancestor, context))

        with context.macro_frame(macros):
            # Дочерние шаблоны исполняют только декларативные узлы верхнего уровня
            for ancestor in reversed(chain[:-1]):
                declarative = [node for node in ancestor.body if node.declarative]
                with context.use_template(ancestor):
                    self.render_nodes(declarative, context, sink)

            root = chain[-1]
            with context.use_template(root):
                self.render_nodes(root.body, context, sink)

    # TemplateHandlers

    def render_nodes(self, nodes: Sequence[RenderableNode], context: EvaluationContext, sink: TextIO) -> None:
        for node in nodes:
            try:
                self._render_node(node, context, sink)
            except TemplateError as e:
                if not e.line:
                    e.line = node.line
                    e.args = (e._format(),)
                raise e.with_template(context.template_name)

    def _render_node(self, node: RenderableNode, context: EvaluationContext, sink: TextIO) -> None:
        if isinstance(node, TextNode):
            sink.write(node.text)
            return

        if isinstance(node, PrintNode):
            value = self.evaluate(node.expression, context)
            sink.write(to_string(value, strict=context.strict))
            return

        rule = self.registry.get_processor(type(node))
        if rule is None:
            raise RenderError(f"No processor registered for node '{type(node).__name__}'")
        rule.processor_func(node, context, sink)

    def evaluate(self, expression: Expression, context: EvaluationContext) -> Any:
        return self.evaluator.evaluate(expression, context)

    def resolve_template(self, reference: Any, context: EvaluationContext, line: int = 0) -> Template:
        if isinstance(reference, Template):
            return reference
        if not isinstance(reference, str):
            raise TemplateTypeError(
                f"Template name must be a string, got {describe(reference)}",
                context.template_name,
                line,
            )
        try:
            return self.engine.get_template(reference)
        except TemplateNotFound as e:
            if not e.line:
                e.line = line
                e.args = (e._format(),)
            raise e.with_template(context.template_name)

    def render_block(self, block: BlockDefinition, context: EvaluationContext, sink: TextIO) -> None:
        inheritance.render_block(self, block, context, sink)

    def render_parent(self, context: EvaluationContext, line: int = 0) -> str:
        return inheritance.render_parent(self, context, line)

    def render_include(
        self,
        template: Template,
        variables: Mapping[str, Any],
        context: EvaluationContext,
        sink: TextIO,
    ) -> None:
        with context.nested(f"include of '{template.name}'"):
            child = EvaluationContext(
                template,
                variables,
                context.config,
                globals=context.globals,
                depth=context.depth,
            )
            self._render_with_inheritance(template, child, sink)

    def template_macros(self, template: Template, context: EvaluationContext) -> Dict[str, Any]:
        macros: Dict[str, Any] = {}
        for name, node in template.macros.items():
            if not isinstance(node, MacroDefinition):
                raise RenderError(f"'{name}' in template '{template.name}' is not a macro definition")
            macros[name] = node.bind(template, context, self)
        return macros

    def call_value(
        self,
        function: Any,
        args: Sequence[Any],
        kwargs: Optional[Mapping[str, Any]],
        context: EvaluationContext,
        line: int = 0,
    ) -> Any:
        try:
            return function(*args, **(kwargs or {}))
        except TemplateError:
            raise
        except Exception as e:
            name = getattr(function, "__name__", type(function).__name__)
            raise RenderError(f"Error calling '{name}': {e}", context.template_name, line) from e


__all__ = ["Renderer"]
