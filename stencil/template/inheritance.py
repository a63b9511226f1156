"""
Наследование шаблонов.

Разрешает цепочку extends от листового шаблона к корневому, строит для
каждого имени блока упорядоченный список определений (от наиболее
производного) и рендерит блоки с поддержкой parent() через явный курсор
по этому списку.
"""

from __future__ import annotations

import io
import logging
from typing import Dict, List, TextIO, TYPE_CHECKING

from .context import BlockEntry, EvaluationContext
from .nodes import BlockDefinition
from .values import describe, kind_of, ValueKind
from ..errors import CyclicInheritanceError, RenderError, TemplateTypeError

if TYPE_CHECKING:
    from .handlers import TemplateHandlers
    from .template import Template

logger = logging.getLogger(__name__)


def resolve_chain(template: "Template", context: EvaluationContext, handlers: "TemplateHandlers") -> List["Template"]:
    """
    Разрешает цепочку наследования.

    Args:
        template: Листовой (наиболее производный) шаблон
        context: Контекст, в котором вычисляются выражения extends
        handlers: Обработчики ядра для вычисления и загрузки шаблонов

    Returns:
        Шаблоны от листового к корневому

    Raises:
        CyclicInheritanceError: Шаблон прямо или косвенно наследует сам себя
        TemplateNotFound: Родительский шаблон не найден
    """
    chain = [template]
    names = [template.name]
    current = template

    while current.extends is not None:
        with context.use_template(current):
            reference = handlers.evaluate(current.extends, context)
            if kind_of(reference) in (ValueKind.NULL, ValueKind.UNDEFINED):
                raise TemplateTypeError(
                    f"'extends' expression evaluated to {describe(reference)}",
                    current.name,
                    current.extends.line,
                )
            parent = handlers.resolve_template(reference, context, current.extends.line)

        # Шаблоны сравниваются по идентичности: у строковых шаблонов имена могут совпадать
        if any(parent is visited for visited in chain):
            cycle = " -> ".join(names + [parent.name])
            raise CyclicInheritanceError(f"Cyclic inheritance: {cycle}", current.name, current.extends.line)

        chain.append(parent)
        names.append(parent.name)
        current = parent

    if len(chain) > 1:
        logger.debug(f"Resolved inheritance chain: {' -> '.join(names)}")
    return chain


def build_block_chains(chain: List["Template"]) -> Dict[str, List[BlockEntry]]:
    """
    Строит для каждого имени блока список определений.

    Первым идет определение из наиболее производного шаблона, последним -
    из корневого. Шаблоны, не определяющие блок, в его список не входят.
    """
    chains: Dict[str, List[BlockEntry]] = {}
    for template in chain:
        for name, block in template.blocks.items():
            chains.setdefault(name, []).append((block, template))
    return chains


def render_block(
    handlers: "TemplateHandlers",
    block: BlockDefinition,
    context: EvaluationContext,
    sink: TextIO,
) -> None:
    """
    Рендерит наиболее производное определение блока.

    Блок, не попавший в цепочки (например, определенный внутри макроса
    импортированного шаблона), рендерится как есть.
    """
    definitions = context.block_chains.get(block.name)
    if not definitions:
        definitions = [(block, context.self_template)]
        context.block_chains[block.name] = definitions
    _render_definition(handlers, block.name, definitions, 0, context, sink)


def render_parent(handlers: "TemplateHandlers", context: EvaluationContext, line: int = 0) -> str:
    """
    Рендерит следующее менее производное определение текущего блока.

    Returns:
        Вывод родительского определения или "" если его нет

    Raises:
        RenderError: parent() вызван вне блока
    """
    cursor = context.current_block()
    if cursor is None:
        raise RenderError("parent() called outside of a block", context.template_name, line)

    name, index = cursor
    definitions = context.block_chains[name]
    if index + 1 >= len(definitions):
        return ""

    buffer = io.StringIO()
    with context.nested(f"parent() of block '{name}'"):
        _render_definition(handlers, name, definitions, index + 1, context, buffer)
    return buffer.getvalue()


def _render_definition(
    handlers: "TemplateHandlers",
    name: str,
    definitions: List[BlockEntry],
    index: int,
    context: EvaluationContext,
    sink: TextIO,
) -> None:
    block, owner = definitions[index]
    with context.in_block(name, index), context.use_template(owner), context.scope():
        handlers.render_nodes(block.body, context, sink)


__all__ = ["resolve_chain", "build_block_chains", "render_block", "render_parent"]
