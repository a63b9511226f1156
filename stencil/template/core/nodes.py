"""
AST-узлы встроенных тегов.

if / for / set / block / extends / macro / import / from-import / include.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Optional, Tuple, TYPE_CHECKING

from .macros import BoundMacro
from ..nodes import BlockDefinition, Expression, MacroDefinition, RenderableNode

if TYPE_CHECKING:
    from ..context import EvaluationContext

Body = Tuple[RenderableNode, ...]


@dataclass(frozen=True)
class IfNode(RenderableNode):
    """
    Условная конструкция {% if %}...{% elseif %}...{% else %}...{% endif %}

    Выбирается тело первой ветки, условие которой истинно.
    """
    branches: Tuple[Tuple[Expression, Body], ...]
    else_body: Optional[Body] = None
    line: int = 0


@dataclass(frozen=True)
class ForNode(RenderableNode):
    """
    Цикл {% for x in items %} / {% for k, v in mapping %} с веткой else,
    которая рендерится для пустой коллекции.
    """
    targets: Tuple[str, ...]
    iterable: Expression
    body: Body
    else_body: Optional[Body] = None
    line: int = 0


@dataclass(frozen=True)
class SetNode(RenderableNode):
    """{% set name = expression %}"""
    name: str
    value: Expression
    line: int = 0

    declarative: ClassVar[bool] = True


@dataclass(frozen=True)
class BlockNode(BlockDefinition):
    """Переопределяемый блок {% block name %}...{% endblock %}"""
    name: str
    body: Body
    line: int = 0


@dataclass(frozen=True)
class ExtendsNode(RenderableNode):
    """
    {% extends expression %}

    Сам ничего не выводит: родитель разрешается до начала рендеринга.
    """
    expression: Expression
    line: int = 0


@dataclass(frozen=True)
class MacroParameter:
    name: str
    default: Optional[Expression] = None


@dataclass(frozen=True)
class MacroNode(MacroDefinition):
    """
    Определение макроса {% macro name(a, b=default) %}...{% endmacro %}

    Макросы собираются парсером в Template.macros; сам узел ничего не выводит.
    """
    name: str
    parameters: Tuple[MacroParameter, ...]
    body: Body
    line: int = 0

    def bind(self, owner: Any, context: "EvaluationContext", handlers: Any) -> Callable[..., str]:
        return BoundMacro(self, owner, context, handlers)


@dataclass(frozen=True)
class ImportNode(RenderableNode):
    """
    {% import expr %} - все макросы шаблона становятся видимыми напрямую;
    {% import expr as ns %} - макросы доступны как ns.name(...).
    """
    template: Expression
    alias: Optional[str] = None
    line: int = 0

    declarative: ClassVar[bool] = True


@dataclass(frozen=True)
class FromImportNode(RenderableNode):
    """{% from expr import a, b as c %}"""
    template: Expression
    names: Tuple[Tuple[str, Optional[str]], ...]
    line: int = 0

    declarative: ClassVar[bool] = True


@dataclass(frozen=True)
class IncludeNode(RenderableNode):
    """
    {% include expr [with mapping] [only] %}

    По умолчанию подключаемый шаблон видит переменные текущего контекста;
    only оставляет ему только глобальные переменные и переданные через with.
    """
    template: Expression
    variables: Optional[Expression] = None
    only: bool = False
    line: int = 0


__all__ = [
    "Body",
    "IfNode",
    "ForNode",
    "SetNode",
    "BlockNode",
    "ExtendsNode",
    "MacroParameter",
    "MacroNode",
    "ImportNode",
    "FromImportNode",
    "IncludeNode",
]
