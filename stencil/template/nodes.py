"""
Базовые AST-узлы.

Определяет две непересекающиеся иерархии неизменяемых узлов:
- RenderableNode - производят вывод и/или меняют контекст
- Expression - вычисляются в значение, не трогая вывод

Узлы инструкций (if, for, block, ...) определяются в расширениях.
Набор выражений ядра закрыт и перечислен в ExpressionType; расширения,
которым нужен собственный узел выражения, наследуют CustomExpression.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .context import EvaluationContext
    from .evaluator import ExpressionEvaluator


class Node:
    """Базовый класс для всех узлов AST шаблона."""

    # Номер строки исходника (для сообщений об ошибках)
    line: int


class RenderableNode(Node):
    """
    Узел, который при рендеринге пишет в вывод.

    declarative: узел исполняется и на верхнем уровне дочернего шаблона
    (шаблона с extends), где обычный вывод не производится.
    """
    declarative: ClassVar[bool] = False


class ExpressionType(Enum):
    """Типы выражений ядра."""
    LITERAL = "literal"
    NAME = "name"
    LIST = "list"
    MAP = "map"
    ATTRIBUTE = "attribute"
    ITEM = "item"
    CALL = "call"
    FILTER = "filter"
    TEST = "test"
    UNARY = "unary"
    BINARY = "binary"
    AND = "and"
    OR = "or"
    CUSTOM = "custom"


class Expression(Node, ABC):
    """Базовый класс выражений."""

    @abstractmethod
    def get_type(self) -> ExpressionType:
        """Возвращает тип выражения."""
        pass


@dataclass(frozen=True)
class TextNode(RenderableNode):
    """
    Обычный текстовый контент в шаблоне.

    Выводится в результат как есть.
    """
    text: str
    line: int = 0


@dataclass(frozen=True)
class PrintNode(RenderableNode):
    """Вывод значения выражения: {{ expression }}."""
    expression: Expression
    line: int = 0


@dataclass(frozen=True)
class Literal(Expression):
    """Литерал: число, строка, true/false, null."""
    value: Any
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.LITERAL


@dataclass(frozen=True)
class Name(Expression):
    """Обращение к переменной контекста по имени."""
    name: str
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.NAME


@dataclass(frozen=True)
class ListLiteral(Expression):
    items: Tuple[Expression, ...]
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.LIST


@dataclass(frozen=True)
class MapLiteral(Expression):
    pairs: Tuple[Tuple[Expression, Expression], ...]
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.MAP


@dataclass(frozen=True)
class GetAttr(Expression):
    """Доступ к атрибуту: target.attribute"""
    target: Expression
    attribute: str
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.ATTRIBUTE


@dataclass(frozen=True)
class GetItem(Expression):
    """Доступ по индексу или ключу: target[key]"""
    target: Expression
    key: Expression
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.ITEM


@dataclass(frozen=True)
class Call(Expression):
    """
    Вызов: callee(args, name=value).

    Для простого имени callee разрешается как parent(), макрос
    или вызываемое значение контекста (в этом порядке).
    """
    callee: Expression
    args: Tuple[Expression, ...] = ()
    kwargs: Tuple[Tuple[str, Expression], ...] = ()
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.CALL


@dataclass(frozen=True)
class FilterExpression(Expression):
    """Применение фильтра: value | name(args)"""
    value: Expression
    name: str
    args: Tuple[Expression, ...] = ()
    kwargs: Tuple[Tuple[str, Expression], ...] = ()
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.FILTER


@dataclass(frozen=True)
class TestExpression(Expression):
    """Применение теста: value is [not] name(args)"""
    value: Expression
    name: str
    args: Tuple[Expression, ...] = ()
    negated: bool = False
    line: int = 0

    __test__ = False

    def get_type(self) -> ExpressionType:
        return ExpressionType.TEST


@dataclass(frozen=True)
class UnaryExpression(Expression):
    operator: str
    operand: Expression
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.UNARY


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    Бинарная операция, семантика которой задана функцией
    зарегистрированного оператора.
    """
    operator: str
    left: Expression
    right: Expression
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.BINARY


@dataclass(frozen=True)
class AndExpression(Expression):
    """Логическое И с коротким замыканием."""
    left: Expression
    right: Expression
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.AND


@dataclass(frozen=True)
class OrExpression(Expression):
    """Логическое ИЛИ с коротким замыканием."""
    left: Expression
    right: Expression
    line: int = 0

    def get_type(self) -> ExpressionType:
        return ExpressionType.OR


class CustomExpression(Expression):
    """
    Узел выражения, определенный расширением.

    Вычисляет себя сам; evaluator передается для вычисления дочерних выражений.
    """

    def get_type(self) -> ExpressionType:
        return ExpressionType.CUSTOM

    @abstractmethod
    def evaluate(self, evaluator: "ExpressionEvaluator", context: "EvaluationContext") -> Any:
        pass


class BlockDefinition(RenderableNode):
    """
    Определение переопределяемого блока.

    Наследники предоставляют name и body; цепочки блоков строятся по ним.
    """
    name: str
    body: Tuple[RenderableNode, ...]


class MacroDefinition(RenderableNode, ABC):
    """Определение макроса, которое умеет привязываться к рендерингу."""
    name: str

    @abstractmethod
    def bind(self, owner: Any, context: "EvaluationContext", handlers: Any) -> Callable[..., str]:
        """
        Возвращает вызываемый макрос.

        Args:
            owner: Шаблон, которому принадлежит определение
            context: Контекст текущего рендеринга
            handlers: Обработчики ядра
        """
        pass


def is_blank_text(node: Node) -> bool:
    """Текстовый узел, состоящий только из пробельных символов."""
    return isinstance(node, TextNode) and not node.text.strip()


# Алиас для списка узлов (AST)
TemplateAST = List[RenderableNode]
OptionalBody = Optional[Tuple[RenderableNode, ...]]


__all__ = [
    "Node",
    "RenderableNode",
    "ExpressionType",
    "Expression",
    "TextNode",
    "PrintNode",
    "Literal",
    "Name",
    "ListLiteral",
    "MapLiteral",
    "GetAttr",
    "GetItem",
    "Call",
    "FilterExpression",
    "TestExpression",
    "UnaryExpression",
    "BinaryExpression",
    "AndExpression",
    "OrExpression",
    "CustomExpression",
    "BlockDefinition",
    "MacroDefinition",
    "is_blank_text",
    "TemplateAST",
    "OptionalBody",
]
