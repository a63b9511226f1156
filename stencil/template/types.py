"""
Типы записей реестра расширений и навигация по токенам.

Описывает правила тегов, обработчики узлов, фильтры, тесты и операторы,
а также поток токенов, которым пользуются парсеры выражений и инструкций.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TYPE_CHECKING

from .tokens import Token, TokenType
from ..errors import ParseError

if TYPE_CHECKING:
    from .context import EvaluationContext
    from .nodes import Expression, Node
    from .parser import TemplateParser


class ExtensionPriority(enum.IntEnum):
    """Порядок инициализации расширений (больше = раньше)."""

    CORE = 100      # Встроенное расширение ядра
    USER = 50       # Пользовательские расширения


class Associativity(enum.Enum):
    """Ассоциативность бинарного оператора."""
    LEFT = "left"
    RIGHT = "right"


class OperandKind(enum.Enum):
    """
    Вид правого операнда бинарного оператора.

    EXPRESSION - обычное выражение, TEST - имя теста с необязательными
    аргументами (операторы "is" / "is not").
    """
    EXPRESSION = "expression"
    TEST = "test"


# Сигнатуры функций расширений
TagParserFunc = Callable[["TemplateParser", Token], Optional["Node"]]
ProcessorFunc = Callable[["Node", "EvaluationContext", Any], None]
BinaryNodeFactory = Callable[["Expression", "Expression", int], "Expression"]
UnaryNodeFactory = Callable[["Expression", int], "Expression"]


@dataclass(frozen=True)
class TagRule:
    """
    Правило разбора тега {% name ... %}.
    """
    name: str                           # Имя тега (например, "if")
    parser_func: TagParserFunc          # Функция разбора (parser, name_token) -> узел
    end_tags: Tuple[str, ...] = ()      # Ключевые слова, завершающие тело тега


@dataclass(frozen=True)
class ProcessorRule:
    """
    Правило обработки узлов AST.
    """
    node_type: Type["Node"]             # Тип узла, который обрабатывает правило
    processor_func: ProcessorFunc       # Функция обработки (node, context, sink)


@dataclass(frozen=True)
class FilterSpec:
    """
    Фильтр: value | name(args).

    Функция получает значение первым позиционным аргументом.
    """
    name: str
    function: Callable[..., Any]
    accepts_undefined: bool = False     # Получать ли Undefined без ошибки


@dataclass(frozen=True)
class TestSpec:
    """
    Тест: value is name(args). Функция возвращает bool.
    """
    name: str
    function: Callable[..., bool]
    accepts_undefined: bool = False

    # pytest не должен собирать этот класс как тестовый
    __test__ = False


@dataclass(frozen=True)
class BinaryOperator:
    """
    Бинарный оператор для парсера с приоритетами.

    Либо node_factory строит собственный узел выражения, либо
    узел BinaryExpression вычисляется через function(left, right).
    """
    symbol: str
    precedence: int                     # Больше = связывает сильнее
    associativity: Associativity = Associativity.LEFT
    function: Optional[Callable[[Any, Any], Any]] = None
    node_factory: Optional[BinaryNodeFactory] = None
    operand: OperandKind = OperandKind.EXPRESSION


@dataclass(frozen=True)
class UnaryOperator:
    """Префиксный унарный оператор."""
    symbol: str
    precedence: int
    function: Optional[Callable[[Any], Any]] = None
    node_factory: Optional[UnaryNodeFactory] = None


class TokenStream:
    """
    Поток токенов для парсинга.

    Предоставляет методы для навигации по токенам и управления позицией
    в процессе синтаксического анализа.
    """

    def __init__(self, tokens: List[Token], template_name: str = ""):
        self.tokens = tokens
        self.template_name = template_name
        self.position = 0
        self.length = len(tokens)

    def current(self) -> Token:
        """Возвращает текущий токен."""
        return self.peek(0)

    def peek(self, offset: int = 1) -> Token:
        """Возвращает токен на указанном смещении от текущей позиции."""
        pos = self.position + offset
        if pos >= self.length:
            last = self.tokens[-1] if self.tokens else None
            return Token(TokenType.EOF, "", pos, last.line if last else 1, 0)
        return self.tokens[pos]

    def advance(self) -> Token:
        """Продвигается к следующему токену и возвращает предыдущий."""
        current = self.current()
        if self.position < self.length:
            self.position += 1
        return current

    def is_at_end(self) -> bool:
        """Проверяет, достигнут ли конец токенов."""
        return self.current().type == TokenType.EOF

    def match(self, token_type: TokenType, value: Optional[str] = None) -> bool:
        """Проверяет, соответствует ли текущий токен типу (и значению)."""
        return self.current().test(token_type, value)

    def skip_if(self, token_type: TokenType, value: Optional[str] = None) -> bool:
        """Потребляет текущий токен, если он соответствует, и сообщает об этом."""
        if self.match(token_type, value):
            self.advance()
            return True
        return False

    def consume(self, expected_type: TokenType, value: Optional[str] = None) -> Token:
        """
        Потребляет токен ожидаемого типа.

        Raises:
            ParseError: Если токен не соответствует ожидаемому типу
        """
        current = self.current()
        if not current.test(expected_type, value):
            expected = f"'{value}'" if value is not None else expected_type.name.lower()
            raise self.error(f"Expected {expected}, got {current.describe()}", current)
        return self.advance()

    def expect_name(self, value: Optional[str] = None) -> Token:
        """Потребляет идентификатор (опционально с конкретным значением)."""
        return self.consume(TokenType.NAME, value)

    def error(self, message: str, token: Optional[Token] = None) -> ParseError:
        """Создает ParseError, привязанный к токену и имени шаблона."""
        token = token or self.current()
        return ParseError(message, self.template_name, token.line, token)


TagRegistry = Dict[str, TagRule]
ProcessorRegistry = Dict[Type["Node"], ProcessorRule]
FilterRegistry = Dict[str, FilterSpec]
TestRegistry = Dict[str, TestSpec]


__all__ = [
    "ExtensionPriority",
    "Associativity",
    "OperandKind",
    "TagParserFunc",
    "ProcessorFunc",
    "BinaryNodeFactory",
    "UnaryNodeFactory",
    "TagRule",
    "ProcessorRule",
    "FilterSpec",
    "TestSpec",
    "BinaryOperator",
    "UnaryOperator",
    "TokenStream",
    "TagRegistry",
    "ProcessorRegistry",
    "FilterRegistry",
    "TestRegistry",
]
