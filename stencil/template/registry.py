"""
Центральный реестр расширений шаблонизатора.

Управляет регистрацией расширений и их компонентов: тегов, операторов,
фильтров, тестов и обработчиков узлов AST. После инициализации реестр
замораживается и используется только на чтение, что делает его безопасным
для одновременных рендерингов.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Type, Union

from .base import Extension, ExtensionList
from .handlers import TemplateHandlers
from .nodes import Node
from .types import (
    Associativity,
    BinaryNodeFactory,
    BinaryOperator,
    FilterRegistry,
    FilterSpec,
    OperandKind,
    ProcessorFunc,
    ProcessorRegistry,
    ProcessorRule,
    TagParserFunc,
    TagRegistry,
    TagRule,
    TestRegistry,
    TestSpec,
    UnaryNodeFactory,
    UnaryOperator,
)

logger = logging.getLogger(__name__)


class ExtensionRegistry:
    """
    Централизованный реестр всех компонентов шаблонизатора.

    Регистрация возможна только до вызова initialize(); после него
    любая попытка изменить реестр завершается RuntimeError.
    """

    def __init__(self):
        """Инициализирует реестр."""

        # Реестры компонентов
        self.tags: TagRegistry = {}
        self.binary_operators: Dict[str, BinaryOperator] = {}
        self.unary_operators: Dict[str, UnaryOperator] = {}
        self.filters: FilterRegistry = {}
        self.tests: TestRegistry = {}
        self.processors: ProcessorRegistry = {}

        # Ключевые слова, завершающие тела тегов (endif, else, ...)
        self.end_tags: Dict[str, str] = {}

        # Зарегистрированные расширения
        self.extensions: ExtensionList = []

        # Флаг инициализации
        self._initialized = False

    @property
    def frozen(self) -> bool:
        return self._initialized

    def _ensure_mutable(self) -> None:
        if self._initialized:
            raise RuntimeError("Extension registry is frozen: components must be registered before the engine is built")

    def register_extension(self, extension: Extension) -> None:
        """
        Регистрирует расширение и все его компоненты.

        Args:
            extension: Расширение для регистрации

        Raises:
            ValueError: Если расширение с таким именем уже зарегистрировано
        """
        self._ensure_mutable()
        if any(e.name == extension.name for e in self.extensions):
            raise ValueError(f"Extension '{extension.name}' already registered")

        self.extensions.append(extension)

        for rule in extension.register_tags():
            self._add_tag(rule, extension.name)
        for operator in extension.register_operators():
            self._add_operator(operator, extension.name)
        for spec in extension.register_filters():
            self._add_filter(spec, extension.name)
        for spec in extension.register_tests():
            self._add_test(spec, extension.name)
        for rule in extension.register_processors():
            self._add_processor(rule, extension.name)

        logger.debug(f"Registered extension '{extension.name}'")

    # Публичная поверхность для точечной регистрации

    def register_token_parser(self, name: str, parser_func: TagParserFunc, end_tags: tuple = ()) -> None:
        """Регистрирует разборщик тега {% name ... %}."""
        self._ensure_mutable()
        self._add_tag(TagRule(name=name, parser_func=parser_func, end_tags=tuple(end_tags)), "caller")

    def register_operator(
        self,
        symbol: str,
        precedence: int,
        associativity: Associativity = Associativity.LEFT,
        node_factory: Optional[BinaryNodeFactory] = None,
        *,
        function: Optional[Callable[[Any, Any], Any]] = None,
        operand: OperandKind = OperandKind.EXPRESSION,
    ) -> None:
        """
        Регистрирует бинарный оператор.

        Raises:
            ValueError: Не задан ни node_factory, ни function
        """
        self._ensure_mutable()
        self._add_operator(
            BinaryOperator(
                symbol=symbol,
                precedence=precedence,
                associativity=associativity,
                function=function,
                node_factory=node_factory,
                operand=operand,
            ),
            "caller",
        )

    def register_unary_operator(
        self,
        symbol: str,
        precedence: int,
        node_factory: Optional[UnaryNodeFactory] = None,
        *,
        function: Optional[Callable[[Any], Any]] = None,
    ) -> None:
        """Регистрирует префиксный унарный оператор."""
        self._ensure_mutable()
        self._add_operator(
            UnaryOperator(symbol=symbol, precedence=precedence, function=function, node_factory=node_factory),
            "caller",
        )

    def register_filter(self, name: str, function: Callable[..., Any], accepts_undefined: bool = False) -> None:
        self._ensure_mutable()
        self._add_filter(FilterSpec(name=name, function=function, accepts_undefined=accepts_undefined), "caller")

    def register_test(self, name: str, function: Callable[..., bool], accepts_undefined: bool = False) -> None:
        self._ensure_mutable()
        self._add_test(TestSpec(name=name, function=function, accepts_undefined=accepts_undefined), "caller")

    def register_processor(self, node_type: Type[Node], processor_func: ProcessorFunc) -> None:
        self._ensure_mutable()
        self._add_processor(ProcessorRule(node_type=node_type, processor_func=processor_func), "caller")

    # Внутреннее добавление компонентов

    def _add_tag(self, rule: TagRule, owner: str) -> None:
        if rule.name in self.tags:
            logger.warning(f"Tag '{rule.name}' from '{owner}' overwrites existing tag")
        self.tags[rule.name] = rule
        for end_tag in rule.end_tags:
            self.end_tags.setdefault(end_tag, rule.name)

    def _add_operator(self, operator: Union[BinaryOperator, UnaryOperator], owner: str) -> None:
        if operator.function is None and operator.node_factory is None:
            raise ValueError(f"Operator '{operator.symbol}' needs a function or a node factory")
        if not operator.symbol or operator.symbol != operator.symbol.strip():
            raise ValueError(f"Invalid operator symbol {operator.symbol!r}")

        target: Dict[str, Any] = (
            self.binary_operators if isinstance(operator, BinaryOperator) else self.unary_operators
        )
        if operator.symbol in target:
            logger.warning(f"Operator '{operator.symbol}' from '{owner}' overwrites existing operator")
        target[operator.symbol] = operator

    def _add_filter(self, spec: FilterSpec, owner: str) -> None:
        if spec.name in self.filters:
            logger.warning(f"Filter '{spec.name}' from '{owner}' overwrites existing filter")
        self.filters[spec.name] = spec

    def _add_test(self, spec: TestSpec, owner: str) -> None:
        if spec.name in self.tests:
            logger.warning(f"Test '{spec.name}' from '{owner}' overwrites existing test")
        self.tests[spec.name] = spec

    def _add_processor(self, rule: ProcessorRule, owner: str) -> None:
        if rule.node_type in self.processors:
            logger.warning(f"Processor for '{rule.node_type.__name__}' from '{owner}' overwrites existing processor")
        self.processors[rule.node_type] = rule

    def initialize(self, handlers: TemplateHandlers) -> None:
        """
        Инициализирует все зарегистрированные расширения и замораживает реестр.

        Args:
            handlers: Обработчики ядра шаблонизатора для передачи расширениям
        """
        if self._initialized:
            return

        # Сортируем расширения по приоритету
        sorted_extensions = sorted(self.extensions, key=lambda e: e.priority, reverse=True)

        for extension in sorted_extensions:
            extension.set_registry(self)
            extension.set_handlers(handlers)

        for extension in sorted_extensions:
            extension.initialize()

        self._initialized = True
        logger.debug(
            f"Registry initialized: {len(self.tags)} tags, "
            f"{len(self.binary_operators) + len(self.unary_operators)} operators, "
            f"{len(self.filters)} filters, {len(self.tests)} tests"
        )

    # Запросы парсера и вычислителя

    def get_tag(self, name: str) -> Optional[TagRule]:
        return self.tags.get(name)

    def get_binary_operator(self, symbol: str) -> Optional[BinaryOperator]:
        return self.binary_operators.get(symbol)

    def get_unary_operator(self, symbol: str) -> Optional[UnaryOperator]:
        return self.unary_operators.get(symbol)

    def get_filter(self, name: str) -> Optional[FilterSpec]:
        return self.filters.get(name)

    def get_test(self, name: str) -> Optional[TestSpec]:
        return self.tests.get(name)

    def get_processor(self, node_type: Type[Node]) -> Optional[ProcessorRule]:
        """
        Возвращает обработчик для указанного типа узла.

        Учитывает наследование: обработчик базового класса подходит
        для производных узлов.
        """
        for klass in node_type.__mro__:
            rule = self.processors.get(klass)
            if rule is not None:
                return rule
        return None

    def operator_symbols(self) -> List[str]:
        """Все символы операторов, которые должен распознавать лексер."""
        return sorted(set(self.binary_operators) | set(self.unary_operators))


__all__ = ["ExtensionRegistry"]
