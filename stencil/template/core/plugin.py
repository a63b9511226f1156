"""
Встроенное расширение шаблонизатора.

Регистрирует теги, операторы, фильтры, тесты и обработчики узлов,
из которых состоит базовый язык шаблонов.
"""

from __future__ import annotations

from typing import List, Optional, Union

from .filters import get_core_filters
from .nodes import (
    BlockNode,
    ExtendsNode,
    ForNode,
    FromImportNode,
    IfNode,
    ImportNode,
    IncludeNode,
    MacroNode,
    SetNode,
)
from .operators import get_core_operators
from .parser_rules import get_core_tag_rules
from .predicates import get_core_tests
from .processor import CoreNodeProcessor
from ..base import Extension
from ..types import (
    BinaryOperator,
    ExtensionPriority,
    FilterSpec,
    ProcessorRule,
    TagRule,
    TestSpec,
    UnaryOperator,
)


class CoreExtension(Extension):
    """
    Базовый язык шаблонов.

    Обеспечивает функциональность:
    - {% if %} / {% for %} / {% set %} - управление потоком и переменные
    - {% extends %} / {% block %} / parent() - наследование
    - {% macro %} / {% import %} / {% from %} / {% include %} - повторное использование
    - Операторы сравнения, арифметики, логики, диапазона и тестов
    - Библиотеку фильтров и тестов
    """

    def __init__(self):
        super().__init__()
        self._processor: Optional[CoreNodeProcessor] = None

    @property
    def name(self) -> str:
        return "core"

    @property
    def priority(self) -> ExtensionPriority:
        return ExtensionPriority.CORE

    def register_tags(self) -> List[TagRule]:
        return get_core_tag_rules()

    def register_operators(self) -> List[Union[BinaryOperator, UnaryOperator]]:
        return get_core_operators()

    def register_filters(self) -> List[FilterSpec]:
        return get_core_filters()

    def register_tests(self) -> List[TestSpec]:
        return get_core_tests()

    def register_processors(self) -> List[ProcessorRule]:
        """
        Регистрирует обработчики узлов AST.

        Процессор будет создан позже в initialize(), когда обработчики будут установлены,
        поэтому правила обращаются к нему через замыкание.
        """
        def get_processor() -> CoreNodeProcessor:
            if self._processor is None:
                raise RuntimeError("Processor not initialized. Call initialize() first.")
            return self._processor

        def process_if(node, context, sink) -> None:
            get_processor().process_if(node, context, sink)

        def process_for(node, context, sink) -> None:
            get_processor().process_for(node, context, sink)

        def process_set(node, context, sink) -> None:
            get_processor().process_set(node, context, sink)

        def process_block(node, context, sink) -> None:
            get_processor().process_block(node, context, sink)

        def process_import(node, context, sink) -> None:
            get_processor().process_import(node, context, sink)

        def process_from_import(node, context, sink) -> None:
            get_processor().process_from_import(node, context, sink)

        def process_include(node, context, sink) -> None:
            get_processor().process_include(node, context, sink)

        def process_nothing(node, context, sink) -> None:
            get_processor().process_nothing(node, context, sink)

        return [
            ProcessorRule(node_type=IfNode, processor_func=process_if),
            ProcessorRule(node_type=ForNode, processor_func=process_for),
            ProcessorRule(node_type=SetNode, processor_func=process_set),
            ProcessorRule(node_type=BlockNode, processor_func=process_block),
            ProcessorRule(node_type=ImportNode, processor_func=process_import),
            ProcessorRule(node_type=FromImportNode, processor_func=process_from_import),
            ProcessorRule(node_type=IncludeNode, processor_func=process_include),
            # extends разрешается до рендеринга, макросы привязываются при входе в шаблон
            ProcessorRule(node_type=ExtendsNode, processor_func=process_nothing),
            ProcessorRule(node_type=MacroNode, processor_func=process_nothing),
        ]

    def initialize(self) -> None:
        """Создает процессор теперь, когда обработчики установлены."""
        if self._processor is None:
            self._processor = CoreNodeProcessor(self.handlers)


__all__ = ["CoreExtension"]
