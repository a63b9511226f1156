"""
Базовые интерфейсы и абстракции для расширений шаблонизатора.

Определяет базовый класс, который реализуют расширения для регистрации
своих тегов, операторов, фильтров, тестов и обработчиков узлов.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Union, TYPE_CHECKING

from .handlers import TemplateHandlers
from .types import (
    BinaryOperator,
    ExtensionPriority,
    FilterSpec,
    ProcessorRule,
    TagRule,
    TestSpec,
    UnaryOperator,
)

if TYPE_CHECKING:
    from .registry import ExtensionRegistry


class Extension(ABC):
    """
    Базовый интерфейс для расширений шаблонизатора.

    Все методы register_* необязательны: расширение переопределяет только
    те, компоненты которых оно действительно добавляет.
    """

    def __init__(self):
        """Инициализирует расширение."""
        self._handlers: Optional[TemplateHandlers] = None
        self._registry: Optional["ExtensionRegistry"] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Возвращает имя расширения."""
        pass

    @property
    def priority(self) -> ExtensionPriority:
        """Возвращает приоритет расширения."""
        return ExtensionPriority.USER

    def set_handlers(self, handlers: TemplateHandlers) -> None:
        """
        Устанавливает обработчики ядра шаблонизатора.

        Args:
            handlers: Внутренние обработчики для вызова функций ядра
        """
        self._handlers = handlers

    @property
    def handlers(self) -> TemplateHandlers:
        """Возвращает обработчики ядра шаблонизатора."""
        assert self._handlers is not None, "Handlers must be set before use"
        return self._handlers

    def set_registry(self, registry: "ExtensionRegistry") -> None:
        self._registry = registry

    @property
    def registry(self) -> "ExtensionRegistry":
        assert self._registry is not None, "Registry must be set before use"
        return self._registry

    def register_tags(self) -> List[TagRule]:
        """
        Регистрирует разборщики тегов {% name ... %}.

        Returns:
            Список правил тегов
        """
        return []

    def register_operators(self) -> List[Union[BinaryOperator, UnaryOperator]]:
        """
        Регистрирует бинарные и унарные операторы.

        Returns:
            Список операторов
        """
        return []

    def register_filters(self) -> List[FilterSpec]:
        return []

    def register_tests(self) -> List[TestSpec]:
        return []

    def register_processors(self) -> List[ProcessorRule]:
        """
        Регистрирует обработчики узлов AST, которые создают теги расширения.

        Returns:
            Список правил обработки
        """
        return []

    def initialize(self) -> None:
        """
        Инициализирует расширение после регистрации всех компонентов.

        Вызывается, когда обработчики ядра уже установлены.
        """
        pass


# Типы для удобства использования
ExtensionList = List[Extension]

__all__ = [
    "Extension",
    "ExtensionList",
]
