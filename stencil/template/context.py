"""
Контекст вычисления для одного рендеринга.

Управляет стеком областей видимости переменных, текущим шаблоном ("self"),
видимыми макросами и цепочками блоков. Каждый рендеринг создает свой
контекст; шаблоны и реестр при этом не изменяются.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, TYPE_CHECKING

from .values import Undefined
from ..errors import RecursionLimitError

if TYPE_CHECKING:
    from .nodes import BlockDefinition
    from .template import Template
    from ..config import EngineConfig

# Определение блока и шаблон, которому оно принадлежит
BlockEntry = Tuple["BlockDefinition", "Template"]


class EvaluationContext:
    """
    Контекст рендеринга с иерархией областей видимости.

    Нижние две области - глобальные переменные движка и переменные,
    переданные в рендеринг. Поиск идет от самой внутренней области
    к внешней; запись обновляет ближайшую область, где имя уже есть,
    иначе самую внутреннюю.
    """

    def __init__(
        self,
        template: "Template",
        variables: Mapping[str, Any],
        config: "EngineConfig",
        globals: Optional[Mapping[str, Any]] = None,
        depth: int = 0,
    ):
        """
        Инициализирует контекст.

        Args:
            template: Шаблон, с которого начинается рендеринг
            variables: Переменные рендеринга (не изменяются)
            config: Конфигурация движка с лимитами
            globals: Глобальные переменные движка
            depth: Начальная глубина вложенности (для include)
        """
        self.config = config
        self.depth = depth

        self._globals: Dict[str, Any] = dict(globals or {})
        self._render_variables: Dict[str, Any] = dict(variables)

        # Стек областей видимости
        self._scopes: List[Dict[str, Any]] = [self._globals, dict(self._render_variables)]

        # Стек текущих шаблонов ("self")
        self._templates: List["Template"] = [template]

        # Видимые макросы: имя -> вызываемый макрос
        self._macro_frames: List[Dict[str, Any]] = [{}]

        # Цепочки определений блоков (от наиболее производного)
        self.block_chains: Dict[str, List[BlockEntry]] = {}
        self._block_cursors: List[Tuple[str, int]] = []

    # Переменные

    def lookup(self, name: str) -> Any:
        """
        Ищет переменную от внутренней области к внешней.

        Returns:
            Значение или Undefined(name), если имя не определено
        """
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        return Undefined(name)

    def has(self, name: str) -> bool:
        return any(name in scope for scope in self._scopes)

    def set(self, name: str, value: Any) -> None:
        """
        Записывает переменную.

        Обновляет ближайшую область, уже содержащую имя (кроме глобальной),
        иначе пишет в самую внутреннюю область.
        """
        for scope in reversed(self._scopes[1:]):
            if name in scope:
                scope[name] = value
                return
        self._scopes[-1][name] = value

    def define(self, name: str, value: Any) -> None:
        """Определяет переменную в самой внутренней области."""
        self._scopes[-1][name] = value

    def push_scope(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self._scopes.append(dict(initial or {}))

    def pop_scope(self) -> None:
        if len(self._scopes) <= 2:
            raise RuntimeError("Cannot pop the render scope")
        self._scopes.pop()

    @contextmanager
    def scope(self, initial: Optional[Mapping[str, Any]] = None) -> Iterator[None]:
        """Новая внутренняя область на время блока with."""
        self.push_scope(initial)
        try:
            yield
        finally:
            self.pop_scope()

    @contextmanager
    def isolated(self, variables: Mapping[str, Any]) -> Iterator[None]:
        """
        Изолированная область для вызова макроса.

        Видны только глобальные переменные, исходные переменные рендеринга
        и переданные значения; локальные области вызывающего скрыты.
        """
        saved = self._scopes
        self._scopes = [self._globals, dict(self._render_variables), dict(variables)]
        try:
            yield
        finally:
            self._scopes = saved

    def snapshot(self) -> Dict[str, Any]:
        """Плоская копия всех видимых переменных (кроме глобальных)."""
        result: Dict[str, Any] = {}
        for scope in self._scopes[1:]:
            result.update(scope)
        return result

    @property
    def globals(self) -> Mapping[str, Any]:
        return self._globals

    # Текущий шаблон

    @property
    def self_template(self) -> "Template":
        return self._templates[-1]

    @property
    def template_name(self) -> str:
        return self._templates[-1].name

    @contextmanager
    def use_template(self, template: "Template") -> Iterator[None]:
        """Делает шаблон текущим ("self") на время блока with."""
        self._templates.append(template)
        try:
            yield
        finally:
            self._templates.pop()

    # Макросы

    def find_macro(self, name: str) -> Optional[Any]:
        return self._macro_frames[-1].get(name)

    def add_macros(self, macros: Mapping[str, Any]) -> None:
        """Добавляет макросы в текущий набор видимых (импорт с распаковкой)."""
        self._macro_frames[-1].update(macros)

    @contextmanager
    def macro_frame(self, macros: Mapping[str, Any]) -> Iterator[None]:
        """Заменяет набор видимых макросов на время блока with."""
        self._macro_frames.append(dict(macros))
        try:
            yield
        finally:
            self._macro_frames.pop()

    # Блоки

    def current_block(self) -> Optional[Tuple[str, int]]:
        """Возвращает (имя блока, позиция в цепочке) или None вне блока."""
        return self._block_cursors[-1] if self._block_cursors else None

    @contextmanager
    def in_block(self, name: str, index: int) -> Iterator[None]:
        self._block_cursors.append((name, index))
        try:
            yield
        finally:
            self._block_cursors.pop()

    # Лимиты

    @contextmanager
    def nested(self, what: str) -> Iterator[None]:
        """
        Увеличивает глубину вложенности (макрос, include, parent()).

        Raises:
            RecursionLimitError: Превышен max_recursion_depth
        """
        limit = self.config.max_recursion_depth
        if limit is not None and self.depth >= limit:
            raise RecursionLimitError(
                f"Maximum recursion depth {limit} exceeded in {what}",
                self.template_name,
            )
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    @property
    def strict(self) -> bool:
        return self.config.strict_variables


__all__ = ["EvaluationContext", "BlockEntry"]
