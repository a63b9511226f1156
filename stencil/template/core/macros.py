"""
Вызов макросов.

Макрос, привязанный к рендерингу, ведет себя как обычная функция,
возвращающая строку. Тело исполняется в изолированной области видимости:
видны только параметры, глобальные переменные и переменные рендеринга,
но не локальные переменные вызывающего.
"""

from __future__ import annotations

import io
from collections.abc import Mapping
from typing import Any, Dict, Iterator, TYPE_CHECKING

from ...errors import ArityError

if TYPE_CHECKING:
    from .nodes import MacroNode
    from ..context import EvaluationContext
    from ..handlers import TemplateHandlers
    from ..template import Template


class BoundMacro:
    """
    Макрос, привязанный к шаблону-владельцу и контексту рендеринга.
    """

    def __init__(
        self,
        node: "MacroNode",
        owner: "Template",
        context: "EvaluationContext",
        handlers: "TemplateHandlers",
    ):
        self.node = node
        self.owner = owner
        self._context = context
        self._handlers = handlers

    @property
    def name(self) -> str:
        return self.node.name

    def __call__(self, *args: Any, **kwargs: Any) -> str:
        """
        Рендерит тело макроса и возвращает результат.

        Raises:
            ArityError: Аргументы не соответствуют списку параметров
            RecursionLimitError: Превышена глубина вложенных вызовов
        """
        context = self._context
        handlers = self._handlers
        bound = self._bind_arguments(args, kwargs)

        buffer = io.StringIO()
        with context.nested(f"macro '{self.name}'"):
            owner_macros = handlers.template_macros(self.owner, context)
            with context.isolated(bound), context.use_template(self.owner), context.macro_frame(owner_macros):
                # Значения по умолчанию вычисляются при вызове, в области макроса
                for parameter in self.node.parameters:
                    if parameter.name not in bound:
                        context.define(parameter.name, handlers.evaluate(parameter.default, context))
                handlers.render_nodes(self.node.body, context, buffer)
        return buffer.getvalue()

    def _bind_arguments(self, args: tuple, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        parameters = self.node.parameters
        names = [p.name for p in parameters]
        template_name = self._context.template_name

        if len(args) > len(parameters):
            raise ArityError(
                f"Macro '{self.name}' takes at most {len(parameters)} arguments, got {len(args)}",
                template_name,
            )

        bound: Dict[str, Any] = dict(zip(names, args))
        for key, value in kwargs.items():
            if key not in names:
                raise ArityError(f"Macro '{self.name}' got an unexpected argument '{key}'", template_name)
            if key in bound:
                raise ArityError(f"Macro '{self.name}' got multiple values for argument '{key}'", template_name)
            bound[key] = value

        for parameter in parameters:
            if parameter.name not in bound and parameter.default is None:
                raise ArityError(f"Macro '{self.name}' missing required argument '{parameter.name}'", template_name)

        return bound

    def __repr__(self) -> str:
        return f"<BoundMacro {self.name!r} of {self.owner.name!r}>"


class MacroNamespace(Mapping):
    """Макросы импортированного шаблона: {% import "forms" as forms %} -> forms.input(...)"""

    def __init__(self, template_name: str, macros: Dict[str, BoundMacro]):
        self.template_name = template_name
        self._macros = dict(macros)

    def __getitem__(self, name: str) -> BoundMacro:
        return self._macros[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._macros)

    def __len__(self) -> int:
        return len(self._macros)

    def __repr__(self) -> str:
        return f"<MacroNamespace {self.template_name!r}: {sorted(self._macros)}>"


__all__ = ["BoundMacro", "MacroNamespace"]
