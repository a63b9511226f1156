"""
Встроенное расширение шаблонизатора.

Обрабатывает:
- {% if %}...{% elseif %}...{% else %}...{% endif %} - условия
- {% for x in items %}...{% else %}...{% endfor %} - циклы
- {% set %}, {% block %}, {% extends %} - переменные и наследование
- {% macro %}, {% import %}, {% from %}, {% include %} - повторное использование
- Встроенные операторы, фильтры и тесты
"""

from __future__ import annotations

from .macros import BoundMacro, MacroNamespace
from .nodes import (
    BlockNode,
    ExtendsNode,
    ForNode,
    FromImportNode,
    IfNode,
    ImportNode,
    IncludeNode,
    MacroNode,
    MacroParameter,
    SetNode,
)
from .plugin import CoreExtension

__all__ = [
    "CoreExtension",
    "BoundMacro",
    "MacroNamespace",
    "IfNode",
    "ForNode",
    "SetNode",
    "BlockNode",
    "ExtendsNode",
    "MacroNode",
    "MacroParameter",
    "ImportNode",
    "FromImportNode",
    "IncludeNode",
]
