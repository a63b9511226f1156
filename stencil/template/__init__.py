"""
Шаблонизатор на основе расширений.

Лексер и парсеры ядра ничего не знают о конкретных тегах, операторах,
фильтрах и тестах: все они регистрируются расширениями в реестре.
Встроенный язык поставляется расширением core.
"""

from __future__ import annotations

from .base import Extension
from .context import EvaluationContext
from .handlers import TemplateHandlers
from .nodes import CustomExpression, Expression, Node, RenderableNode
from .registry import ExtensionRegistry
from .template import Template
from .types import (
    Associativity,
    BinaryOperator,
    ExtensionPriority,
    FilterSpec,
    OperandKind,
    ProcessorRule,
    TagRule,
    TestSpec,
    TokenStream,
    UnaryOperator,
)
from .values import Undefined
from .visitor import NodeVisitor

__all__ = [
    "Extension",
    "ExtensionRegistry",
    "ExtensionPriority",
    "TemplateHandlers",
    "EvaluationContext",
    "Template",
    "Node",
    "RenderableNode",
    "Expression",
    "CustomExpression",
    "Associativity",
    "OperandKind",
    "BinaryOperator",
    "UnaryOperator",
    "FilterSpec",
    "TestSpec",
    "TagRule",
    "ProcessorRule",
    "TokenStream",
    "Undefined",
    "NodeVisitor",
]
