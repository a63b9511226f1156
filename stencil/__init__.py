"""
Stencil: an extensible text template engine.

Templates are compiled once (lexer -> parser -> immutable Template) and
rendered any number of times against a context of variables. Tags,
operators, filters and tests are all supplied by extensions.
"""

from __future__ import annotations

from .config import EngineConfig, load_config
from .engine import Engine
from .errors import (
    ArityError,
    ConfigError,
    CyclicInheritanceError,
    LexError,
    ParseError,
    RecursionLimitError,
    RenderError,
    StencilUserError,
    TemplateError,
    TemplateNotFound,
    TemplateTypeError,
)
from .loader import BaseLoader, DictLoader, FileSystemLoader
from .template import Extension, Template, Undefined

__all__ = [
    "Engine",
    "EngineConfig",
    "load_config",
    "Template",
    "Extension",
    "Undefined",
    "BaseLoader",
    "DictLoader",
    "FileSystemLoader",
    "StencilUserError",
    "ConfigError",
    "TemplateError",
    "LexError",
    "ParseError",
    "RenderError",
    "TemplateTypeError",
    "ArityError",
    "CyclicInheritanceError",
    "RecursionLimitError",
    "TemplateNotFound",
]
