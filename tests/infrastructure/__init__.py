"""
Unified test infrastructure for stencil.

This package contains common utilities and helpers
used across all tests to avoid code duplication.

Modules:
- file_utils: Utilities for creating template files and directories
- rendering_utils: Engine builders and render shortcuts
- cli_utils: In-process CLI runner
"""

from .file_utils import write, write_templates
from .rendering_utils import make_engine, render, render_named, tokenize, parse_expression, CountingExtension
from .cli_utils import run_cli, CliResult

__all__ = [
    # File utilities
    "write", "write_templates",

    # Rendering utilities
    "make_engine", "render", "render_named", "tokenize", "parse_expression", "CountingExtension",

    # CLI utilities
    "run_cli", "CliResult",
]
