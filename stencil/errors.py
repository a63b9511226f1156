"""
Base exceptions for user-facing errors.

All expected errors that should be displayed to the user
as clean messages (without stack traces) must inherit from StencilUserError.

Programming errors and bugs should NOT inherit from StencilUserError;
they will propagate with full tracebacks.
"""

from __future__ import annotations

from typing import Optional


class StencilUserError(Exception):
    """
    Base class for all user-facing errors in stencil.

    These errors indicate problems that the user can fix:
    template syntax, configuration issues, missing templates, etc.
    """
    pass


class ConfigError(StencilUserError):
    """Invalid engine configuration (bad YAML, unknown keys, wrong types)."""
    pass


class TemplateError(StencilUserError):
    """
    Error attributed to a template source location.

    Attributes:
        message: Message without location suffix
        template_name: Name of the template being processed ("" if unknown)
        line: 1-based source line (0 if unknown)
    """

    def __init__(self, message: str, template_name: str = "", line: int = 0):
        self.message = message
        self.template_name = template_name
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        where = []
        if self.template_name:
            where.append(f"template '{self.template_name}'")
        if self.line:
            where.append(f"line {self.line}")
        if not where:
            return self.message
        return f"{self.message} ({', '.join(where)})"

    def with_template(self, template_name: str) -> TemplateError:
        """Fills in the template name if the raiser did not know it."""
        if not self.template_name and template_name:
            self.template_name = template_name
            self.args = (self._format(),)
        return self


class LexError(TemplateError):
    """Malformed source: unterminated string/tag/comment, unknown character."""
    pass


class ParseError(TemplateError):
    """Grammar violation: unknown tag or operator, unbalanced delimiters, missing end tag."""

    def __init__(self, message: str, template_name: str = "", line: int = 0, token: Optional[object] = None):
        self.token = token
        super().__init__(message, template_name, line)


class RenderError(TemplateError):
    """Failure while evaluating a parsed template."""
    pass


class TemplateTypeError(RenderError):
    """Operand of the wrong kind (arithmetic on strings, attribute of undefined, ...)."""
    pass


class ArityError(RenderError):
    """Macro invoked with arguments that do not fit its parameter list."""
    pass


class CyclicInheritanceError(RenderError):
    """A template (indirectly) extends itself."""
    pass


class RecursionLimitError(RenderError):
    """Loop iteration or nesting limit from EngineConfig exceeded."""
    pass


class TemplateNotFound(RenderError):
    """The loader has no template with the requested name."""

    def __init__(self, name: str, template_name: str = "", line: int = 0):
        self.name = name
        super().__init__(f"Template '{name}' not found", template_name, line)


__all__ = [
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
