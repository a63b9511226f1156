"""
Template engine.

Builds the extension registry, compiles template sources and caches the
compiled templates, resolves template names for extends/include/import
and runs renders.
"""

from __future__ import annotations

import io
import logging
import threading
from typing import Any, Dict, Iterable, Mapping, Optional, TextIO, Union

from .config import EngineConfig
from .errors import TemplateNotFound
from .loader import BaseLoader
from .template.base import Extension
from .template.core import CoreExtension
from .template.lexer import TemplateLexer
from .template.parser import TemplateParser
from .template.registry import ExtensionRegistry
from .template.renderer import Renderer
from .template.template import Template

logger = logging.getLogger(__name__)


class Engine:
    """
    Engine coordinating class.

    Manages interaction between components:
    - ExtensionRegistry with the core language and user extensions
    - TemplateLexer / TemplateParser for compilation
    - Renderer for evaluation
    - the loader and the compiled-template cache

    The registry is frozen once the engine is built, so templates and the
    engine can be shared by concurrent renders.
    """

    def __init__(
        self,
        loader: Optional[BaseLoader] = None,
        extensions: Iterable[Extension] = (),
        config: Optional[EngineConfig] = None,
    ):
        """
        Initialize engine.

        Args:
            loader: Source loader used to resolve template names
            extensions: User extensions registered after the core one
            config: Engine settings (defaults when None)
        """
        self.config = config or EngineConfig()
        self.loader = loader

        self.registry = ExtensionRegistry()
        self.registry.register_extension(CoreExtension())
        for extension in extensions:
            self.registry.register_extension(extension)

        self.renderer = Renderer(self, self.registry)
        self.registry.initialize(self.renderer)

        # Compiled templates by name; templates may load others while rendering
        self._cache: Dict[str, Template] = {}
        self._lock = threading.RLock()

    def compile(self, source: str, name: str = "<string>") -> Template:
        """
        Compiles template source without caching it.

        Raises:
            LexError: Malformed source
            ParseError: Grammar violation
        """
        # The lexer keeps per-run state, so every compilation gets its own
        lexer = TemplateLexer(self.registry, self.config)
        tokens = lexer.tokenize(source, name)

        parser = TemplateParser(self.registry, tokens, name)
        body = parser.parse()

        return Template(
            self,
            name,
            tuple(body),
            extends=parser.extends,
            blocks=parser.blocks,
            macros=parser.macros,
        )

    def from_string(self, source: str, name: str = "<string>") -> Template:
        """Compiles a template from a string."""
        return self.compile(source, name)

    def get_template(self, name: str) -> Template:
        """
        Returns the compiled template with the given name, loading it on first use.

        Raises:
            TemplateNotFound: No loader or the loader has no such template
        """
        with self._lock:
            template = self._cache.get(name)
            if template is not None:
                logger.debug(f"Template cache hit: '{name}'")
                return template

            if self.loader is None:
                raise TemplateNotFound(name)

            logger.debug(f"Template cache miss: '{name}'")
            template = self.compile(self.loader.get_source(name), name)
            self._cache[name] = template
            return template

    def resolve(self, name: str) -> Template:
        """Loader contract for extends/include/import targets."""
        return self.get_template(name)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache = {}

    def render(
        self,
        template: Union[str, Template],
        context: Optional[Mapping[str, Any]] = None,
        sink: Optional[TextIO] = None,
    ) -> Optional[str]:
        """
        Renders a template by name or a compiled template.

        Args:
            template: Template name or compiled Template
            context: Render variables
            sink: Output stream; when omitted the output is returned as a string

        Returns:
            The rendered text when sink is None, otherwise None
        """
        if isinstance(template, str):
            template = self.get_template(template)

        if sink is not None:
            template.render_to(sink, context)
            return None

        buffer = io.StringIO()
        template.render_to(buffer, context)
        return buffer.getvalue()


__all__ = ["Engine"]
