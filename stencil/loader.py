"""
Template source loaders.

A loader maps a template name to its source text. Compilation and
caching of the parsed templates is the Engine's job, so loaders stay
trivial and stateless.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Union

from .errors import TemplateNotFound

logger = logging.getLogger(__name__)


class BaseLoader:
    """Base class for template source loaders."""

    def get_source(self, name: str) -> str:
        """
        Returns the source text of the named template.

        Raises:
            TemplateNotFound: The loader has no such template
        """
        raise NotImplementedError()

    def list_templates(self) -> List[str]:
        """Names of all templates this loader can serve (for tooling)."""
        return []


class DictLoader(BaseLoader):
    """Loads templates from an in-memory mapping of name -> source."""

    def __init__(self, templates: Mapping[str, str]):
        self.templates: Dict[str, str] = dict(templates)

    def get_source(self, name: str) -> str:
        try:
            return self.templates[name]
        except KeyError:
            raise TemplateNotFound(name) from None

    def list_templates(self) -> List[str]:
        return sorted(self.templates)


class FileSystemLoader(BaseLoader):
    """
    Loads templates from one or more root directories.

    Template names are '/'-separated paths relative to a root; names that
    would escape the root (absolute paths, '..') are never found.
    """

    def __init__(self, searchpath: Union[str, Path, Sequence[Union[str, Path]]], encoding: str = "utf-8"):
        if isinstance(searchpath, (str, Path)):
            paths = [Path(searchpath)]
        else:
            paths = [Path(p) for p in searchpath]
        self.roots = [p.resolve() for p in paths]
        self.encoding = encoding

    def get_source(self, name: str) -> str:
        for root in self.roots:
            candidate = (root / name).resolve()
            if not candidate.is_relative_to(root):
                logger.debug(f"Template name '{name}' escapes root {root}")
                continue
            if candidate.is_file():
                logger.debug(f"Loading template '{name}' from {candidate}")
                return candidate.read_text(encoding=self.encoding)
        raise TemplateNotFound(name)

    def list_templates(self) -> List[str]:
        found = set()
        for root in self.roots:
            if not root.is_dir():
                continue
            for path in root.rglob("*"):
                if path.is_file():
                    found.add(path.relative_to(root).as_posix())
        return sorted(found)


__all__ = ["BaseLoader", "DictLoader", "FileSystemLoader"]
