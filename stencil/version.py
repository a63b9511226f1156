"""
Version of the installed distribution.

Kept free of imports from the rest of the package so that the CLI can
report a version even when something else fails to import.
"""

from __future__ import annotations

from importlib import metadata

DISTRIBUTION = "stencil-templates"


def tool_version() -> str:
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        # source checkout without an installed distribution
        return "0.0.0+local"

__all__ = ["DISTRIBUTION", "tool_version"]
