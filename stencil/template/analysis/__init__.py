"""
Template analysis utilities.

This package contains utilities for analyzing template structure
without performing full rendering: referenced templates for dependency
graphs and names the template expects from the render context.
"""

from __future__ import annotations

from .references import find_referenced_templates, find_undeclared_names

__all__ = ["find_referenced_templates", "find_undeclared_names"]
