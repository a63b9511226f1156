"""
Встроенные тесты для выражений "value is name" / "value is not name".
"""

from __future__ import annotations

from typing import Any, List

from ..types import TestSpec
from ..values import ValueKind, describe, is_empty, is_iterable, is_undefined, kind_of
from ...errors import TemplateTypeError


def _require_integer(name: str, value: Any) -> int:
    if kind_of(value) != ValueKind.NUMBER or int(value) != value:
        raise TemplateTypeError(f"Test '{name}' expects an integer, got {describe(value)}")
    return int(value)


def is_even(value: Any) -> bool:
    return _require_integer("even", value) % 2 == 0


def is_odd(value: Any) -> bool:
    return _require_integer("odd", value) % 2 == 1


def is_null(value: Any) -> bool:
    """null и undefined."""
    return kind_of(value) in (ValueKind.NULL, ValueKind.UNDEFINED)


def is_defined(value: Any) -> bool:
    return not is_undefined(value)


def get_core_tests() -> List[TestSpec]:
    """Возвращает встроенные тесты."""
    return [
        TestSpec(name="even", function=is_even),
        TestSpec(name="odd", function=is_odd),
        TestSpec(name="null", function=is_null, accepts_undefined=True),
        TestSpec(name="none", function=is_null, accepts_undefined=True),
        TestSpec(name="empty", function=is_empty, accepts_undefined=True),
        TestSpec(name="iterable", function=is_iterable, accepts_undefined=True),
        TestSpec(name="defined", function=is_defined, accepts_undefined=True),
    ]


__all__ = ["get_core_tests"]
