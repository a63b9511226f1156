"""
Библиотека встроенных фильтров.

Строковые фильтры пропускают null без изменений. Ошибки внутри фильтра
не подавляются: вычислитель оборачивает их в RenderError.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, List, Optional
from urllib.parse import quote_plus

from ..types import FilterSpec
from ..values import ValueKind, describe, is_empty, iterate, kind_of, sized_length, to_string
from ...errors import RenderError, TemplateTypeError


def _require_string(name: str, value: Any) -> str:
    if kind_of(value) != ValueKind.STRING:
        raise TemplateTypeError(f"Filter '{name}' expects a string, got {describe(value)}")
    return value


def lower(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _require_string("lower", value).lower()


def upper(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _require_string("upper", value).upper()


def capitalize(value: Any) -> Optional[str]:
    """Первая буква в верхний регистр, остальное без изменений."""
    if value is None:
        return None
    text = _require_string("capitalize", value)
    return text[:1].upper() + text[1:]


def trim(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _require_string("trim", value).strip()


def abbreviate(value: Any, width: int) -> Optional[str]:
    """
    Сокращает строку до width символов, заменяя хвост на "...".

    Raises:
        RenderError: width меньше 4
    """
    if value is None:
        return None
    text = _require_string("abbreviate", value)
    if kind_of(width) != ValueKind.NUMBER or int(width) != width:
        raise TemplateTypeError(f"Filter 'abbreviate' expects an integer width, got {describe(width)}")
    width = int(width)
    if width < 4:
        raise RenderError(f"Minimum abbreviation width is 4, got {width}")
    if len(text) <= width:
        return text
    return text[:width - 3] + "..."


def format_string(value: Any, *args: Any) -> Optional[str]:
    """printf-подобное форматирование: "%s of %d"|format(name, count)"""
    if value is None:
        return None
    return _require_string("format", value) % args


def format_date(value: Any, fmt: str, existing_format: Optional[str] = None) -> Optional[str]:
    """
    Форматирует дату по шаблону strftime.

    Строка разбирается по existing_format (strptime) или как ISO 8601,
    если формат не указан.

    Raises:
        RenderError: Строку не удалось разобрать
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            if existing_format is not None:
                value = datetime.strptime(value, existing_format)
            else:
                value = datetime.fromisoformat(value)
        except ValueError as e:
            raise RenderError(f"Cannot parse date {value!r}: {e}") from e
    if not isinstance(value, (date, datetime)):
        raise TemplateTypeError(f"Filter 'date' expects a date or a string, got {describe(value)}")
    return value.strftime(fmt)


def number_format(value: Any, spec: str = "") -> Optional[str]:
    """Форматирует число по спецификации format(): 1234.5|number_format(",.2f")"""
    if value is None:
        return None
    if kind_of(value) != ValueKind.NUMBER:
        raise TemplateTypeError(f"Filter 'number_format' expects a number, got {describe(value)}")
    return format(value, spec)


def url_encode(value: Any) -> Optional[str]:
    if value is None:
        return None
    return quote_plus(to_string(value))


def json_encode(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def default(value: Any, fallback: Any = "") -> Any:
    """Возвращает fallback для null, undefined, пустой строки и пустой коллекции."""
    if is_empty(value):
        return fallback
    return value


def length(value: Any) -> int:
    if value is None:
        return 0
    size = sized_length(value)
    if size is None:
        raise TemplateTypeError(f"Filter 'length' cannot measure {describe(value)}")
    return size


def join(value: Any, separator: str = "") -> Optional[str]:
    if value is None:
        return None
    return to_string(separator).join(to_string(item) for item in iterate(value))


def first(value: Any) -> Any:
    if value is None:
        return None
    if kind_of(value) == ValueKind.STRING:
        return value[:1]
    for item in iterate(value):
        return item
    return None


def last(value: Any) -> Any:
    if value is None:
        return None
    if kind_of(value) == ValueKind.STRING:
        return value[-1:]
    if kind_of(value) == ValueKind.SEQUENCE and not isinstance(value, (set, frozenset)):
        return value[-1] if len(value) else None
    result = None
    for item in iterate(value):
        result = item
    return result


def get_core_filters() -> List[FilterSpec]:
    """Возвращает встроенные фильтры."""
    return [
        FilterSpec(name="lower", function=lower),
        FilterSpec(name="upper", function=upper),
        FilterSpec(name="capitalize", function=capitalize),
        FilterSpec(name="trim", function=trim),
        FilterSpec(name="abbreviate", function=abbreviate),
        FilterSpec(name="format", function=format_string),
        FilterSpec(name="date", function=format_date),
        FilterSpec(name="number_format", function=number_format),
        FilterSpec(name="url_encode", function=url_encode),
        FilterSpec(name="json_encode", function=json_encode),
        FilterSpec(name="default", function=default, accepts_undefined=True),
        FilterSpec(name="length", function=length),
        FilterSpec(name="join", function=join),
        FilterSpec(name="first", function=first),
        FilterSpec(name="last", function=last),
    ]


__all__ = ["get_core_filters"]
