"""
Модель значений шаблона.

Каждое значение хоста относится к одному из видов ValueKind; правила
истинности, сравнения, арифметики и преобразования в строку определены
для каждой пары видов явно. Неопределенное имя представлено Undefined.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from enum import Enum
from numbers import Number
from typing import Any, Callable, Iterator, List, Optional

from ..errors import RenderError, TemplateTypeError


class ValueKind(Enum):
    """Виды значений."""
    NULL = "null"
    UNDEFINED = "undefined"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    OBJECT = "object"


class Undefined:
    """
    Значение неопределенного имени.

    Ложно, печатается как пустая строка. Доступ к атрибутам, арифметика
    и итерация по нему являются ошибкой типа.
    """

    __slots__ = ("name",)

    def __init__(self, name: str = ""):
        self.name = name

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"Undefined({self.name!r})"


def is_undefined(value: Any) -> bool:
    return isinstance(value, Undefined)


def kind_of(value: Any) -> ValueKind:
    """Определяет вид значения."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, Undefined):
        return ValueKind.UNDEFINED
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, Number):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, (Sequence, set, frozenset)) and not isinstance(value, (bytes, bytearray)):
        return ValueKind.SEQUENCE
    return ValueKind.OBJECT


def describe(value: Any) -> str:
    """Краткое описание значения для сообщений об ошибках."""
    if isinstance(value, Undefined):
        return f"undefined '{value.name}'" if value.name else "undefined"
    return kind_of(value).value


def is_truthy(value: Any) -> bool:
    """
    Истинность значения в условиях.

    null/undefined - ложь; пустая или пробельная строка - ложь;
    пустая коллекция - ложь; ноль - ложь; остальное - истина.
    """
    kind = kind_of(value)
    if kind in (ValueKind.NULL, ValueKind.UNDEFINED):
        return False
    if kind in (ValueKind.BOOL, ValueKind.NUMBER):
        return bool(value)
    if kind == ValueKind.STRING:
        return bool(value.strip())
    if kind in (ValueKind.SEQUENCE, ValueKind.MAPPING):
        return len(value) > 0
    return True


def is_empty(value: Any) -> bool:
    """Тест empty: null, undefined, пробельная строка, пустая коллекция."""
    kind = kind_of(value)
    if kind in (ValueKind.NULL, ValueKind.UNDEFINED):
        return True
    if kind == ValueKind.STRING:
        return not value.strip()
    if kind in (ValueKind.SEQUENCE, ValueKind.MAPPING):
        return len(value) == 0
    return False


def values_equal(left: Any, right: Any) -> bool:
    """
    Равенство по значению.

    null и undefined равны друг другу; bool не равен числу;
    значения разных видов не равны.
    """
    left_kind, right_kind = kind_of(left), kind_of(right)
    absent = (ValueKind.NULL, ValueKind.UNDEFINED)
    if left_kind in absent or right_kind in absent:
        return left_kind in absent and right_kind in absent
    if left_kind != right_kind:
        return False
    return left == right


def compare(symbol: str, left: Any, right: Any) -> bool:
    """Упорядочивающее сравнение: только число с числом и строка со строкой."""
    left_kind, right_kind = kind_of(left), kind_of(right)
    if left_kind != right_kind or left_kind not in (ValueKind.NUMBER, ValueKind.STRING):
        raise TemplateTypeError(f"Cannot compare {describe(left)} and {describe(right)} with '{symbol}'")
    if symbol == "<":
        return left < right
    if symbol == ">":
        return left > right
    if symbol == "<=":
        return left <= right
    return left >= right


def _require_numbers(symbol: str, *operands: Any) -> None:
    for operand in operands:
        if kind_of(operand) != ValueKind.NUMBER:
            kinds = " and ".join(describe(o) for o in operands)
            raise TemplateTypeError(f"Operator '{symbol}' requires numbers, got {kinds}")


def _arithmetic(symbol: str, function: Callable[[Any, Any], Any]) -> Callable[[Any, Any], Any]:
    def apply(left: Any, right: Any) -> Any:
        _require_numbers(symbol, left, right)
        try:
            return function(left, right)
        except ZeroDivisionError as e:
            raise RenderError(f"Division by zero in '{symbol}'") from e
    return apply


add = _arithmetic("+", lambda a, b: a + b)
subtract = _arithmetic("-", lambda a, b: a - b)
multiply = _arithmetic("*", lambda a, b: a * b)
divide = _arithmetic("/", lambda a, b: a / b)
floor_divide = _arithmetic("//", lambda a, b: a // b)
modulo = _arithmetic("%", lambda a, b: a % b)
power = _arithmetic("**", lambda a, b: a ** b)


def negate(value: Any) -> Any:
    _require_numbers("-", value)
    return -value


def positive(value: Any) -> Any:
    _require_numbers("+", value)
    return +value


def logical_not(value: Any) -> bool:
    return not is_truthy(value)


def concat(left: Any, right: Any) -> str:
    """Оператор ~: конкатенация строковых представлений."""
    return to_string(left) + to_string(right)


def contains(container: Any, item: Any) -> bool:
    """Оператор in: вхождение в строку, последовательность или ключи словаря."""
    kind = kind_of(container)
    if kind == ValueKind.STRING:
        if kind_of(item) != ValueKind.STRING:
            raise TemplateTypeError(f"Cannot search {describe(item)} in a string")
        return item in container
    if kind == ValueKind.MAPPING:
        return any(values_equal(key, item) for key in container.keys())
    if kind == ValueKind.SEQUENCE:
        return any(values_equal(element, item) for element in container)
    raise TemplateTypeError(f"Operator 'in' requires a string, sequence or mapping, got {describe(container)}")


def not_contains(container: Any, item: Any) -> bool:
    return not contains(container, item)


def make_range(start: Any, end: Any) -> List[int]:
    """Оператор ..: включительный диапазон целых чисел."""
    for bound in (start, end):
        if kind_of(bound) != ValueKind.NUMBER or int(bound) != bound:
            raise TemplateTypeError(f"Range bounds must be integers, got {describe(bound)}")
    start, end = int(start), int(end)
    step = 1 if end >= start else -1
    return list(range(start, end + step, step))


def to_string(value: Any, strict: bool = False) -> str:
    """
    Строковое представление значения для вывода.

    Args:
        value: Значение
        strict: Режим strict_variables - вывод undefined является ошибкой

    Raises:
        RenderError: В строгом режиме для undefined
    """
    kind = kind_of(value)
    if kind == ValueKind.UNDEFINED:
        if strict:
            raise RenderError(f"Variable '{value.name}' is undefined")
        return ""
    if kind == ValueKind.NULL:
        return ""
    if kind == ValueKind.BOOL:
        return "true" if value else "false"
    if kind == ValueKind.NUMBER:
        return str(value)
    if kind == ValueKind.STRING:
        return value
    return str(value)


def get_attribute(obj: Any, name: str) -> Any:
    """
    Доступ к атрибуту: ключ словаря или публичный атрибут объекта.

    У словаря сначала ищется ключ, затем публичный атрибут (d.items()).
    Отсутствующий атрибут дает Undefined. Обращение к атрибуту null
    или undefined - ошибка типа.
    """
    kind = kind_of(obj)
    if kind in (ValueKind.NULL, ValueKind.UNDEFINED):
        raise TemplateTypeError(f"Cannot read attribute '{name}' of {describe(obj)}")
    if kind == ValueKind.MAPPING and name in obj:
        return obj[name]
    if name.startswith("_"):
        return Undefined(name)
    return getattr(obj, name, Undefined(name))


def get_item(obj: Any, key: Any) -> Any:
    """
    Доступ по индексу или ключу.

    Для последовательностей нужен целочисленный индекс, для строковых
    ключей у объектов - доступ к атрибуту.
    """
    kind = kind_of(obj)
    if kind in (ValueKind.NULL, ValueKind.UNDEFINED):
        raise TemplateTypeError(f"Cannot read item {to_string(key)!r} of {describe(obj)}")
    if kind == ValueKind.MAPPING:
        try:
            return obj[key]
        except (KeyError, TypeError):
            return Undefined(to_string(key))
    if kind in (ValueKind.SEQUENCE, ValueKind.STRING):
        if kind_of(key) != ValueKind.NUMBER or int(key) != key:
            raise TemplateTypeError(f"Sequence index must be an integer, got {describe(key)}")
        if isinstance(obj, (set, frozenset)):
            raise TemplateTypeError("Cannot index a set")
        try:
            return obj[int(key)]
        except IndexError:
            return Undefined(f"[{key}]")
    if kind_of(key) == ValueKind.STRING:
        return get_attribute(obj, key)
    raise TemplateTypeError(f"Cannot index {describe(obj)} with {describe(key)}")


def is_iterable(value: Any) -> bool:
    """Тест iterable: коллекции и итерируемые объекты, но не строки."""
    kind = kind_of(value)
    if kind in (ValueKind.SEQUENCE, ValueKind.MAPPING):
        return True
    if kind == ValueKind.OBJECT:
        return isinstance(value, Iterable)
    return False


def iterate(value: Any, pairs: bool = False) -> Iterator[Any]:
    """
    Итерирует значение для цикла for.

    Словарь дает значения (или пары ключ-значение при pairs=True).

    Raises:
        TemplateTypeError: Значение не итерируемо
    """
    if not is_iterable(value):
        raise TemplateTypeError(f"Cannot iterate over {describe(value)}")
    if kind_of(value) == ValueKind.MAPPING:
        return iter(value.items()) if pairs else iter(value.values())
    return iter(value)


def sized_length(value: Any) -> Optional[int]:
    """Длина коллекции, если она вычислима без итерации."""
    try:
        return len(value)
    except TypeError:
        return None


__all__ = [
    "ValueKind",
    "Undefined",
    "is_undefined",
    "kind_of",
    "describe",
    "is_truthy",
    "is_empty",
    "values_equal",
    "compare",
    "add",
    "subtract",
    "multiply",
    "divide",
    "floor_divide",
    "modulo",
    "power",
    "negate",
    "positive",
    "logical_not",
    "concat",
    "contains",
    "not_contains",
    "make_range",
    "to_string",
    "get_attribute",
    "get_item",
    "is_iterable",
    "iterate",
    "sized_length",
]
