"""
Таблица встроенных операторов.
"""

from __future__ import annotations

import dataclasses
from functools import partial
from typing import List, Union

from ..nodes import AndExpression, Expression, OrExpression, TestExpression
from ..types import Associativity, BinaryOperator, OperandKind, UnaryOperator
from .. import values

# Приоритеты: больше = связывает сильнее
PRECEDENCE_OR = 10
PRECEDENCE_AND = 15
PRECEDENCE_NOT = 18
PRECEDENCE_COMPARISON = 20
PRECEDENCE_RANGE = 25
PRECEDENCE_ADDITIVE = 30
PRECEDENCE_CONCAT = 40
PRECEDENCE_MULTIPLICATIVE = 60
PRECEDENCE_TEST = 100
PRECEDENCE_POWER = 200
PRECEDENCE_SIGN = 500


def negate_test(value: Expression, test: Expression, line: int) -> Expression:
    """Конструктор узла для "is not": инвертирует разобранный тест."""
    assert isinstance(test, TestExpression)
    return dataclasses.replace(test, negated=not test.negated)


def _keep_test(value: Expression, test: Expression, line: int) -> Expression:
    return test


def get_core_operators() -> List[Union[BinaryOperator, UnaryOperator]]:
    """Возвращает встроенные бинарные и унарные операторы."""
    def binary(symbol, precedence, function=None, **kwargs) -> BinaryOperator:
        return BinaryOperator(symbol=symbol, precedence=precedence, function=function, **kwargs)

    return [
        binary("or", PRECEDENCE_OR, node_factory=lambda l, r, line: OrExpression(left=l, right=r, line=line)),
        binary("and", PRECEDENCE_AND, node_factory=lambda l, r, line: AndExpression(left=l, right=r, line=line)),

        binary("==", PRECEDENCE_COMPARISON, values.values_equal),
        binary("!=", PRECEDENCE_COMPARISON, lambda l, r: not values.values_equal(l, r)),
        binary("<", PRECEDENCE_COMPARISON, partial(values.compare, "<")),
        binary(">", PRECEDENCE_COMPARISON, partial(values.compare, ">")),
        binary("<=", PRECEDENCE_COMPARISON, partial(values.compare, "<=")),
        binary(">=", PRECEDENCE_COMPARISON, partial(values.compare, ">=")),
        binary("in", PRECEDENCE_COMPARISON, lambda l, r: values.contains(r, l)),
        binary("not in", PRECEDENCE_COMPARISON, lambda l, r: values.not_contains(r, l)),

        binary("..", PRECEDENCE_RANGE, values.make_range),
        binary("+", PRECEDENCE_ADDITIVE, values.add),
        binary("-", PRECEDENCE_ADDITIVE, values.subtract),
        binary("~", PRECEDENCE_CONCAT, values.concat),
        binary("*", PRECEDENCE_MULTIPLICATIVE, values.multiply),
        binary("/", PRECEDENCE_MULTIPLICATIVE, values.divide),
        binary("//", PRECEDENCE_MULTIPLICATIVE, values.floor_divide),
        binary("%", PRECEDENCE_MULTIPLICATIVE, values.modulo),

        binary("is", PRECEDENCE_TEST, node_factory=_keep_test, operand=OperandKind.TEST),
        binary("is not", PRECEDENCE_TEST, node_factory=negate_test, operand=OperandKind.TEST),

        binary("**", PRECEDENCE_POWER, values.power, associativity=Associativity.RIGHT),

        UnaryOperator(symbol="not", precedence=PRECEDENCE_NOT, function=values.logical_not),
        UnaryOperator(symbol="-", precedence=PRECEDENCE_SIGN, function=values.negate),
        UnaryOperator(symbol="+", precedence=PRECEDENCE_SIGN, function=values.positive),
    ]


__all__ = ["get_core_operators", "negate_test"]
