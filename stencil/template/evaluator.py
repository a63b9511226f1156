"""
Вычислитель выражений.

Проходит по AST выражения и вычисляет его значение в контексте рендеринга.
Выражения только читают контекст и никогда не пишут в вывод.
"""

from __future__ import annotations

from typing import Any, Dict, List, TYPE_CHECKING, cast

from .context import EvaluationContext
from .nodes import (
    AndExpression,
    BinaryExpression,
    Call,
    CustomExpression,
    Expression,
    ExpressionType,
    FilterExpression,
    GetAttr,
    GetItem,
    ListLiteral,
    Literal,
    MapLiteral,
    Name,
    OrExpression,
    TestExpression,
    UnaryExpression,
)
from .registry import ExtensionRegistry
from .values import describe, get_attribute, get_item, is_truthy, is_undefined
from ..errors import RenderError, TemplateError, TemplateTypeError

if TYPE_CHECKING:
    from .handlers import TemplateHandlers


class ExpressionEvaluator:
    """
    Вычислитель выражений.

    Операторы, фильтры и тесты берутся из реестра; исключения, которые
    бросают их функции, оборачиваются в RenderError.
    """

    def __init__(self, registry: ExtensionRegistry, handlers: "TemplateHandlers"):
        """
        Args:
            registry: Замороженный реестр расширений
            handlers: Обработчики ядра (parent(), вызовы макросов)
        """
        self.registry = registry
        self.handlers = handlers

    def evaluate(self, expression: Expression, context: EvaluationContext) -> Any:
        """
        Вычисляет значение выражения.

        Raises:
            RenderError: При ошибке вычисления
        """
        try:
            return self._dispatch(expression, context)
        except TemplateError as e:
            if not e.line:
                e.line = expression.line
                e.args = (e._format(),)
            raise e.with_template(context.template_name)

    def _dispatch(self, expression: Expression, context: EvaluationContext) -> Any:
        expression_type = expression.get_type()

        if expression_type == ExpressionType.LITERAL:
            return cast(Literal, expression).value
        elif expression_type == ExpressionType.NAME:
            return context.lookup(cast(Name, expression).name)
        elif expression_type == ExpressionType.LIST:
            return [self.evaluate(item, context) for item in cast(ListLiteral, expression).items]
        elif expression_type == ExpressionType.MAP:
            return self._evaluate_map(cast(MapLiteral, expression), context)
        elif expression_type == ExpressionType.ATTRIBUTE:
            node = cast(GetAttr, expression)
            return get_attribute(self.evaluate(node.target, context), node.attribute)
        elif expression_type == ExpressionType.ITEM:
            node = cast(GetItem, expression)
            return get_item(self.evaluate(node.target, context), self.evaluate(node.key, context))
        elif expression_type == ExpressionType.CALL:
            return self._evaluate_call(cast(Call, expression), context)
        elif expression_type == ExpressionType.FILTER:
            return self._evaluate_filter(cast(FilterExpression, expression), context)
        elif expression_type == ExpressionType.TEST:
            return self._evaluate_test(cast(TestExpression, expression), context)
        elif expression_type == ExpressionType.UNARY:
            return self._evaluate_unary(cast(UnaryExpression, expression), context)
        elif expression_type == ExpressionType.BINARY:
            return self._evaluate_binary(cast(BinaryExpression, expression), context)
        elif expression_type == ExpressionType.AND:
            return self._evaluate_and(cast(AndExpression, expression), context)
        elif expression_type == ExpressionType.OR:
            return self._evaluate_or(cast(OrExpression, expression), context)
        elif expression_type == ExpressionType.CUSTOM:
            return self._guarded(
                f"expression '{type(expression).__name__}'",
                lambda: cast(CustomExpression, expression).evaluate(self, context),
            )
        else:
            raise RenderError(f"Unknown expression type: {expression_type}")

    def _evaluate_map(self, node: MapLiteral, context: EvaluationContext) -> Dict[Any, Any]:
        result: Dict[Any, Any] = {}
        for key_expr, value_expr in node.pairs:
            key = self.evaluate(key_expr, context)
            try:
                hash(key)
            except TypeError:
                raise TemplateTypeError(f"Map key must be hashable, got {describe(key)}", line=key_expr.line)
            result[key] = self.evaluate(value_expr, context)
        return result

    def _evaluate_args(self, args, kwargs, context: EvaluationContext):
        positional: List[Any] = [self.evaluate(arg, context) for arg in args]
        named: Dict[str, Any] = {name: self.evaluate(value, context) for name, value in kwargs}
        return positional, named

    def _evaluate_call(self, node: Call, context: EvaluationContext) -> Any:
        """
        Вычисляет вызов.

        Для простого имени порядок разрешения: parent(), видимый макрос,
        вызываемое значение контекста.
        """
        if isinstance(node.callee, Name):
            name = node.callee.name
            if name == "parent" and not node.args and not node.kwargs:
                return self.handlers.render_parent(context, node.line)

            macro = context.find_macro(name)
            if macro is not None:
                args, kwargs = self._evaluate_args(node.args, node.kwargs, context)
                return macro(*args, **kwargs)

            function = context.lookup(name)
            if is_undefined(function):
                raise RenderError(f"Unknown function or macro '{name}'")
        else:
            function = self.evaluate(node.callee, context)

        if not callable(function):
            raise TemplateTypeError(f"Cannot call {describe(function)}")

        args, kwargs = self._evaluate_args(node.args, node.kwargs, context)
        return self.handlers.call_value(function, args, kwargs, context, node.line)

    def _evaluate_filter(self, node: FilterExpression, context: EvaluationContext) -> Any:
        spec = self.registry.get_filter(node.name)
        if spec is None:
            raise RenderError(f"Unknown filter '{node.name}'")

        value = self.evaluate(node.value, context)
        if is_undefined(value) and not spec.accepts_undefined:
            raise TemplateTypeError(f"Filter '{node.name}' cannot be applied to {describe(value)}")

        args, kwargs = self._evaluate_args(node.args, node.kwargs, context)
        return self._guarded(f"filter '{node.name}'", lambda: spec.function(value, *args, **kwargs))

    def _evaluate_test(self, node: TestExpression, context: EvaluationContext) -> bool:
        spec = self.registry.get_test(node.name)
        if spec is None:
            raise RenderError(f"Unknown test '{node.name}'")

        value = self.evaluate(node.value, context)
        if is_undefined(value) and not spec.accepts_undefined:
            raise TemplateTypeError(f"Test '{node.name}' cannot be applied to {describe(value)}")

        args, _ = self._evaluate_args(node.args, (), context)
        result = bool(self._guarded(f"test '{node.name}'", lambda: spec.function(value, *args)))
        return not result if node.negated else result

    def _evaluate_unary(self, node: UnaryExpression, context: EvaluationContext) -> Any:
        operator = self.registry.get_unary_operator(node.operator)
        if operator is None or operator.function is None:
            raise RenderError(f"Unknown unary operator '{node.operator}'")
        operand = self.evaluate(node.operand, context)
        return self._guarded(f"operator '{node.operator}'", lambda: operator.function(operand))

    def _evaluate_binary(self, node: BinaryExpression, context: EvaluationContext) -> Any:
        operator = self.registry.get_binary_operator(node.operator)
        if operator is None or operator.function is None:
            raise RenderError(f"Unknown operator '{node.operator}'")
        left = self.evaluate(node.left, context)
        right = self.evaluate(node.right, context)
        return self._guarded(f"operator '{node.operator}'", lambda: operator.function(left, right))

    def _evaluate_and(self, node: AndExpression, context: EvaluationContext) -> bool:
        """Правый операнд не вычисляется, если левый ложен."""
        if not is_truthy(self.evaluate(node.left, context)):
            return False
        return is_truthy(self.evaluate(node.right, context))

    def _evaluate_or(self, node: OrExpression, context: EvaluationContext) -> bool:
        """Правый операнд не вычисляется, если левый истинен."""
        if is_truthy(self.evaluate(node.left, context)):
            return True
        return is_truthy(self.evaluate(node.right, context))

    @staticmethod
    def _guarded(what: str, function):
        """Вызывает функцию расширения, оборачивая посторонние исключения в RenderError."""
        try:
            return function()
        except TemplateError:
            raise
        except Exception as e:
            raise RenderError(f"Error in {what}: {e}") from e


__all__ = ["ExpressionEvaluator"]
