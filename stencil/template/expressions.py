"""
Парсер выражений с приоритетами операторов (precedence climbing).

Грамматика:
expression → unary (binary_op expression)*
unary      → unary_op expression | postfix
postfix    → primary ( "." NAME | "[" expression "]" | "(" args ")" | "|" NAME ("(" args ")")? )*
primary    → NUMBER | STRING | NAME | "(" expression ")" | list | map

Таблица операторов берется из реестра расширений: символ, приоритет,
ассоциативность и конструктор узла. Фильтры разбираются как постфиксные
операции и связывают сильнее любого бинарного оператора.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from .nodes import (
    BinaryExpression,
    Call,
    Expression,
    FilterExpression,
    GetAttr,
    GetItem,
    ListLiteral,
    Literal,
    MapLiteral,
    Name,
    TestExpression,
    UnaryExpression,
)
from .registry import ExtensionRegistry
from .tokens import Token, TokenType
from .types import Associativity, BinaryOperator, OperandKind, TokenStream

_KEYWORD_LITERALS = {
    "true": True,
    "false": False,
    "null": None,
    "none": None,
}

Arguments = Tuple[Tuple[Expression, ...], Tuple[Tuple[str, Expression], ...]]


class ExpressionParser:
    """
    Парсер выражений.

    Не хранит состояния между вызовами: позиция разбора живет в TokenStream.
    """

    def __init__(self, registry: ExtensionRegistry):
        self.registry = registry

    def parse(self, stream: TokenStream) -> Expression:
        """
        Разбирает одно выражение начиная с текущего токена.

        Raises:
            ParseError: При синтаксической ошибке
        """
        return self.parse_expression(stream, 0)

    def parse_expression(self, stream: TokenStream, min_precedence: int = 0) -> Expression:
        """
        Разбирает выражение, поглощая бинарные операторы с приоритетом
        не ниже min_precedence.
        """
        left = self._parse_unary(stream)

        while True:
            token = stream.current()
            operator = self._binary_operator(token)
            if operator is None or operator.precedence < min_precedence:
                return left

            stream.advance()

            if operator.operand == OperandKind.TEST:
                left = self._parse_test(stream, left, operator, token)
                continue

            # Левая ассоциативность: правый операнд не может содержать оператор того же уровня
            if operator.associativity == Associativity.LEFT:
                threshold = operator.precedence + 1
            else:
                threshold = operator.precedence

            right = self.parse_expression(stream, threshold)

            if operator.node_factory is not None:
                left = operator.node_factory(left, right, token.line)
            else:
                left = BinaryExpression(operator=operator.symbol, left=left, right=right, line=token.line)

    def _binary_operator(self, token: Token) -> Optional[BinaryOperator]:
        if token.type != TokenType.OPERATOR:
            return None
        return self.registry.get_binary_operator(token.value)

    def _parse_unary(self, stream: TokenStream) -> Expression:
        token = stream.current()
        if token.type == TokenType.OPERATOR:
            operator = self.registry.get_unary_operator(token.value)
            if operator is None:
                raise stream.error(f"Unexpected operator '{token.value}'", token)
            stream.advance()
            operand = self.parse_expression(stream, operator.precedence)
            if operator.node_factory is not None:
                return operator.node_factory(operand, token.line)
            return UnaryExpression(operator=operator.symbol, operand=operand, line=token.line)

        return self._parse_postfix(stream, self._parse_primary(stream))

    def _parse_test(self, stream: TokenStream, value: Expression, operator: BinaryOperator, token: Token) -> Expression:
        """Разбирает правую часть "is" / "is not": имя теста и необязательные аргументы."""
        name_token = stream.current()
        if name_token.type != TokenType.NAME:
            raise stream.error(f"Expected test name after '{operator.symbol}', got {name_token.describe()}", name_token)
        stream.advance()

        if self.registry.get_test(name_token.value) is None:
            raise stream.error(f"Unknown test '{name_token.value}'", name_token)

        args: Tuple[Expression, ...] = ()
        if stream.match(TokenType.PUNCTUATION, "("):
            args, kwargs = self.parse_arguments(stream)
            if kwargs:
                raise stream.error(f"Test '{name_token.value}' does not accept keyword arguments", name_token)

        test = TestExpression(value=value, name=name_token.value, args=args, line=token.line)
        if operator.node_factory is not None:
            return operator.node_factory(value, test, token.line)
        return test

    def _parse_primary(self, stream: TokenStream) -> Expression:
        token = stream.current()

        if token.type == TokenType.NUMBER:
            stream.advance()
            value = float(token.value) if "." in token.value else int(token.value)
            return Literal(value=value, line=token.line)

        if token.type == TokenType.STRING:
            stream.advance()
            return Literal(value=token.value, line=token.line)

        if token.type == TokenType.NAME:
            stream.advance()
            if token.value in _KEYWORD_LITERALS:
                return Literal(value=_KEYWORD_LITERALS[token.value], line=token.line)
            return Name(name=token.value, line=token.line)

        if token.test(TokenType.PUNCTUATION, "("):
            stream.advance()
            expression = self.parse_expression(stream, 0)
            stream.consume(TokenType.PUNCTUATION, ")")
            return expression

        if token.test(TokenType.PUNCTUATION, "["):
            return self._parse_list(stream)

        if token.test(TokenType.PUNCTUATION, "{"):
            return self._parse_map(stream)

        raise stream.error(f"Expected an expression, got {token.describe()}", token)

    def _parse_list(self, stream: TokenStream) -> Expression:
        opening = stream.consume(TokenType.PUNCTUATION, "[")
        items: List[Expression] = []
        while not stream.match(TokenType.PUNCTUATION, "]"):
            if items:
                stream.consume(TokenType.PUNCTUATION, ",")
            items.append(self.parse_expression(stream, 0))
        stream.consume(TokenType.PUNCTUATION, "]")
        return ListLiteral(items=tuple(items), line=opening.line)

    def _parse_map(self, stream: TokenStream) -> Expression:
        """Разбирает {key: value, ...}; голое имя в позиции ключа - строковый ключ."""
        opening = stream.consume(TokenType.PUNCTUATION, "{")
        pairs: List[Tuple[Expression, Expression]] = []
        while not stream.match(TokenType.PUNCTUATION, "}"):
            if pairs:
                stream.consume(TokenType.PUNCTUATION, ",")
            key_token = stream.current()
            if key_token.type == TokenType.NAME and stream.peek().test(TokenType.PUNCTUATION, ":"):
                stream.advance()
                key: Expression = Literal(value=key_token.value, line=key_token.line)
            else:
                key = self.parse_expression(stream, 0)
            stream.consume(TokenType.PUNCTUATION, ":")
            pairs.append((key, self.parse_expression(stream, 0)))
        stream.consume(TokenType.PUNCTUATION, "}")
        return MapLiteral(pairs=tuple(pairs), line=opening.line)

    def _parse_postfix(self, stream: TokenStream, node: Expression) -> Expression:
        """Разбирает цепочку доступа к атрибутам, индексов, вызовов и фильтров."""
        while True:
            token = stream.current()

            if token.test(TokenType.PUNCTUATION, "."):
                stream.advance()
                attribute = stream.current()
                if attribute.type not in (TokenType.NAME, TokenType.NUMBER):
                    raise stream.error(f"Expected attribute name after '.', got {attribute.describe()}", attribute)
                stream.advance()
                if attribute.type == TokenType.NUMBER:
                    # a.0.1 лексер отдает как a . "0.1": каждая часть - отдельный индекс
                    for index in attribute.value.split("."):
                        node = GetItem(target=node, key=Literal(value=int(index), line=token.line), line=token.line)
                else:
                    node = GetAttr(target=node, attribute=attribute.value, line=token.line)

            elif token.test(TokenType.PUNCTUATION, "["):
                stream.advance()
                key = self.parse_expression(stream, 0)
                stream.consume(TokenType.PUNCTUATION, "]")
                node = GetItem(target=node, key=key, line=token.line)

            elif token.test(TokenType.PUNCTUATION, "("):
                args, kwargs = self.parse_arguments(stream)
                node = Call(callee=node, args=args, kwargs=kwargs, line=token.line)

            elif token.test(TokenType.PUNCTUATION, "|"):
                stream.advance()
                name_token = stream.current()
                if name_token.type != TokenType.NAME:
                    raise stream.error(f"Expected filter name after '|', got {name_token.describe()}", name_token)
                stream.advance()
                if self.registry.get_filter(name_token.value) is None:
                    raise stream.error(f"Unknown filter '{name_token.value}'", name_token)
                args, kwargs = (), ()
                if stream.match(TokenType.PUNCTUATION, "("):
                    args, kwargs = self.parse_arguments(stream)
                node = FilterExpression(value=node, name=name_token.value, args=args, kwargs=kwargs, line=token.line)

            else:
                return node

    def parse_arguments(self, stream: TokenStream) -> Arguments:
        """
        Разбирает список аргументов "(a, b, key=value)".

        Raises:
            ParseError: Позиционный аргумент после именованного
        """
        stream.consume(TokenType.PUNCTUATION, "(")
        args: List[Expression] = []
        kwargs: List[Tuple[str, Expression]] = []

        while not stream.match(TokenType.PUNCTUATION, ")"):
            if args or kwargs:
                stream.consume(TokenType.PUNCTUATION, ",")
            token = stream.current()
            if token.type == TokenType.NAME and stream.peek().test(TokenType.PUNCTUATION, "="):
                stream.advance()
                stream.advance()
                kwargs.append((token.value, self.parse_expression(stream, 0)))
            else:
                if kwargs:
                    raise stream.error("Positional argument follows keyword argument", token)
                args.append(self.parse_expression(stream, 0))

        stream.consume(TokenType.PUNCTUATION, ")")
        return tuple(args), tuple(kwargs)


__all__ = ["ExpressionParser"]
