"""
Парсер инструкций шаблона.

Рекурсивный спуск по потоку токенов: текст и {{ выражения }} разбираются
ядром, а теги {% name ... %} делегируются разборщикам, зарегистрированным
в реестре расширений. Разборщик тега может рекурсивно вызывать
parse_body() для вложенных тел и останавливается на своих завершающих
ключевых словах.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from .expressions import ExpressionParser
from .nodes import Expression, PrintNode, RenderableNode, TemplateAST, TextNode, is_blank_text
from .registry import ExtensionRegistry
from .tokens import Token, TokenType
from .types import TokenStream
from ..errors import ParseError, TemplateError

logger = logging.getLogger(__name__)


class TemplateParser:
    """
    Парсер одного шаблона.

    После parse() в атрибутах extends, blocks и macros лежат сведения,
    которые разборщики тегов объявили через declare_* методы.
    """

    def __init__(self, registry: ExtensionRegistry, tokens: List[Token], template_name: str = ""):
        """
        Args:
            registry: Реестр с разборщиками тегов и таблицей операторов
            tokens: Токены от лексера
            template_name: Имя шаблона для сообщений об ошибках
        """
        self.registry = registry
        self.template_name = template_name
        self.stream = TokenStream(tokens, template_name)
        self.expressions = ExpressionParser(registry)

        # Глубина вложенности тел (0 - верхний уровень шаблона)
        self.nesting_depth = 0
        # Количество значимых узлов верхнего уровня, разобранных до сих пор
        self.top_level_count = 0

        self.extends: Optional[Expression] = None
        self.blocks: Dict[str, RenderableNode] = {}
        self.macros: Dict[str, RenderableNode] = {}

    def parse(self) -> TemplateAST:
        """
        Разбирает весь шаблон.

        Returns:
            Узлы верхнего уровня

        Raises:
            ParseError: При синтаксической ошибке
        """
        nodes, _ = self._subparse(())
        logger.debug(
            f"Parsed '{self.template_name}': {len(nodes)} top-level nodes, "
            f"{len(self.blocks)} blocks, {len(self.macros)} macros"
        )
        return nodes

    def parse_body(self, end_tags: Tuple[str, ...]) -> Tuple[TemplateAST, Token]:
        """
        Разбирает вложенное тело до одного из завершающих тегов.

        Возвращает узлы тела и токен имени найденного завершающего тега;
        поток остается сразу после имени, остаток тега разбирает вызывающий.

        Raises:
            ParseError: Конец шаблона до завершающего тега
        """
        self.nesting_depth += 1
        try:
            nodes, end_token = self._subparse(end_tags)
        finally:
            self.nesting_depth -= 1
        assert end_token is not None
        return nodes, end_token

    def parse_expression(self) -> Expression:
        """Разбирает выражение с текущей позиции."""
        return self.expressions.parse(self.stream)

    def expect_tag_end(self) -> Token:
        """Потребляет закрывающий разделитель тега."""
        return self.stream.consume(TokenType.EXECUTE_END)

    def error(self, message: str, token: Optional[Token] = None) -> ParseError:
        return self.stream.error(message, token)

    # Объявления, которые делают разборщики тегов

    def declare_extends(self, expression: Expression, token: Token) -> None:
        """
        Объявляет родительский шаблон.

        Raises:
            ParseError: extends не первый оператор или вложен в другой тег
        """
        if self.nesting_depth > 0 or self.top_level_count > 0 or self.extends is not None:
            raise self.error("'extends' must be the first statement of the template", token)
        self.extends = expression

    def declare_block(self, name: str, node: RenderableNode, token: Token) -> None:
        if name in self.blocks:
            raise self.error(f"Block '{name}' is defined more than once", token)
        self.blocks[name] = node

    def declare_macro(self, name: str, node: RenderableNode, token: Token) -> None:
        if name in self.macros:
            raise self.error(f"Macro '{name}' is defined more than once", token)
        self.macros[name] = node

    # Разбор

    def _subparse(self, end_tags: Tuple[str, ...]) -> Tuple[TemplateAST, Optional[Token]]:
        nodes: TemplateAST = []
        stream = self.stream

        while True:
            token = stream.current()

            if token.type == TokenType.EOF:
                if end_tags:
                    expected = ", ".join(f"'{t}'" for t in end_tags)
                    raise self.error(f"Unexpected end of template, expected {expected}", token)
                return nodes, None

            if token.type == TokenType.TEXT:
                stream.advance()
                self._append(nodes, TextNode(text=token.value, line=token.line))

            elif token.type == TokenType.PRINT_START:
                stream.advance()
                expression = self.expressions.parse(stream)
                stream.consume(TokenType.PRINT_END)
                self._append(nodes, PrintNode(expression=expression, line=token.line))

            elif token.type == TokenType.EXECUTE_START:
                name_token = stream.peek()
                if name_token.type == TokenType.NAME and name_token.value in end_tags:
                    stream.advance()
                    stream.advance()
                    return nodes, name_token

                stream.advance()
                node = self._parse_tag(stream.current())
                if node is not None:
                    self._append(nodes, node)

            else:
                raise self.error(f"Unexpected {token.describe()}", token)

    def _parse_tag(self, name_token: Token) -> Optional[RenderableNode]:
        """Находит разборщик тега в реестре и передает ему управление."""
        if name_token.type != TokenType.NAME:
            raise self.error(f"Expected tag name, got {name_token.describe()}", name_token)

        rule = self.registry.get_tag(name_token.value)
        if rule is None:
            opener = self.registry.end_tags.get(name_token.value)
            if opener is not None:
                raise self.error(f"Unexpected '{name_token.value}' outside of '{opener}'", name_token)
            raise self.error(f"Unknown tag '{name_token.value}'", name_token)

        self.stream.advance()
        logger.debug(f"Dispatching tag '{name_token.value}' at line {name_token.line}")
        try:
            return rule.parser_func(self, name_token)
        except TemplateError as e:
            raise e.with_template(self.template_name)
        except Exception as e:
            raise self.error(f"Tag '{name_token.value}' failed to parse: {e}", name_token) from e

    def _append(self, nodes: TemplateAST, node: RenderableNode) -> None:
        if self.nesting_depth == 0 and not is_blank_text(node):
            self.top_level_count += 1
        nodes.append(node)


__all__ = ["TemplateParser"]
