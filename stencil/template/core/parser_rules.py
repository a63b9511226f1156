"""
Правила разбора встроенных тегов.

Каждый разборщик получает парсер шаблона и токен имени тега; поток
стоит сразу после имени. Разборщик дочитывает тег до %}, при
необходимости рекурсивно разбирает тело и возвращает узел AST.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from .nodes import (
    BlockNode,
    ExtendsNode,
    ForNode,
    FromImportNode,
    IfNode,
    ImportNode,
    IncludeNode,
    MacroNode,
    MacroParameter,
    SetNode,
)
from ..nodes import Expression, RenderableNode
from ..parser import TemplateParser
from ..tokens import Token, TokenType
from ..types import TagRule

_IF_END_TAGS = ("elseif", "elif", "else", "endif")
_FOR_END_TAGS = ("else", "endfor")


class CoreTagParsers:
    """
    Разборщики встроенных тегов.
    """

    def parse_if(self, parser: TemplateParser, token: Token) -> RenderableNode:
        """
        Разбирает {% if cond %}...{% elseif cond %}...{% else %}...{% endif %}

        elif принимается как синоним elseif.
        """
        branches: List[Tuple[Expression, tuple]] = []
        condition = parser.parse_expression()
        parser.expect_tag_end()

        while True:
            body, end = parser.parse_body(_IF_END_TAGS)
            branches.append((condition, tuple(body)))

            if end.value in ("elseif", "elif"):
                condition = parser.parse_expression()
                parser.expect_tag_end()
                continue

            parser.expect_tag_end()
            if end.value == "else":
                else_body, _ = parser.parse_body(("endif",))
                parser.expect_tag_end()
                return IfNode(branches=tuple(branches), else_body=tuple(else_body), line=token.line)

            return IfNode(branches=tuple(branches), line=token.line)

    def parse_for(self, parser: TemplateParser, token: Token) -> RenderableNode:
        """Разбирает {% for x in items %} и {% for key, value in mapping %}."""
        stream = parser.stream
        targets = [stream.expect_name().value]
        if stream.skip_if(TokenType.PUNCTUATION, ","):
            targets.append(stream.expect_name().value)
        if len(set(targets)) != len(targets):
            raise parser.error(f"Duplicate loop variable '{targets[0]}'", token)

        stream.consume(TokenType.OPERATOR, "in")
        iterable = parser.parse_expression()
        parser.expect_tag_end()

        body, end = parser.parse_body(_FOR_END_TAGS)
        parser.expect_tag_end()

        else_body: Optional[tuple] = None
        if end.value == "else":
            nodes, _ = parser.parse_body(("endfor",))
            parser.expect_tag_end()
            else_body = tuple(nodes)

        return ForNode(
            targets=tuple(targets),
            iterable=iterable,
            body=tuple(body),
            else_body=else_body,
            line=token.line,
        )

    def parse_set(self, parser: TemplateParser, token: Token) -> RenderableNode:
        """Разбирает {% set name = expression %}."""
        name = parser.stream.expect_name().value
        parser.stream.consume(TokenType.PUNCTUATION, "=")
        value = parser.parse_expression()
        parser.expect_tag_end()
        return SetNode(name=name, value=value, line=token.line)

    def parse_block(self, parser: TemplateParser, token: Token) -> RenderableNode:
        """Разбирает {% block name %}...{% endblock [name] %}."""
        name = self._block_name(parser)
        parser.expect_tag_end()

        body, _ = parser.parse_body(("endblock",))
        closing = parser.stream.current()
        if closing.type in (TokenType.NAME, TokenType.STRING):
            parser.stream.advance()
            if closing.value != name:
                raise parser.error(f"Block '{name}' closed with 'endblock {closing.value}'", closing)
        parser.expect_tag_end()

        node = BlockNode(name=name, body=tuple(body), line=token.line)
        parser.declare_block(name, node, token)
        return node

    @staticmethod
    def _block_name(parser: TemplateParser) -> str:
        current = parser.stream.current()
        if current.type not in (TokenType.NAME, TokenType.STRING):
            raise parser.error(f"Expected block name, got {current.describe()}", current)
        parser.stream.advance()
        return current.value

    def parse_extends(self, parser: TemplateParser, token: Token) -> RenderableNode:
        """Разбирает {% extends expression %}."""
        expression = parser.parse_expression()
        parser.expect_tag_end()
        parser.declare_extends(expression, token)
        return ExtendsNode(expression=expression, line=token.line)

    def parse_macro(self, parser: TemplateParser, token: Token) -> RenderableNode:
        """Разбирает {% macro name(a, b=default) %}...{% endmacro [name] %}."""
        stream = parser.stream
        name = stream.expect_name().value

        parameters: List[MacroParameter] = []
        stream.consume(TokenType.PUNCTUATION, "(")
        while not stream.match(TokenType.PUNCTUATION, ")"):
            if parameters:
                stream.consume(TokenType.PUNCTUATION, ",")
            parameter = stream.expect_name()
            if any(p.name == parameter.value for p in parameters):
                raise parser.error(f"Duplicate parameter '{parameter.value}' in macro '{name}'", parameter)
            default = None
            if stream.skip_if(TokenType.PUNCTUATION, "="):
                default = parser.parse_expression()
            parameters.append(MacroParameter(name=parameter.value, default=default))
        stream.consume(TokenType.PUNCTUATION, ")")
        parser.expect_tag_end()

        body, _ = parser.parse_body(("endmacro",))
        closing = stream.current()
        if closing.type == TokenType.NAME:
            stream.advance()
            if closing.value != name:
                raise parser.error(f"Macro '{name}' closed with 'endmacro {closing.value}'", closing)
        parser.expect_tag_end()

        node = MacroNode(name=name, parameters=tuple(parameters), body=tuple(body), line=token.line)
        parser.declare_macro(name, node, token)
        return node

    def parse_import(self, parser: TemplateParser, token: Token) -> RenderableNode:
        """Разбирает {% import expr %} и {% import expr as alias %}."""
        template = parser.parse_expression()
        alias = None
        if parser.stream.skip_if(TokenType.NAME, "as"):
            alias = parser.stream.expect_name().value
        parser.expect_tag_end()
        return ImportNode(template=template, alias=alias, line=token.line)

    def parse_from(self, parser: TemplateParser, token: Token) -> RenderableNode:
        """Разбирает {% from expr import a, b as c %}."""
        stream = parser.stream
        template = parser.parse_expression()
        stream.expect_name("import")

        names: List[Tuple[str, Optional[str]]] = []
        while True:
            name = stream.expect_name().value
            alias = stream.expect_name().value if stream.skip_if(TokenType.NAME, "as") else None
            names.append((name, alias))
            if not stream.skip_if(TokenType.PUNCTUATION, ","):
                break
        parser.expect_tag_end()
        return FromImportNode(template=template, names=tuple(names), line=token.line)

    def parse_include(self, parser: TemplateParser, token: Token) -> RenderableNode:
        """Разбирает {% include expr [with mapping] [only] %}."""
        stream = parser.stream
        template = parser.parse_expression()
        variables = None
        if stream.skip_if(TokenType.NAME, "with"):
            variables = parser.parse_expression()
        only = stream.skip_if(TokenType.NAME, "only")
        parser.expect_tag_end()
        return IncludeNode(template=template, variables=variables, only=only, line=token.line)


def get_core_tag_rules() -> List[TagRule]:
    """Возвращает правила встроенных тегов."""
    parsers = CoreTagParsers()
    return [
        TagRule(name="if", parser_func=parsers.parse_if, end_tags=_IF_END_TAGS),
        TagRule(name="for", parser_func=parsers.parse_for, end_tags=_FOR_END_TAGS),
        TagRule(name="set", parser_func=parsers.parse_set),
        TagRule(name="block", parser_func=parsers.parse_block, end_tags=("endblock",)),
        TagRule(name="extends", parser_func=parsers.parse_extends),
        TagRule(name="macro", parser_func=parsers.parse_macro, end_tags=("endmacro",)),
        TagRule(name="import", parser_func=parsers.parse_import),
        TagRule(name="from", parser_func=parsers.parse_from),
        TagRule(name="include", parser_func=parsers.parse_include),
    ]


__all__ = ["CoreTagParsers", "get_core_tag_rules"]
