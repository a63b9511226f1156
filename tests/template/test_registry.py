"""
Тесты реестра расширений и пользовательских расширений.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import List, Tuple, Union

import pytest

from stencil import Extension
from stencil.errors import ParseError
from stencil.template.nodes import RenderableNode
from stencil.template.registry import ExtensionRegistry
from stencil.template.types import (
    Associativity,
    BinaryOperator,
    FilterSpec,
    ProcessorRule,
    TagRule,
    UnaryOperator,
)
from stencil.template.values import is_truthy

from tests.infrastructure import make_engine


@dataclass(frozen=True)
class CaptureNode(RenderableNode):
    """{% capture name %}...{% endcapture %}"""
    name: str
    body: Tuple[RenderableNode, ...]
    line: int = 0


class CaptureExtension(Extension):
    """Тег capture, операторы xor и ??, фильтр reverse."""

    @property
    def name(self) -> str:
        return "capture"

    def register_tags(self) -> List[TagRule]:
        def parse_capture(parser, token):
            name = parser.stream.expect_name().value
            parser.expect_tag_end()
            body, _ = parser.parse_body(("endcapture",))
            parser.expect_tag_end()
            return CaptureNode(name=name, body=tuple(body), line=token.line)

        return [TagRule(name="capture", parser_func=parse_capture, end_tags=("endcapture",))]

    def register_operators(self) -> List[Union[BinaryOperator, UnaryOperator]]:
        return [
            BinaryOperator(symbol="xor", precedence=12, function=lambda l, r: is_truthy(l) != is_truthy(r)),
            BinaryOperator(symbol="??", precedence=5, function=lambda l, r: r if l is None else l),
        ]

    def register_filters(self) -> List[FilterSpec]:
        return [FilterSpec(name="reverse", function=lambda value: value[::-1])]

    def register_processors(self) -> List[ProcessorRule]:
        def process_capture(node, context, sink):
            buffer = io.StringIO()
            self.handlers.render_nodes(node.body, context, buffer)
            context.set(node.name, buffer.getvalue())

        return [ProcessorRule(node_type=CaptureNode, processor_func=process_capture)]


class LateExtension(Extension):
    """Регистрирует фильтр из initialize(), пока реестр еще не заморожен."""

    @property
    def name(self) -> str:
        return "late"

    def initialize(self) -> None:
        self.registry.register_filter("shout", lambda value: value.upper() + "!")


@pytest.fixture
def capture_engine():
    return make_engine(extensions=[CaptureExtension()])


class TestCustomExtension:
    """Расширение добавляет теги, операторы и фильтры без правок ядра."""

    def test_custom_tag(self, capture_engine):
        template = capture_engine.from_string("{% capture greeting %}Hi {{ who }}{% endcapture %}[{{ greeting|reverse }}]")
        assert template.render({"who": "Al"}) == "[lA iH]"

    def test_custom_end_tag_outside_opener(self, capture_engine):
        with pytest.raises(ParseError, match="Unexpected 'endcapture' outside of 'capture'"):
            capture_engine.from_string("{% endcapture %}")

    def test_custom_word_operator(self, capture_engine):
        template = capture_engine.from_string("{{ a xor b }} {{ a xor a }} {{ a or b xor b }}")
        assert template.render({"a": True, "b": False}) == "true false true"

    def test_custom_symbol_operator(self, capture_engine):
        template = capture_engine.from_string("{{ n ?? 'x' }}|{{ m ?? 'x' }}")
        assert template.render({"n": None, "m": "m"}) == "x|m"

    def test_core_engine_does_not_know_extension_syntax(self, engine):
        with pytest.raises(ParseError, match="Unknown tag 'capture'"):
            engine.from_string("{% capture x %}{% endcapture %}")
        with pytest.raises(ParseError, match="Unknown filter 'reverse'"):
            engine.from_string("{{ 'a'|reverse }}")

    def test_registration_during_initialize(self):
        engine = make_engine(extensions=[LateExtension()])
        assert engine.from_string("{{ 'hey'|shout }}").render() == "HEY!"


class TestRegistryLifecycle:
    """Регистрация до заморозки и ошибки регистрации."""

    def test_registry_is_frozen_after_engine_build(self, engine):
        assert engine.registry.frozen
        with pytest.raises(RuntimeError, match="frozen"):
            engine.registry.register_filter("late", str)
        with pytest.raises(RuntimeError, match="frozen"):
            engine.registry.register_extension(CaptureExtension())

    def test_duplicate_extension_name(self):
        registry = ExtensionRegistry()
        registry.register_extension(CaptureExtension())
        with pytest.raises(ValueError, match="already registered"):
            registry.register_extension(CaptureExtension())

    def test_operator_needs_behavior(self):
        registry = ExtensionRegistry()
        with pytest.raises(ValueError, match="needs a function or a node factory"):
            registry.register_operator("<>", 20)

    def test_direct_registration_surface(self):
        registry = ExtensionRegistry()
        registry.register_operator("<>", 20, Associativity.LEFT, function=lambda l, r: l != r)
        registry.register_unary_operator("!", 18, function=lambda v: not v)
        registry.register_test("positive", lambda v: v > 0)
        registry.register_filter("double", lambda v: v * 2)

        assert registry.get_binary_operator("<>").precedence == 20
        assert registry.get_unary_operator("!") is not None
        assert registry.get_test("positive") is not None
        assert registry.get_filter("double") is not None
        assert registry.operator_symbols() == ["!", "<>"]

    def test_extension_operators_reach_the_lexer(self, capture_engine):
        assert "xor" in capture_engine.registry.operator_symbols()
        assert "??" in capture_engine.registry.operator_symbols()
