"""
Тесты рендеринга: вывод, условия, циклы, области видимости и операторы.
"""

import io

import pytest

from stencil.errors import RecursionLimitError, RenderError, TemplateTypeError

from tests.infrastructure import CountingExtension, make_engine, render


class TestOutput:
    """Вывод текста и значений."""

    def test_text_passes_through(self):
        assert render("plain <b>text</b>") == "plain <b>text</b>"

    def test_print_values(self):
        context = {"s": "str", "n": 42, "f": 2.5, "yes": True, "no": False, "nothing": None}
        assert render("{{ s }} {{ n }} {{ f }} {{ yes }} {{ no }} [{{ nothing }}]", context) == "str 42 2.5 true false []"

    def test_undefined_prints_empty(self):
        assert render("[{{ missing }}]") == "[]"

    def test_strict_mode_rejects_undefined(self):
        with pytest.raises(RenderError, match="Variable 'missing' is undefined"):
            render("{{ missing }}", strict_variables=True)

    def test_globals_and_shadowing(self):
        assert render("{{ site }}", globals={"site": "S"}) == "S"
        assert render("{{ site }}", {"site": "local"}, globals={"site": "S"}) == "local"

    def test_whitespace_control(self):
        source = "<ul>\n{% for x in xs -%}\n  <li>{{ x }}</li>\n{%- endfor %}\n</ul>"
        assert render(source, {"xs": [1, 2]}) == "<ul>\n<li>1</li><li>2</li>\n</ul>"

    def test_rendering_is_repeatable(self, engine):
        template = engine.from_string("{% for x in xs %}{{ loop.index1 }}:{{ x|upper }} {% endfor %}")
        context = {"xs": ["a", "b"]}
        assert template.render(context) == template.render(context) == "1:A 2:B "

    def test_engine_render_into_sink(self, engine):
        template = engine.from_string("Hi {{ name }}")
        sink = io.StringIO()
        assert engine.render(template, {"name": "Bo"}, sink) is None
        assert sink.getvalue() == "Hi Bo"

    def test_output_before_failure_stays_in_sink(self, engine):
        template = engine.from_string("before{{ 1 + 'a' }}after")
        sink = io.StringIO()
        with pytest.raises(TemplateTypeError):
            template.render_to(sink)
        assert sink.getvalue() == "before"

    def test_render_error_reports_line(self, engine):
        template = engine.from_string("a\n\n{{ 1 + 'x' }}", "page")
        with pytest.raises(TemplateTypeError) as exc:
            template.render()
        assert exc.value.line == 3
        assert exc.value.template_name == "page"


class TestConditions:
    """if / elseif / else."""

    @pytest.mark.parametrize("n, expected", [(9, "big"), (3, "mid"), (1, "small")])
    def test_branches(self, n, expected):
        source = "{% if n > 5 %}big{% elseif n > 2 %}mid{% else %}small{% endif %}"
        assert render(source, {"n": n}) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", 0, [], {}, False])
    def test_falsy_values(self, value):
        assert render("{% if v %}yes{% else %}no{% endif %}", {"v": value}) == "no"

    def test_undefined_is_falsy(self):
        assert render("{% if missing %}yes{% endif %}") == ""


class TestLoops:
    """Цикл for и метаданные loop."""

    def test_iterates_list(self):
        assert render("{% for i in items %}{{ i }}{% endfor %}", {"items": [1, 2, 3]}) == "123"

    def test_loop_metadata(self):
        source = (
            "{% for x in xs %}"
            "{{ loop.index }}{{ loop.index1 }}{{ loop.first }}{{ loop.last }}{{ loop.revindex }}{{ loop.length }}|"
            "{% endfor %}"
        )
        assert render(source, {"xs": ["a", "b", "c"]}) == "01truefalse23|12falsefalse13|23falsetrue03|"

    def test_last_for_generator(self):
        source = "{% for x in xs %}{{ x }}{% if loop.last %}!{% endif %}{% endfor %}"
        assert render(source, {"xs": (i for i in range(3))}) == "012!"

    def test_mapping_with_two_targets(self):
        source = "{% for k, v in m %}{{ k }}={{ v }};{% endfor %}"
        assert render(source, {"m": {"a": 1, "b": 2}}) == "a=1;b=2;"

    def test_mapping_with_one_target_gives_values(self):
        assert render("{% for v in m %}{{ v }}{% endfor %}", {"m": {"a": 1, "b": 2}}) == "12"

    def test_range(self):
        assert render("{% for i in 1..3 %}{{ i }}{% endfor %}") == "123"
        assert render("{% for i in 3..1 %}{{ i }}{% endfor %}") == "321"

    def test_else_branch(self):
        source = "{% for x in xs %}{{ x }}{% else %}none{% endfor %}"
        assert render(source, {"xs": []}) == "none"
        assert render(source) == "none"

    def test_undefined_in_strict_mode(self):
        with pytest.raises(RenderError, match="Cannot iterate over undefined 'xs'"):
            render("{% for x in xs %}{% endfor %}", strict_variables=True)

    @pytest.mark.parametrize("value", ["abc", 5, None, True])
    def test_non_iterable_is_an_error(self, value):
        with pytest.raises(RenderError, match="Cannot iterate over"):
            render("{% for x in v %}{% endfor %}", {"v": value})

    def test_max_loop_iterations(self):
        assert render("{% for i in xs %}{{ i }}{% endfor %}", {"xs": [1, 2]}, max_loop_iterations=2) == "12"
        with pytest.raises(RecursionLimitError, match="max_loop_iterations"):
            render("{% for i in xs %}{{ i }}{% endfor %}", {"xs": [1, 2, 3]}, max_loop_iterations=2)

    def test_nested_loops_have_own_metadata(self):
        source = "{% for a in xs %}{% for b in xs %}{{ loop.index }}{% endfor %}{{ loop.index }};{% endfor %}"
        assert render(source, {"xs": [0, 1]}) == "010;011;"


class TestScoping:
    """Области видимости set и for."""

    def test_set_inside_loop_is_not_visible_after(self):
        source = "{% for i in xs %}{% set inner = i %}{% endfor %}[{{ inner }}]"
        assert render(source, {"xs": [1, 2]}) == "[]"

    def test_outer_set_is_mutable_from_loop(self):
        source = "{% set total = 0 %}{% for i in xs %}{% set total = total + i %}{% endfor %}{{ total }}"
        assert render(source, {"xs": [1, 2, 3]}) == "6"

    def test_loop_variable_does_not_leak(self):
        assert render("{% for i in xs %}{% endfor %}[{{ i }}]", {"xs": [1]}) == "[]"

    def test_set_does_not_modify_caller_mapping(self):
        context = {"x": 1}
        assert render("{% set x = 2 %}{{ x }}", context) == "2"
        assert context == {"x": 1}


class TestOperators:
    """Семантика операторов при вычислении."""

    def test_arithmetic(self):
        assert render("{{ 7 // 2 }} {{ 7 % 3 }} {{ 2 ** 3 ** 2 }} {{ 1 / 2 }} {{ -3 + 1 }}") == "3 1 512 0.5 -2"

    def test_arithmetic_requires_numbers(self):
        with pytest.raises(TemplateTypeError, match="Operator '\\+' requires numbers"):
            render("{{ 'a' + 1 }}")

    def test_division_by_zero(self):
        with pytest.raises(RenderError, match="Division by zero"):
            render("{{ 1 / 0 }}")

    def test_concat(self):
        assert render("{{ 'a' ~ 1 ~ true ~ none }}") == "a1true"

    def test_comparisons(self):
        assert render("{{ 1 < 2 }} {{ 'b' >= 'a' }} {{ 1 == 1.0 }} {{ 1 == true }} {{ null == missing }}") == (
            "true true true false true"
        )

    def test_ordering_mixed_kinds_is_an_error(self):
        with pytest.raises(TemplateTypeError, match="Cannot compare"):
            render("{{ 'a' < 1 }}")

    def test_membership(self):
        assert render("{{ 'b' in ['a', 'b'] }} {{ 'k' in {'k': 1} }} {{ 'x' not in 'abc' }}") == "true true true"

    def test_logical_operators_return_booleans(self):
        assert render("{{ 1 and 'x' }} {{ 0 or '' }} {{ not 0 }}") == "true false true"

    def test_and_short_circuits(self):
        extension = CountingExtension()
        engine = make_engine(extensions=[extension])
        assert engine.from_string("{{ false and x is counted }}").render() == "false"
        assert extension.calls == 0
        assert engine.from_string("{{ true and x is counted }}").render() == "true"
        assert extension.calls == 1

    def test_or_short_circuits(self):
        extension = CountingExtension(result=False)
        engine = make_engine(extensions=[extension])
        assert engine.from_string("{{ true or x is counted }}").render() == "true"
        assert extension.calls == 0
        assert engine.from_string("{{ false or x is counted }}").render() == "false"
        assert extension.calls == 1


class TestAccessAndCalls:
    """Доступ к атрибутам, элементам и вызовы функций контекста."""

    def test_attribute_and_item_access(self):
        class User:
            name = "Ann"
            _secret = "hidden"

        context = {"user": User(), "data": {"tags": ["x", "y"]}}
        assert render("{{ user.name }} {{ data.tags[1] }} {{ data.tags.0 }} [{{ user._secret }}]", context) == (
            "Ann y x []"
        )

    def test_chained_numeric_access(self):
        assert render("{{ a.0.1 }}|{{ a.1.0 }}", {"a": [[1, 2], [3]]}) == "2|3"

    def test_mapping_methods_after_keys(self):
        context = {"d": {"a": 1, "b": 2}, "shadow": {"items": "key wins"}}
        template = (
            "{% for k in d.keys() %}{{ k }}{% endfor %};"
            "{% for k, v in d.items() %}{{ k }}={{ v }} {% endfor %};"
            "{{ shadow.items }}"
        )
        assert render(template, context) == "ab;a=1 b=2 ;key wins"

    def test_missing_attribute_is_undefined(self):
        assert render("[{{ data.nope }}]", {"data": {}}) == "[]"

    def test_attribute_of_undefined_is_an_error(self):
        with pytest.raises(TemplateTypeError, match="Cannot read attribute 'attr' of undefined 'missing'"):
            render("{{ missing.attr }}")

    def test_call_context_function(self):
        assert render("{{ greet('x', punct='!') }}", {"greet": lambda n, punct="": "hi " + n + punct}) == "hi x!"

    def test_unknown_function(self):
        with pytest.raises(RenderError, match="Unknown function or macro 'nope'"):
            render("{{ nope() }}")

    def test_failing_function_is_wrapped(self):
        def boom():
            raise ValueError("kaput")

        with pytest.raises(RenderError, match="Error calling 'boom': kaput"):
            render("{{ boom() }}", {"boom": boom})

    def test_calling_non_callable(self):
        with pytest.raises(TemplateTypeError, match="Cannot call"):
            render("{{ data.x() }}", {"data": {"x": 1}})
