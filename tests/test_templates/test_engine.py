"""Tests for swaggen.templates.engine."""

from __future__ import annotations

import pytest

from swaggen.templates.engine import (
    MAX_PARTIAL_DEPTH,
    TemplateEngine,
    format_value,
    is_truthy,
    resolve_path,
)


@pytest.fixture
def engine() -> TemplateEngine:
    return TemplateEngine()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestResolvePath:
    CONTEXT = {"api": {"title": "Pets", "servers": ["https://a", "https://b"]}, "@index": 3}

    def test_dotted(self) -> None:
        assert resolve_path(self.CONTEXT, "api.title") == "Pets"

    def test_list_index(self) -> None:
        assert resolve_path(self.CONTEXT, "api.servers.1") == "https://b"

    def test_exact_key(self) -> None:
        assert resolve_path(self.CONTEXT, "@index") == 3

    def test_missing(self) -> None:
        assert resolve_path(self.CONTEXT, "api.version") is None
        assert resolve_path(self.CONTEXT, "api.servers.9") is None
        assert resolve_path(self.CONTEXT, "api.title.length") is None

    def test_dot_is_context(self) -> None:
        assert resolve_path("item", ".") == "item"


class TestTruthiness:
    @pytest.mark.parametrize("value", [[0], {"a": None}, "0", 1, True])
    def test_truthy(self, value) -> None:
        assert is_truthy(value)

    @pytest.mark.parametrize("value", [[], {}, "", 0, None, False])
    def test_falsy(self, value) -> None:
        assert not is_truthy(value)


class TestFormatValue:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ""),
            (True, "true"),
            (False, "false"),
            (2.0, "2"),
            (2.5, "2.5"),
            (["a", 1], "a,1"),
            ({"a": 1}, '{"a":1}'),
            ("text", "text"),
        ],
    )
    def test_format(self, value, expected) -> None:
        assert format_value(value) == expected


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestVariables:
    def test_substitution(self, engine) -> None:
        assert engine.render("Hello {name}!", {"name": "Ada"}) == "Hello Ada!"

    def test_whitespace_inside_tag(self, engine) -> None:
        assert engine.render("{ name }", {"name": "Ada"}) == "Ada"

    def test_undefined_renders_empty(self, engine) -> None:
        assert engine.render("[{missing}]", {}) == "[]"

    def test_preserve_unmatched(self) -> None:
        engine = TemplateEngine(preserve_unmatched=True)
        assert engine.render("[{missing}]", {}) == "[{missing}]"

    def test_zero_renders(self, engine) -> None:
        assert engine.render("{count}", {"count": 0}) == "0"

    def test_none_context(self, engine) -> None:
        assert engine.render("plain text", None) == "plain text"

    def test_custom_delimiters_leave_single_braces(self) -> None:
        engine = TemplateEngine(tag_start="{{", tag_end="}}")
        rendered = engine.render("const x = { id: {{id}} };", {"id": 7})
        assert rendered == "const x = { id: 7 };"


class TestConditionals:
    def test_truthy_kept(self, engine) -> None:
        assert engine.render("a{?flag}b{/flag}c", {"flag": True}) == "abc"

    def test_falsy_removed(self, engine) -> None:
        assert engine.render("a{?flag}b{/flag}c", {"flag": []}) == "ac"

    def test_nested(self, engine) -> None:
        template = "{?a}A{?b}B{/b}{/a}"
        assert engine.render(template, {"a": 1, "b": 1}) == "AB"
        assert engine.render(template, {"a": 1, "b": 0}) == "A"

    def test_unterminated_left_literal(self, engine) -> None:
        assert engine.render("{?flag}open", {"flag": True}) == "{?flag}open"

    def test_disabled(self) -> None:
        engine = TemplateEngine(enable_conditionals=False)
        assert engine.render("{?flag}x{/flag}", {"flag": True}) == "{?flag}x{/flag}"

    def test_evaluated_against_outer_context_before_loops(self, engine) -> None:
        template = "{#items}{?active}{name}{/active}{/items}"
        context = {"items": [{"name": "a", "active": True}]}
        assert engine.render(template, context) == ""
        assert engine.render(template, {**context, "active": True}) == "a"


class TestLoops:
    def test_list_of_mappings(self, engine) -> None:
        template = "{#pets}{name};{/pets}"
        assert engine.render(template, {"pets": [{"name": "a"}, {"name": "b"}]}) == "a;b;"

    def test_loop_variables(self, engine) -> None:
        template = "{#xs}{@index}:{.}:{this}:{@first}:{@last} {/xs}"
        assert (
            engine.render(template, {"xs": ["a", "b"]})
            == "0:a:a:true:false 1:b:b:false:true "
        )

    def test_outer_values_visible(self, engine) -> None:
        template = "{#xs}{prefix}{.}{/xs}"
        assert engine.render(template, {"xs": [1, 2], "prefix": "#"}) == "#1#2"

    def test_item_keys_shadow_outer(self, engine) -> None:
        template = "{#xs}{name}{/xs}"
        assert engine.render(template, {"xs": [{"name": "inner"}], "name": "outer"}) == "inner"

    def test_nested_loops(self, engine) -> None:
        template = "{#groups}{name}=[{#ops}{.},{/ops}] {/groups}"
        context = {"groups": [{"name": "pets", "ops": ["list", "get"]}, {"name": "x", "ops": []}]}
        assert engine.render(template, context) == "pets=[list,get,] x=[] "

    def test_non_list_renders_nothing(self, engine) -> None:
        assert engine.render("a{#xs}{.}{/xs}b", {"xs": "abc"}) == "ab"

    def test_switch_style_list(self, engine) -> None:
        template = "{#hook}useThing(){/hook}"
        assert engine.render(template, {"hook": [{}]}) == "useThing()"
        assert engine.render(template, {"hook": []}) == ""


class TestPartials:
    def test_partial_shares_context(self, engine) -> None:
        engine.register_partial("header", "// {title}")
        assert engine.render("{>header}\nbody", {"title": "Pets"}) == "// Pets\nbody"

    def test_missing_partial_placeholder(self, engine) -> None:
        assert engine.render("{>nope}", {}) == "<!-- Partial 'nope' not found -->"

    def test_recursion_bounded(self, engine) -> None:
        engine.register_partial("self", "x{>self}")
        rendered = engine.render("{>self}", {})
        assert rendered.count("x") == MAX_PARTIAL_DEPTH
        assert rendered.endswith("<!-- Partial 'self' nested too deeply -->")

    def test_register_and_unregister(self, engine) -> None:
        engine.register_partials({"a": "A", "b": "B"})
        engine.unregister_partial("a")
        assert engine.partial_names == ["b"]
        assert engine.render("{>b}", {}) == "B"
