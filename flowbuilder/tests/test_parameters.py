"""Tests for the parameter model: parsing, display, inference and mode switching."""

from __future__ import annotations

import pytest

from flowbuilder.editor.parameters import (
    Parameter,
    PrimitiveKind,
    describe,
    infer_kind,
    parse_from_input,
    serialize_for_display,
    to_input_value,
    toggle_dynamic,
    with_literal,
)
from flowbuilder.errors import ParseError

S, N, B, O, A = (
    PrimitiveKind.STRING,
    PrimitiveKind.NUMBER,
    PrimitiveKind.BOOLEAN,
    PrimitiveKind.OBJECT,
    PrimitiveKind.ARRAY,
)


class TestParseFromInput:
    def test_number(self):
        assert parse_from_input(N, "42") == 42
        assert parse_from_input(N, "3.5") == 3.5
        assert parse_from_input(N, "12abc") == 12

    def test_unparsable_number_is_zero(self):
        assert parse_from_input(N, "abc") == 0
        assert parse_from_input(N, "") == 0

    def test_boolean(self):
        assert parse_from_input(B, "true") is True
        assert parse_from_input(B, "yes") is True
        assert parse_from_input(B, "false") is False
        assert parse_from_input(B, "nope") is False

    def test_json_containers(self):
        assert parse_from_input(O, '{"a": 1}') == {"a": 1}
        assert parse_from_input(A, "[1, 2]") == [1, 2]

    def test_malformed_json_resets_to_empty(self):
        assert parse_from_input(A, "[1,2") == []
        assert parse_from_input(O, "{bad") == {}

    def test_wrong_container_resets(self):
        assert parse_from_input(O, "[1]") == {}
        assert parse_from_input(A, '{"a": 1}') == []

    def test_string_passthrough(self):
        assert parse_from_input(S, "  hi ") == "  hi "


class TestSerializeForDisplay:
    def test_dynamic_shows_path(self):
        p = describe(S, "${node:n1.user.email}", id="to")
        assert serialize_for_display(p) == "${node:n1.user.email}"

    def test_json_is_pretty_printed(self):
        p = Parameter(id="h", label="H", kind=O, value={"a": 1})
        assert serialize_for_display(p) == '{\n  "a": 1\n}'

    def test_boolean_and_number(self):
        assert serialize_for_display(Parameter(id="b", label="B", kind=B, value=True)) == "true"
        assert serialize_for_display(Parameter(id="n", label="N", kind=N, value=2.0)) == "2"
        assert serialize_for_display(Parameter(id="n", label="N", kind=N, value=0.5)) == "0.5"


class TestParameterInvariants:
    def test_static_value_must_match_kind(self):
        with pytest.raises(ValueError):
            Parameter(id="x", label="X", kind=N, value="12")

    def test_bool_is_not_a_number(self):
        with pytest.raises(ValueError):
            Parameter(id="x", label="X", kind=N, value=True)

    def test_dynamic_needs_valid_path(self):
        with pytest.raises(ValueError):
            Parameter(id="x", label="X", is_dynamic=True, dynamic_path=None)
        with pytest.raises(ParseError):
            Parameter(id="x", label="X", is_dynamic=True, dynamic_path="not a path")

    def test_static_cannot_carry_path(self):
        with pytest.raises(ValueError):
            Parameter(id="x", label="X", dynamic_path="${value:v1}")

    def test_editor_hints(self):
        assert Parameter(id="b", label="B", kind=B, value=False).editor == "toggle"
        assert Parameter(id="o", label="O", kind=O, value={}).editor == "json"
        assert Parameter(id="a", label="A", kind=A, value=[]).editor == "json"
        assert Parameter(id="s", label="S", options=["GET", "POST"]).editor == "select"
        assert Parameter(id="s", label="S").editor == "input"
        assert Parameter(id="n", label="N", kind=N, value=0).editor == "number"


class TestInferAndDescribe:
    @pytest.mark.parametrize(
        "raw,kind",
        [
            ("true", B),
            ("False", B),
            ("42", N),
            ("-1.5e3", N),
            ("[1, 2]", A),
            ('{"a": 1}', O),
            ("[not json", S),
            ("hello", S),
            (7, N),
            ({"a": 1}, O),
        ],
    )
    def test_infer_kind(self, raw, kind):
        assert infer_kind(raw) is kind

    def test_describe_legacy_value(self):
        p = describe(None, "42", id="count")
        assert p.kind is N
        assert p.value == 42
        assert p.label == "count"

    def test_describe_reference_is_dynamic(self):
        p = describe(N, "${value:v1}", id="limit")
        assert p.is_dynamic is True
        assert p.dynamic_path == "${value:v1}"
        assert p.value == 0

    def test_describe_coerces_to_declared_kind(self):
        assert describe(S, 5, id="x").value == "5"
        assert describe(B, 1, id="x").value is True
        assert describe(A, None, id="x").value == []


class TestToggleDynamic:
    def test_round_trip_restores_static_empty(self):
        p = Parameter(id="url", label="URL", value="https://example.com")
        bound = toggle_dynamic(p, "${node:n1.link}")
        assert bound.is_dynamic and bound.dynamic_path == "${node:n1.link}"
        assert bound.value == ""

        restored = toggle_dynamic(bound, None)
        assert restored.is_dynamic is False
        assert restored.dynamic_path is None
        assert restored.value == ""

    @pytest.mark.parametrize("kind,empty", [(N, 0), (B, False), (O, {}), (A, [])])
    def test_round_trip_for_every_kind(self, kind, empty):
        p = describe(kind, None, id="p")
        restored = toggle_dynamic(toggle_dynamic(p, "${credential:c1}"), None)
        assert restored.value == empty

    def test_invalid_path_raises_and_leaves_original(self):
        p = Parameter(id="url", label="URL", value="x")
        with pytest.raises(ParseError):
            toggle_dynamic(p, "${node:}")
        assert p.value == "x" and p.is_dynamic is False

    def test_with_literal_and_input_value(self):
        p = describe(N, "${value:v1}", id="n")
        literal = with_literal(p, "7")
        assert literal.is_dynamic is False
        assert to_input_value(literal) == 7
        assert to_input_value(p) == "${value:v1}"
