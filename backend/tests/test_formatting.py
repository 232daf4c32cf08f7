import json

import pytest

from agentflow.formatting import format_value, normalize_content, parse_json_safe
from agentflow.ui import FALLBACKS, render_basic, render_section


def test_normalize_trims_strings():
    assert normalize_content("  hello  ") == "hello"


def test_normalize_joins_segments():
    assert normalize_content([{"text": "a"}, {"content": {"text": "b"}}, "c"]) == "a\nb\nc"


def test_normalize_serializes_unknown_segments_compactly():
    assert normalize_content([{"type": "image", "url": "x"}, 3]) == '{"type":"image","url":"x"}\n3'


def test_normalize_serializes_scalar_segments_as_json():
    assert normalize_content([None, True, "x"]) == "null\ntrue\nx"


@pytest.mark.parametrize("empty", [None, "", [], {}, 0])
def test_normalize_empty(empty):
    assert normalize_content(empty) == ""


def test_normalize_object_is_indented_json():
    assert normalize_content({"refusal": "no"}) == json.dumps({"refusal": "no"}, indent=2)


def test_format_value_absent_is_empty():
    assert format_value(None) == ""


def test_format_value_drops_empty_entries():
    assert format_value({"a": "", "b": "x"}) == "b: x"


def test_format_value_primitives():
    assert format_value("text") == "text"
    assert format_value(42) == "42"
    assert format_value(2.5) == "2.5"
    assert format_value(True) == "true"
    assert format_value(False) == "false"


def test_format_value_integral_floats_render_as_integers():
    assert format_value(1.0) == "1"
    assert format_value(-3.0) == "-3"
    assert format_value({"score": 80.0, "weight": 0.5}) == "score: 80\nweight: 0.5"


def test_format_value_lists_are_separated_by_blank_lines():
    value = [{"Observe for": "abuse", "How to react": "end politely"}, "", None, "second"]
    assert format_value(value) == "Observe for: abuse\nHow to react: end politely\n\nsecond"


def test_format_value_nested_containers():
    value = {"criteria": [{"weight": "60%"}, {"weight": "40%"}], "empty": [[], {}], "note": None}
    assert format_value(value) == "criteria: weight: 60%\n\nweight: 40%"


@pytest.mark.parametrize(
    "value",
    [[], {}, [[[]]], {"a": {"b": {"c": []}}}, [None, {}, ""], {1, 2}, object(), b"bytes", ("t", 1)],
)
def test_format_value_is_total(value):
    assert isinstance(format_value(value), str)


def test_format_value_deep_nesting():
    value = "leaf"
    for _ in range(200):
        value = {"k": [value]}
    assert format_value(value).endswith("leaf")


def test_parse_json_safe():
    assert parse_json_safe('{"main_instruction": "x"}') == {"main_instruction": "x"}
    assert parse_json_safe('```json\n{"a": 1}\n```') == {"a": 1}
    assert parse_json_safe("not json") is None
    assert parse_json_safe("") is None
    assert parse_json_safe(None) is None


def test_format_value_nesting_beyond_recursion_limit():
    value = "leaf"
    for _ in range(5000):
        value = [value]
    assert format_value(value) == "leaf"


def test_parse_json_safe_rejects_nesting_beyond_recursion_limit():
    text = "[" * 100000 + "]" * 100000
    assert parse_json_safe(text) is None


def test_deeply_nested_model_output_renders_as_raw_text():
    text = "[" * 100000 + "]" * 100000
    assert render_section("main", text) == text
    output = render_basic(text, lead_enabled=False)
    assert output["main"] == text
    assert output["tone"] == FALLBACKS["tone"]
