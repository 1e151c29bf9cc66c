"""Tests for the forward-only JSON token reader."""

import pytest

from bijective.kernel.stream import JsonReader, JsonStreamError, JsonToken


def test_token_walk_and_paths():
    reader = JsonReader.from_json('{"a": [1, true, null], "b": {"c": "x"}}')

    assert reader.peek() is JsonToken.BEGIN_OBJECT
    reader.begin_object()
    assert reader.next_name() == "a"
    assert reader.path == "$.a"
    reader.begin_array()
    assert reader.path == "$.a[0]"
    assert reader.peek() is JsonToken.NUMBER
    assert reader.next_scalar() == 1
    assert reader.path == "$.a[1]"
    assert reader.peek() is JsonToken.BOOLEAN
    assert reader.next_scalar() is True
    assert reader.peek() is JsonToken.NULL
    reader.next_null()
    assert not reader.has_next()
    reader.end_array()
    assert reader.next_name() == "b"
    reader.begin_object()
    assert reader.next_name() == "c"
    assert reader.path == "$.b.c"
    assert reader.peek() is JsonToken.STRING
    assert reader.next_scalar() == "x"
    reader.end_object()
    reader.end_object()
    assert reader.path == "$"
    assert reader.peek() is JsonToken.END_DOCUMENT
    reader.end_document()


def test_duplicate_keys_preserved_in_order():
    """The parser does not collapse repeated keys."""
    reader = JsonReader.from_json('{"a": 1, "a": 2}')
    reader.begin_object()
    seen = []
    while reader.has_next():
        seen.append((reader.next_name(), reader.next_scalar()))
    reader.end_object()
    assert seen == [("a", 1), ("a", 2)]


def test_read_value_last_duplicate_wins():
    reader = JsonReader.from_json('{"a": 1, "b": [{"c": null}], "a": 2}')
    assert reader.read_value() == {"a": 2, "b": [{"c": None}]}
    reader.end_document()


def test_skip_value_consumes_nested_structure():
    reader = JsonReader.from_json('{"skip": {"deep": [1, {"x": null}]}, "keep": 3}')
    reader.begin_object()
    assert reader.next_name() == "skip"
    reader.skip_value()
    assert reader.next_name() == "keep"
    assert reader.next_scalar() == 3
    reader.end_object()
    reader.end_document()


def test_skip_value_scalar_advances_array_index():
    reader = JsonReader.from_json('["a", "b"]')
    reader.begin_array()
    reader.skip_value()
    assert reader.path == "$[1]"


def test_skip_value_requires_a_value():
    reader = JsonReader.from_json("{}")
    reader.begin_object()
    with pytest.raises(JsonStreamError, match="Expected a value but was END_OBJECT"):
        reader.skip_value()


def test_unexpected_token():
    reader = JsonReader.from_json("[]")
    with pytest.raises(JsonStreamError) as excinfo:
        reader.begin_object()
    assert str(excinfo.value) == "Expected BEGIN_OBJECT but was BEGIN_ARRAY at path $"
    assert excinfo.value.path == "$"


def test_unconsumed_document():
    reader = JsonReader.from_json("[1]")
    with pytest.raises(JsonStreamError, match="Expected END_DOCUMENT"):
        reader.end_document()


@pytest.mark.parametrize("text", ["{", '{"a": }', "", "[1,]", b"\xff"])
def test_malformed_text(text):
    with pytest.raises(JsonStreamError) as excinfo:
        JsonReader.from_json(text)
    assert excinfo.value.path == "$"


def test_bytes_input():
    assert JsonReader.from_json(b'{"a": "\xc3\xa9"}').read_value() == {"a": "é"}


class TestFromValue:
    """Streaming over already-parsed trees."""

    def test_dicts_lists_and_tuples(self):
        reader = JsonReader.from_value({"a": (1, 2.5), "b": [False, None]})
        assert reader.read_value() == {"a": [1, 2.5], "b": [False, None]}

    def test_root_path_prefix(self):
        """A tree read out of a larger document reports paths relative to it."""
        reader = JsonReader.from_value({"a": [1]}, root="$.outer")
        reader.begin_object()
        reader.next_name()
        reader.begin_array()
        assert reader.path == "$.outer.a[0]"

    def test_non_string_key(self):
        reader = JsonReader.from_value({1: "x"})
        with pytest.raises(JsonStreamError, match="is not a string"):
            reader.begin_object()

    def test_non_json_value(self):
        with pytest.raises(JsonStreamError, match="is not a JSON value"):
            JsonReader.from_value(object())
