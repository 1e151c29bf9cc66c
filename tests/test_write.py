"""Encoding tests: output is exactly pydantic's default serialization."""

from dataclasses import dataclass
from typing import List, Optional

import pytest
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from bijective import BijectiveDecoder, DecoderConfig, encode


class Sample(BaseModel):
    string_field: str
    int_field: int
    nullable_string_field: Optional[str] = None
    nested_object: Optional["Sample"] = None


class SampleWithGenerics(BaseModel):
    string_list: List[str]
    samples: List[Sample]


class Renamed(BaseModel):
    field: str = Field(alias="field_name")


class Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel)

    string_field: str
    int_field: int


@dataclass
class Point:
    x: int
    y: int


OBJECTS = [
    None,
    0,
    -2,
    3.14,
    "",
    "string",
    [],
    ["a", "b"],
    {"key1": 1.0, "key2": 2.0},
    Sample(string_field="abc", int_field=123),
    Sample(
        string_field="abc",
        int_field=123,
        nullable_string_field="def",
        nested_object=Sample(string_field="ghi", int_field=456),
    ),
    SampleWithGenerics(string_list=["a"], samples=[Sample(string_field="s", int_field=1)]),
    Renamed(field_name="value"),
    Camel(stringField="s", intField=1),
    Point(1, 2),
]


def _default_json(obj, indent=None) -> str:
    return TypeAdapter(type(obj)).dump_json(obj, by_alias=True, indent=indent).decode("utf-8")


@pytest.mark.parametrize("obj", OBJECTS)
def test_encode_matches_default_serializer(obj):
    assert encode(obj) == _default_json(obj)


@pytest.mark.parametrize("obj", OBJECTS)
def test_encode_ignores_decoder_config(obj):
    """Strictness only affects reading; every config writes the same text."""
    strict = BijectiveDecoder()
    relaxed = BijectiveDecoder(DecoderConfig(
        require_all_class_fields_used=False,
        require_all_json_fields_used=False,
        allow_unused_nulls=False,
        included_types=frozenset(),
    ))
    assert strict.encode(obj) == relaxed.encode(obj) == _default_json(obj)


def test_encode_writes_aliases():
    assert encode(Renamed(field_name="value")) == '{"field_name":"value"}'
    assert encode(Camel(stringField="s", intField=1)) == '{"stringField":"s","intField":1}'


def test_encode_writes_null_fields():
    """Null fields are written explicitly, and decode back without error."""
    text = encode(Sample(string_field="abc", int_field=1))
    assert '"nullable_string_field":null' in text


def test_encode_indent():
    assert encode(Point(1, 2), indent=2) == _default_json(Point(1, 2), indent=2)
