"""Tests for the public API: decode/check entry points and decoding contexts."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import pytest
from pydantic import BaseModel, Field

import bijective
from bijective import (
    BijectiveDecoder,
    CheckResult,
    DecodeError,
    DecoderConfig,
    SchemaCache,
    check,
    decode,
    decode_value,
)
from bijective.kernel.types import type_name


class Pair(BaseModel):
    a: str
    b: int


class Node(BaseModel):
    name: str
    children: List["Node"]
    parent: Optional[str] = None


class Clash(BaseModel):
    name: str
    same_name: str = Field(alias="name")


def test_public_exports():
    """Every name in __all__ is importable from the package root."""
    for name in bijective.__all__:
        assert hasattr(bijective, name), name
    assert isinstance(bijective.__version__, str)


def test_decode_value_reads_parsed_tree():
    assert decode_value({"a": "x", "b": 1}, Pair) == Pair(a="x", b=1)


def test_decode_accepts_bytes():
    assert decode(b'{"a": "x", "b": 1}', Pair) == Pair(a="x", b=1)


def test_decode_errors_are_value_errors():
    with pytest.raises(ValueError):
        decode('{"a": "x"}', Pair)
    with pytest.raises(DecodeError):
        decode_value({"a": "x", "b": 1, "c": 2}, Pair)


class TestCheck:
    """check() reports failures as data instead of raising."""

    def test_ok(self):
        result = check('{"a": "x", "b": 1}', Pair)
        assert isinstance(result, CheckResult)
        assert result.ok is True
        assert result.errors == []
        assert result.type_name == type_name(Pair)

    def test_unknown_field(self):
        result = check('{"a": "x", "b": 1, "c": "y"}', Pair)
        assert result.ok is False
        issue = result.errors[0]
        assert issue.code == "UNKNOWN_FIELD"
        assert issue.key == "c"
        assert issue.path == "$.c"
        assert issue.message.startswith(f"Model class {type_name(Pair)} does not contain")

    def test_missing_fields(self):
        result = check({}, Pair)
        issue = result.errors[0]
        assert issue.code == "MISSING_FIELDS"
        assert issue.fields == ["a", "b"]

    def test_malformed(self):
        assert check('{"a": ', Pair).errors[0].code == "MALFORMED_STREAM"

    def test_invalid_value(self):
        issue = check('{"a": "x", "b": []}', Pair).errors[0]
        assert issue.code == "INVALID_VALUE"
        assert issue.path == "$.b"

    def test_schema_error(self):
        issue = check("{}", Clash).errors[0]
        assert issue.code == "DUPLICATE_FIELD_NAME"
        assert issue.path is None

    def test_config_applies(self):
        config = DecoderConfig(require_all_json_fields_used=False)
        assert check('{"a": "x", "b": 1, "c": "y"}', Pair, config).ok

    def test_reuses_given_decoder(self):
        decoder = BijectiveDecoder()
        check('{"a": "x", "b": 1}', Pair, decoder=decoder)
        assert Pair in decoder.schema_cache


class TestBijectiveDecoder:
    """A decoder object is one context with its own caches."""

    def test_default_config(self):
        assert BijectiveDecoder().config == DecoderConfig()

    def test_schema_for_is_cached(self):
        decoder = BijectiveDecoder()
        assert decoder.schema_for(Pair) is decoder.schema_for(Pair)

    def test_injected_schema_cache_shared(self):
        cache = SchemaCache()
        strict = BijectiveDecoder(schema_cache=cache)
        relaxed = BijectiveDecoder(DecoderConfig(require_all_json_fields_used=False), schema_cache=cache)
        strict.decode('{"a": "x", "b": 1}', Pair)
        assert relaxed.schema_for(Pair) is strict.schema_for(Pair)
        assert len(cache) == 1

    def test_recursive_type(self):
        decoder = BijectiveDecoder()
        text = '{"name": "root", "children": [{"name": "leaf", "children": [], "parent": "root"}]}'
        tree = decoder.decode(text, Node)
        assert tree.children[0].parent == "root"
        assert tree.children[0].children == []

    def test_concurrent_decodes_share_one_context(self):
        decoder = BijectiveDecoder()
        documents = [f'{{"a": "x{i}", "b": {i}}}' for i in range(200)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda text: decoder.decode(text, Pair), documents))

        assert results == [Pair(a=f"x{i}", b=i) for i in range(200)]
        assert len(decoder.schema_cache) == 1

    def test_concurrent_failures_are_independent(self):
        decoder = BijectiveDecoder()
        documents = ['{"a": "x", "b": 1}', '{"a": "x"}'] * 50

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda text: check(text, Pair, decoder=decoder).ok, documents))

        assert results == [True, False] * 50


def test_failed_decode_logged_at_debug(caplog):
    with caplog.at_level(logging.DEBUG, logger="bijective"):
        with pytest.raises(DecodeError):
            decode('{"a": "x"}', Pair)
    assert "Built field schema for" in caplog.text
    assert f"Decode into {type_name(Pair)} failed" in caplog.text
