"""Public API for bijective.

A BijectiveDecoder is one decoding context: its configuration, schema cache and
decoder cache live as long as the object does. Module-level functions build a
fresh context per call; reuse a BijectiveDecoder to reuse its caches.

Encoding never consults the strict configuration: instances are always
written by pydantic's default serializer.
"""

import logging
from functools import lru_cache
from typing import Any, Optional, Union

from pydantic import TypeAdapter

from bijective.config import DecoderConfig
from bijective.contracts import CheckIssue, CheckResult
from bijective.kernel.errors import BijectiveError, DecodeError, MalformedStreamError, MissingFieldsError, UnknownFieldError
from bijective.kernel.registry import DecoderRegistry
from bijective.kernel.schema import FieldSchema, SchemaCache
from bijective.kernel.stream import JsonReader, JsonStreamError
from bijective.kernel.types import type_name

logger = logging.getLogger(__name__)

JsonInput = Union[str, bytes, bytearray]


@lru_cache(maxsize=256)
def _serializer(tp: type) -> TypeAdapter:
    return TypeAdapter(tp)


def encode(obj: Any, *, indent: Optional[int] = None) -> str:
    """
    Serialize obj to JSON with pydantic's default serializer (by alias).

    Args:
        obj: Any value pydantic can serialize
        indent: Pretty-print indentation, compact when None

    Returns:
        JSON text
    """
    return _serializer(type(obj)).dump_json(obj, by_alias=True, indent=indent).decode("utf-8")


class BijectiveDecoder:
    """Decoding context applying one DecoderConfig."""

    def __init__(self, config: Optional[DecoderConfig] = None, *, schema_cache: Optional[SchemaCache] = None):
        self._config = config if config is not None else DecoderConfig()
        self._registry = DecoderRegistry.create(
            self._config.policy(),
            self._config.included_types,
            schema_cache,
        )

    @property
    def config(self) -> DecoderConfig:
        return self._config

    @property
    def schema_cache(self) -> SchemaCache:
        return self._registry.schema_cache

    def schema_for(self, tp: Any) -> FieldSchema:
        """Field schema of a record type (built once, then cached)."""
        return self._registry.schema_cache.get(tp)

    def decode(self, data: JsonInput, tp: Any) -> Any:
        """
        Decode JSON text into tp.

        Args:
            data: JSON document (str or UTF-8 bytes)
            tp: Target type; record types are decoded per the config

        Returns:
            The decoded value (None for a JSON null)

        Raises:
            DecodeError: If the document does not match tp
            SchemaError: If tp (or a record type nested in it) has an invalid schema
        """
        return self._read(lambda: JsonReader.from_json(data), tp)

    def decode_value(self, value: Any, tp: Any) -> Any:
        """Decode an already-parsed JSON tree (dicts, lists, scalars) into tp."""
        return self._read(lambda: JsonReader.from_value(value), tp)

    def encode(self, obj: Any, *, indent: Optional[int] = None) -> str:
        """Serialize obj; identical to bijective.api.encode regardless of config."""
        return encode(obj, indent=indent)

    def _read(self, open_reader, tp: Any) -> Any:
        decoder = self._registry.get_decoder(tp)
        try:
            reader = open_reader()
            result = decoder.read(reader)
            reader.end_document()
        except JsonStreamError as e:
            raise MalformedStreamError(type_name(tp), e) from e
        except DecodeError as e:
            logger.debug("Decode into %s failed: %s", type_name(tp), e)
            raise
        return result


def decode(data: JsonInput, tp: Any, config: Optional[DecoderConfig] = None) -> Any:
    """Decode JSON text into tp with a one-off BijectiveDecoder."""
    return BijectiveDecoder(config).decode(data, tp)


def decode_value(value: Any, tp: Any, config: Optional[DecoderConfig] = None) -> Any:
    """Decode an already-parsed JSON tree into tp with a one-off BijectiveDecoder."""
    return BijectiveDecoder(config).decode_value(value, tp)


def _issue_from_error(error: BijectiveError) -> CheckIssue:
    issue = CheckIssue(code=error.code.value, message=str(error), path=getattr(error, "path", None))
    if isinstance(error, UnknownFieldError):
        issue.key = error.key
    elif isinstance(error, MissingFieldsError):
        issue.fields = [f.name for f in error.fields]
    return issue


def check(
    data: Union[JsonInput, Any],
    tp: Any,
    config: Optional[DecoderConfig] = None,
    *,
    decoder: Optional[BijectiveDecoder] = None,
) -> CheckResult:
    """
    Check whether data decodes into tp, without raising on mismatches.

    Args:
        data: JSON text/bytes, or an already-parsed JSON tree
        tp: Target type
        config: Decoder config (ignored when decoder is given)
        decoder: Existing decoding context to reuse

    Returns:
        CheckResult with ok=False and one issue when decoding fails
    """
    decoder = decoder if decoder is not None else BijectiveDecoder(config)
    try:
        if isinstance(data, (str, bytes, bytearray)):
            decoder.decode(data, tp)
        else:
            decoder.decode_value(data, tp)
    except BijectiveError as e:
        return CheckResult(ok=False, type_name=type_name(tp), errors=[_issue_from_error(e)])
    return CheckResult(ok=True, type_name=type_name(tp), errors=[])
