"""Decoder registry: picks a decoder for every type reached during decoding.

Factories are consulted in order and the first one returning a decoder wins;
the result is cached per type. Record types listed for strict decoding get a
strict RecordDecoder, other records the permissive one, containers decode their
elements back through the registry, and everything else is validated by
pydantic's TypeAdapter (the default decoder).

Decoders look up the decoders of their elements and fields when reading, not
when created, so self-referencing record types need no special handling.
"""

import collections.abc
import logging
import threading
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Protocol, Sequence, get_args, get_origin

from pydantic import TypeAdapter, ValidationError

from .errors import DecodeError, InvalidValueError
from .reader import DecodePolicy, RecordDecoder
from .schema import SchemaCache, is_record_type
from .stream import JsonReader, JsonStreamError, JsonToken
from .types import generic_origin, is_union, strip_annotated, type_name, unwrap_optional

logger = logging.getLogger(__name__)


class Decoder(Protocol):
    """Consumes one value of a given type from a JsonReader."""

    def read(self, reader: JsonReader) -> Any:
        ...


DecoderFactory = Callable[["DecoderRegistry", Any], Optional[Decoder]]


def _validate(adapter: TypeAdapter, tp: Any, value: Any, path: str) -> Any:
    try:
        return adapter.validate_python(value)
    except ValidationError as e:
        raise InvalidValueError(type_name(tp), value, e, path) from e


class AnyDecoder:
    """Returns the raw JSON tree."""

    def read(self, reader: JsonReader) -> Any:
        return reader.read_value()


class ValueDecoder:
    """Default decoder: validates the raw JSON value with pydantic."""

    def __init__(self, tp: Any):
        self.tp = tp
        self._adapter = TypeAdapter(tp)

    def __repr__(self) -> str:
        return f"ValueDecoder({type_name(self.tp)})"

    def read(self, reader: JsonReader) -> Any:
        path = reader.path
        return _validate(self._adapter, self.tp, reader.read_value(), path)


class OptionalDecoder:
    """Decodes null as None and anything else with the inner type's decoder."""

    def __init__(self, registry: "DecoderRegistry", inner: Any):
        self._registry = registry
        self.inner = inner

    def read(self, reader: JsonReader) -> Any:
        if reader.peek() is JsonToken.NULL:
            reader.next_null()
            return None
        return self._registry.get_decoder(self.inner).read(reader)


class SequenceDecoder:
    """Decodes a JSON array whose elements share one type."""

    def __init__(self, registry: "DecoderRegistry", container: type, element_type: Any, tp: Any = None):
        self._registry = registry
        self.container = container
        self.element_type = element_type
        self.tp = tp if tp is not None else container

    def read(self, reader: JsonReader) -> Any:
        if reader.peek() is JsonToken.NULL:
            reader.next_null()
            return None
        path = reader.path
        decoder = self._registry.get_decoder(self.element_type)
        items = []
        reader.begin_array()
        while reader.has_next():
            items.append(decoder.read(reader))
        reader.end_array()
        if self.container is list:
            return items
        try:
            return self.container(items)
        except TypeError as e:
            # unhashable elements cannot populate a set
            raise InvalidValueError(type_name(self.tp), items, e, path) from e


class TupleDecoder:
    """Decodes a JSON array into a fixed-length tuple, one type per position."""

    def __init__(self, registry: "DecoderRegistry", tp: Any, element_types: Sequence[Any]):
        self._registry = registry
        self.tp = tp
        self.element_types = tuple(element_types)

    def read(self, reader: JsonReader) -> Any:
        if reader.peek() is JsonToken.NULL:
            reader.next_null()
            return None
        path = reader.path
        items = []
        reader.begin_array()
        while reader.has_next():
            if len(items) == len(self.element_types):
                items.append(reader.read_value())
                continue
            items.append(self._registry.get_decoder(self.element_types[len(items)]).read(reader))
        reader.end_array()
        if len(items) != len(self.element_types):
            raise InvalidValueError(type_name(self.tp), items, None, path)
        return tuple(items)


class MappingDecoder:
    """Decodes a JSON object with arbitrary keys into a dict."""

    def __init__(self, registry: "DecoderRegistry", key_type: Any, value_type: Any):
        self._registry = registry
        self.key_type = key_type
        self.value_type = value_type
        self._key_adapter = None if key_type in (str, Any) else TypeAdapter(key_type)

    def read(self, reader: JsonReader) -> Any:
        if reader.peek() is JsonToken.NULL:
            reader.next_null()
            return None
        decoder = self._registry.get_decoder(self.value_type)
        result = {}
        reader.begin_object()
        while reader.has_next():
            key = reader.next_name()
            if self._key_adapter is not None:
                key = _validate(self._key_adapter, self.key_type, key, reader.path)
            result[key] = decoder.read(reader)
        reader.end_object()
        return result


class UnionDecoder:
    """Decodes a union with record members by trying each member in order.

    The value is buffered once; every attempt reads the buffered tree with the
    member's own decoder, so records inside the union keep their strictness.
    The first member that decodes wins.
    """

    def __init__(self, registry: "DecoderRegistry", tp: Any, members: Sequence[Any]):
        self._registry = registry
        self.tp = tp
        self.members = tuple(members)

    def __repr__(self) -> str:
        return f"UnionDecoder({type_name(self.tp)})"

    def read(self, reader: JsonReader) -> Any:
        path = reader.path
        value = reader.read_value()
        last_error: Optional[Exception] = None
        for member in self.members:
            decoder = self._registry.get_decoder(member)
            try:
                member_reader = JsonReader.from_value(value, root=path)
                result = decoder.read(member_reader)
                member_reader.end_document()
            except (DecodeError, JsonStreamError) as e:
                last_error = e
                continue
            return result
        raise last_error


class RecordDecoderFactory:
    """Creates RecordDecoders under one policy, optionally for listed types only."""

    def __init__(self, policy: DecodePolicy, included_types: Optional[Iterable[Any]] = None):
        self.policy = policy
        self.included_types: Optional[FrozenSet[Any]] = (
            frozenset(included_types) if included_types is not None else None
        )

    def includes(self, tp: Any) -> bool:
        if self.included_types is None:
            return True
        return tp in self.included_types or generic_origin(tp) in self.included_types

    def __call__(self, registry: "DecoderRegistry", tp: Any) -> Optional[Decoder]:
        if not is_record_type(tp) or not self.includes(tp):
            return None
        return RecordDecoder(registry.schema_cache.get(tp), self.policy, registry)


def any_decoder_factory(registry: "DecoderRegistry", tp: Any) -> Optional[Decoder]:
    if tp is Any or tp is object:
        return AnyDecoder()
    return None


def optional_decoder_factory(registry: "DecoderRegistry", tp: Any) -> Optional[Decoder]:
    nullable, inner = unwrap_optional(tp)
    if not nullable:
        return None
    return OptionalDecoder(registry, inner)


_SEQUENCE_CONTAINERS: Dict[Any, type] = {
    list: list,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Collection: list,
    collections.abc.Iterable: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
}

_MAPPING_ORIGINS = frozenset({dict, collections.abc.Mapping, collections.abc.MutableMapping})


def sequence_decoder_factory(registry: "DecoderRegistry", tp: Any) -> Optional[Decoder]:
    origin = get_origin(tp) or tp
    args = get_args(tp)
    if origin is tuple:
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            return SequenceDecoder(registry, tuple, args[0] if args else Any, tp)
        return TupleDecoder(registry, tp, args)
    container = _SEQUENCE_CONTAINERS.get(origin)
    if container is None:
        return None
    return SequenceDecoder(registry, container, args[0] if args else Any, tp)


def mapping_decoder_factory(registry: "DecoderRegistry", tp: Any) -> Optional[Decoder]:
    origin = get_origin(tp) or tp
    if origin not in _MAPPING_ORIGINS:
        return None
    args = get_args(tp)
    key_type, value_type = args if len(args) == 2 else (Any, Any)
    return MappingDecoder(registry, key_type, value_type)


def union_decoder_factory(registry: "DecoderRegistry", tp: Any) -> Optional[Decoder]:
    if not is_union(tp):
        return None
    members = get_args(tp)
    if not any(is_record_type(member) for member in members):
        return None
    return UnionDecoder(registry, tp, members)


def value_decoder_factory(registry: "DecoderRegistry", tp: Any) -> Optional[Decoder]:
    return ValueDecoder(tp)


class DecoderRegistry:
    """Type-keyed decoder lookup shared by every decode in one context."""

    def __init__(self, factories: Sequence[DecoderFactory], schema_cache: Optional[SchemaCache] = None):
        self._factories = tuple(factories)
        self.schema_cache = schema_cache if schema_cache is not None else SchemaCache()
        self._decoders: Dict[Any, Decoder] = {}
        self._lock = threading.RLock()

    @classmethod
    def create(
        cls,
        policy: DecodePolicy = DecodePolicy(),
        included_types: Optional[Iterable[Any]] = None,
        schema_cache: Optional[SchemaCache] = None,
    ) -> "DecoderRegistry":
        """
        Build the standard factory chain.

        Args:
            policy: Policy for record types handled strictly
            included_types: Record types handled strictly; None means all of them
            schema_cache: Shared schema cache; a fresh one when None

        Returns:
            DecoderRegistry whose records outside included_types decode permissively
        """
        factories = [
            RecordDecoderFactory(policy, included_types),
            any_decoder_factory,
            optional_decoder_factory,
            sequence_decoder_factory,
            mapping_decoder_factory,
            union_decoder_factory,
            RecordDecoderFactory(DecodePolicy.permissive()),
            value_decoder_factory,
        ]
        return cls(factories, schema_cache)

    def get_decoder(self, tp: Any) -> Decoder:
        """Return the (cached) decoder for tp."""
        tp = strip_annotated(tp)
        try:
            decoder = self._decoders.get(tp)
        except TypeError:
            # unhashable type expressions are not cached
            return self._create(tp)
        if decoder is not None:
            return decoder
        with self._lock:
            decoder = self._decoders.get(tp)
            if decoder is None:
                decoder = self._create(tp)
                self._decoders[tp] = decoder
        return decoder

    def _create(self, tp: Any) -> Decoder:
        for factory in self._factories:
            decoder = factory(self, tp)
            if decoder is not None:
                logger.debug("Created %r for %s", decoder, type_name(tp))
                return decoder
        raise TypeError(f"No decoder registered for {type_name(tp)}")
