"""Object reader: decodes one JSON object into a record type.

The same reader serves strict and permissive decoding; a DecodePolicy decides
what happens when input keys and declared fields do not line up:

- require_all_class_fields_used: every required field must appear in the input
- require_all_json_fields_used: every input key must match a field
- allow_unused_nulls: an unmatched key whose value is null is always skipped

Field values are decoded through the registry, so nested records are decoded
by whichever reader the registry selects for their type.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Set

from .construct import construct
from .errors import InvalidValueError, MalformedStreamError, MissingFieldsError, UnknownFieldError
from .schema import FieldDescriptor, FieldSchema
from .stream import JsonReader, JsonStreamError, JsonToken
from .types import accepts_none, type_name

if TYPE_CHECKING:
    from .registry import DecoderRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodePolicy:
    """How mismatches between input keys and declared fields are handled."""
    require_all_class_fields_used: bool = True
    require_all_json_fields_used: bool = True
    allow_unused_nulls: bool = True

    @classmethod
    def permissive(cls) -> "DecodePolicy":
        """Policy of the default decoder: ignore unknown keys, require nothing."""
        return cls(require_all_class_fields_used=False, require_all_json_fields_used=False)

    def skips_unmatched(self, token: JsonToken) -> bool:
        """Whether an unmatched key whose value starts with token is skipped."""
        if not self.require_all_json_fields_used:
            return True
        return self.allow_unused_nulls and token is JsonToken.NULL


class RecordDecoder:
    """Reads JSON objects into instances of one record type."""

    def __init__(self, schema: FieldSchema, policy: DecodePolicy, registry: "DecoderRegistry"):
        self.schema = schema
        self.policy = policy
        self._registry = registry

    def __repr__(self) -> str:
        return f"RecordDecoder({self.schema.type_name}, {self.policy})"

    def read(self, reader: JsonReader) -> Any:
        """
        Read one object (or null) from reader.

        Args:
            reader: Stream positioned at the start of an object or a null

        Returns:
            The populated instance, or None for a null input

        Raises:
            UnknownFieldError: If a key matches no field and the policy forbids it
            MissingFieldsError: If required fields were absent (lists all of them)
            MalformedStreamError: If the stream is not a well-formed object
        """
        if reader.peek() is JsonToken.NULL:
            reader.next_null()
            return None

        schema = self.schema
        path = reader.path
        values: Dict[str, Any] = {}
        missing: Optional[Set[FieldDescriptor]] = (
            set(schema.required_fields) if self.policy.require_all_class_fields_used else None
        )

        try:
            reader.begin_object()
            while reader.has_next():
                name = reader.next_name()
                descriptor = schema.field_for(name)
                if descriptor is None:
                    if self.policy.skips_unmatched(reader.peek()):
                        reader.skip_value()
                        continue
                    key_path = reader.path
                    raise UnknownFieldError(schema.type_name, name, reader.read_value(), key_path)

                # duplicate keys for one field: last write wins
                values[descriptor.attribute] = self._read_field(descriptor, reader)
                if missing is not None:
                    missing.discard(descriptor)
            reader.end_object()
        except JsonStreamError as e:
            raise MalformedStreamError(schema.type_name, e) from e

        if missing:
            error = MissingFieldsError(schema.type_name, sorted(missing, key=lambda f: f.position), path)
            logger.debug("Rejected %s: missing %s", schema.type_name, error.attributes)
            raise error

        return construct(schema, values)

    def _read_field(self, descriptor: FieldDescriptor, reader: JsonReader) -> Any:
        if descriptor.is_nullable and reader.peek() is JsonToken.NULL:
            reader.next_null()
            return None
        path = reader.path
        value = self._registry.get_decoder(descriptor.field_type).read(reader)
        if value is None and not accepts_none(descriptor.field_type):
            raise InvalidValueError(type_name(descriptor.field_type), None, None, path)
        return value
