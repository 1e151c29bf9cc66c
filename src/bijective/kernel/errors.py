"""Exception hierarchy for schema construction and strict decoding.

Schema errors describe a broken record type definition and are raised before
any input is read. Decode errors describe a mismatch between one input object
and its record type; they abort decoding of that object and of everything that
encloses it.
"""

from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from bijective._internal.canonical_json import canonical_dumps
from bijective.codes import DecodeErrorCode

if TYPE_CHECKING:
    from .schema import FieldDescriptor


def render_value(value: Any) -> str:
    """Render a decoded JSON value for an error message.

    Strings are shown bare, everything else as compact JSON (so a null value
    renders as ``null``).
    """
    if isinstance(value, str):
        return value
    try:
        return canonical_dumps(value)
    except (TypeError, ValueError):
        return repr(value)


def render_names(descriptor: "FieldDescriptor") -> str:
    """Render the accepted names of a field as ``[name, alternate]``."""
    return "[" + ", ".join(descriptor.accepted_names) + "]"


class BijectiveError(Exception):
    """Base exception for all bijective errors."""
    code: DecodeErrorCode


class SchemaError(BijectiveError, TypeError):
    """Raised when a record type cannot be turned into a field schema."""

    def __init__(self, type_name: str, message: str):
        self.type_name = type_name
        super().__init__(message)


class DuplicateFieldNameError(SchemaError):
    """Raised when two fields of one record type accept the same JSON name."""
    code = DecodeErrorCode.DUPLICATE_FIELD_NAME

    def __init__(self, type_name: str, name: str, attributes: Sequence[str]):
        self.name = name
        self.attributes = tuple(attributes)
        super().__init__(type_name, f"class {type_name} declares multiple JSON fields named {name}")


class NotARecordTypeError(SchemaError):
    """Raised when a field schema is requested for a type that has no fields."""
    code = DecodeErrorCode.NOT_A_RECORD_TYPE

    def __init__(self, type_name: str):
        super().__init__(
            type_name,
            f"{type_name} is not a record type (expected a pydantic model or a dataclass)"
        )


class UnsupportedFieldError(SchemaError):
    """Raised when a field declares a name mapping the decoder cannot honor."""
    code = DecodeErrorCode.UNSUPPORTED_FIELD

    def __init__(self, type_name: str, attribute: str, reason: str):
        self.attribute = attribute
        super().__init__(type_name, f"class {type_name} field `{attribute}` is not supported: {reason}")


class DecodeError(BijectiveError, ValueError):
    """Raised when an input value does not decode into its target type."""

    def __init__(self, type_name: str, message: str, path: Optional[str] = None):
        self.type_name = type_name
        self.message = message
        self.path = path
        # no location suffix for the document root
        super().__init__(message if path in (None, "$") else f"{message} at path {path}")


class UnknownFieldError(DecodeError):
    """Raised when an input key matches no field of the record type."""
    code = DecodeErrorCode.UNKNOWN_FIELD

    def __init__(self, type_name: str, key: str, value: Any, path: Optional[str] = None):
        self.key = key
        self.value = value
        super().__init__(
            type_name,
            f"Model class {type_name} does not contain a field for JSON property "
            f"`{key}` with value `{render_value(value)}`",
            path,
        )


class MissingFieldsError(DecodeError):
    """Raised when required fields are absent from the input object.

    Carries every missing field, in declaration order, not just the first.
    """
    code = DecodeErrorCode.MISSING_FIELDS

    def __init__(self, type_name: str, fields: Sequence["FieldDescriptor"], path: Optional[str] = None):
        self.fields = tuple(fields)
        super().__init__(
            type_name,
            f"Model class {type_name} required field(s) which were not present in the JSON: "
            + ", ".join(render_names(f) for f in self.fields),
            path,
        )

    @property
    def attributes(self) -> List[str]:
        """Declared attribute names of the missing fields."""
        return [f.attribute for f in self.fields]


class MalformedStreamError(DecodeError):
    """Raised when the input stream violates JSON structure expectations."""
    code = DecodeErrorCode.MALFORMED_STREAM

    def __init__(self, type_name: str, cause: Exception, path: Optional[str] = None):
        self.cause = cause
        super().__init__(type_name, f"Malformed JSON while reading {type_name}: {cause}", path)


class InvalidValueError(DecodeError):
    """Raised when the default decoder rejects a scalar or container value."""
    code = DecodeErrorCode.INVALID_VALUE

    def __init__(self, type_name: str, value: Any, cause: Optional[Exception], path: Optional[str] = None):
        self.value = value
        self.cause = cause
        super().__init__(
            type_name,
            f"Value `{render_value(value)}` is not a valid {type_name}",
            path,
        )
