"""bijective: strict one-to-one JSON key/field decoding for pydantic models and dataclasses."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("bijective")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from bijective.api import BijectiveDecoder, check, decode, decode_value, encode
from bijective.codes import DecodeErrorCode
from bijective.config import DecoderConfig, load_config
from bijective.contracts import CheckIssue, CheckResult
from bijective.kernel.errors import (
    BijectiveError,
    DecodeError,
    DuplicateFieldNameError,
    InvalidValueError,
    MalformedStreamError,
    MissingFieldsError,
    NotARecordTypeError,
    SchemaError,
    UnknownFieldError,
    UnsupportedFieldError,
)
from bijective.kernel.schema import FieldDescriptor, FieldSchema, Nullable, OptionalField, SchemaCache

__all__ = [
    "__version__",
    "BijectiveDecoder",
    "check",
    "decode",
    "decode_value",
    "encode",
    "DecodeErrorCode",
    "DecoderConfig",
    "load_config",
    "CheckIssue",
    "CheckResult",
    "BijectiveError",
    "DecodeError",
    "DuplicateFieldNameError",
    "InvalidValueError",
    "MalformedStreamError",
    "MissingFieldsError",
    "NotARecordTypeError",
    "SchemaError",
    "UnknownFieldError",
    "UnsupportedFieldError",
    "FieldDescriptor",
    "FieldSchema",
    "Nullable",
    "OptionalField",
    "SchemaCache",
]
