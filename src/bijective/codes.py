"""Error code constants for bijective decode failures.

These constants prevent stringly-typed error codes and let client code
branch on the kind of failure without parsing messages.
"""

from enum import Enum


class DecodeErrorCode(str, Enum):
    """Schema and decode error codes."""

    # Schema errors (raised before any input is read)
    DUPLICATE_FIELD_NAME = "DUPLICATE_FIELD_NAME"
    NOT_A_RECORD_TYPE = "NOT_A_RECORD_TYPE"
    UNSUPPORTED_FIELD = "UNSUPPORTED_FIELD"

    # Decode errors (raised while reading one object)
    UNKNOWN_FIELD = "UNKNOWN_FIELD"
    MISSING_FIELDS = "MISSING_FIELDS"
    MALFORMED_STREAM = "MALFORMED_STREAM"
    INVALID_VALUE = "INVALID_VALUE"
