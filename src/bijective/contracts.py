"""Public result models for bijective.api.check()."""

from typing import List, Optional
from pydantic import BaseModel


class CheckIssue(BaseModel):
    """One reason an input did not decode."""
    code: str  # a DecodeErrorCode value
    message: str
    path: Optional[str] = None  # JSONPath-style location, e.g. "$.items[0]"
    key: Optional[str] = None  # UNKNOWN_FIELD: the unmatched input key
    fields: Optional[List[str]] = None  # MISSING_FIELDS: primary names of every missing field


class CheckResult(BaseModel):
    """Result of checking one input against one record type."""
    ok: bool
    type_name: str
    errors: List[CheckIssue]
