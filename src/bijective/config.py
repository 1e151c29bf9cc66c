"""Decoder configuration models.

A DecoderConfig is supplied once per decoding context and never changes
afterwards. Config files use the DecoderConfigFile form, where included types
are written as import paths.
"""

import json
from pathlib import Path
from typing import Any, FrozenSet, List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from bijective._internal.type_paths import import_type
from bijective.kernel.reader import DecodePolicy
from bijective.kernel.schema import is_record_type
from bijective.kernel.types import type_name


class DecoderConfig(BaseModel):
    """Strict decoding options (all toggles default to strict)."""
    require_all_class_fields_used: bool = True  # every required field must appear in the input
    require_all_json_fields_used: bool = True  # every input key must match a field
    allow_unused_nulls: bool = True  # unmatched keys with null values are skipped
    included_types: Optional[FrozenSet[Any]] = None  # None = every record type

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    @field_validator("included_types")
    @classmethod
    def validate_included_types(cls, v: Optional[FrozenSet[Any]]) -> Optional[FrozenSet[Any]]:
        """Only record types can be decoded strictly."""
        if v is None:
            return None
        not_records = sorted(type_name(t) for t in v if not is_record_type(t))
        if not_records:
            raise ValueError(f"included_types must contain record types only, got: {not_records}")
        return v

    def policy(self) -> DecodePolicy:
        """Policy applied to strictly decoded record types."""
        return DecodePolicy(
            require_all_class_fields_used=self.require_all_class_fields_used,
            require_all_json_fields_used=self.require_all_json_fields_used,
            allow_unused_nulls=self.allow_unused_nulls,
        )


class DecoderConfigFile(BaseModel):
    """On-disk form of DecoderConfig; included types are ``module:QualName`` paths."""
    require_all_class_fields_used: bool = True
    require_all_json_fields_used: bool = True
    allow_unused_nulls: bool = True
    included_types: Optional[List[str]] = None

    model_config = ConfigDict(extra="forbid")

    def to_config(self) -> DecoderConfig:
        """Import the listed types and build the runtime config."""
        included = None
        if self.included_types is not None:
            included = frozenset(import_type(path) for path in self.included_types)
        return DecoderConfig(
            require_all_class_fields_used=self.require_all_class_fields_used,
            require_all_json_fields_used=self.require_all_json_fields_used,
            allow_unused_nulls=self.allow_unused_nulls,
            included_types=included,
        )


def load_config(path: Union[str, Path]) -> DecoderConfig:
    """
    Load decoder configuration from a JSON file.

    Args:
        path: Path to a JSON object with DecoderConfigFile keys

    Returns:
        DecoderConfig

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or has unknown/invalid keys
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    try:
        return DecoderConfigFile(**data).to_config()
    except ValidationError as e:
        raise ValueError(f"Invalid decoder config {path}: {e}") from e
