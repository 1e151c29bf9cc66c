"""Field schemas: which JSON names map to which fields of a record type.

A field schema is built once per record type and never mutated afterwards.
Record types are pydantic models, pydantic dataclasses and stdlib dataclasses,
including parametrizations of generic ones.

Names accepted for a field come from pydantic's own alias machinery, so the
strict reader accepts exactly the names the default encoder writes:

- ``Field(validation_alias=AliasChoices("primary", "alternate"))``
- ``Field(alias="name")`` (also set by the model's ``alias_generator``)
- the declared attribute name otherwise, or additionally when the model
  enables ``populate_by_name``

Two markers, attached through ``Annotated``, adjust the required classification:

    class Example(BaseModel):
        required: str
        optional: Annotated[str, OptionalField()] = ""
        nullable: Annotated[str, Nullable()] = ""
"""

import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Tuple, get_type_hints

from pydantic import AliasChoices, AliasPath, BaseModel, RootModel
from pydantic.fields import FieldInfo

from .errors import DuplicateFieldNameError, NotARecordTypeError, UnsupportedFieldError
from .types import is_nullable_annotation, record_origin, resolve_type, strip_annotated, type_name, typevar_map

logger = logging.getLogger(__name__)


class OptionalField:
    """Marker: the field may be absent from the input even though it is not nullable."""

    def __repr__(self) -> str:
        return "OptionalField()"


class Nullable:
    """Marker: the field admits null even though its annotation does not say so."""

    def __repr__(self) -> str:
        return "Nullable()"


def _has_marker(metadata: List[Any], marker: type) -> bool:
    return any(m is marker or isinstance(m, marker) for m in metadata)


@dataclass(frozen=True, eq=False)
class FieldDescriptor:
    """One declared field of a record type."""
    attribute: str  # declared Python attribute name
    position: int  # declaration order, identity within the schema
    accepted_names: Tuple[str, ...]  # primary name first
    field_type: Any  # declared type, generics resolved
    is_nullable: bool
    is_optional: bool
    has_default: bool

    @property
    def required(self) -> bool:
        """A field is required only when it is neither nullable nor optional."""
        return not self.is_nullable and not self.is_optional

    @property
    def name(self) -> str:
        """Primary JSON name."""
        return self.accepted_names[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attribute": self.attribute,
            "names": list(self.accepted_names),
            "type": type_name(self.field_type),
            "nullable": self.is_nullable,
            "optional": self.is_optional,
            "required": self.required,
        }


@dataclass(frozen=True, eq=False)
class FieldSchema:
    """The validated set of field descriptors for one record type."""
    record_type: Any
    type_name: str
    kind: Literal["model", "dataclass"]
    fields: Tuple[FieldDescriptor, ...]
    _index: Mapping[str, FieldDescriptor] = field(repr=False)

    @property
    def required_fields(self) -> Tuple[FieldDescriptor, ...]:
        return tuple(f for f in self.fields if f.required)

    def field_for(self, name: str) -> Optional[FieldDescriptor]:
        """Determine the field which should be set for the JSON property of the given name."""
        return self._index.get(name)

    def names(self) -> List[str]:
        """All accepted JSON names, in field order."""
        return [name for f in self.fields for name in f.accepted_names]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type_name,
            "kind": self.kind,
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass(frozen=True)
class _DeclaredField:
    attribute: str
    info: FieldInfo
    has_default: bool


def is_record_type(tp: Any) -> bool:
    """True for pydantic models and dataclasses (and generic parametrizations of them)."""
    cls = record_origin(strip_annotated(tp))
    if not isinstance(cls, type):
        return False
    if issubclass(cls, BaseModel):
        return not issubclass(cls, RootModel)
    return dataclasses.is_dataclass(cls)


def _declared_fields(cls: type, name: str) -> Tuple[str, List[_DeclaredField], bool]:
    """Enumerate the storage-backed fields of cls.

    Returns the record kind, the fields in declaration order and whether the
    declared attribute name is accepted in addition to an alias.
    """
    if issubclass(cls, BaseModel):
        by_name = bool(cls.model_config.get("populate_by_name") or cls.model_config.get("validate_by_name"))
        declared = [
            _DeclaredField(attribute, info, not info.is_required())
            for attribute, info in cls.model_fields.items()
        ]
        return "model", declared, by_name

    pydantic_fields = getattr(cls, "__pydantic_fields__", None)
    if pydantic_fields is not None:
        config = getattr(cls, "__pydantic_config__", {}) or {}
        by_name = bool(config.get("populate_by_name") or config.get("validate_by_name"))
        declared = [
            _DeclaredField(attribute, info, not info.is_required())
            for attribute, info in pydantic_fields.items()
        ]
        return "dataclass", declared, by_name

    try:
        hints = get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as e:
        raise UnsupportedFieldError(name, "<annotations>", f"cannot resolve type hints ({e})") from e
    declared = []
    for f in dataclasses.fields(cls):
        has_default = f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
        declared.append(_DeclaredField(f.name, FieldInfo.from_annotation(hints.get(f.name, f.type)), has_default))
    return "dataclass", declared, False


def _alias_name(owner: str, attribute: str, alias: Any) -> str:
    if isinstance(alias, str):
        return alias
    if isinstance(alias, AliasPath) and len(alias.path) == 1 and isinstance(alias.path[0], str):
        return alias.path[0]
    raise UnsupportedFieldError(owner, attribute, f"alias {alias!r} does not name a top-level JSON property")


def _accepted_names(owner: str, declared: _DeclaredField, by_name: bool) -> Tuple[str, ...]:
    info = declared.info
    names: List[str] = []
    alias = info.validation_alias
    if isinstance(alias, AliasChoices):
        names.extend(_alias_name(owner, declared.attribute, choice) for choice in alias.choices)
    elif alias is not None:
        names.append(_alias_name(owner, declared.attribute, alias))
    if not names and info.alias:
        names.append(info.alias)
    if not names or by_name:
        names.append(declared.attribute)
    # dict.fromkeys keeps the primary name first
    return tuple(dict.fromkeys(names))


def build_field_schema(record_type: Any) -> FieldSchema:
    """
    Build the field schema for a record type.

    Args:
        record_type: A pydantic model, a dataclass, or a parametrized generic alias of one

    Returns:
        FieldSchema with one descriptor per storage-backed field

    Raises:
        NotARecordTypeError: If record_type is not a record type
        DuplicateFieldNameError: If two fields accept the same JSON name
        UnsupportedFieldError: If a field alias cannot name a top-level property
    """
    owner = type_name(record_type)
    if not is_record_type(record_type):
        raise NotARecordTypeError(owner)

    record_type = strip_annotated(record_type)
    cls = record_origin(record_type)
    typevars = typevar_map(record_type)
    kind, declared, by_name = _declared_fields(cls, owner)

    descriptors = []
    for position, decl in enumerate(declared):
        metadata = list(decl.info.metadata)
        annotation = decl.info.annotation
        descriptors.append(FieldDescriptor(
            attribute=decl.attribute,
            position=position,
            accepted_names=_accepted_names(owner, decl, by_name),
            field_type=resolve_type(annotation, typevars) if annotation is not None else Any,
            is_nullable=is_nullable_annotation(annotation) or _has_marker(metadata, Nullable),
            is_optional=_has_marker(metadata, OptionalField),
            has_default=decl.has_default,
        ))

    index: Dict[str, FieldDescriptor] = {}
    for descriptor in descriptors:
        for name in descriptor.accepted_names:
            previous = index.get(name)
            if previous is not None and previous is not descriptor:
                raise DuplicateFieldNameError(owner, name, (previous.attribute, descriptor.attribute))
            index[name] = descriptor

    schema = FieldSchema(
        record_type=record_type,
        type_name=owner,
        kind=kind,
        fields=tuple(descriptors),
        _index=MappingProxyType(index),
    )
    logger.debug(
        "Built field schema for %s: %d field(s), %d required",
        owner, len(schema.fields), len(schema.required_fields),
    )
    return schema


class SchemaCache:
    """Per-context cache of field schemas, keyed by record type.

    Safe for concurrent readers; each type's schema is built at most once.
    Failed builds are not cached, so a broken type fails on every lookup.
    """

    def __init__(self, builder: Callable[[Any], FieldSchema] = build_field_schema):
        self._builder = builder
        self._schemas: Dict[Any, FieldSchema] = {}
        self._lock = threading.RLock()

    def get(self, record_type: Any) -> FieldSchema:
        """Return the schema for record_type, building it on first use."""
        schema = self._schemas.get(record_type)
        if schema is not None:
            return schema
        with self._lock:
            schema = self._schemas.get(record_type)
            if schema is None:
                schema = self._builder(record_type)
                self._schemas[record_type] = schema
        return schema

    def clear(self) -> None:
        with self._lock:
            self._schemas.clear()

    def __contains__(self, record_type: Any) -> bool:
        return record_type in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)
