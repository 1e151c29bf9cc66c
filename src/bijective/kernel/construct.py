"""Instance construction without validation.

Decoded field values are assigned directly: pydantic validators and
``__post_init__`` do not run. Fields that were never assigned keep their
declared default, or None when they have none.
"""

import dataclasses
from typing import Any, Callable, Dict

from .schema import FieldSchema
from .types import record_origin


def construct(schema: FieldSchema, values: Dict[str, Any]) -> Any:
    """
    Build an instance of schema.record_type from decoded attribute values.

    Args:
        schema: Field schema of the target record type
        values: Decoded values keyed by declared attribute name

    Returns:
        A new instance; attributes missing from values hold their default
    """
    cls = record_origin(schema.record_type)
    # no-default fields left unassigned would otherwise be absent attributes
    unset = {
        f.attribute: None
        for f in schema.fields
        if not f.has_default and f.attribute not in values
    }

    if schema.kind == "model":
        # model_construct() with no arguments fills defaults and private state;
        # values are keyed by attribute, so they bypass its alias lookup
        instance = cls.model_construct()
        state = {**instance.__dict__, **unset, **values}
        object.__setattr__(instance, "__dict__", {
            f.attribute: state[f.attribute] for f in schema.fields if f.attribute in state
        })
        object.__setattr__(instance, "__pydantic_fields_set__", set(values))
        return instance

    instance = cls.__new__(cls)
    defaults = _dataclass_defaults(cls)
    for f in schema.fields:
        if f.attribute in values:
            value = values[f.attribute]
        elif f.attribute in unset:
            value = None
        else:
            value = defaults[f.attribute]()
        object.__setattr__(instance, f.attribute, value)
    return instance


def _dataclass_defaults(cls: type) -> Dict[str, Callable[[], Any]]:
    """Zero-argument callables producing each defaulted field's default."""
    pydantic_fields = getattr(cls, "__pydantic_fields__", None)
    if pydantic_fields is not None:
        return {
            name: (lambda info=info: info.get_default(call_default_factory=True))
            for name, info in pydantic_fields.items()
            if not info.is_required()
        }

    defaults: Dict[str, Callable[[], Any]] = {}
    for f in dataclasses.fields(cls):
        if f.default is not dataclasses.MISSING:
            defaults[f.name] = (lambda value=f.default: value)
        elif f.default_factory is not dataclasses.MISSING:
            defaults[f.name] = f.default_factory
    return defaults
