"""Type introspection helpers shared by the schema builder and the registry."""

import types
from typing import Annotated, Any, Dict, Tuple, TypeVar, Union, get_args, get_origin

NONE_TYPE = type(None)


def strip_annotated(tp: Any) -> Any:
    """Return T for ``Annotated[T, ...]``, otherwise tp unchanged."""
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    return tp


def is_union(tp: Any) -> bool:
    """True for ``Union[...]``, ``Optional[...]`` and ``X | Y``."""
    return get_origin(tp) in (Union, types.UnionType)


def is_nullable_annotation(tp: Any) -> bool:
    """True if the annotation itself admits a null value."""
    tp = strip_annotated(tp)
    if tp is None or tp is NONE_TYPE:
        return True
    if is_union(tp):
        return any(is_nullable_annotation(arg) for arg in get_args(tp))
    return False


def accepts_none(tp: Any) -> bool:
    """True if None is a legal value of tp (nullable annotations, ``Any`` and ``object``)."""
    return is_nullable_annotation(tp) or strip_annotated(tp) in (Any, object)


def unwrap_optional(tp: Any) -> Tuple[bool, Any]:
    """Split ``Optional[T]`` into ``(True, T)``.

    Unions of several non-null members keep their remaining members, so
    ``int | str | None`` becomes ``(True, int | str)``.
    """
    tp = strip_annotated(tp)
    if not is_union(tp):
        return False, tp
    args = get_args(tp)
    non_none = tuple(a for a in args if a is not NONE_TYPE and a is not None)
    if len(non_none) == len(args):
        return False, tp
    if len(non_none) == 1:
        return True, non_none[0]
    return True, Union[non_none]


def record_origin(tp: Any) -> Any:
    """Return the class behind a parametrized generic alias (``Holder[int]`` -> ``Holder``)."""
    origin = get_origin(tp)
    if isinstance(origin, type):
        return origin
    return tp


def generic_origin(tp: Any) -> Any:
    """Return the unparametrized class of a generic record type, or tp itself.

    Covers typing aliases (``Holder[int]``) and the subclasses pydantic creates
    for parametrized generic models (``Box[int]``).
    """
    origin = record_origin(tp)
    metadata = getattr(origin, "__pydantic_generic_metadata__", None)
    if metadata and metadata.get("origin") is not None:
        return metadata["origin"]
    return origin


def typevar_map(tp: Any) -> Dict[Any, Any]:
    """Map the type parameters of a generic alias to its arguments."""
    origin = get_origin(tp)
    if not isinstance(origin, type):
        return {}
    params = getattr(origin, "__parameters__", ())
    return dict(zip(params, get_args(tp)))


def resolve_type(tp: Any, typevars: Dict[Any, Any]) -> Any:
    """Substitute type variables in tp using the enclosing parametrization.

    Type variables with no binding resolve to their bound, or to ``Any``.
    """
    if isinstance(tp, TypeVar):
        if tp in typevars:
            return typevars[tp]
        return tp.__bound__ if tp.__bound__ is not None else Any
    params = getattr(tp, "__parameters__", None)
    if params and not isinstance(tp, type):
        return tp[tuple(resolve_type(p, typevars) for p in params)]
    return tp


def type_name(tp: Any) -> str:
    """Qualified, human-readable name of a type for diagnostics."""
    if isinstance(tp, type):
        if tp.__module__ == "builtins":
            return tp.__qualname__
        return f"{tp.__module__}.{tp.__qualname__}"
    return repr(tp).replace("typing.", "")
