"""Resolve ``module:QualName`` strings to the types they name."""

import importlib
from typing import Any


def import_type(path: str) -> Any:
    """
    Import the object named by path.

    Accepts ``package.module:Outer.Inner`` and, without a colon,
    ``package.module.Name`` (split at the last dot).

    Raises:
        ValueError: If the module or attribute cannot be found
    """
    if ":" in path:
        module_name, _, qualname = path.partition(":")
    else:
        module_name, _, qualname = path.rpartition(".")
    if not module_name or not qualname:
        raise ValueError(f"Type path '{path}' must look like 'package.module:ClassName'")

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import module '{module_name}' for type path '{path}': {e}") from e
    for attr in qualname.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError:
            raise ValueError(f"Module '{module_name}' has no attribute '{qualname}'") from None
    return obj
