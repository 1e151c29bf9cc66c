"""Canonical JSON rendering for diagnostics and CLI reports.

Error messages and reports render values through this module so the same
value always prints the same way, regardless of dict insertion order.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Compact, key-sorted JSON rendering.

    Rules:
    - Sorted keys
    - Stable separators (",", ":")
    - Non-ASCII characters kept as-is

    Args:
        obj: JSON-compatible Python object

    Returns:
        Canonical JSON string

    Raises:
        TypeError: If obj contains values that are not JSON-compatible
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False
    )


def report_dumps(obj: Any) -> str:
    """Indented, key-sorted JSON rendering for human-facing CLI output."""
    return json.dumps(obj, sort_keys=True, indent=2, ensure_ascii=False)
