"""
Deterministic JSON serialization for byte-stable manifest snapshots.

Ensures that identical manifests produce identical JSON regardless of
dict insertion order or platform differences.
"""

from __future__ import annotations

from typing import Any

import orjson


def canonical_json_dumps(
    obj: Any,
    *,
    indent: bool = False,
) -> str:
    """
    Serialize object to canonical JSON string.

    Guarantees:
    - Sorted dictionary keys
    - UTF-8 output, non-ASCII characters kept as-is
    - Normalized newlines

    Args:
        obj: Object to serialize.
        indent: If True, pretty-print with 2-space indentation.

    Returns:
        Canonical JSON string.

    Examples:
        >>> canonical_json_dumps({"b": "y", "a": "x"})
        '{"a":"x","b":"y"}'
    """
    return canonical_json_bytes(obj, indent=indent).decode("utf-8")


def canonical_json_loads(json_str: str | bytes) -> Any:
    """
    Parse JSON string.

    Args:
        json_str: JSON string (or UTF-8 bytes) to parse.

    Returns:
        Parsed Python object.

    Raises:
        orjson.JSONDecodeError: If the input is not valid JSON.

    Examples:
        >>> canonical_json_loads('{"a":"x"}')
        {'a': 'x'}
    """
    return orjson.loads(json_str)


def canonical_json_bytes(obj: Any, *, indent: bool = False) -> bytes:
    """
    Serialize object to canonical JSON bytes.

    Used for pipeline item contents, which are always UTF-8 bytes.

    Args:
        obj: Object to serialize.
        indent: If True, pretty-print with 2-space indentation.

    Returns:
        Canonical JSON as UTF-8 bytes.

    Raises:
        TypeError: If the object holds values JSON cannot represent.
    """
    options = orjson.OPT_SORT_KEYS

    if indent:
        options |= orjson.OPT_INDENT_2

    # orjson emits "\n" only, so the bytes are stable across platforms
    return orjson.dumps(obj, option=options)
