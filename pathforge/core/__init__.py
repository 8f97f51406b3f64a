"""Core utilities: manifests, errors, canonical JSON."""

from pathforge.core.errors import (
    ManifestError,
    ManifestIOError,
    ManifestKeyNotFoundError,
    ManifestParseError,
)
from pathforge.core.json_canonical import canonical_json_dumps, canonical_json_loads

__all__ = [
    "ManifestError",
    "ManifestIOError",
    "ManifestKeyNotFoundError",
    "ManifestParseError",
    "canonical_json_dumps",
    "canonical_json_loads",
]
