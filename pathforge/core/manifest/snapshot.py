"""
Manifest snapshot schema.

The snapshot is the persisted, log-free form of a manifest: exactly
``{"keys": {...}, "values": {...}}``.
"""

from __future__ import annotations

from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pathforge.core.errors import ManifestParseError
from pathforge.core.json_canonical import canonical_json_dumps, canonical_json_loads


class ManifestSnapshot(BaseModel):
    """Persisted origin/output mapping."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    keys: dict[str, str] = Field(description="Origin path to output path")
    values: dict[str, str] = Field(description="Output path to origin path")

    def to_json(self, compact: bool = False) -> str:
        """Serialize to canonical JSON, 2-space indented unless compact."""
        return canonical_json_dumps(self.model_dump(), indent=not compact)

    @classmethod
    def from_obj(cls, data: Any) -> ManifestSnapshot:
        """
        Validate a parsed object as a snapshot.

        Raises:
            ManifestParseError: If the object is not ``{keys, values}`` of strings.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ManifestParseError(f"Invalid manifest snapshot: {e}", e) from e

    @classmethod
    def from_json(cls, content: str | bytes) -> ManifestSnapshot:
        """
        Parse snapshot JSON.

        Raises:
            ManifestParseError: If content is not valid JSON or has the wrong shape.
        """
        try:
            data = canonical_json_loads(content)
        except orjson.JSONDecodeError as e:
            raise ManifestParseError(f"Manifest snapshot is not valid JSON: {e}", e) from e
        return cls.from_obj(data)
