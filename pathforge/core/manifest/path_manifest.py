"""
Bidirectional origin/output path manifest.

Every build output is traced back to the authored source file it came from,
and every source file forward to its current output.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Mapping
from typing import Any

from pathforge.core.errors import ManifestKeyNotFoundError
from pathforge.core.manifest.snapshot import ManifestSnapshot

logger = logging.getLogger(__name__)


class Manifest:
    """
    In-memory origin <-> output map with an append-only mutation log.

    ``keys`` maps origin paths to output paths and ``values`` is its inverse.
    Both maps are private; they only change through ``set_entry`` and
    ``remove_key`` so they stay inverses of each other. The event log records
    ``set:<output>`` and ``del:<origin>`` entries and is never persisted.
    """

    def __init__(
        self,
        snapshot: ManifestSnapshot | Mapping[str, Any] | None = None,
        max_events: int | None = None,
    ):
        """
        Initialize a manifest, optionally from a prior snapshot.

        Args:
            snapshot: Snapshot whose maps are taken verbatim. No bijection
                check is done; a persisted snapshot is trusted as-is.
            max_events: Keep only this many recent log entries. None keeps all.
        """
        self._keys: dict[str, str] = {}
        self._values: dict[str, str] = {}
        self._events: deque[str] = deque(maxlen=max_events)

        if snapshot is not None:
            if not isinstance(snapshot, ManifestSnapshot):
                snapshot = ManifestSnapshot.from_obj(snapshot)
            self._keys = dict(snapshot.keys)
            self._values = dict(snapshot.values)

    def get_by_key(self, key: str) -> str | None:
        """Get the output path for an origin path."""
        return self._keys.get(key)

    def get_by_value(self, value: str) -> str | None:
        """Get the origin path for an output path."""
        return self._values.get(value)

    def set_entry(self, key: str, dest: str) -> None:
        """
        Map an origin path to its output path.

        If the origin was already mapped to a different output, the stale
        reverse entry is dropped so each origin has one active output.

        Args:
            key: Origin path.
            dest: Output path.
        """
        logger.debug("Setting key: %s", key)
        previous = self._keys.get(key)
        if previous is not None and previous != dest and self._values.get(previous) == key:
            del self._values[previous]

        self._keys[key] = dest
        self._values[dest] = key
        self._events.append(f"set:{dest}")

    def remove_key(self, key: str) -> str:
        """
        Remove an origin path and its output mapping.

        Args:
            key: Origin path.

        Returns:
            The output path that was mapped to ``key``.

        Raises:
            ManifestKeyNotFoundError: If ``key`` has no mapping. The manifest
                is left unchanged.
        """
        logger.debug("Removing key: %s", key)
        dest = self._keys.get(key)
        if dest is None:
            raise ManifestKeyNotFoundError(key)

        self._values.pop(dest, None)
        del self._keys[key]
        self._events.append(f"del:{key}")
        return dest

    def get_events(self) -> tuple[str, ...]:
        """Get the mutation log, oldest first."""
        return tuple(self._events)

    def items(self) -> list[tuple[str, str]]:
        """Get (origin, output) pairs."""
        return list(self._keys.items())

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def to_snapshot(self) -> ManifestSnapshot:
        """Snapshot the current maps. The event log is not included."""
        return ManifestSnapshot(keys=dict(self._keys), values=dict(self._values))

    def to_object(self) -> dict[str, dict[str, str]]:
        """Get the snapshot as a plain dict."""
        return {"keys": dict(self._keys), "values": dict(self._values)}

    def to_json(self, compact: bool = False) -> str:
        """
        Serialize the maps to JSON.

        Args:
            compact: If True, emit a single dense line; otherwise indent by 2.

        Returns:
            Snapshot JSON string.
        """
        return self.to_snapshot().to_json(compact=compact)

    @classmethod
    def create(
        cls,
        snapshot: ManifestSnapshot | Mapping[str, Any] | None = None,
        max_events: int | None = None,
    ) -> Manifest:
        """
        Create a manifest.

        Args:
            snapshot: Optional prior snapshot to start from.
            max_events: Optional bound on the mutation log.

        Returns:
            New Manifest instance.
        """
        return cls(snapshot, max_events=max_events)
