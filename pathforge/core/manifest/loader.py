"""
Manifest persistence.

Snapshot files are read and written off the event loop so a slow disk
never stalls file forwarding.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from pathforge.core.errors import ManifestIOError
from pathforge.core.manifest.path_manifest import Manifest
from pathforge.core.manifest.snapshot import ManifestSnapshot

logger = logging.getLogger(__name__)


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class ManifestLoader:
    """Reads and writes manifest snapshot files."""

    @staticmethod
    async def exists(path: str | Path) -> bool:
        """Check whether a snapshot file exists."""
        return await asyncio.to_thread(Path(path).is_file)

    @staticmethod
    async def load(path: str | Path, max_events: int | None = None) -> Manifest:
        """
        Load a manifest from a snapshot file.

        Existence is not checked here; callers that treat a missing file as
        "no prior manifest" must check first.

        Args:
            path: Snapshot file path.
            max_events: Optional bound on the new manifest's mutation log.

        Returns:
            Manifest built from the snapshot.

        Raises:
            ManifestIOError: If the file cannot be read.
            ManifestParseError: If the content is not a valid snapshot.
        """
        path = Path(path)
        try:
            content = await asyncio.to_thread(_read_text, path)
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestIOError(f"Cannot read manifest {path}: {e}", str(path), e) from e

        snapshot = ManifestSnapshot.from_json(content)
        logger.info("Loaded manifest from %s (%d entries)", path, len(snapshot.keys))
        return Manifest.create(snapshot, max_events=max_events)

    @staticmethod
    async def save(manifest: Manifest, path: str | Path, compact: bool = False) -> None:
        """
        Write a manifest snapshot as UTF-8 JSON.

        Args:
            manifest: Manifest to persist.
            path: Destination file; parent directories are created.
            compact: Write a single dense line instead of indented JSON.

        Raises:
            ManifestIOError: If the file cannot be written.
        """
        path = Path(path)
        try:
            await asyncio.to_thread(_write_text, path, manifest.to_json(compact=compact))
        except OSError as e:
            raise ManifestIOError(f"Cannot write manifest {path}: {e}", str(path), e) from e
        logger.debug("Saved manifest to %s", path)
