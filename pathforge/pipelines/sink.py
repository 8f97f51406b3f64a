"""
Pipeline sinks.

The sink is the final step of the pipeline and the only place build output
is written to disk.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from pathforge.pipelines.events import FileEventKind, PipelineItem

logger = logging.getLogger(__name__)


class Sink(ABC):
    """Abstract pipeline sink."""

    @abstractmethod
    async def write(self, item: PipelineItem) -> None:
        """Consume one item."""
        ...


class MemorySink(Sink):
    """Sink that keeps every item in memory."""

    def __init__(self) -> None:
        self.items: list[PipelineItem] = []

    async def write(self, item: PipelineItem) -> None:
        self.items.append(item)

    def paths(self) -> list[str]:
        return [item.path for item in self.items]


class DiskSink(Sink):
    """
    Sink that mirrors items into the build folder.

    Relative item paths resolve against ``build_folder``. Removal events
    delete the target; everything else writes ``contents``.
    """

    def __init__(self, build_folder: str | Path):
        self.build_folder = Path(build_folder)

    def resolve(self, item: PipelineItem) -> Path:
        return self.build_folder / item.path

    async def write(self, item: PipelineItem) -> None:
        target = self.resolve(item)
        if item.event == FileEventKind.UNLINK:
            await asyncio.to_thread(target.unlink, missing_ok=True)
        elif item.event == FileEventKind.UNLINK_DIR:
            await asyncio.to_thread(shutil.rmtree, target, ignore_errors=True)
        else:
            await asyncio.to_thread(_write_bytes, target, item.contents)
        logger.debug("Sink wrote %s", target)


def _write_bytes(path: Path, contents: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(contents)
