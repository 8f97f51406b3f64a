"""
File events flowing through the build pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class FileEventKind(str, Enum):
    """Kind of change reported by the file watcher."""

    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"
    UNLINK_DIR = "unlinkDir"

    @property
    def is_upsert(self) -> bool:
        return self in (FileEventKind.ADD, FileEventKind.CHANGE)

    @property
    def is_removal(self) -> bool:
        return self in (FileEventKind.UNLINK, FileEventKind.UNLINK_DIR)


@dataclass
class PipelineItem:
    """
    A file moving through the pipeline.

    ``history`` lists every path the file has had, oldest first. Upstream
    transforms append to it when they move a file, so ``history[0]`` is the
    authored source location and ``path`` the current build location.
    Synthetic items (such as manifest snapshots) carry no event.
    """

    path: str
    contents: bytes = b""
    event: FileEventKind | None = None
    history: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.event is not None:
            self.event = FileEventKind(self.event)
        if not self.history:
            self.history = [self.path]

    @property
    def origin(self) -> str:
        """Original source location."""
        return self.history[0]

    @property
    def dest(self) -> str:
        """Current output location."""
        return self.path

    def moved_to(self, path: str) -> PipelineItem:
        """Return a copy relocated to ``path``, with the move recorded in history."""
        return PipelineItem(
            path=path,
            contents=self.contents,
            event=self.event,
            history=[*self.history, path],
        )
