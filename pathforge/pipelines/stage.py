"""
Pipeline stage abstraction.

A stage observes or transforms file events one at a time and pushes
zero or more items to the next stage.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from pathforge.pipelines.events import PipelineItem

PushFn = Callable[[PipelineItem], None]
TransformFn = Callable[[PipelineItem], None]


class StageType(str, Enum):
    """Type of pipeline stage."""

    MANIFEST = "manifest"
    TRANSFORM = "transform"


@dataclass
class StageOutput:
    """
    What a started stage hands back to the pipeline.

    ``transform`` is called once per incoming item and must push items
    itself; returning signals the item is done. ``ready`` exposes live
    state to collaborators wired later in the pipeline.
    """

    transform: TransformFn
    ready: dict[str, Any] = field(default_factory=dict)


class Stage(ABC):
    """
    Abstract base class for pipeline stages.
    """

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        """Stage name."""
        return self._name

    @property
    @abstractmethod
    def stage_type(self) -> StageType:
        """Stage type."""
        ...

    @abstractmethod
    def start(self, push: PushFn) -> StageOutput:
        """
        Start the stage.

        Args:
            push: Sends an item to the next stage.

        Returns:
            The per-item transform and the ready record.
        """
        ...

    def close(self, flush: bool = True) -> None:
        """Release stage resources at shutdown."""
        pass


class FunctionStage(Stage):
    """
    Stage that maps each item through a function.

    The function returns the item to push, or None to drop it.
    """

    def __init__(
        self,
        name: str,
        fn: Callable[[PipelineItem], PipelineItem | None],
        stage_type: StageType = StageType.TRANSFORM,
    ):
        super().__init__(name)
        self._fn = fn
        self._stage_type = stage_type

    @property
    def stage_type(self) -> StageType:
        return self._stage_type

    def start(self, push: PushFn) -> StageOutput:
        def transform(item: PipelineItem) -> None:
            result = self._fn(item)
            if result is not None:
                push(result)

        return StageOutput(transform=transform)


def relocate_stage(name: str, src_prefix: str, dest_prefix: str) -> FunctionStage:
    """
    Create a stage that moves files from one folder prefix to another.

    Items outside ``src_prefix`` pass through untouched.

    Args:
        name: Stage name.
        src_prefix: Folder prefix to rewrite (e.g. ``app/``).
        dest_prefix: Replacement prefix (e.g. ``pages/``).

    Returns:
        Configured FunctionStage.
    """

    def relocate(item: PipelineItem) -> PipelineItem:
        if item.event is None or not item.path.startswith(src_prefix):
            return item
        return item.moved_to(dest_prefix + item.path[len(src_prefix):])

    return FunctionStage(name, relocate)
