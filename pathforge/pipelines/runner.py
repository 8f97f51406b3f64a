"""
Pipeline runner.

Wires stages into a chain between an input channel of file events and a
sink. Items are processed one at a time; a failing stage aborts only the
item it was handling.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pathforge.pipelines.events import PipelineItem
from pathforge.pipelines.sink import Sink
from pathforge.pipelines.stage import PushFn, Stage, TransformFn

logger = logging.getLogger(__name__)


@dataclass
class RunConfig:
    """Configuration for a pipeline run."""

    # Re-raise stage errors instead of isolating them per item
    fail_fast: bool = False

    # Flush pending debounced writes when the input ends
    flush_on_close: bool = True


@dataclass
class StageError:
    """Record of a stage failing on one item."""

    stage_name: str
    path: str
    error: str
    error_type: str
    occurred_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class RunnerStats:
    """Counters for a pipeline run."""

    items_in: int = 0
    items_out: int = 0
    errors: list[StageError] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)


async def queue_source(
    queue: asyncio.Queue[PipelineItem | None],
) -> AsyncIterator[PipelineItem]:
    """
    Iterate a watcher channel until it yields ``None``.

    Args:
        queue: Channel the watcher puts file events on.

    Yields:
        File events in arrival order.
    """
    while True:
        item = await queue.get()
        if item is None:
            return
        yield item


@dataclass
class PipelineRunner:
    """
    Runs file events through a chain of stages into a sink.

    ``ready`` collects each stage's ready record by stage name once the
    chain is started.
    """

    stages: list[Stage] = field(default_factory=list)
    config: RunConfig = field(default_factory=RunConfig)

    # Runtime state
    output: asyncio.Queue[PipelineItem | None] = field(default_factory=asyncio.Queue)
    ready: dict[str, dict[str, Any]] = field(default_factory=dict)
    stats: RunnerStats = field(default_factory=RunnerStats)
    _entry: PushFn | None = field(default=None, init=False, repr=False)

    def register_stage(self, stage: Stage) -> None:
        """
        Append a stage to the chain.

        Args:
            stage: Stage instance to register.

        Raises:
            ValueError: If the chain is already started or the name is taken.
        """
        if self._entry is not None:
            raise ValueError("Cannot register stages after the pipeline has started")
        if any(s.name == stage.name for s in self.stages):
            raise ValueError(f"Stage '{stage.name}' already registered")
        self.stages.append(stage)

    def start(self) -> PushFn:
        """
        Start every stage, wiring each one's push into the next.

        Returns:
            Push function feeding the first stage.
        """
        if self._entry is not None:
            return self._entry

        push: PushFn = self._emit
        for stage in reversed(self.stages):
            out = stage.start(push)
            self.ready[stage.name] = out.ready
            push = self._guarded(stage.name, out.transform)

        self._entry = push
        return push

    def _emit(self, item: PipelineItem) -> None:
        self.stats.items_out += 1
        self.output.put_nowait(item)

    def _guarded(self, stage_name: str, transform: TransformFn) -> PushFn:
        def push(item: PipelineItem) -> None:
            try:
                transform(item)
            except Exception as e:
                if self.config.fail_fast:
                    raise
                logger.exception("Stage '%s' failed on %s", stage_name, item.path)
                self.stats.errors.append(
                    StageError(
                        stage_name=stage_name,
                        path=item.path,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                )

        return push

    def push(self, item: PipelineItem) -> None:
        """Feed one item into the chain."""
        entry = self.start()
        self.stats.items_in += 1
        entry(item)

    def close(self) -> None:
        """Close all stages in order, then mark the output channel finished."""
        for stage in self.stages:
            stage.close(flush=self.config.flush_on_close)
        self.output.put_nowait(None)

    async def drain(self, sink: Sink) -> None:
        """Write output items to ``sink`` until the channel is closed."""
        while True:
            item = await self.output.get()
            if item is None:
                return
            await sink.write(item)

    async def run(
        self,
        source: AsyncIterable[PipelineItem],
        sink: Sink,
    ) -> RunnerStats:
        """
        Run the pipeline until ``source`` is exhausted.

        Each run gets a fresh output channel and fresh stats, so a runner can
        be run again (e.g. on a new event loop). Stages stay started between
        runs and keep their state, including the live manifest.

        Args:
            source: File events, e.g. from ``queue_source``.
            sink: Destination for forwarded and synthetic items.

        Returns:
            Run statistics.
        """
        self.output = asyncio.Queue()
        self.stats = RunnerStats()
        self.start()
        writer = asyncio.create_task(self.drain(sink))
        try:
            async for item in source:
                self.push(item)
                # Let the sink and debounce timers make progress
                await asyncio.sleep(0)
        finally:
            self.close()
            await writer

        logger.info(
            "Pipeline finished: %d in, %d out, %d errors",
            self.stats.items_in,
            self.stats.items_out,
            self.stats.error_count,
        )
        return self.stats


def create_runner(
    stages: list[Stage],
    config: RunConfig | None = None,
) -> PipelineRunner:
    """
    Create a pipeline runner.

    Args:
        stages: Stages in pipeline order.
        config: Optional run configuration.

    Returns:
        Configured PipelineRunner.
    """
    runner = PipelineRunner(config=config or RunConfig())
    for stage in stages:
        runner.register_stage(stage)
    return runner
