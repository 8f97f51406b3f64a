"""Pipeline: file events, stages, debounce, runner, and sinks."""

from pathforge.pipelines.events import FileEventKind, PipelineItem
from pathforge.pipelines.stage import Stage, StageOutput, StageType, FunctionStage
from pathforge.pipelines.debounce import Debouncer
from pathforge.pipelines.runner import PipelineRunner, RunConfig, create_runner
from pathforge.pipelines.sink import DiskSink, MemorySink, Sink

__all__ = [
    "FileEventKind",
    "PipelineItem",
    "Stage",
    "StageOutput",
    "StageType",
    "FunctionStage",
    "Debouncer",
    "PipelineRunner",
    "RunConfig",
    "create_runner",
    "DiskSink",
    "MemorySink",
    "Sink",
]
