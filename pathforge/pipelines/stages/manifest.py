"""
Manifest stage.

Records where each source file ends up in the build so build outputs can be
traced back to their source (e.g. to link an error overlay to the right
file). The stage only observes: every item is forwarded unchanged before the
manifest is updated.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pathforge.config import (
    DEFAULT_MANIFEST_PATH,
    MANIFEST_DEBOUNCE_SECONDS,
    ManifestStageConfig,
    ServerEnvironment,
)
from pathforge.core.json_canonical import canonical_json_bytes
from pathforge.core.manifest.loader import ManifestLoader
from pathforge.core.manifest.path_manifest import Manifest
from pathforge.pipelines.debounce import Debouncer
from pathforge.pipelines.events import PipelineItem
from pathforge.pipelines.stage import PushFn, Stage, StageOutput, StageType

logger = logging.getLogger(__name__)


class ManifestStage(Stage):
    """
    Stage that keeps a manifest in sync with the file event stream.

    When ``write_manifest_file`` is set, a compact snapshot item is pushed
    once events go quiet for ``debounce_seconds``. The snapshot is captured
    when the event is processed, not when the write fires.
    """

    def __init__(
        self,
        manifest: Manifest,
        write_manifest_file: bool = True,
        manifest_path: str = DEFAULT_MANIFEST_PATH,
        debounce_seconds: float = MANIFEST_DEBOUNCE_SECONDS,
        name: str = "manifest",
    ):
        super().__init__(name)
        self.manifest = manifest
        self.write_manifest_file = write_manifest_file
        self.manifest_path = manifest_path
        self.debounce_seconds = debounce_seconds
        self._debouncer: Debouncer[PipelineItem] | None = None

    @property
    def stage_type(self) -> StageType:
        return StageType.MANIFEST

    def start(self, push: PushFn) -> StageOutput:
        """Start the stage; ``ready["manifest"]`` is the live manifest."""

        def emit_snapshot(item: PipelineItem) -> None:
            logger.info("Writing manifest snapshot %s", item.path)
            push(item)

        debouncer: Debouncer[PipelineItem] = Debouncer(emit_snapshot, self.debounce_seconds)
        self._debouncer = debouncer
        manifest = self.manifest

        def transform(item: PipelineItem) -> None:
            # Send the file on through to be written
            push(item)

            origin = item.origin
            dest = item.dest

            if item.event is not None and item.event.is_upsert:
                logger.debug("event: %s", item.event.value)
                manifest.set_entry(origin, dest)

            if item.event is not None and item.event.is_removal:
                logger.debug("event: %s", item.event.value)
                manifest.remove_key(origin)

            if self.write_manifest_file:
                debouncer.trigger(
                    PipelineItem(
                        path=self.manifest_path,
                        contents=canonical_json_bytes(manifest.to_object()),
                    )
                )

        return StageOutput(transform=transform, ready={"manifest": manifest})

    def close(self, flush: bool = True) -> None:
        """Flush (or drop) a snapshot write that has not fired yet."""
        if self._debouncer is None:
            return
        if flush:
            self._debouncer.flush()
        else:
            self._debouncer.cancel()


async def create_stage_manifest(
    write_manifest_file: bool,
    build_folder: str | Path,
    environment: ServerEnvironment | str,
    manifest_path: str = DEFAULT_MANIFEST_PATH,
    *,
    debounce_seconds: float = MANIFEST_DEBOUNCE_SECONDS,
    max_events: int | None = None,
) -> ManifestStage:
    """
    Create the manifest stage.

    Outside production, an existing snapshot at ``build_folder/manifest_path``
    is loaded so history survives restarts; otherwise the manifest starts
    empty. A snapshot that exists but cannot be read or parsed is fatal.

    Args:
        write_manifest_file: Emit debounced snapshot items.
        build_folder: Build output folder holding the snapshot.
        environment: Server environment.
        manifest_path: Snapshot path relative to the build folder.
        debounce_seconds: Quiet period before a snapshot is emitted.
        max_events: Optional bound on the mutation log.

    Returns:
        Configured ManifestStage.

    Raises:
        ManifestIOError: If an existing snapshot cannot be read.
        ManifestParseError: If an existing snapshot is invalid.
    """
    env = ServerEnvironment.parse(environment)
    snapshot_file = Path(build_folder) / manifest_path

    if env != ServerEnvironment.PRODUCTION and await ManifestLoader.exists(snapshot_file):
        manifest = await ManifestLoader.load(snapshot_file, max_events=max_events)
    else:
        manifest = Manifest.create(max_events=max_events)

    return ManifestStage(
        manifest,
        write_manifest_file=write_manifest_file,
        manifest_path=manifest_path,
        debounce_seconds=debounce_seconds,
    )


async def create_stage_manifest_from_config(config: ManifestStageConfig) -> ManifestStage:
    """Create the manifest stage from a ManifestStageConfig."""
    return await create_stage_manifest(
        config.write_manifest_file,
        config.build_folder,
        config.environment,
        config.manifest_path,
        debounce_seconds=config.debounce_seconds,
        max_events=config.max_events,
    )
