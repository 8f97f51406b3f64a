"""Pipeline stage implementations."""

from pathforge.pipelines.stages.manifest import (
    ManifestStage,
    create_stage_manifest,
    create_stage_manifest_from_config,
)

__all__ = [
    "ManifestStage",
    "create_stage_manifest",
    "create_stage_manifest_from_config",
]
