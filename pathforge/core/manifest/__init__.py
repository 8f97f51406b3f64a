"""Manifest system: origin/output mapping, snapshots, and persistence."""

from pathforge.core.manifest.path_manifest import Manifest
from pathforge.core.manifest.snapshot import ManifestSnapshot
from pathforge.core.manifest.loader import ManifestLoader

__all__ = [
    "Manifest",
    "ManifestSnapshot",
    "ManifestLoader",
]
