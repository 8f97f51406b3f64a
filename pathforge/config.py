"""
Manifest stage configuration.

Settings can be given directly or loaded from a YAML file.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

DEFAULT_MANIFEST_PATH = "_manifest.json"
MANIFEST_DEBOUNCE_SECONDS = 0.5


class ServerEnvironment(str, Enum):
    """Environment the dev/build server runs in."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"

    @classmethod
    def parse(cls, value: ServerEnvironment | str) -> ServerEnvironment:
        """Parse an environment name, accepting the short forms ``dev``/``prod``."""
        if isinstance(value, cls):
            return value
        aliases = {"dev": cls.DEVELOPMENT, "prod": cls.PRODUCTION}
        name = str(value).lower()
        if name in aliases:
            return aliases[name]
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"Unknown environment: {value!r}") from None


@dataclass
class ManifestStageConfig:
    """Configuration for the manifest stage."""

    build_folder: str = ".build"
    environment: ServerEnvironment = ServerEnvironment.DEVELOPMENT

    # Persistence
    write_manifest_file: bool = True
    manifest_path: str = DEFAULT_MANIFEST_PATH
    debounce_seconds: float = MANIFEST_DEBOUNCE_SECONDS

    # Diagnostics
    max_events: int | None = None

    def __post_init__(self) -> None:
        self.environment = ServerEnvironment.parse(self.environment)
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds must be >= 0")
        if self.max_events is not None and self.max_events <= 0:
            raise ValueError("max_events must be positive")

    @property
    def manifest_file(self) -> Path:
        """Absolute location of the snapshot file."""
        return Path(self.build_folder) / self.manifest_path

    @property
    def is_production(self) -> bool:
        return self.environment == ServerEnvironment.PRODUCTION

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ManifestStageConfig:
        """Build a config, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**data)


def load_stage_config(path: str | Path) -> ManifestStageConfig:
    """
    Load stage configuration from YAML.

    The settings may sit at the top level or under a ``manifest`` key.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed configuration.

    Raises:
        ValueError: If the file does not contain a mapping.
    """
    with Path(path).open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config must be a mapping: {path}")

    section = data.get("manifest", data)
    if not isinstance(section, dict):
        raise ValueError(f"'manifest' section must be a mapping: {path}")
    return ManifestStageConfig.from_dict(section)
