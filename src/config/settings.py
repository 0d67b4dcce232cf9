"""
Configuration loader and helpers for the media intake pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import yaml

DEFAULT_CONFIG_PATH = Path("config.yaml")
ENV_CONFIG_PATH = "MEDIA_INTAKE_CONFIG"

DEFAULT_MEDIA_EXTENSIONS = [
    ".mp3",
    ".flac",
    ".m4a",
    ".aac",
    ".ogg",
    ".opus",
    ".wav",
    ".wma",
]
DEFAULT_ARCHIVE_PATTERNS = ["*.zip", "*.tar", "*.tar.gz", "*.tgz", "*.tar.bz2"]
DEFAULT_MAX_COLLISION_ATTEMPTS = 1000
DEFAULT_HASH_CHUNK_BYTES = 4 * 1024 * 1024


@dataclass(frozen=True)
class AppConfig:
    """Container for raw configuration data and path helpers."""

    root_dir: Path
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "AppConfig":
        """Load configuration from YAML and normalize the root directory.

        An explicitly requested file (argument or environment variable) must
        exist. When neither is given and ``config.yaml`` is absent from the
        working directory, an empty configuration rooted there is returned.
        """
        config_value = os.environ.get(ENV_CONFIG_PATH)
        config_path = path
        explicit = config_path is not None or bool(config_value)
        if config_path is None:
            config_path = Path(config_value) if config_value else DEFAULT_CONFIG_PATH
        config_path = config_path.expanduser()
        if not config_path.is_absolute():
            config_path = (Path.cwd() / config_path).resolve()
        if not config_path.exists():
            if explicit:
                raise FileNotFoundError(f"Config file not found: {config_path}")
            return cls(root_dir=config_path.parent, raw={})
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")
        root_dir = config_path.parent
        return cls(root_dir=root_dir, raw=data)

    def get(self, *keys: str, default: Any = None) -> Any:
        """Retrieve nested configuration values with an optional default."""
        node: Any = self.raw
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def resolve_path(self, *keys: str, default: Optional[str] = None) -> Path:
        """Resolve a path from configuration keys to an absolute Path."""
        value = self.get(*keys, default=default)
        if value is None:
            raise KeyError(f"Missing config path for {'.'.join(keys)}")
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = (self.root_dir / path).resolve()
        return path

    def with_overrides(self, overrides: Dict[str, Dict[str, Any]]) -> "AppConfig":
        """Return a copy with section-level values replaced (used for CLI flags)."""
        merged: Dict[str, Any] = {key: value for key, value in self.raw.items()}
        for section, values in overrides.items():
            current = merged.get(section)
            section_values = dict(current) if isinstance(current, dict) else {}
            section_values.update({key: value for key, value in values.items() if value is not None})
            merged[section] = section_values
        return AppConfig(root_dir=self.root_dir, raw=merged)

    def media_extensions(self) -> set[str]:
        """Return configured media extensions, lowercased with a leading dot."""
        values = self.get("intake", "media_extensions", default=DEFAULT_MEDIA_EXTENSIONS) or []
        normalized = set()
        for value in values:
            text = str(value).strip().lower()
            if not text:
                continue
            normalized.add(text if text.startswith(".") else f".{text}")
        return normalized

    def archive_patterns(self) -> list[str]:
        """Return fnmatch patterns identifying archive containers."""
        values = self.get("intake", "archive_patterns", default=DEFAULT_ARCHIVE_PATTERNS) or []
        return [str(value) for value in values]


def ensure_directories(paths: Iterable[Path]) -> None:
    """Create directories if they do not already exist."""
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)
