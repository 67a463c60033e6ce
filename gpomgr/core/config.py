"""
Configuration for the gpomgr CLI.

The configuration is a small YAML file; relative paths in it are
resolved against the file's own directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError


DEFAULT_CONFIG_FILE = "gpomgr.yaml"
DEFAULT_SECRET_STORE = "~/.gpomgr/secrets.json"


class GpoManagerConfig(BaseModel):
    default_domain: Optional[str] = None
    directory: Path = Path("directory")
    secret_store: Path = Path(DEFAULT_SECRET_STORE)
    hosts: dict[str, Path] = Field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: Path | str) -> GpoManagerConfig:
        """Load a config file, falling back to defaults if it doesn't exist."""
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Invalid config {path}: expected a mapping")

        try:
            config = cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config {path}: {e}") from e

        return config.resolve_paths(path.parent)

    def resolve_paths(self, base: Path) -> GpoManagerConfig:
        """Return a copy with relative paths anchored at ``base``."""

        def _resolve(p: Path) -> Path:
            p = p.expanduser()
            return p if p.is_absolute() else base / p

        return self.model_copy(
            update={
                "directory": _resolve(self.directory),
                "secret_store": _resolve(self.secret_store),
                "hosts": {name: _resolve(p) for name, p in self.hosts.items()},
            }
        )
