"""
Directory backends that serve raw GPO records from memory or YAML files.

The YamlDirectory class provides access to GPO records defined under a
directory of YAML files, one list of records per file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping, Optional
import yaml

from ..core.errors import DirectoryUnavailableError, IdentityNotFoundError
from .base import DirectoryQueryPort


class MemoryDirectory(DirectoryQueryPort):
    """Directory backend holding raw records in memory, in insertion order."""

    name = "memory"

    def __init__(self, records: Iterable[Mapping[str, Any]] = ()):
        self._records: list[Mapping[str, Any]] = list(records)

    def add(self, record: Mapping[str, Any]) -> None:
        self._records.append(record)

    def _records_for(self, domain: Optional[str]) -> list[Mapping[str, Any]]:
        if not domain:
            return list(self._records)
        domain = domain.lower()
        return [
            record for record in self._records
            if isinstance(record, Mapping)
            and str(record.get("DomainName") or "").lower() == domain
        ]

    def query_all(self, domain: Optional[str] = None) -> list[Mapping[str, Any]]:
        return self._records_for(domain)

    def query_by_exact_name(
        self, name: str, domain: Optional[str] = None
    ) -> list[Mapping[str, Any]]:
        wanted = name.lower()
        found = [
            record for record in self._records_for(domain)
            if isinstance(record, Mapping)
            and str(record.get("DisplayName") or "").lower() == wanted
        ]
        if not found:
            raise IdentityNotFoundError(name)
        return found


class YamlDirectory(MemoryDirectory):
    """
    Directory backend loaded from ``**/*.yaml`` files.

    Each file holds either a list of raw records or a mapping with a
    ``gpos`` list. Files are read once, on first query.
    """

    name = "yaml"

    def __init__(self, directory_path: str | Path):
        super().__init__()
        self.directory_path = Path(directory_path)
        self._loaded = False

    def _ensure_loaded(self) -> None:
        """Lazy-load all record files."""
        if self._loaded:
            return

        if not self.directory_path.is_dir():
            raise DirectoryUnavailableError(
                f"Directory data not found: {self.directory_path}"
            )

        loaded: list[Mapping[str, Any]] = []
        for yaml_file in sorted(self.directory_path.glob("**/*.yaml")):
            loaded.extend(self.load_file(yaml_file))

        self._records.extend(loaded)
        self._loaded = True

    @staticmethod
    def load_file(path: str | Path) -> list[Mapping[str, Any]]:
        """Load the raw records from a single YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise DirectoryUnavailableError(f"Failed to load {path}: {e}") from e

        if data is None:
            return []
        if isinstance(data, Mapping):
            data = data.get("gpos") or []
        if not isinstance(data, list):
            raise DirectoryUnavailableError(
                f"Failed to load {path}: expected a list of GPO records"
            )
        return data

    def query_all(self, domain: Optional[str] = None) -> list[Mapping[str, Any]]:
        self._ensure_loaded()
        return super().query_all(domain)

    def query_by_exact_name(
        self, name: str, domain: Optional[str] = None
    ) -> list[Mapping[str, Any]]:
        self._ensure_loaded()
        return super().query_by_exact_name(name, domain)
