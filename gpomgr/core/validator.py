"""
Validation module for directory data files.

Provides schema validation of the YAML files read by YamlDirectory, plus
a duplicate-id check across the whole directory.
"""

from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import yaml


DEFAULT_SCHEMAS_PATH = Path(__file__).resolve().parent.parent / "schemas"


class Validator:
    """Validates GPO directory files against the bundled JSON schema."""

    def __init__(self, schemas_path: str | Path = DEFAULT_SCHEMAS_PATH):
        self.schemas_path = Path(schemas_path)
        self._schemas: dict[str, dict] = {}
        self._load_schemas()

    def _load_schemas(self) -> None:
        """Load all JSON schemas from the schemas directory."""
        schema_files = {
            "gpo": "gpo.schema.json",
        }

        for name, filename in schema_files.items():
            schema_path = self.schemas_path / filename
            if schema_path.exists():
                with open(schema_path) as f:
                    self._schemas[name] = json.load(f)

    def validate_yaml_file(self, path: Path, schema_name: str = "gpo") -> list[str]:
        """
        Validate a YAML file against its schema.

        Returns a list of validation errors (empty if valid).
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            return [f"YAML parse error: {e}"]

        if schema_name not in self._schemas:
            return [f"Unknown schema: {schema_name}"]

        validator_cls = jsonschema.validators.validator_for(self._schemas[schema_name])
        validator = validator_cls(self._schemas[schema_name])

        return [
            f"Schema validation error at {e.json_path}: {e.message}"
            for e in sorted(validator.iter_errors(data), key=lambda e: e.json_path)
        ]

    def validate_directory(self, directory_path: Path) -> dict[str, list[str]]:
        """
        Validate all files in a GPO directory.

        Returns a dict mapping file paths to their validation errors.
        """
        directory_path = Path(directory_path)
        all_errors: dict[str, list[str]] = {}
        seen_ids: dict[str, str] = {}

        if not directory_path.is_dir():
            return {str(directory_path): ["Directory not found"]}

        for yaml_file in sorted(directory_path.glob("**/*.yaml")):
            errors = self.validate_yaml_file(yaml_file)
            if not errors:
                errors = self._check_duplicate_ids(yaml_file, seen_ids)
            if errors:
                all_errors[str(yaml_file)] = errors

        return all_errors

    def _check_duplicate_ids(self, path: Path, seen_ids: dict[str, str]) -> list[str]:
        with open(path) as f:
            data = yaml.safe_load(f)
        if isinstance(data, dict):
            data = data.get("gpos", [])

        errors = []
        for record in data or []:
            gpo_id = record["Id"].lower()
            if gpo_id in seen_ids:
                errors.append(
                    f"Duplicate Id {record['Id']} ({record['DisplayName']}), "
                    f"first defined in {seen_ids[gpo_id]}"
                )
            else:
                seen_ids[gpo_id] = str(path)
        return errors
