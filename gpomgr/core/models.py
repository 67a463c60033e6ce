"""
Core data models for Group Policy Object management.

PolicyRecord is the canonical in-memory form of a GPO, regardless of
whether it was read from the local directory or from a remote host.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, NamedTuple, Optional
from uuid import UUID

from pydantic import BaseModel, Field, PrivateAttr, SecretStr

from .errors import InvalidArgumentError, RetrievalError


EMPTY_ID = UUID(int=0)
MIN_TIMESTAMP = datetime.min


class GpoStatus(str, Enum):
    ALL_SETTINGS_ENABLED = "AllSettingsEnabled"
    USER_SETTINGS_DISABLED = "UserSettingsDisabled"
    COMPUTER_SETTINGS_DISABLED = "ComputerSettingsDisabled"
    ALL_SETTINGS_DISABLED = "AllSettingsDisabled"


DISABLED_STATUS = GpoStatus.ALL_SETTINGS_DISABLED.value


class ExecutionMode(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


# ============================================================================
# Upstream field mapping
# ============================================================================

class FieldMapping(NamedTuple):
    field: str
    raw_key: str
    flat_key: str
    default: Any


# Owner defaults to "Unknown" but domain defaults to "".
FIELD_TABLE: tuple[FieldMapping, ...] = (
    FieldMapping("display_name", "DisplayName", "displayName", ""),
    FieldMapping("id", "Id", "id", EMPTY_ID),
    FieldMapping("domain", "DomainName", "domain", ""),
    FieldMapping("created", "CreationTime", "created", MIN_TIMESTAMP),
    FieldMapping("modified", "ModificationTime", "modified", MIN_TIMESTAMP),
    FieldMapping("owner", "Owner", "owner", "Unknown"),
    FieldMapping("description", "Description", "description", ""),
)

STATUS_RAW_KEY = "GpoStatus"
STATUS_FLAT_KEY = "statusMarker"

FLAT_KEYS: tuple[str, ...] = tuple(m.flat_key for m in FIELD_TABLE) + (STATUS_FLAT_KEY,)


def _to_transport(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def flatten_raw_record(raw: Mapping[str, Any]) -> dict[str, Any]:
    """
    Reduce a raw upstream record to the flat mapping sent across a
    remote boundary.

    Only primitive values survive: datetimes become ISO strings and ids
    become strings. Missing fields are kept as None so that the receiving
    side applies the usual defaults.
    """
    flat = {m.flat_key: _to_transport(raw.get(m.raw_key)) for m in FIELD_TABLE}
    flat[STATUS_FLAT_KEY] = _to_transport(raw.get(STATUS_RAW_KEY))
    return flat


# ============================================================================
# Policy Models
# ============================================================================

class PolicyRecord(BaseModel):
    """A Group Policy Object and the organizational units it is linked to."""
    display_name: str = ""
    id: UUID = EMPTY_ID
    domain: str = ""
    created: datetime = MIN_TIMESTAMP
    modified: datetime = MIN_TIMESTAMP
    owner: str = "Unknown"
    is_enabled: bool = True
    description: str = ""

    _linked_ous: list[str] = PrivateAttr(default_factory=list)

    class Config:
        frozen = True

    @classmethod
    def _from_mapping(
        cls, data: Mapping[str, Any], key_attr: str, status_key: str
    ) -> PolicyRecord:
        values = {}
        for mapping in FIELD_TABLE:
            value = data.get(getattr(mapping, key_attr))
            values[mapping.field] = mapping.default if value is None else value
        values["is_enabled"] = data.get(status_key) != DISABLED_STATUS
        return cls(**values)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> PolicyRecord:
        """Build a record from a raw directory record (PascalCase keys)."""
        return cls._from_mapping(raw, "raw_key", STATUS_RAW_KEY)

    @classmethod
    def from_flat(cls, flat: Mapping[str, Any]) -> PolicyRecord:
        """Build a record from a flat record returned by a remote host."""
        return cls._from_mapping(flat, "flat_key", STATUS_FLAT_KEY)

    @staticmethod
    def _check_ou_path(ou_path: Optional[str]) -> None:
        if ou_path is None or not str(ou_path).strip():
            raise InvalidArgumentError("OU path must not be empty")

    def link_to(self, ou_path: str) -> None:
        self._check_ou_path(ou_path)
        if ou_path not in self._linked_ous:
            self._linked_ous.append(ou_path)

    def unlink_from(self, ou_path: str) -> None:
        self._check_ou_path(ou_path)
        if ou_path in self._linked_ous:
            self._linked_ous.remove(ou_path)

    def unlink_all(self) -> None:
        self._linked_ous.clear()

    def linked_ou_list(self) -> list[str]:
        """Return a copy of the linked OU paths in link order."""
        return list(self._linked_ous)

    def link_count(self) -> int:
        return len(self._linked_ous)

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump()
        data["linked_ous"] = self.linked_ou_list()
        data["link_count"] = self.link_count()
        return data

    def to_structured(self) -> dict[str, Any]:
        """Same as to_dict() but with JSON-safe values."""
        data = self.model_dump(mode="json")
        data["linked_ous"] = self.linked_ou_list()
        data["link_count"] = self.link_count()
        return data

    def to_display_string(self) -> str:
        return f"{self.display_name} [{self.id}]"

    def __str__(self) -> str:
        return self.to_display_string()


class RetrievalResult(BaseModel):
    """Records resolved by one retrieval call plus its non-fatal errors."""
    records: list[PolicyRecord] = Field(default_factory=list)
    errors: list[RetrievalError] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def names(self) -> list[str]:
        return [record.display_name for record in self.records]


class Credentials(BaseModel):
    """Credentials passed through to a remote host for one call."""
    username: str
    password: SecretStr

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r})"
