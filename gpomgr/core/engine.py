"""
Retrieval engine that resolves name selectors into PolicyRecords.

The engine is the main entry point for reading GPOs. It classifies the
caller's selectors, queries either the local directory backend or a
remote host, and normalizes both paths into the same object model.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Optional, Sequence
from uuid import UUID

from pydantic import ValidationError

from .errors import (
    DirectoryUnavailableError,
    ErrorKind,
    IdentityNotFoundError,
    InvalidArgumentError,
    RecordConstructionError,
    RemoteExecutionError,
    RetrievalError,
)
from .models import (
    Credentials,
    ExecutionMode,
    PolicyRecord,
    RetrievalResult,
    flatten_raw_record,
)

if TYPE_CHECKING:
    from ..plugins.base import DirectoryQueryPort, RemoteExecutionPort

logger = logging.getLogger(__name__)

WILDCARD_CHARS = ("*", "?")

RAW_IDENTITY_KEYS = ("DisplayName", "Id")
FLAT_IDENTITY_KEYS = ("displayName", "id")


class SelectorKind(str, Enum):
    NONE = "none"
    EXACT = "exact"
    WILDCARD = "wildcard"


# ============================================================================
# Selector handling
# ============================================================================

def has_wildcard(selector: str) -> bool:
    return any(ch in selector for ch in WILDCARD_CHARS)


def classify_selectors(selectors: Sequence[str]) -> SelectorKind:
    if not selectors:
        return SelectorKind.NONE
    if any(has_wildcard(s) for s in selectors):
        return SelectorKind.WILDCARD
    return SelectorKind.EXACT


def compile_pattern(selector: str) -> re.Pattern:
    """
    Translate a glob selector into a regex.

    Only ``*`` (any run of characters) and ``?`` (one character) are
    special; everything else matches literally, ignoring case.
    """
    parts = []
    for ch in selector:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def _report(
    errors: list[RetrievalError],
    kind: ErrorKind,
    message: str,
    selector: Optional[str] = None,
) -> None:
    logger.warning("%s", message)
    errors.append(RetrievalError(kind=kind, message=message, selector=selector))


def _match_names(
    selector: str, records: Iterable[Any], name_key: str
) -> list[Mapping[str, Any]]:
    pattern = compile_pattern(selector)
    return [
        record for record in records
        if isinstance(record, Mapping)
        and pattern.fullmatch(str(record.get(name_key) or "")) is not None
    ]


def collect_raw_records(
    directory: DirectoryQueryPort,
    selectors: Sequence[str],
    domain: Optional[str],
    errors: list[RetrievalError],
) -> list[Mapping[str, Any]]:
    """
    Resolve selectors against a directory backend into raw records.

    Failures for a single selector are appended to ``errors`` and the
    remaining selectors are still processed. Records are returned in
    selector order; repeated ids are left for the caller to drop once
    each record has been validated.
    """
    kind = classify_selectors(selectors)
    logger.debug("Resolving %d selector(s) as %s", len(selectors), kind.value)
    collected: list[Mapping[str, Any]] = []

    if kind is SelectorKind.EXACT:
        for selector in selectors:
            try:
                found = directory.query_by_exact_name(selector, domain)
            except IdentityNotFoundError:
                _report(errors, ErrorKind.IDENTITY_NOT_FOUND, f"GPO not found: {selector}", selector)
                continue
            except Exception as e:
                _report(
                    errors,
                    ErrorKind.GENERIC,
                    f"Failed to retrieve GPO '{selector}': {e}",
                    selector,
                )
                continue
            if not found:
                _report(errors, ErrorKind.IDENTITY_NOT_FOUND, f"GPO not found: {selector}", selector)
                continue
            collected.extend(found)
        return collected

    # NONE and WILDCARD both need the full record set, fetched once
    try:
        everything = directory.query_all(domain)
    except Exception as e:
        target = f" in domain {domain}" if domain else ""
        _report(errors, ErrorKind.GENERIC, f"Failed to retrieve GPOs{target}: {e}")
        return []

    if kind is SelectorKind.NONE:
        return list(everything)

    for selector in selectors:
        matched = _match_names(selector, everything, "DisplayName")
        if not matched:
            if has_wildcard(selector):
                logger.debug("No GPOs match %s", selector)
            else:
                _report(errors, ErrorKind.IDENTITY_NOT_FOUND, f"GPO not found: {selector}", selector)
            continue
        collected.extend(matched)

    return collected


def serve_remote_query(
    directory: DirectoryQueryPort,
    selectors: Sequence[str],
    domain: Optional[str] = None,
) -> list[dict[str, Any]]:
    """
    Answer a remote query on the host that owns the directory.

    Runs the same selector resolution as a local call and returns flat
    records. Missing names stay on this side and are only logged. A
    failed directory query fails the whole request with
    DirectoryUnavailableError.
    """
    errors: list[RetrievalError] = []
    raw_records = collect_raw_records(directory, list(selectors), domain, errors)

    failures = [e.message for e in errors if e.kind is ErrorKind.GENERIC]
    if failures:
        raise DirectoryUnavailableError("; ".join(failures))

    flat_records = []
    for record in raw_records:
        if not isinstance(record, Mapping):
            logger.warning("Dropping non-mapping GPO record of type %s", type(record).__name__)
            continue
        flat_records.append(flatten_raw_record(record))
    return flat_records


def build_record(
    item: Any,
    factory: Callable[[Mapping[str, Any]], PolicyRecord],
    identity_keys: Sequence[str],
) -> PolicyRecord:
    """Build one PolicyRecord, raising RecordConstructionError if it can't be mapped."""
    if not isinstance(item, Mapping):
        raise RecordConstructionError(f"Expected a mapping, got {type(item).__name__}")

    missing = [key for key in identity_keys if item.get(key) is None]
    if missing:
        raise RecordConstructionError(f"Record is missing {', '.join(missing)}")

    try:
        return factory(item)
    except ValidationError as e:
        name = item.get(identity_keys[0])
        raise RecordConstructionError(
            f"Record '{name}' has invalid values: {e.error_count()} error(s)"
        ) from e


class RetrievalEngine:
    """
    Resolves selectors into PolicyRecords from a local or remote source.

    The engine holds no per-call state; every call builds and discards
    its own working collections.
    """

    def __init__(
        self,
        directory: Optional[DirectoryQueryPort] = None,
        remote: Optional[RemoteExecutionPort] = None,
    ):
        self.directory = directory
        self.remote = remote

    def get(
        self,
        selectors: Optional[Sequence[str]] = None,
        domain: Optional[str] = None,
        mode: ExecutionMode = ExecutionMode.LOCAL,
        host: Optional[str] = None,
        credentials: Optional[Credentials] = None,
    ) -> RetrievalResult:
        """
        Resolve selectors into policy records.

        Args:
            selectors: GPO display names, optionally containing * or ?.
                An empty list selects every GPO in the domain.
            domain: Domain to query, or None for the backend default
            mode: LOCAL queries the directory backend, REMOTE the remote one
            host: Remote host name, required in REMOTE mode
            credentials: Credentials for the remote host

        Returns:
            RetrievalResult with the records in selector order and any
            per-selector or per-record errors.

        Raises:
            InvalidArgumentError: the call itself is malformed
            RemoteExecutionError: the remote round trip failed
        """
        if isinstance(selectors, str):
            selectors = [selectors]
        selectors = list(selectors or [])
        mode = ExecutionMode(mode)

        if mode is ExecutionMode.REMOTE:
            return self._get_remote(selectors, domain, host, credentials)
        return self._get_local(selectors, domain)

    def _get_local(self, selectors: list[str], domain: Optional[str]) -> RetrievalResult:
        if self.directory is None:
            raise InvalidArgumentError("No directory backend configured for local retrieval")

        errors: list[RetrievalError] = []
        raw_records = collect_raw_records(self.directory, selectors, domain, errors)
        records = self._normalize(raw_records, PolicyRecord.from_raw, RAW_IDENTITY_KEYS, errors)
        return RetrievalResult(records=records, errors=errors)

    def _get_remote(
        self,
        selectors: list[str],
        domain: Optional[str],
        host: Optional[str],
        credentials: Optional[Credentials],
    ) -> RetrievalResult:
        if not host or not host.strip():
            raise InvalidArgumentError("A host name is required for remote retrieval")
        if self.remote is None:
            raise InvalidArgumentError("No remote backend configured for remote retrieval")

        logger.debug("Querying %s for %d selector(s)", host, len(selectors))
        try:
            flat_records = self.remote.execute(host, credentials, selectors, domain)
        except RemoteExecutionError as e:
            logger.error("Remote retrieval from %s failed: %s", host, e)
            raise
        except Exception as e:
            logger.error("Remote retrieval from %s failed: %s", host, e)
            raise RemoteExecutionError(
                f"Remote retrieval from {host} failed: {e}", host=host
            ) from e

        errors: list[RetrievalError] = []
        # Flat records carry no errors, so missing plain names are detected here
        for selector in selectors:
            if not has_wildcard(selector) and not _match_names(
                selector, flat_records, FLAT_IDENTITY_KEYS[0]
            ):
                _report(
                    errors,
                    ErrorKind.IDENTITY_NOT_FOUND,
                    f"GPO not found: {selector}",
                    selector,
                )

        records = self._normalize(flat_records, PolicyRecord.from_flat, FLAT_IDENTITY_KEYS, errors)
        return RetrievalResult(records=records, errors=errors)

    def _normalize(
        self,
        items: Iterable[Any],
        factory: Callable[[Mapping[str, Any]], PolicyRecord],
        identity_keys: Sequence[str],
        errors: list[RetrievalError],
    ) -> list[PolicyRecord]:
        records: list[PolicyRecord] = []
        seen: set[UUID] = set()

        for item in items:
            try:
                record = build_record(item, factory, identity_keys)
            except RecordConstructionError as e:
                name = item.get(identity_keys[0]) if isinstance(item, Mapping) else None
                _report(
                    errors,
                    ErrorKind.RECORD_CONSTRUCTION,
                    f"Skipping malformed GPO record: {e}",
                    str(name) if name is not None else None,
                )
                continue

            if record.id in seen:
                continue
            seen.add(record.id)
            records.append(record)

        return records
