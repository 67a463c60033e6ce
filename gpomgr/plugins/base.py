"""
Collaborator interfaces consumed by the retrieval engine.

Directory and remoting backends must inherit from DirectoryQueryPort or
RemoteExecutionPort and implement their abstract methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from ..core.models import Credentials


class DirectoryQueryPort(ABC):
    """
    Base class for directory backends.

    Each backend returns raw policy records: mappings keyed by the
    directory's own attribute names (DisplayName, Id, DomainName, ...).
    """

    name: str = ""

    @abstractmethod
    def query_all(self, domain: Optional[str] = None) -> list[Mapping[str, Any]]:
        """
        Return every policy record in the domain.

        An empty directory yields an empty list. Raises
        DirectoryUnavailableError if the directory cannot be reached.
        """
        pass

    @abstractmethod
    def query_by_exact_name(
        self, name: str, domain: Optional[str] = None
    ) -> list[Mapping[str, Any]]:
        """
        Return the records whose display name is exactly ``name``.

        Display names are not unique, so more than one record may match.
        Raises IdentityNotFoundError when nothing matches.
        """
        pass


class RemoteExecutionPort(ABC):
    """
    Base class for remoting backends.

    A backend runs a selector query on a named host and returns flat
    records (see models.FLAT_KEYS), since full directory objects cannot
    cross the process boundary.
    """

    name: str = ""

    @abstractmethod
    def execute(
        self,
        host: str,
        credentials: Optional["Credentials"],
        selectors: Sequence[str],
        domain: Optional[str] = None,
    ) -> list[Mapping[str, Any]]:
        """
        Run one query round trip against ``host``.

        Args:
            host: Name of the remote host
            credentials: Credentials for this call only, or None
            selectors: The whole selector batch, in caller order
            domain: Optional domain to query

        Raises:
            TransportUnreachableError: the host could not be contacted
            AccessDeniedError: the host rejected the credentials
            RemoteExecutionError: any other failure of the round trip
        """
        pass
