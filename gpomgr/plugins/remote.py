"""
Loopback remoting backend.

Serves remote queries from directory backends registered per host name,
passing every request and response through JSON so that only primitive
values cross the boundary, as they would over a real remoting channel.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping, Optional, Sequence

from ..core.engine import serve_remote_query
from ..core.errors import AccessDeniedError, TransportUnreachableError
from ..core.models import Credentials
from .base import DirectoryQueryPort, RemoteExecutionPort

logger = logging.getLogger(__name__)

Authorizer = Callable[[str, Optional[Credentials]], bool]


class LoopbackRemoteExecutor(RemoteExecutionPort):
    """Remote executor backed by in-process directories, one per host."""

    name = "loopback"

    def __init__(
        self,
        hosts: Optional[Mapping[str, DirectoryQueryPort]] = None,
        authorizer: Optional[Authorizer] = None,
    ):
        """
        Args:
            hosts: Map of host name -> directory served by that host
            authorizer: Optional callable(host, credentials) returning
                False to reject a call
        """
        self._hosts: dict[str, DirectoryQueryPort] = {}
        for host, directory in (hosts or {}).items():
            self.register(host, directory)
        self.authorizer = authorizer

    def register(self, host: str, directory: DirectoryQueryPort) -> None:
        self._hosts[host.lower()] = directory

    def execute(
        self,
        host: str,
        credentials: Optional[Credentials],
        selectors: Sequence[str],
        domain: Optional[str] = None,
    ) -> list[Mapping[str, Any]]:
        directory = self._hosts.get(host.lower())
        if directory is None:
            raise TransportUnreachableError(f"Cannot connect to host: {host}", host=host)

        if self.authorizer is not None and not self.authorizer(host, credentials):
            user = credentials.username if credentials else "anonymous"
            raise AccessDeniedError(f"Access denied on {host} for {user}", host=host)

        request = json.loads(json.dumps({"selectors": list(selectors), "domain": domain}))
        logger.debug("Serving remote query on %s: %s", host, request)

        response = serve_remote_query(directory, request["selectors"], request["domain"])
        return json.loads(json.dumps(response, default=str))
