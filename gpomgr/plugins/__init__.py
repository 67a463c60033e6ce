"""
Collaborator plugins.

Each plugin provides a directory, remoting or credential backend used by
the retrieval engine and the CLI.
"""

from .base import DirectoryQueryPort, RemoteExecutionPort
from .directory import MemoryDirectory, YamlDirectory
from .remote import LoopbackRemoteExecutor
from .secrets import SecretStore, MemorySecretStore, FernetSecretStore

__all__ = [
    "DirectoryQueryPort",
    "RemoteExecutionPort",
    "MemoryDirectory",
    "YamlDirectory",
    "LoopbackRemoteExecutor",
    "SecretStore",
    "MemorySecretStore",
    "FernetSecretStore",
]
