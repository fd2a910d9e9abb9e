"""
Storage Services Package

Abstract interfaces for the remote store and the cache mirror, and the
HTTP implementation of the remote store contract.
"""

from finance_grid.services.storage.interface import (
    CacheMirrorInterface,
    ConnectivityError,
    RemoteRequestError,
    RemoteStoreInterface,
    StorageError,
)
from finance_grid.services.storage.http_store import HttpRemoteStore

__all__ = [
    # Interfaces
    "CacheMirrorInterface",
    "RemoteStoreInterface",
    # Exceptions
    "ConnectivityError",
    "RemoteRequestError",
    "StorageError",
    # HTTP implementation
    "HttpRemoteStore",
]
