"""Services package."""

from finance_grid.services.cache import InMemoryCacheMirror, JsonFileCacheMirror
from finance_grid.services.connectivity import ConnectivityProbe
from finance_grid.services.storage import (
    CacheMirrorInterface,
    ConnectivityError,
    HttpRemoteStore,
    RemoteRequestError,
    RemoteStoreInterface,
    StorageError,
)

__all__ = [
    # Cache mirror
    "CacheMirrorInterface",
    "InMemoryCacheMirror",
    "JsonFileCacheMirror",
    # Connectivity
    "ConnectivityProbe",
    # Remote store
    "ConnectivityError",
    "HttpRemoteStore",
    "RemoteRequestError",
    "RemoteStoreInterface",
    "StorageError",
]
