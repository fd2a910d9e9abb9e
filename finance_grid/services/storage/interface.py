"""
Abstract Storage Interfaces

DESIGN DECISION: The engine talks to two stores through abstract interfaces:
1. The remote authoritative store (HTTP today, anything async tomorrow)
2. The durable cache mirror (JSON files on disk, or memory in tests)

This keeps the Record Store and the orchestrator free of transport code
and lets tests swap in in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from finance_grid.models.records import GridRecord


class RemoteStoreInterface(ABC):
    """
    Abstract interface for the remote authoritative store.

    One instance serves one dataset. Implementations raise
    RemoteRequestError for failure statuses AND for transport errors
    during a request, so the orchestrator has one thing to catch.
    """

    @abstractmethod
    async def check_health(self) -> bool:
        """
        Ask the store whether it is reachable.

        Returns:
            True if the health endpoint answered with a success status

        Raises:
            ConnectivityError: If the store could not be reached at all
        """
        pass

    @abstractmethod
    async def list_records(self) -> list[dict[str, Any]]:
        """
        Fetch the whole dataset in order.

        Returns:
            Raw wire-form rows (identity may be under `_id`)

        Raises:
            RemoteRequestError: If the request fails or the body isn't a list
        """
        pass

    @abstractmethod
    async def create_record(self, record: GridRecord) -> str:
        """
        Create one record. The payload omits the local identity.

        Returns:
            The identity assigned by the remote store

        Raises:
            RemoteRequestError: If the store refused or couldn't be reached
        """
        pass

    @abstractmethod
    async def replace_record(self, record: GridRecord) -> None:
        """
        Fully replace one record, addressed by its identity.

        Raises:
            RemoteRequestError: If the store refused or couldn't be reached
        """
        pass

    @abstractmethod
    async def delete_record(self, record_id: str) -> None:
        """
        Delete one record by identity.

        Raises:
            RemoteRequestError: If the store refused or couldn't be reached
        """
        pass

    @abstractmethod
    async def replace_collection(self, records: list[GridRecord]) -> None:
        """
        Replace the whole dataset. Identities are omitted from the payload;
        the store assigns fresh ones.

        Raises:
            RemoteRequestError: If the store refused or couldn't be reached
        """
        pass

    async def close(self) -> None:
        """Release transport resources, if any."""
        return None


class CacheMirrorInterface(ABC):
    """
    Abstract interface for the durable cache mirror.

    Snapshots are whole: every write fully replaces the previous value
    for that key. No versioning.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[list[dict[str, Any]]]:
        """
        Read the snapshot stored under key.

        Returns:
            The stored rows, or None if there is no usable snapshot
        """
        pass

    @abstractmethod
    def write(self, key: str, rows: list[dict[str, Any]]) -> None:
        """
        Replace the snapshot stored under key.

        Raises:
            StorageError: If the snapshot could not be persisted
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectivityError(StorageError):
    """The remote store could not be reached."""
    pass


class RemoteRequestError(StorageError):
    """
    A remote request failed: error status, unusable body, or a transport
    error mid-request.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
