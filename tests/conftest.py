"""
Shared fixtures for Finance Grid tests.

No network in tests: the remote store is an in-memory fake with
switchable reachability and failure injection, and the HTTP client
tests use httpx.MockTransport.
"""

from typing import Any, Optional

import pytest

from finance_grid.audit import SyncEventLogger
from finance_grid.models import PROJECTS, DatasetSchema
from finance_grid.models.records import GridRecord
from finance_grid.orchestrator import DatasetSyncFlow
from finance_grid.services.cache import InMemoryCacheMirror
from finance_grid.services.connectivity import ConnectivityProbe
from finance_grid.services.storage.interface import (
    ConnectivityError,
    RemoteRequestError,
    RemoteStoreInterface,
)
from finance_grid.session import GridSession
from finance_grid.store import RecordStore


class InMemoryRemoteStore(RemoteStoreInterface):
    """
    Fake remote store.

    Set `reachable = False` to fail the health check, and add operation
    names ("create", "update", "delete", "replace", "list") to `fail_on`
    to make those requests fail.
    """

    def __init__(self, rows: Optional[list[dict[str, Any]]] = None, reachable: bool = True):
        self.rows: list[dict[str, Any]] = [dict(row) for row in rows or []]
        self.reachable = reachable
        self.fail_on: set[str] = set()
        self.calls: list[tuple] = []
        self._next_id = 1

    def _new_id(self) -> str:
        remote_id = f"remote-{self._next_id}"
        self._next_id += 1
        return remote_id

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RemoteRequestError(f"Injected {operation} failure", status_code=500)

    async def check_health(self) -> bool:
        self.calls.append(("health",))
        if not self.reachable:
            raise ConnectivityError("Remote store unreachable")
        return True

    async def list_records(self) -> list[dict[str, Any]]:
        self.calls.append(("list",))
        self._maybe_fail("list")
        return [dict(row) for row in self.rows]

    async def create_record(self, record: GridRecord) -> str:
        payload = record.to_wire(include_identity=False)
        self.calls.append(("create", payload))
        self._maybe_fail("create")
        remote_id = self._new_id()
        self.rows.append({**payload, "_id": remote_id})
        return remote_id

    async def replace_record(self, record: GridRecord) -> None:
        payload = record.to_wire(include_identity=False)
        self.calls.append(("update", record.id, payload))
        self._maybe_fail("update")
        for row in self.rows:
            if row["_id"] == record.id:
                row.update(payload)

    async def delete_record(self, record_id: str) -> None:
        self.calls.append(("delete", record_id))
        self._maybe_fail("delete")
        self.rows = [row for row in self.rows if row["_id"] != record_id]

    async def replace_collection(self, records: list[GridRecord]) -> None:
        payload = [record.to_wire(include_identity=False) for record in records]
        self.calls.append(("replace", payload))
        self._maybe_fail("replace")
        self.rows = [{**row, "_id": self._new_id()} for row in payload]

    def operations(self) -> list[str]:
        """Names of the calls made so far, health checks excluded."""
        return [call[0] for call in self.calls if call[0] != "health"]


def project_row(remote_id: str, sr_no: int, name: str, dev: int = 1000) -> dict[str, Any]:
    return {
        "_id": remote_id,
        "srNo": sr_no,
        "projectName": name,
        "status": "In Progress",
        "dev": dev,
        "extra": 0,
        "invest": 0,
        "gettingAmount": 0,
        "yetToBeRecovered": dev,
    }


@pytest.fixture
def remote() -> InMemoryRemoteStore:
    return InMemoryRemoteStore(
        rows=[
            project_row("p-1", 1, "Alpha", 1000),
            project_row("p-2", 2, "Beta", 2000),
            project_row("p-3", 3, "Gamma", 3000),
        ]
    )


@pytest.fixture
def offline_remote() -> InMemoryRemoteStore:
    return InMemoryRemoteStore(reachable=False)


@pytest.fixture
def mirror() -> InMemoryCacheMirror:
    return InMemoryCacheMirror()


@pytest.fixture
def events() -> SyncEventLogger:
    return SyncEventLogger(history_size=50)


@pytest.fixture
def make_store(mirror, events):
    """Factory for a RecordStore wired to the shared mirror and event log."""
    def _make(dataset: DatasetSchema = PROJECTS, remote=None) -> RecordStore:
        return RecordStore(
            dataset,
            mirror=mirror,
            remote=remote,
            probe=ConnectivityProbe(remote, timeout_seconds=1.0),
            event_logger=events,
        )
    return _make


@pytest.fixture
def make_flow(make_store, events):
    """Factory for a DatasetSyncFlow over a fresh RecordStore."""
    def _make(dataset: DatasetSchema = PROJECTS, remote=None) -> DatasetSyncFlow:
        store = make_store(dataset, remote)
        return DatasetSyncFlow(
            store,
            remote=remote,
            probe=ConnectivityProbe(remote, timeout_seconds=1.0),
            event_logger=events,
        )
    return _make


@pytest.fixture
def make_session(mirror, events):
    """Factory for a GridSession."""
    def _make(dataset: DatasetSchema = PROJECTS, remote=None) -> GridSession:
        return GridSession(
            dataset,
            remote=remote,
            mirror=mirror,
            probe=ConnectivityProbe(remote, timeout_seconds=1.0),
            event_logger=events,
        )
    return _make
