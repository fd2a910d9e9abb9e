"""
Grid Session

Wires one dataset's Record Store, Sync Orchestrator and Cell Edit Session
together. This is the object the presentation layer holds.

Cell commits are synchronous (the edit session must be IDLE again before
the next edit starts); their remote pushes are queued and sent by flush(),
which start_edit() and commit_edit() call for you.
"""

from decimal import Decimal
from typing import Any, Optional

import httpx
import structlog

from finance_grid.audit import SyncEventLogger
from finance_grid.config import Settings, get_settings
from finance_grid.editing import CellEditSession, CommitResult, CommitTrigger
from finance_grid.models.datasets import DatasetSchema, get_dataset
from finance_grid.models.records import GridRecord
from finance_grid.models.sync import (
    LoadResult,
    RemovalRequest,
    RemovalResponse,
    SubmitStatus,
    SyncError,
    SyncOperation,
    SyncOutcome,
)
from finance_grid.orchestrator import DatasetSyncFlow, ErrorSlot
from finance_grid.services.cache import InMemoryCacheMirror, JsonFileCacheMirror
from finance_grid.services.connectivity import ConnectivityProbe
from finance_grid.services.storage import HttpRemoteStore
from finance_grid.services.storage.interface import (
    CacheMirrorInterface,
    RemoteStoreInterface,
)
from finance_grid.store import RecordStore

logger = structlog.get_logger(__name__)


class GridSession:
    """One editable dataset, its sync flow and its single edit slot."""

    def __init__(
        self,
        dataset: DatasetSchema,
        remote: Optional[RemoteStoreInterface] = None,
        mirror: Optional[CacheMirrorInterface] = None,
        probe: Optional[ConnectivityProbe] = None,
        event_logger: Optional[SyncEventLogger] = None,
        errors: Optional[ErrorSlot] = None,
    ):
        self.events = event_logger or SyncEventLogger()
        self._remote = remote
        probe = probe or ConnectivityProbe(remote)
        self.store = RecordStore(
            dataset,
            mirror=mirror,
            remote=remote,
            probe=probe,
            event_logger=self.events,
        )
        self.flow = DatasetSyncFlow(
            self.store,
            remote=remote,
            probe=probe,
            event_logger=self.events,
            errors=errors,
        )
        self.editor = CellEditSession(self.store, committer=self._commit_cell)
        self._pending: list[GridRecord] = []

    # -------------------------------------------------------------------------
    # Observed state
    # -------------------------------------------------------------------------

    @property
    def dataset(self) -> DatasetSchema:
        return self.store.dataset

    @property
    def records(self) -> tuple[GridRecord, ...]:
        return self.store.records

    @property
    def totals(self) -> dict[str, Decimal]:
        return self.store.totals()

    @property
    def error(self) -> Optional[SyncError]:
        return self.flow.errors.error

    @property
    def in_flight(self) -> frozenset[SyncOperation]:
        return self.flow.in_flight

    @property
    def submit_status(self) -> SubmitStatus:
        return self.flow.submit_status

    def clear_error(self) -> None:
        self.flow.errors.clear()

    # -------------------------------------------------------------------------
    # Dataset operations
    # -------------------------------------------------------------------------

    async def load(self) -> LoadResult:
        return await self.flow.load()

    async def reconnect(self) -> bool:
        return await self.flow.reconnect()

    async def add_row(self, partial: Optional[dict[str, Any]] = None) -> SyncOutcome:
        return await self.flow.add_row(partial)

    def request_removal(self, index: int) -> Optional[RemovalRequest]:
        return self.flow.request_removal(index)

    async def remove_row(self, response: RemovalResponse) -> SyncOutcome:
        return await self.flow.remove_row(response)

    async def submit(self) -> SyncOutcome:
        return await self.flow.submit()

    async def update_cell(self, index: int, field: str, value: Any) -> SyncOutcome:
        """Programmatic update, bypassing the edit session."""
        return await self.flow.update_cell(index, field, value)

    def apply_budget_totals(self, annual_total: Any, monthly_total: Any) -> bool:
        return self.flow.apply_budget_totals(annual_total, monthly_total)

    # -------------------------------------------------------------------------
    # Cell editing
    # -------------------------------------------------------------------------

    async def start_edit(self, index: int, field: str) -> bool:
        """Start editing a cell, committing (and pushing) any active edit first."""
        started = self.editor.start_edit(index, field)
        await self.flush()
        return started

    def input(self, value: str) -> Optional[str]:
        return self.editor.on_input(value)

    async def commit_edit(self, trigger: CommitTrigger = CommitTrigger.BLUR) -> CommitResult:
        result = self.editor.commit(trigger)
        await self.flush()
        return result

    def cancel_edit(self) -> bool:
        return self.editor.cancel()

    async def flush(self) -> list[SyncOutcome]:
        """Send queued cell updates to the remote store, oldest first."""
        outcomes = []
        while self._pending:
            record = self._pending.pop(0)
            outcomes.append(await self.flow.push_update(record))
        return outcomes

    def _commit_cell(self, index: int, field: str, value: Any) -> Optional[GridRecord]:
        record = self.flow.apply_update(index, field, value)
        if record is not None:
            self._pending.append(record)
        return record

    async def close(self) -> None:
        if self._remote is not None:
            await self._remote.close()


def create_grid_session(
    dataset_name: Optional[str] = None,
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
    event_logger: Optional[SyncEventLogger] = None,
) -> GridSession:
    """
    Build a GridSession from settings.

    Args:
        dataset_name: Dataset to open (defaults to FINANCE_GRID_DEFAULT_DATASET)
        settings: Settings to use instead of the cached environment settings
        client: Pre-built HTTP client (tests pass one with a mock transport)
        event_logger: Shared event history across sessions
    """
    settings = settings or get_settings()
    dataset = get_dataset(dataset_name or settings.app.default_dataset)

    remote = HttpRemoteStore(dataset, client=client, settings=settings.remote)
    if settings.cache.enabled:
        mirror: CacheMirrorInterface = JsonFileCacheMirror(settings.cache.directory)
    else:
        mirror = InMemoryCacheMirror()

    logger.info(
        "grid_session_created",
        dataset=dataset.name,
        base_url=settings.remote.base_url,
        cache_enabled=settings.cache.enabled,
    )
    return GridSession(
        dataset,
        remote=remote,
        mirror=mirror,
        probe=ConnectivityProbe(remote, settings.remote.probe_timeout_seconds),
        event_logger=event_logger or SyncEventLogger(settings.app.event_history_size),
    )
