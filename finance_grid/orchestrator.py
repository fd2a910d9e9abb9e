"""
Sync Orchestrator for Finance Grid

This module sequences every Record Store mutation through the remote
store:

    probe → optimistic apply → remote request → commit or compensate

DESIGN DECISION: The remote policy is deliberately asymmetric:
- create: rollback (remove the inserted row) if the remote create fails
- remove: rollback (reinsert at the original index) if the delete fails
- update: NO rollback; the local value stays and only the error surfaces
- submit: no optimistic change; reload from remote on success
When the probe says the store is unreachable, create/remove/update keep
their local change (offline mode) and submit fails outright.

Every remote failure is caught here and written to the error slot.
Nothing remote-related propagates to the caller as an exception.
"""

from collections import Counter
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from finance_grid.audit import SyncEventLogger
from finance_grid.models.datasets import DatasetSchema
from finance_grid.models.events import SyncEventBuilder
from finance_grid.models.records import GridRecord
from finance_grid.models.sync import (
    ErrorKind,
    LoadResult,
    RemovalRequest,
    RemovalResponse,
    SubmitStatus,
    SyncError,
    SyncOperation,
    SyncOutcome,
    SyncStatus,
)
from finance_grid.services.connectivity import ConnectivityProbe
from finance_grid.services.storage.interface import (
    ConnectivityError,
    RemoteRequestError,
    RemoteStoreInterface,
    StorageError,
)
from finance_grid.store import RecordFieldError, RecordIndexError, RecordStore
from finance_grid.validation import CellValidationError


class ErrorSlot:
    """
    The one surfaced error the presentation layer shows.

    A new error replaces the previous one. Cleared by a successful submit
    or reconnect, or explicitly by the UI.
    """

    _KINDS = (
        (ConnectivityError, ErrorKind.CONNECTIVITY),
        (RemoteRequestError, ErrorKind.REMOTE_REQUEST),
        (StorageError, ErrorKind.REMOTE_REQUEST),
        (RecordIndexError, ErrorKind.INDEX),
        (RecordFieldError, ErrorKind.FIELD),
        (CellValidationError, ErrorKind.VALIDATION),
    )

    def __init__(self):
        self._error: Optional[SyncError] = None

    @property
    def error(self) -> Optional[SyncError]:
        return self._error

    def report(
        self,
        kind: ErrorKind,
        message: str,
        operation: Optional[SyncOperation] = None,
    ) -> SyncError:
        self._error = SyncError(kind=kind, message=message, operation=operation)
        return self._error

    def report_exception(
        self,
        exc: Exception,
        operation: Optional[SyncOperation] = None,
    ) -> SyncError:
        kind = next(
            (kind for exc_type, kind in self._KINDS if isinstance(exc, exc_type)),
            ErrorKind.REMOTE_REQUEST,
        )
        return self.report(kind, str(exc), operation)

    def clear(self) -> None:
        self._error = None


class DatasetSyncFlow:
    """
    Orchestrates remote synchronization for one dataset.

    Flow per operation:
    1. Apply locally (create/remove/update) through the Record Store
    2. Probe connectivity (offline → keep local change, stop here)
    3. Send the remote request
    4. Success → settle (e.g. adopt the remote identity)
       Failure → compensate per policy and surface the error

    Datasets without per-row endpoints skip steps 2-4 for row operations.
    """

    def __init__(
        self,
        store: RecordStore,
        remote: Optional[RemoteStoreInterface] = None,
        probe: Optional[ConnectivityProbe] = None,
        event_logger: Optional[SyncEventLogger] = None,
        errors: Optional[ErrorSlot] = None,
    ):
        self._store = store
        self._remote = remote
        self._probe = probe or ConnectivityProbe(remote)
        self._events = event_logger or SyncEventLogger()
        self._errors = errors or ErrorSlot()
        self._in_flight: Counter = Counter()
        self._submit_status = SubmitStatus.IDLE

    # -------------------------------------------------------------------------
    # State observed by the UI
    # -------------------------------------------------------------------------

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def dataset(self) -> DatasetSchema:
        return self._store.dataset

    @property
    def errors(self) -> ErrorSlot:
        return self._errors

    @property
    def in_flight(self) -> frozenset[SyncOperation]:
        """Operations with a remote request currently outstanding."""
        return frozenset(op for op, count in self._in_flight.items() if count > 0)

    def is_busy(self, operation: SyncOperation) -> bool:
        return self._in_flight[operation] > 0

    @property
    def submit_status(self) -> SubmitStatus:
        return self._submit_status

    def reset_submit_status(self) -> None:
        """The UI calls this once it has shown a success/error flash."""
        self._submit_status = SubmitStatus.IDLE

    @contextmanager
    def _track(self, operation: SyncOperation) -> Iterator[None]:
        self._in_flight[operation] += 1
        try:
            yield
        finally:
            self._in_flight[operation] -= 1

    # -------------------------------------------------------------------------
    # Load / reconnect
    # -------------------------------------------------------------------------

    async def load(self) -> LoadResult:
        """Load the best available source; a remote failure lands in the error slot."""
        with self._track(SyncOperation.LOAD):
            result = await self._store.load()
        if result.error_message:
            self._errors.report(
                ErrorKind.REMOTE_REQUEST, result.error_message, SyncOperation.LOAD
            )
        return result

    async def reconnect(self) -> bool:
        """
        User-initiated recovery: re-probe and, if reachable, reload.

        Returns:
            Whether the remote store is reachable
        """
        with self._track(SyncOperation.RECONNECT):
            if not await self._probe.check():
                self._events.log(SyncEventBuilder.still_offline(self.dataset.name))
                return False
            self._events.log(SyncEventBuilder.reconnected(self.dataset.name))
            result = await self.load()
        if result.error_message is None:
            self._errors.clear()
        return True

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    async def add_row(self, partial: Optional[dict[str, Any]] = None) -> SyncOutcome:
        """Append a row optimistically; remove it again if the remote create fails."""
        op = SyncOperation.CREATE
        try:
            record = self._store.create(partial)
        except RecordFieldError as e:
            return self._rejected(op, e)
        self._events.log(
            SyncEventBuilder.record_created(self.dataset.name, record.id, record.sr_no)
        )

        if not self.dataset.row_level:
            return SyncOutcome(operation=op, status=SyncStatus.LOCAL_ONLY, record_id=record.id)

        with self._track(op):
            if not await self._probe.check():
                return self._offline(op, record.id)
            try:
                remote_id = await self._remote.create_record(record)
            except StorageError as e:
                position = self._store.index_of(record.id)
                if position is not None:
                    self._store.remove(position)
                return self._rolled_back(op, record.id, e)

        self._store.assign_identity(record.id, remote_id)
        self._events.log(SyncEventBuilder.remote_synced(self.dataset.name, op.value, remote_id))
        return SyncOutcome(operation=op, status=SyncStatus.SYNCED, record_id=remote_id)

    # -------------------------------------------------------------------------
    # Remove
    # -------------------------------------------------------------------------

    def request_removal(self, index: int) -> Optional[RemovalRequest]:
        """
        First half of the confirmation exchange.

        Returns:
            A request to show the user, or None if the index is invalid
            (the error slot says why)
        """
        try:
            record = self._store.get(index)
        except RecordIndexError as e:
            self._rejected(SyncOperation.REMOVE, e)
            return None
        return RemovalRequest(
            index=index,
            record_id=record.id,
            prompt=f"Are you sure you want to remove row {record.sr_no} from {self.dataset.name}?",
        )

    async def remove_row(self, response: RemovalResponse) -> SyncOutcome:
        """Delete optimistically once confirmed; reinsert if the remote delete fails."""
        op = SyncOperation.REMOVE
        request = response.request
        if not response.confirmed:
            self._events.log(
                SyncEventBuilder.removal_cancelled(self.dataset.name, request.record_id)
            )
            return SyncOutcome(
                operation=op, status=SyncStatus.CANCELLED, record_id=request.record_id
            )

        # The row may have moved since the request was issued
        index = self._store.index_of(request.record_id)
        if index is None:
            return self._rejected(op, RecordIndexError(request.index, len(self._store)))

        removed = self._store.remove(index)
        self._events.log(SyncEventBuilder.record_removed(self.dataset.name, removed.id, index))

        if not self.dataset.row_level:
            return SyncOutcome(operation=op, status=SyncStatus.LOCAL_ONLY, record_id=removed.id)

        with self._track(op):
            if not await self._probe.check():
                return self._offline(op, removed.id)
            try:
                await self._remote.delete_record(removed.id)
            except StorageError as e:
                self._store.insert(index, removed)
                return self._rolled_back(op, removed.id, e)

        self._events.log(SyncEventBuilder.remote_synced(self.dataset.name, op.value, removed.id))
        return SyncOutcome(operation=op, status=SyncStatus.SYNCED, record_id=removed.id)

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    def apply_update(self, index: int, field: str, value: Any) -> Optional[GridRecord]:
        """
        Optimistic half of an update. Synchronous.

        Returns:
            The updated record, or None if the store refused the change
            (the error slot says why)
        """
        try:
            record = self._store.update(index, field, value)
        except (RecordIndexError, RecordFieldError) as e:
            self._rejected(SyncOperation.UPDATE, e)
            return None
        self._events.log(
            SyncEventBuilder.record_updated(self.dataset.name, record.id, field, value)
        )
        return record

    async def push_update(self, record: GridRecord) -> SyncOutcome:
        """
        Remote half of an update. Sends the record's current values.

        A failure is surfaced but NOT rolled back.
        """
        op = SyncOperation.UPDATE
        if not self.dataset.row_level:
            return SyncOutcome(operation=op, status=SyncStatus.LOCAL_ONLY, record_id=record.id)

        with self._track(op):
            if not await self._probe.check():
                return self._offline(op, record.id)

            position = self._store.index_of(record.id)
            if position is None:
                return SyncOutcome(
                    operation=op,
                    status=SyncStatus.CANCELLED,
                    record_id=record.id,
                    error_message="Record was removed before its update was sent",
                )
            current = self._store.get(position)
            try:
                await self._remote.replace_record(current)
            except StorageError as e:
                error = self._errors.report_exception(e, op)
                self._events.log(
                    SyncEventBuilder.remote_failed(
                        self.dataset.name, op.value, record.id, error.message
                    )
                )
                return SyncOutcome(
                    operation=op,
                    status=SyncStatus.FAILED,
                    record_id=record.id,
                    error_message=error.message,
                )

        self._events.log(SyncEventBuilder.remote_synced(self.dataset.name, op.value, record.id))
        return SyncOutcome(operation=op, status=SyncStatus.SYNCED, record_id=record.id)

    async def update_cell(self, index: int, field: str, value: Any) -> SyncOutcome:
        """apply_update() then push_update()."""
        record = self.apply_update(index, field, value)
        if record is None:
            error = self._errors.error
            return SyncOutcome(
                operation=SyncOperation.UPDATE,
                status=SyncStatus.FAILED,
                error_message=error.message if error else None,
            )
        return await self.push_update(record)

    # -------------------------------------------------------------------------
    # Submit
    # -------------------------------------------------------------------------

    async def submit(self) -> SyncOutcome:
        """
        Replace the remote collection with the local one, then reload.

        No optimistic change: on failure the local collection is untouched.
        """
        op = SyncOperation.SUBMIT
        with self._track(op):
            self._submit_status = SubmitStatus.LOADING
            records = list(self._store.records)
            self._events.log(SyncEventBuilder.submit_started(self.dataset.name, len(records)))

            try:
                if not await self._probe.check():
                    raise ConnectivityError("Backend is not available")
                await self._remote.replace_collection(records)
            except StorageError as e:
                self._submit_status = SubmitStatus.ERROR
                error = self._errors.report_exception(e, op)
                self._events.log(SyncEventBuilder.submit_failed(self.dataset.name, error.message))
                return SyncOutcome(operation=op, status=SyncStatus.FAILED, error_message=error.message)

            self._submit_status = SubmitStatus.SUCCESS
            self._errors.clear()
            self._events.log(SyncEventBuilder.submit_succeeded(self.dataset.name, len(records)))
            await self.load()

        return SyncOutcome(operation=op, status=SyncStatus.SYNCED)

    # -------------------------------------------------------------------------
    # Local-only helpers
    # -------------------------------------------------------------------------

    def apply_budget_totals(self, annual_total: Any, monthly_total: Any) -> bool:
        """Copy budget totals into the financial summary (local change only)."""
        try:
            self._store.apply_budget_totals(annual_total, monthly_total)
        except RecordFieldError as e:
            self._rejected(SyncOperation.UPDATE, e)
            return False
        return True

    # -------------------------------------------------------------------------
    # Outcome helpers
    # -------------------------------------------------------------------------

    def _rejected(self, op: SyncOperation, exc: Exception) -> SyncOutcome:
        error = self._errors.report_exception(exc, op)
        self._events.log(
            SyncEventBuilder.mutation_rejected(self.dataset.name, op.value, error.message)
        )
        return SyncOutcome(operation=op, status=SyncStatus.FAILED, error_message=error.message)

    def _offline(self, op: SyncOperation, record_id: str) -> SyncOutcome:
        self._events.log(SyncEventBuilder.offline_continued(self.dataset.name, op.value, record_id))
        return SyncOutcome(operation=op, status=SyncStatus.OFFLINE, record_id=record_id)

    def _rolled_back(self, op: SyncOperation, record_id: str, exc: Exception) -> SyncOutcome:
        error = self._errors.report_exception(exc, op)
        self._events.log(
            SyncEventBuilder.rolled_back(self.dataset.name, op.value, record_id, error.message)
        )
        return SyncOutcome(
            operation=op,
            status=SyncStatus.ROLLED_BACK,
            record_id=record_id,
            error_message=error.message,
        )
