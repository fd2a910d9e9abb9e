"""
Record Store

The authoritative in-memory collection for one dataset.

DESIGN DECISION: The store is the ONLY thing that mutates records.
- Every mutation is synchronous and publishes a new immutable tuple,
  so readers holding the old tuple never see a half-applied change.
- Every mutation recomputes what depends on it (derived field, ordinals,
  summary profit rows) before publishing.
- Every published collection is written through to the cache mirror.

Remote synchronization is NOT done here; the orchestrator wraps these
operations with the remote policy. load() is the exception: choosing the
best source is part of what the store offers its readers.
"""

from decimal import Decimal
from typing import Any, Iterable, Optional
from uuid import uuid4

from pydantic import ValidationError

from finance_grid.audit import SyncEventLogger
from finance_grid.calculations import (
    SUMMARY_INPUT_ROWS,
    calculate_totals,
    recompute_derived,
    recompute_summary_rows,
)
from finance_grid.models.datasets import DatasetSchema
from finance_grid.models.events import SyncEventBuilder
from finance_grid.models.records import FieldKind, GridRecord
from finance_grid.models.sync import LoadResult, LoadSource
from finance_grid.services.cache import InMemoryCacheMirror
from finance_grid.services.connectivity import ConnectivityProbe
from finance_grid.services.storage.interface import (
    CacheMirrorInterface,
    RemoteStoreInterface,
    StorageError,
)


class RecordIndexError(IndexError):
    """A mutation referenced a row index outside the current collection."""

    def __init__(self, index: int, size: int):
        super().__init__(f"Invalid item index {index} (dataset has {size} rows)")
        self.index = index
        self.size = size


class RecordFieldError(ValueError):
    """A field is unknown to the dataset, store-managed, or got an invalid value."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class RecordStore:
    """
    In-memory collection for one dataset.

    Reads:  records, get(), value_at(), index_of(), totals()
    Writes: create(), update(), remove(), insert(), assign_identity(),
            replace_all(), apply_budget_totals(), load()
    """

    def __init__(
        self,
        dataset: DatasetSchema,
        mirror: Optional[CacheMirrorInterface] = None,
        remote: Optional[RemoteStoreInterface] = None,
        probe: Optional[ConnectivityProbe] = None,
        event_logger: Optional[SyncEventLogger] = None,
    ):
        self._dataset = dataset
        self._mirror = mirror or InMemoryCacheMirror()
        self._remote = remote
        self._probe = probe or ConnectivityProbe(remote)
        self._events = event_logger or SyncEventLogger()
        self._records: tuple[GridRecord, ...] = ()
        self._version = 0

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def dataset(self) -> DatasetSchema:
        return self._dataset

    @property
    def records(self) -> tuple[GridRecord, ...]:
        """Current collection. A new tuple is published on every mutation."""
        return self._records

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._records)

    def get(self, index: int) -> GridRecord:
        self._check_index(index)
        return self._records[index]

    def value_at(self, index: int, field: str) -> Any:
        attr = self._resolve(field)
        return getattr(self.get(index), attr)

    def index_of(self, record_id: str) -> Optional[int]:
        for position, record in enumerate(self._records):
            if record.id == record_id:
                return position
        return None

    def totals(self) -> dict[str, Decimal]:
        """Field-wise sums over the current collection, computed on demand."""
        return calculate_totals(self._records, self._dataset.numeric_fields)

    def snapshot(self) -> list[dict[str, Any]]:
        """Current collection in wire form."""
        return [record.to_wire() for record in self._records]

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load(self) -> LoadResult:
        """
        Replace the collection with the best available source.

        Priority: remote store (reachable and non-empty) → cache mirror →
        built-in defaults. A remote failure never escapes; it is reported
        in the result so the caller can surface it.
        """
        error_message: Optional[str] = None

        if self._remote is not None and await self._probe.check():
            try:
                rows = await self._remote.list_records()
                records = [self._dataset.build_record(row) for row in rows]
            except (StorageError, ValidationError) as e:
                error_message = str(e)
            else:
                if records:
                    self.replace_all(records)
                    return self._loaded(LoadSource.REMOTE)

        cached = self._read_cache()
        if cached:
            self.replace_all(cached)
            return self._loaded(LoadSource.CACHE, error_message)

        self.replace_all(self._dataset.default_records())
        return self._loaded(LoadSource.DEFAULTS, error_message)

    def _loaded(
        self,
        source: LoadSource,
        error_message: Optional[str] = None,
    ) -> LoadResult:
        if error_message:
            self._events.log(
                SyncEventBuilder.load_fell_back(
                    self._dataset.name, source.value, error_message
                )
            )
        self._events.log(
            SyncEventBuilder.dataset_loaded(
                self._dataset.name, source.value, len(self._records)
            )
        )
        return LoadResult(
            source=source,
            record_count=len(self._records),
            error_message=error_message,
        )

    def _read_cache(self) -> Optional[list[GridRecord]]:
        rows = self._mirror.read(self._dataset.cache_key)
        if not rows:
            return None
        try:
            return [self._dataset.build_record(row) for row in rows]
        except ValidationError as e:
            self._events.log(
                SyncEventBuilder.load_fell_back(
                    self._dataset.name,
                    LoadSource.DEFAULTS.value,
                    f"Cache snapshot {self._dataset.cache_key} is unusable: {e}",
                )
            )
            return None

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create(self, partial: Optional[dict[str, Any]] = None) -> GridRecord:
        """
        Append a new record with a temporary identity.

        Unknown fields in `partial` are rejected; any identity or ordinal it
        carries is replaced.
        """
        values: dict[str, Any] = {}
        for name, value in (partial or {}).items():
            attr = self._resolve(name)
            if self._dataset.field_kinds[attr] in (FieldKind.IDENTITY, FieldKind.ORDINAL):
                continue
            values[attr] = value

        values["id"] = str(uuid4())
        values["sr_no"] = len(self._records) + 1
        try:
            record = self._dataset.record_type.model_validate(values)
        except ValidationError as e:
            raise RecordFieldError(
                ",".join(str(err["loc"][0]) for err in e.errors() if err["loc"]),
                f"Invalid new {self._dataset.name} record: {e}",
            ) from e

        record = recompute_derived(record)
        self._publish([*self._records, record])
        return record

    def update(self, index: int, field: str, value: Any) -> GridRecord:
        """
        Replace one field of the record at index.

        The derived field is recomputed unless the edited field is itself
        derived or purely descriptive (text, status).
        """
        self._check_index(index)
        attr = self._resolve(field)
        kind = self._dataset.field_kinds[attr]
        if kind in (FieldKind.IDENTITY, FieldKind.ORDINAL):
            raise RecordFieldError(attr, f"Field {attr} is managed by the store")

        updated = self._records[index].model_copy()
        try:
            setattr(updated, attr, value)
        except ValidationError as e:
            raise RecordFieldError(
                attr, f"Invalid value {value!r} for {attr}: {e.errors()[0]['msg']}"
            ) from e

        if kind != FieldKind.DERIVED and not kind.is_descriptive:
            updated = recompute_derived(updated)

        records = list(self._records)
        records[index] = updated
        if (
            self._dataset.recompute_summary
            and attr == "amount"
            and index in SUMMARY_INPUT_ROWS
        ):
            records = recompute_summary_rows(records)

        self._publish(records)
        return self._records[index]

    def remove(self, index: int) -> GridRecord:
        """
        Delete the record at index and renumber the rest.

        Callers must have obtained the user's confirmation already.
        """
        self._check_index(index)
        records = list(self._records)
        removed = records.pop(index)
        self._publish(self._renumber(records))
        return removed

    def insert(self, index: int, record: GridRecord) -> GridRecord:
        """Put a record back at index (clamped to the end) and renumber."""
        if index < 0:
            raise RecordIndexError(index, len(self._records))
        records = list(self._records)
        records.insert(min(index, len(records)), self._dataset.build_record(record))
        self._publish(self._renumber(records))
        return self._records[min(index, len(self._records) - 1)]

    def assign_identity(self, temporary_id: str, remote_id: str) -> Optional[GridRecord]:
        """
        Swap a temporary identity for the one the remote store assigned.

        Returns None if the record is gone (removed while the create was
        in flight).
        """
        position = self.index_of(temporary_id)
        if position is None:
            return None
        records = list(self._records)
        records[position] = records[position].model_copy(update={"id": remote_id})
        self._publish(records)
        return self._records[position]

    def replace_all(self, records: Iterable[Any]) -> None:
        """Replace the whole collection, renumbering ordinals."""
        built = [self._dataset.build_record(record) for record in records]
        self._publish(self._renumber(built))

    def apply_budget_totals(self, annual_total: Any, monthly_total: Any) -> None:
        """
        Copy budget totals into the financial summary and recompute profits.

        Only meaningful for datasets that recompute summary rows.
        """
        if not self._dataset.recompute_summary:
            raise RecordFieldError(
                "amount",
                f"{self._dataset.name} has no budget total rows",
            )
        targets = {
            "Total Expenses Annual": annual_total,
            "Total Expenses Month": monthly_total,
        }
        records = []
        for record in self._records:
            if record.category in targets:
                try:
                    record = record.model_copy()
                    record.amount = targets[record.category]
                except ValidationError as e:
                    raise RecordFieldError("amount", f"Invalid budget total: {e}") from e
            records.append(record)
        self._publish(recompute_summary_rows(records))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _resolve(self, field: str) -> str:
        attr = self._dataset.resolve_field(field)
        if attr is None:
            raise RecordFieldError(
                field, f"{self._dataset.name} records have no field {field!r}"
            )
        return attr

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._records):
            raise RecordIndexError(index, len(self._records))

    @staticmethod
    def _renumber(records: list[GridRecord]) -> list[GridRecord]:
        return [
            record if record.sr_no == position else record.model_copy(update={"sr_no": position})
            for position, record in enumerate(records, start=1)
        ]

    def _publish(self, records: list[GridRecord]) -> None:
        self._records = tuple(records)
        self._version += 1
        try:
            self._mirror.write(self._dataset.cache_key, self.snapshot())
        except StorageError as e:
            self._events.log(
                SyncEventBuilder.cache_write_failed(
                    self._dataset.name, self._dataset.cache_key, str(e)
                )
            )
