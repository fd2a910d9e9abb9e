"""
Sync Event Models

Every step the orchestrator takes against the remote store is logged as a
typed event: what was attempted, on which record, and how it ended.
Rollbacks and offline continuations get their own event types so they
stand out in the log.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class SyncEventType(str, Enum):
    """Types of events we log."""
    # Loading
    DATASET_LOADED = "dataset_loaded"
    LOAD_FELL_BACK = "load_fell_back"

    # Row mutations
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_REMOVED = "record_removed"
    REMOVAL_CANCELLED = "removal_cancelled"
    MUTATION_REJECTED = "mutation_rejected"

    # Remote outcomes
    REMOTE_SYNCED = "remote_synced"
    REMOTE_FAILED = "remote_failed"
    ROLLED_BACK = "rolled_back"
    OFFLINE_CONTINUED = "offline_continued"

    # Bulk submit
    SUBMIT_STARTED = "submit_started"
    SUBMIT_SUCCEEDED = "submit_succeeded"
    SUBMIT_FAILED = "submit_failed"

    # Connectivity
    RECONNECTED = "reconnected"
    STILL_OFFLINE = "still_offline"

    # Local persistence
    CACHE_WRITE_FAILED = "cache_write_failed"


class SyncSeverity(str, Enum):
    """Severity level for sync events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class SyncEvent(BaseModel):
    """A single sync event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: SyncEventType
    severity: SyncSeverity = SyncSeverity.INFO

    dataset: str = Field(..., description="Dataset name")
    operation: Optional[str] = None
    record_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "dataset": self.dataset,
            "operation": self.operation,
            "record_id": self.record_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class SyncEventBuilder:
    """
    Helper class to build sync events with common patterns.

    Usage:
        event = SyncEventBuilder.record_created("projects", record_id, offline=False)
        event = SyncEventBuilder.rolled_back("projects", "remove", record_id, error)
    """

    @staticmethod
    def dataset_loaded(dataset: str, source: str, count: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.DATASET_LOADED,
            dataset=dataset,
            operation="load",
            description=f"Loaded {count} records from {source}",
            details={"source": source, "record_count": count},
        )

    @staticmethod
    def load_fell_back(dataset: str, source: str, error_message: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.LOAD_FELL_BACK,
            severity=SyncSeverity.WARNING,
            dataset=dataset,
            operation="load",
            description=f"Remote load failed, using {source}",
            details={"source": source},
            error_message=error_message,
        )

    @staticmethod
    def record_created(dataset: str, record_id: str, sr_no: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.RECORD_CREATED,
            dataset=dataset,
            operation="create",
            record_id=record_id,
            description=f"Row {sr_no} added locally",
            details={"sr_no": sr_no},
        )

    @staticmethod
    def record_updated(
        dataset: str,
        record_id: str,
        field: str,
        value: Any,
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.RECORD_UPDATED,
            dataset=dataset,
            operation="update",
            record_id=record_id,
            description=f"Field {field} updated locally",
            details={"field": field, "value": str(value)},
        )

    @staticmethod
    def record_removed(dataset: str, record_id: str, index: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.RECORD_REMOVED,
            dataset=dataset,
            operation="remove",
            record_id=record_id,
            description=f"Row at index {index} removed locally",
            details={"index": index},
        )

    @staticmethod
    def removal_cancelled(dataset: str, record_id: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.REMOVAL_CANCELLED,
            dataset=dataset,
            operation="remove",
            record_id=record_id,
            description="Removal not confirmed",
        )

    @staticmethod
    def mutation_rejected(
        dataset: str,
        operation: str,
        error_message: str,
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.MUTATION_REJECTED,
            severity=SyncSeverity.WARNING,
            dataset=dataset,
            operation=operation,
            description=f"{operation.capitalize()} rejected before any change",
            error_message=error_message,
        )

    @staticmethod
    def remote_synced(
        dataset: str,
        operation: str,
        record_id: Optional[str],
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.REMOTE_SYNCED,
            severity=SyncSeverity.DEBUG,
            dataset=dataset,
            operation=operation,
            record_id=record_id,
            description=f"Remote store accepted {operation}",
        )

    @staticmethod
    def remote_failed(
        dataset: str,
        operation: str,
        record_id: Optional[str],
        error_message: str,
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.REMOTE_FAILED,
            severity=SyncSeverity.ERROR,
            dataset=dataset,
            operation=operation,
            record_id=record_id,
            description=f"Remote {operation} failed, local value kept",
            error_message=error_message,
        )

    @staticmethod
    def rolled_back(
        dataset: str,
        operation: str,
        record_id: str,
        error_message: str,
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.ROLLED_BACK,
            severity=SyncSeverity.ERROR,
            dataset=dataset,
            operation=operation,
            record_id=record_id,
            description=f"Remote {operation} failed, local change rolled back",
            error_message=error_message,
        )

    @staticmethod
    def offline_continued(
        dataset: str,
        operation: str,
        record_id: Optional[str],
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.OFFLINE_CONTINUED,
            severity=SyncSeverity.WARNING,
            dataset=dataset,
            operation=operation,
            record_id=record_id,
            description=f"Remote store unreachable, {operation} kept locally",
        )

    @staticmethod
    def submit_started(dataset: str, count: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.SUBMIT_STARTED,
            dataset=dataset,
            operation="submit",
            description=f"Submitting {count} records",
            details={"record_count": count},
        )

    @staticmethod
    def submit_succeeded(dataset: str, count: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.SUBMIT_SUCCEEDED,
            dataset=dataset,
            operation="submit",
            description=f"Remote store replaced with {count} records",
            details={"record_count": count},
        )

    @staticmethod
    def submit_failed(dataset: str, error_message: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.SUBMIT_FAILED,
            severity=SyncSeverity.ERROR,
            dataset=dataset,
            operation="submit",
            description="Bulk submit failed, local data untouched",
            error_message=error_message,
        )

    @staticmethod
    def reconnected(dataset: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.RECONNECTED,
            dataset=dataset,
            operation="reconnect",
            description="Remote store reachable again",
        )

    @staticmethod
    def still_offline(dataset: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.STILL_OFFLINE,
            severity=SyncSeverity.WARNING,
            dataset=dataset,
            operation="reconnect",
            description="Remote store still unreachable",
        )

    @staticmethod
    def cache_write_failed(dataset: str, key: str, error_message: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.CACHE_WRITE_FAILED,
            severity=SyncSeverity.ERROR,
            dataset=dataset,
            description=f"Could not write cache snapshot {key}",
            details={"cache_key": key},
            error_message=error_message,
        )
