"""
Synchronization Models

Outcomes, surfaced errors and the removal confirmation exchange.
These are what the orchestrator hands back to the presentation layer.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class SyncOperation(str, Enum):
    """Operations the orchestrator sequences."""
    LOAD = "load"
    CREATE = "create"
    UPDATE = "update"
    REMOVE = "remove"
    SUBMIT = "submit"
    RECONNECT = "reconnect"


class SyncStatus(str, Enum):
    """
    How an operation ended.

    ROLLED_BACK means the optimistic change was undone; FAILED means the
    error was surfaced and local state was left as it was.
    """
    SYNCED = "synced"
    OFFLINE = "offline"            # Store unreachable, local change kept
    LOCAL_ONLY = "local_only"      # Dataset has no per-row endpoints
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"
    CANCELLED = "cancelled"        # Removal not confirmed


class SubmitStatus(str, Enum):
    """Bulk submit progress, observed by the UI."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class LoadSource(str, Enum):
    """Where the current collection came from."""
    REMOTE = "remote"
    CACHE = "cache"
    DEFAULTS = "defaults"


class ErrorKind(str, Enum):
    CONNECTIVITY = "connectivity"
    VALIDATION = "validation"
    REMOTE_REQUEST = "remote_request"
    INDEX = "index"
    FIELD = "field"


class SyncOutcome(BaseModel):
    """Result of one orchestrator operation."""

    operation: SyncOperation
    status: SyncStatus
    record_id: Optional[str] = Field(
        default=None,
        description="Identity of the affected record (post-sync identity for creates)"
    )
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (
            SyncStatus.SYNCED,
            SyncStatus.OFFLINE,
            SyncStatus.LOCAL_ONLY,
        )


class LoadResult(BaseModel):
    """What Record Store load() ended up using, and why."""

    source: LoadSource
    record_count: int = Field(ge=0)
    error_message: Optional[str] = Field(
        default=None,
        description="Remote failure that forced a fallback, if any"
    )


class SyncError(BaseModel):
    """The single surfaced error the presentation layer shows."""

    kind: ErrorKind
    message: str
    operation: Optional[SyncOperation] = None
    occurred_at: datetime = Field(default_factory=datetime.utcnow)


class RemovalRequest(BaseModel):
    """
    Ask the user to confirm removing a row.

    Carries the record identity so a stale confirmation (the row moved or
    disappeared meanwhile) can be detected.
    """

    request_id: UUID = Field(default_factory=uuid4)
    index: int = Field(ge=0)
    record_id: str
    prompt: str


class RemovalResponse(BaseModel):
    """The user's answer to a RemovalRequest."""

    request: RemovalRequest
    confirmed: bool
