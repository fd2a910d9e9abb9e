"""
Data Models Package

Pydantic models for records, dataset definitions, sync outcomes and
sync events. All data flowing through the engine conforms to these.
"""

from finance_grid.models.datasets import (
    DATASETS,
    FINANCIAL_SUMMARY,
    PROJECTS,
    SUBSCRIPTION_REVENUE,
    DatasetSchema,
    get_dataset,
)
from finance_grid.models.events import (
    SyncEvent,
    SyncEventBuilder,
    SyncEventType,
    SyncSeverity,
)
from finance_grid.models.records import (
    FieldKind,
    FinancialSummaryRecord,
    GridRecord,
    ProjectRecord,
    ProjectStatus,
    SubscriptionRevenueRecord,
)
from finance_grid.models.sync import (
    ErrorKind,
    LoadResult,
    LoadSource,
    RemovalRequest,
    RemovalResponse,
    SubmitStatus,
    SyncError,
    SyncOperation,
    SyncOutcome,
    SyncStatus,
)

__all__ = [
    # Datasets
    "DATASETS",
    "FINANCIAL_SUMMARY",
    "PROJECTS",
    "SUBSCRIPTION_REVENUE",
    "DatasetSchema",
    "get_dataset",
    # Records
    "FieldKind",
    "FinancialSummaryRecord",
    "GridRecord",
    "ProjectRecord",
    "ProjectStatus",
    "SubscriptionRevenueRecord",
    # Sync
    "ErrorKind",
    "LoadResult",
    "LoadSource",
    "RemovalRequest",
    "RemovalResponse",
    "SubmitStatus",
    "SyncError",
    "SyncOperation",
    "SyncOutcome",
    "SyncStatus",
    # Events
    "SyncEvent",
    "SyncEventBuilder",
    "SyncEventType",
    "SyncSeverity",
]
