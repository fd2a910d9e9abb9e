"""Cell editing package."""

from finance_grid.editing.session import (
    CellEditSession,
    CommitResult,
    CommitTrigger,
    EditDraft,
    EditState,
)

__all__ = [
    "CellEditSession",
    "CommitResult",
    "CommitTrigger",
    "EditDraft",
    "EditState",
]
