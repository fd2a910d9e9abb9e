"""
Sync Event Logger

DESIGN DECISION: Every step the orchestrator takes is logged.
This provides:
1. A trace of optimistic changes and how they were settled
2. Visibility into rollbacks and offline continuations
3. Debugging capability when the remote store misbehaves

The logger:
- Writes structured events through structlog
- Keeps a bounded in-memory history the UI can show
- Never raises into the sync flow
"""

from collections import deque
from typing import Optional

import structlog

from finance_grid.models.events import SyncEvent, SyncSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class SyncEventLogger:
    """
    Central sync event logging service.

    Logs events both to:
    1. Structured local log
    2. An in-memory ring of recent events
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("finance_grid.sync")
        self._history: deque[SyncEvent] = deque(maxlen=history_size)

    def log(self, event: SyncEvent) -> None:
        """Log a sync event at its own severity."""
        self._history.append(event)
        log_dict = event.to_log_dict()

        if event.severity == SyncSeverity.ERROR:
            self._logger.error("sync_event", **log_dict)
        elif event.severity == SyncSeverity.WARNING:
            self._logger.warning("sync_event", **log_dict)
        elif event.severity == SyncSeverity.DEBUG:
            self._logger.debug("sync_event", **log_dict)
        else:
            self._logger.info("sync_event", **log_dict)

    def recent_events(
        self,
        limit: Optional[int] = None,
        dataset: Optional[str] = None,
    ) -> list[SyncEvent]:
        """Most recent events first."""
        events = [
            event for event in reversed(self._history)
            if dataset is None or event.dataset == dataset
        ]
        return events[:limit] if limit is not None else events

    def clear(self) -> None:
        self._history.clear()
