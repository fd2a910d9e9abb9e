"""
Connectivity Probe

A bounded reachability check run before every remote operation.
It never raises: anything other than a timely success answer counts
as "unreachable".
"""

import asyncio
from typing import Optional

import structlog

from finance_grid.config import get_settings
from finance_grid.services.storage.interface import RemoteStoreInterface

logger = structlog.get_logger(__name__)


class ConnectivityProbe:
    """
    Wraps a remote store's health check with an overall time budget.

    With no remote store configured the probe always reports unreachable,
    which puts the orchestrator in offline mode.
    """

    def __init__(
        self,
        remote: Optional[RemoteStoreInterface],
        timeout_seconds: Optional[float] = None,
    ):
        self._remote = remote
        self._timeout = (
            timeout_seconds
            if timeout_seconds is not None
            else get_settings().remote.probe_timeout_seconds
        )
        self.last_result: Optional[bool] = None

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    async def check(self) -> bool:
        """Return True if the remote store answered its health check in time."""
        if self._remote is None:
            self.last_result = False
            return False

        try:
            reachable = bool(
                await asyncio.wait_for(self._remote.check_health(), self._timeout)
            )
        except asyncio.TimeoutError:
            logger.info("connectivity_probe_timeout", timeout_seconds=self._timeout)
            reachable = False
        except Exception as e:
            logger.info("connectivity_probe_failed", error=str(e))
            reachable = False

        self.last_result = reachable
        return reachable
