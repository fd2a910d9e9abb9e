"""Sync event logging package."""

from finance_grid.audit.logger import SyncEventLogger

__all__ = ["SyncEventLogger"]
