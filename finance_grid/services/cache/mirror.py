"""
Durable Cache Mirror

Full-snapshot local persistence of each dataset, keyed by a
human-readable name (`projectData`, `financialSummaryData`, ...).

The file mirror writes each snapshot to a temporary file in the same
directory and then atomically replaces the target, so a reader never
sees half a snapshot.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import structlog

from finance_grid.services.storage.interface import CacheMirrorInterface, StorageError

logger = structlog.get_logger(__name__)


class JsonFileCacheMirror(CacheMirrorInterface):
    """One `<key>.json` file per dataset under a directory."""

    def __init__(self, directory: Path):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def read(self, key: str) -> Optional[list[dict[str, Any]]]:
        path = self.path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("cache_read_failed", key=key, path=str(path), error=str(e))
            return None

        try:
            rows = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("cache_snapshot_corrupt", key=key, path=str(path), error=str(e))
            return None

        if not isinstance(rows, list):
            logger.warning(
                "cache_snapshot_corrupt",
                key=key,
                path=str(path),
                error=f"expected a list, found {type(rows).__name__}",
            )
            return None
        return rows

    def write(self, key: str, rows: list[dict[str, Any]]) -> None:
        path = self.path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._directory, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(rows, handle, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write cache snapshot {key}: {e}") from e


class InMemoryCacheMirror(CacheMirrorInterface):
    """
    Process-local mirror.

    Used when disk persistence is disabled, and in tests. Rows are
    round-tripped through JSON so callers can't alias stored snapshots.
    """

    def __init__(self):
        self._snapshots: dict[str, str] = {}

    def read(self, key: str) -> Optional[list[dict[str, Any]]]:
        raw = self._snapshots.get(key)
        return json.loads(raw) if raw is not None else None

    def write(self, key: str, rows: list[dict[str, Any]]) -> None:
        try:
            self._snapshots[key] = json.dumps(rows)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Failed to write cache snapshot {key}: {e}") from e

    def keys(self) -> list[str]:
        return sorted(self._snapshots)
