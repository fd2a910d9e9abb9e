"""
HTTP Remote Store Implementation

Talks to the remote store's REST contract for one dataset:

    GET    /{endpoint}/health
    GET    /{endpoint}
    POST   /{endpoint}            (row create, or whole-collection replace)
    PUT    /{endpoint}/{id}
    DELETE /{endpoint}/{id}

TRADEOFFS:
- No retries here. The orchestrator decides what a failure means
  (rollback, surface, or offline continuation).
- Identities are never sent in payloads; the store owns them.
"""

from typing import Any, Optional

import httpx
import structlog

from finance_grid.config import RemoteStoreSettings, get_settings
from finance_grid.models.datasets import DatasetSchema
from finance_grid.models.records import GridRecord
from finance_grid.services.storage.interface import (
    ConnectivityError,
    RemoteRequestError,
    RemoteStoreInterface,
)

logger = structlog.get_logger(__name__)


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Pull a human-readable message out of a failure response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "details"):
            if body.get(key):
                return str(body[key])
    return f"{fallback} ({response.status_code} {response.reason_phrase})".strip()


def _extract_identity(body: Any) -> Optional[str]:
    """
    Find the server-assigned identity in a create response.

    The store answers with {"data": {"_id": ...}}; bare {"_id": ...} and
    {"id": ...} are accepted too.
    """
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    if isinstance(data, dict):
        candidate = data.get("_id") or data.get("id")
        if candidate is not None:
            return str(candidate)
    candidate = body.get("_id") or body.get("id")
    return str(candidate) if candidate is not None else None


class HttpRemoteStore(RemoteStoreInterface):
    """
    httpx implementation of the remote store for one dataset.

    The timeout budget comes from RemoteStoreSettings unless a
    preconfigured client is passed in (tests pass one backed by
    httpx.MockTransport).
    """

    def __init__(
        self,
        dataset: DatasetSchema,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[RemoteStoreSettings] = None,
    ):
        self._dataset = dataset
        self._settings = settings or get_settings().remote
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=httpx.Timeout(self._settings.request_timeout_seconds),
            headers={"Accept": "application/json"},
        )

    @property
    def dataset(self) -> DatasetSchema:
        return self._dataset

    def _collection_path(self) -> str:
        return f"/{self._dataset.endpoint}"

    def _record_path(self, record_id: str) -> str:
        return f"/{self._dataset.endpoint}/{record_id}"

    async def _request(
        self,
        method: str,
        path: str,
        failure: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteRequestError(f"{failure}: {e}") from e
        if not response.is_success:
            raise RemoteRequestError(
                _error_message(response, failure),
                status_code=response.status_code,
            )
        return response

    async def check_health(self) -> bool:
        """Health check with the (shorter) probe timeout."""
        try:
            response = await self._client.get(
                f"{self._collection_path()}/health",
                timeout=self._settings.probe_timeout_seconds,
                headers={"Cache-Control": "no-store"},
            )
        except httpx.HTTPError as e:
            raise ConnectivityError(
                f"Remote store unreachable at {self._client.base_url}: {e}"
            ) from e
        return response.is_success

    async def list_records(self) -> list[dict[str, Any]]:
        response = await self._request(
            "GET",
            self._collection_path(),
            f"Failed to fetch {self._dataset.name} from backend",
        )
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteRequestError(
                f"Backend returned a non-JSON body for {self._dataset.name}"
            ) from e
        # Some collections arrive wrapped as {"items": [...]}
        if isinstance(body, dict) and isinstance(body.get("items"), list):
            body = body["items"]
        if not isinstance(body, list):
            raise RemoteRequestError(
                f"Backend returned {type(body).__name__} instead of a list "
                f"for {self._dataset.name}"
            )
        return body

    async def create_record(self, record: GridRecord) -> str:
        response = await self._request(
            "POST",
            self._collection_path(),
            f"Failed to add {self._dataset.name} record in backend",
            json=record.to_wire(include_identity=False),
        )
        try:
            body = response.json()
        except ValueError:
            body = None
        remote_id = _extract_identity(body)
        if remote_id is None:
            raise RemoteRequestError(
                "Backend created the record but did not return its identity",
                status_code=response.status_code,
            )
        return remote_id

    async def replace_record(self, record: GridRecord) -> None:
        await self._request(
            "PUT",
            self._record_path(record.id),
            f"Failed to update {self._dataset.name} record in backend",
            json=record.to_wire(include_identity=False),
        )

    async def delete_record(self, record_id: str) -> None:
        await self._request(
            "DELETE",
            self._record_path(record_id),
            f"Failed to delete {self._dataset.name} record in backend",
        )

    async def replace_collection(self, records: list[GridRecord]) -> None:
        payload = [record.to_wire(include_identity=False) for record in records]
        await self._request(
            "POST",
            self._collection_path(),
            f"Failed to save {self._dataset.name} data",
            json=payload,
        )
        logger.debug(
            "collection_replaced",
            dataset=self._dataset.name,
            record_count=len(payload),
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
