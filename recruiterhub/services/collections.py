from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from recruiterhub.core.config import settings
from recruiterhub.schemas.candidate import CandidateRecord
from recruiterhub.schemas.client import ClientRecord, RecruiterRecord
from recruiterhub.schemas.dashboard import FetchNotice
from recruiterhub.schemas.interview import ScheduledInterview
from recruiterhub.schemas.job import JobRecord
from recruiterhub.services.drilldown import EntityCollections

logger = logging.getLogger("rh.snapshot")

# Collection endpoint -> record schema. Interviews stay raw so one bad row only skips that row.
COLLECTION_SCHEMAS: dict[str, type[BaseModel] | None] = {
    "candidates": CandidateRecord,
    "jobs": JobRecord,
    "clients": ClientRecord,
    "recruiters": RecruiterRecord,
    "interviews": None,
}


class CollectionFetchError(RuntimeError):
    def __init__(self, collection: str, message: str) -> None:
        super().__init__(f"{collection}: {message}")
        self.collection = collection
        self.message = message


class CollectionClient:
    """Reads full collections from the CRUD backend. Every read is a complete snapshot."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        token = settings.collections_token if token is None else token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.collections_base_url).rstrip("/"),
            headers=headers,
            timeout=timeout or settings.fetch_timeout_seconds,
            transport=transport,
        )

    async def fetch(self, collection: str) -> list[dict[str, Any]]:
        try:
            response = await self._client.get(f"/{collection}")
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise CollectionFetchError(collection, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise CollectionFetchError(collection, str(exc) or exc.__class__.__name__) from exc
        except ValueError as exc:
            raise CollectionFetchError(collection, "response is not valid JSON") from exc
        if isinstance(data, dict):
            # Some endpoints wrap the list: {"data": [...]} or {"<collection>": [...]}.
            data = data.get("data", data.get(collection))
        if not isinstance(data, list):
            raise CollectionFetchError(collection, "expected a JSON array")
        return [row for row in data if isinstance(row, dict)]

    async def aclose(self) -> None:
        await self._client.aclose()


def _row_id(row: dict[str, Any]) -> str:
    return str(row.get("id") or row.get("_id") or repr(row)[:80])


def _validate_rows(
    collection: str,
    rows: list[dict[str, Any]],
    reported: set[str] | None = None,
) -> tuple[list[Any], int]:
    """Validate row by row. Invalid rows are skipped and logged once per record."""
    schema = COLLECTION_SCHEMAS[collection]
    if schema is None:
        return rows, 0
    reported = set() if reported is None else reported
    valid: list[Any] = []
    skipped = 0
    for row in rows:
        try:
            valid.append(schema.model_validate(row))
        except ValidationError as exc:
            skipped += 1
            key = f"{collection}:{_row_id(row)}"
            if key not in reported:
                reported.add(key)
                logger.warning(
                    "collection_record_invalid",
                    extra={"collection": collection, "record_id": key, "error": exc.errors()[0].get("msg")},
                )
    return valid, skipped


async def load_collections(
    client: CollectionClient,
    *,
    reported: set[str] | None = None,
) -> tuple[EntityCollections, list[dict[str, Any]], list[FetchNotice]]:
    """
    Fetch every collection concurrently. A failed collection is returned empty together
    with a notice; the other collections are unaffected. Records that fail validation
    are left out of their collection and counted in a non-fatal notice.
    """
    names = list(COLLECTION_SCHEMAS)
    results = await asyncio.gather(*(client.fetch(name) for name in names), return_exceptions=True)

    loaded: dict[str, list[Any]] = {}
    notices: list[FetchNotice] = []
    for name, result in zip(names, results):
        if isinstance(result, CollectionFetchError):
            logger.warning("collection_fetch_failed", extra={"collection": name, "error": result.message})
            notices.append(FetchNotice(kind=name, message=f"Could not load {name}: {result.message}"))
            loaded[name] = []
            continue
        if isinstance(result, BaseException):
            raise result
        loaded[name], skipped = _validate_rows(name, result, reported)
        if skipped:
            notices.append(
                FetchNotice(
                    kind=name,
                    message=f"Skipped {skipped} invalid {name} record(s).",
                    failed=False,
                    skipped=skipped,
                )
            )

    collections = EntityCollections(
        candidates=loaded["candidates"],
        jobs=loaded["jobs"],
        clients=loaded["clients"],
        recruiters=loaded["recruiters"],
    )
    return collections, loaded["interviews"], notices
