"""Async client for the catalog service (surgeries, doctors, implants, hospitals).

Every fetch returns a :class:`CatalogResult` rather than raising, because a
catalog outage must not end the journey:

- procedures and implants degrade to the built-in catalogs in
  :mod:`app.services.static_catalog` and carry a notice;
- surgeons and hospitals have no fallback; the result is empty and marked
  ``retryable`` so the stage can show an empty state with a retry button.

Fetches are scoped to the stage that started them through :class:`StageScope`.
Once the patient leaves the stage the scope is closed: in-flight requests are
cancelled and any late result is dropped instead of reaching a stage that is
no longer shown.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, List, Optional, Set, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..core.config import settings
from ..schemas.catalog import Addon, CatalogResult, Facility, Procedure, Provider
from .static_catalog import FALLBACK_PROCEDURES, fallback_addons

logger = logging.getLogger(__name__)

T = TypeVar("T")
RecordT = TypeVar("RecordT", bound=BaseModel)


class CatalogUnavailableError(Exception):
    """The catalog service could not be reached or returned garbage."""


class StageScope:
    """Cancellation token tied to one stage's lifetime."""

    def __init__(self, stage: str) -> None:
        self.stage = stage
        self._closed = False
        self._tasks: Set[asyncio.Future] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(self, awaitable: Awaitable[T]) -> Optional[T]:
        """Await ``awaitable`` unless the scope closes first.

        Returns ``None`` when the result arrives after :meth:`close`.
        """
        if self._closed:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.debug("Stage %s already closed; fetch not started", self.stage)
            return None
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        try:
            result = await task
        except asyncio.CancelledError:
            if self._closed:
                logger.debug("Fetch for stage %s cancelled on close", self.stage)
                return None
            raise
        finally:
            self._tasks.discard(task)
        if self._closed:
            logger.info("Dropping stale catalog result for closed stage %s", self.stage)
            return None
        return result

    def close(self) -> None:
        self._closed = True
        for task in list(self._tasks):
            task.cancel()

    async def __aenter__(self) -> "StageScope":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


async def _get_json(path: str, params: Optional[dict] = None) -> Any:
    url = f"{settings.CATALOG_API_URL}{path}"
    try:
        async with httpx.AsyncClient(timeout=settings.COLLABORATOR_TIMEOUT) as client:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Catalog request %s failed: %s", url, exc)
        raise CatalogUnavailableError(f"Catalog service unreachable ({path})") from exc
    try:
        return resp.json()
    except ValueError as exc:
        logger.warning("Catalog request %s returned invalid JSON: %s", url, exc)
        raise CatalogUnavailableError(f"Invalid response from catalog service ({path})") from exc


def _parse_records(payload: Any, model: Type[RecordT]) -> List[RecordT]:
    rows = payload
    if isinstance(payload, dict):
        rows = payload.get("data", payload.get("items"))
    if not isinstance(rows, list):
        raise CatalogUnavailableError(f"Unexpected {model.__name__} catalog payload")
    records: List[RecordT] = []
    for row in rows:
        try:
            records.append(model.model_validate(row))
        except ValidationError as exc:
            logger.warning("Skipping malformed %s record: %s", model.__name__, exc.errors())
    return records


async def fetch_procedures() -> CatalogResult:
    try:
        items = _parse_records(await _get_json("/surgeries"), Procedure)
    except CatalogUnavailableError as exc:
        return CatalogResult(
            kind="procedures",
            items=list(FALLBACK_PROCEDURES),
            degraded=True,
            notice=f"{exc}. Showing our standard procedure list.",
        )
    return CatalogResult(kind="procedures", items=items)


async def fetch_providers() -> CatalogResult:
    try:
        items = _parse_records(await _get_json("/doctors"), Provider)
    except CatalogUnavailableError as exc:
        return CatalogResult(kind="providers", retryable=True, notice=str(exc))
    return CatalogResult(kind="providers", items=items)


async def fetch_addons(procedure_category: Optional[str] = None) -> CatalogResult:
    params = {"surgery_type": procedure_category} if procedure_category else None
    try:
        items = _parse_records(await _get_json("/implants", params=params), Addon)
    except CatalogUnavailableError as exc:
        return CatalogResult(
            kind="addons",
            items=fallback_addons(procedure_category),
            degraded=True,
            notice=f"{exc}. Showing standard implant options.",
        )
    return CatalogResult(kind="addons", items=items)


async def fetch_facilities() -> CatalogResult:
    try:
        items = _parse_records(await _get_json("/hospitals"), Facility)
    except CatalogUnavailableError as exc:
        return CatalogResult(kind="facilities", retryable=True, notice=str(exc))
    return CatalogResult(kind="facilities", items=items)


FETCHERS = {
    "procedures": fetch_procedures,
    "providers": fetch_providers,
    "addons": fetch_addons,
    "facilities": fetch_facilities,
}
