from typing import List, Literal, Optional
import asyncio
import logging

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from ..schemas.catalog import CatalogResult, Provider
from ..services import catalog_client
from ..services.catalog_client import StageScope
from ..services.provider_filters import ProviderFilters, select_providers

router = APIRouter(tags=["catalog"])
logger = logging.getLogger(__name__)

DISCONNECT_POLL_SECONDS = 0.25


class ProviderSearchIn(BaseModel):
    providers: List[Provider]
    filters: ProviderFilters = Field(default_factory=ProviderFilters)


async def close_on_disconnect(request: Request, scope: StageScope) -> None:
    """Close ``scope`` once the client that opened the stage goes away."""
    while not scope.closed:
        if await request.is_disconnected():
            logger.info("Client left stage %s; cancelling catalog fetch", scope.stage)
            scope.close()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@router.get("/catalog/{kind}", response_model=CatalogResult)
async def read_catalog(
    request: Request,
    kind: Literal["procedures", "providers", "addons", "facilities"],
    procedure_category: Optional[str] = Query(None, max_length=64),
):
    """Fetch one candidate list, degrading to the built-in catalog where one exists.

    The fetch is bound to the request: if the client disconnects first, the
    in-flight call is cancelled and its late result is dropped.
    """
    async with StageScope(kind) as scope:
        watcher = asyncio.create_task(close_on_disconnect(request, scope))
        try:
            if kind == "addons":
                result = await scope.run(catalog_client.fetch_addons(procedure_category))
            else:
                result = await scope.run(catalog_client.FETCHERS[kind]())
        finally:
            watcher.cancel()
    if result is None:
        # Nobody is listening any more; answer with an empty retryable list.
        return CatalogResult(kind=kind, retryable=True, notice="Request cancelled")
    if result.degraded or result.retryable:
        logger.warning("Catalog %s degraded: %s", kind, result.notice)
    return result


@router.post("/providers/search", response_model=List[Provider])
def search_providers(payload: ProviderSearchIn):
    """Filter an already-fetched surgeon list and rank the matches."""
    return select_providers(payload.providers, payload.filters)
