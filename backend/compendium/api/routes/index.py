"""
Artwork index API: search, lookup, stats, discovery batches and promotion.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from compendium.api.deps import get_batch_importer, get_index_store, get_indexer
from compendium.core.database import get_session
from compendium.core.errors import (
    IndexingError,
    RecordNotFoundError,
    RecordValidationError,
    TransientStorageError,
)
from compendium.schemas.artwork_index import (
    BatchResultOut,
    IndexArtworkResponse,
    IndexRecordOut,
    IndexStats,
    ReindexRequest,
    ReindexResponse,
    SearchResponse,
    StoreBatchRequest,
)
from compendium.services.batch_importer import BatchImporter
from compendium.services.cache import CacheService
from compendium.services.index_store import IndexStore
from compendium.services.indexer import ArtworkIndexer, IndexOutcome
from compendium.services.search import SearchFilters, search_indexed_artworks

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/index", tags=["index"])


def id_or_name(value: Optional[str]) -> int | str | None:
    """Numeric query values are ids, anything else a name/slug."""
    if value is None or value == "":
        return None
    return int(value) if value.isdigit() else value


def to_http_error(exc: IndexingError) -> HTTPException:
    if isinstance(exc, RecordNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, RecordValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, TransientStorageError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


@router.get("", response_model=SearchResponse, response_model_by_alias=True)
async def search_index(
    search: Optional[str] = Query(None, description="Substring of title, description, collection or artist"),
    artist: Optional[str] = Query(None, description="Artist id or name"),
    collection: Optional[str] = Query(None, description="Collection id, slug or name"),
    blockchain: Optional[str] = Query(None),
    tags: Optional[list[str]] = Query(None),
    min_edition_size: Optional[int] = Query(None, ge=0),
    max_edition_size: Optional[int] = Query(None, ge=0),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    sort_by: str = Query("id"),
    sort_direction: Literal["asc", "desc"] = Query("desc"),
    session: AsyncSession = Depends(get_session),
):
    """
    Filtered, paginated search over indexed artworks.

    Pages are cut in index order; sort_by / sort_direction reorder the
    returned page only.
    """
    filters = SearchFilters(
        search=search,
        artist=id_or_name(artist),
        collection=id_or_name(collection),
        blockchain=blockchain,
        tags=tags,
        min_edition_size=min_edition_size,
        max_edition_size=max_edition_size,
    )
    cache_params = dict(
        filters=filters.model_dump(exclude_none=True),
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_direction=sort_direction,
    )

    cached = await CacheService.get_cached_search(**cache_params)
    if cached:
        return cached

    result = await search_indexed_artworks(
        session,
        filters,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_direction=sort_direction,
    )
    response = result.to_response().model_dump(mode="json", by_alias=True)
    await CacheService.set_cached_search(response, **cache_params)
    return response


@router.get("/stats", response_model=IndexStats)
async def index_stats(store: IndexStore = Depends(get_index_store)):
    """Row counts per import status."""
    try:
        return await store.stats()
    except IndexingError as e:
        raise to_http_error(e)


@router.get("/{contract_address}/{token_id}", response_model=IndexRecordOut)
async def get_index_record(
    contract_address: str,
    token_id: str,
    store: IndexStore = Depends(get_index_store),
):
    try:
        row = await store.get(contract_address, token_id)
    except IndexingError as e:
        raise to_http_error(e)
    if row is None:
        raise to_http_error(
            RecordNotFoundError(f"No index record for {contract_address}:{token_id}")
        )

    record = IndexRecordOut.model_validate(row)
    normalized = store.get_normalized(row)
    record.normalized_data = normalized.to_document() if normalized else None
    return record


@router.post("/batch", response_model=BatchResultOut)
async def store_batch(
    body: StoreBatchRequest,
    importer: BatchImporter = Depends(get_batch_importer),
):
    """
    Store raw records (OpenSea, objkt or minimal shape) synchronously.

    Per-record failures are reported in `errors`; the request itself only
    fails for malformed bodies.
    """
    result = await importer.store_many(
        body.records, type=body.type, indexing_wallet=body.indexing_wallet
    )
    return BatchResultOut(**result.to_dict())


@router.post("/artworks/{artwork_id}", response_model=IndexArtworkResponse)
async def index_artwork(
    artwork_id: int,
    indexer: ArtworkIndexer = Depends(get_indexer),
):
    """Link an Artwork to its discovered index row and mark it imported."""
    try:
        outcome = await indexer.index_artwork(artwork_id)
    except IndexingError as e:
        raise to_http_error(e)

    if outcome == IndexOutcome.SKIPPED_MISSING:
        raise to_http_error(RecordNotFoundError(f"Artwork {artwork_id} not found"))
    return IndexArtworkResponse(artwork_id=artwork_id, outcome=outcome.value)


@router.post("/reindex", response_model=ReindexResponse)
async def reindex(
    body: ReindexRequest,
    indexer: ArtworkIndexer = Depends(get_indexer),
):
    """Re-run promotion for the given artworks, a collection, or everything."""
    try:
        counts = await indexer.reindex(
            artwork_ids=body.artwork_ids, collection_id=body.collection_id
        )
    except IndexingError as e:
        raise to_http_error(e)
    return ReindexResponse(**counts)
