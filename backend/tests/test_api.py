"""
Route-level tests: routers mounted on a bare app, services swapped for
ones bound to the per-test SQLite database.
"""

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from compendium.api import deps
from compendium.api.routes.index import router as index_router
from compendium.api.routes.jobs import router as jobs_router
from compendium.api.routes.settings import router as settings_router
from compendium.core.database import get_session
from compendium.services.batch_importer import BatchImporter, InMemoryJobStore
from compendium.services.indexer import ArtworkIndexer

CONTRACT = "0x" + "b" * 40


@pytest.fixture
def job_store():
    return InMemoryJobStore()


@pytest.fixture
def app(session_factory, store, job_store):
    app = FastAPI()
    app.include_router(index_router, prefix="/api/v1")
    app.include_router(jobs_router, prefix="/api/v1")
    app.include_router(settings_router, prefix="/api/v1")

    async def _session():
        async with session_factory() as session:
            yield session

    importer = BatchImporter(
        store, retry_delay=0, chunk_delay=0, job_store=job_store, sleep=AsyncMock()
    )
    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[deps.get_index_store] = lambda: store
    app.dependency_overrides[deps.get_job_store] = lambda: job_store
    app.dependency_overrides[deps.get_batch_importer] = lambda: importer
    app.dependency_overrides[deps.get_indexer] = lambda: ArtworkIndexer(session_factory, store)
    return app


@pytest.fixture
def cache():
    with patch("compendium.api.routes.index.CacheService") as cache:
        cache.get_cached_search = AsyncMock(return_value=None)
        cache.set_cached_search = AsyncMock()
        yield cache


@pytest_asyncio.fixture
async def client(app, cache):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


def _records(n):
    return [
        {"contractAddress": CONTRACT, "tokenId": str(i), "title": f"Piece {i}"}
        for i in range(n)
    ]


async def test_batch_then_lookup(client):
    resp = await client.post("/api/v1/index/batch", json={"records": _records(2)})
    assert resp.status_code == 200
    body = resp.json()
    assert body["stored"] == 2
    assert body["errors"] == []
    assert body["success_rate"] == 1.0

    resp = await client.get(f"/api/v1/index/{CONTRACT.upper()}/1")
    assert resp.status_code == 200
    record = resp.json()
    assert record["contract_address"] == CONTRACT
    assert record["import_status"] == "pending"
    assert record["normalized_data"]["title"] == "Piece 1"


async def test_batch_reports_skipped_records(client):
    records = _records(1) + [{"contractAddress": CONTRACT}]
    resp = await client.post("/api/v1/index/batch", json={"records": records})

    body = resp.json()
    assert body["stored"] == 1
    assert body["skipped"] == 1


async def test_lookup_unknown_record_is_404(client):
    resp = await client.get(f"/api/v1/index/{CONTRACT}/999")
    assert resp.status_code == 404
    assert resp.json()["detail"] == f"No index record for {CONTRACT}:999"


async def test_stats_counts_pending_rows(client):
    await client.post("/api/v1/index/batch", json={"records": _records(3)})

    resp = await client.get("/api/v1/index/stats")

    assert resp.json() == {"total": 3, "pending": 3, "imported": 0, "failed": 0}


async def test_search_paginates_and_fills_cache(client, cache):
    await client.post("/api/v1/index/batch", json={"records": _records(5)})

    resp = await client.get("/api/v1/index", params={"page": 2, "page_size": 2})

    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"] == {
        "page": 2,
        "pageSize": 2,
        "totalCount": 5,
        "totalPages": 3,
    }
    assert len(body["items"]) == 2
    cache.set_cached_search.assert_awaited_once()


async def test_search_filters_by_text(client):
    await client.post("/api/v1/index/batch", json={"records": _records(12)})

    resp = await client.get("/api/v1/index", params={"search": "piece 1"})

    titles = sorted(item["title"] for item in resp.json()["items"])
    assert titles == ["Piece 1", "Piece 10", "Piece 11"]


async def test_search_served_from_cache(client, cache):
    cached = {"items": [], "pagination": {"page": 1, "pageSize": 20, "totalCount": 0, "totalPages": 0}}
    cache.get_cached_search.return_value = cached

    resp = await client.get("/api/v1/index")

    assert resp.json() == cached
    cache.set_cached_search.assert_not_awaited()


async def test_index_missing_artwork_is_404(client):
    resp = await client.post("/api/v1/index/artworks/12345")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Artwork 12345 not found"


async def test_job_runs_in_background(client):
    resp = await client.post("/api/v1/jobs", json={"records": _records(3)})
    assert resp.status_code == 202
    job_id = resp.json()["id"]

    # the ASGI transport finishes background tasks before returning
    resp = await client.get(f"/api/v1/jobs/{job_id}")
    body = resp.json()
    assert body["status"] == "completed"
    assert body["stored"] == 3
    assert body["progress"] == 1.0


async def test_unknown_job_is_404(client):
    resp = await client.get("/api/v1/jobs/nope")
    assert resp.status_code == 404


async def test_wallet_settings_roundtrip(client):
    resp = await client.post("/api/v1/settings/wallets", json={"address": CONTRACT, "alias": "main"})
    assert resp.status_code == 201
    [entry] = resp.json()
    assert entry["blockchain"] == "ethereum"
    assert "createdAt" in entry

    resp = await client.delete(f"/api/v1/settings/wallets/ethereum/{CONTRACT}")
    assert resp.json() == []


async def test_invalid_wallet_is_422(client):
    resp = await client.post("/api/v1/settings/wallets", json={"address": "not-a-wallet"})
    assert resp.status_code == 422


async def test_search_blockchain_filter_uses_row_chain(client):
    tezos = [{"contractAddress": "KT1RJ6PbjHpwc3M5rw5s2Nbmefwbuwbdxton", "tokenId": "9", "title": "Tez"}]
    await client.post("/api/v1/index/batch", json={"records": _records(2) + tezos})

    resp = await client.get("/api/v1/index", params={"blockchain": "tezos"})

    items = resp.json()["items"]
    assert [item["title"] for item in items] == ["Tez"]
    assert items[0]["blockchain"] == "tezos"
