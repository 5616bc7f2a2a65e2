"""
Service providers for the API layer.

One IndexStore / BatchImporter / JobStore per process, built on the shared
session factory. Tests swap them via app.dependency_overrides.
"""

from functools import lru_cache

from compendium.core.database import async_session
from compendium.services.batch_importer import BatchImporter, JobStore, RedisJobStore
from compendium.services.index_store import IndexStore
from compendium.services.indexer import ArtworkIndexer


@lru_cache
def get_index_store() -> IndexStore:
    return IndexStore(async_session)


@lru_cache
def get_job_store() -> JobStore:
    return RedisJobStore()


@lru_cache
def get_batch_importer() -> BatchImporter:
    return BatchImporter(get_index_store(), job_store=get_job_store())


@lru_cache
def get_indexer() -> ArtworkIndexer:
    return ArtworkIndexer(async_session, get_index_store())
