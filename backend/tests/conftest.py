"""
Shared fixtures: a fresh in-memory SQLite database per test.

StaticPool keeps every session on the same connection, otherwise each
connection would see its own empty in-memory database.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from compendium.models import Base
from compendium.schemas.nft import MinimalNftData
from compendium.services.index_store import IndexStore


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def store(session_factory):
    return IndexStore(session_factory, cache=None)


@pytest.fixture
def make_nft():
    def _make(contract="0xABCDEFabcdef0000000000000000000000000001", token="1", **extra):
        return MinimalNftData(contract_address=contract, token_id=token, **extra)

    return _make
