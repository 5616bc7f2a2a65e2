"""
Artwork indexer: promotes discovered index rows once a final Artwork exists.

State machine per index row:

  pending ──(artwork found, normalized, row exists)──► imported
  pending ──(artwork vanished / normalization error)──► pending  (no-op, logged)
  pending ──(storage error while linking)──► failed              (error re-raised)

Nothing here moves a row from failed back to pending; re-running a batch
import (or reindex) does that.
"""

import enum
import logging
from collections import Counter
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from compendium.core.errors import StorageError, classify_storage_error
from compendium.models import Artwork
from compendium.schemas.artwork_index import NftType
from compendium.services.index_store import IndexStore
from compendium.services.normalization.adapters import adapt
from compendium.services.normalization.blockchain import ETHEREUM
from compendium.services.normalization.normalizer import ArtworkNormalizer, artwork_normalizer

logger = logging.getLogger(__name__)


class IndexOutcome(str, enum.Enum):
    IMPORTED = "imported"
    SKIPPED_MISSING = "skipped_missing"
    SKIPPED_UNLINKED = "skipped_unlinked"
    SKIPPED_INVALID = "skipped_invalid"
    FAILED = "failed"


class ArtworkIndexer:
    """Links Artwork records to their index rows, one artwork at a time."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        store: IndexStore,
        normalizer: ArtworkNormalizer = artwork_normalizer,
    ):
        self.session_factory = session_factory
        self.store = store
        self.normalizer = normalizer

    async def index_artwork(self, artwork_id: int) -> IndexOutcome:
        """
        Normalize one Artwork and link it to its discovered index row.

        Raises StorageError (after marking the row failed) when the link
        itself cannot be persisted.
        """
        try:
            async with self.session_factory() as session:
                artwork = await self.normalizer.load_artwork(session, artwork_id)
                if artwork is None:
                    logger.error("Artwork %d not found for indexing", artwork_id)
                    return IndexOutcome.SKIPPED_MISSING

                try:
                    document = self.normalizer.normalize_artwork(artwork)
                except (ValueError, TypeError, AttributeError) as e:
                    logger.error(
                        "Normalization failed for artwork %d, skipping indexing: %s",
                        artwork_id,
                        e,
                    )
                    return IndexOutcome.SKIPPED_INVALID

                contract_address = artwork.contract_address
                token_id = artwork.token_id
                blockchain = (artwork.blockchain or ETHEREUM).lower()
                raw_response = artwork.attributes
        except SQLAlchemyError as e:
            raise classify_storage_error(e) from e

        try:
            linked = await self.store.link_to_final_record(
                contract_address,
                token_id,
                artwork_id,
                document,
                raw_response=raw_response,
                blockchain=blockchain,
            )
        except StorageError as e:
            logger.error("Failed to link artwork %d: %s", artwork_id, e)
            await self._mark_failed_quietly(contract_address, token_id, str(e))
            raise

        return IndexOutcome.IMPORTED if linked else IndexOutcome.SKIPPED_UNLINKED

    async def index_all(self) -> dict[str, int]:
        """Index every Artwork, in id order."""
        return await self.reindex()

    async def reindex(
        self,
        artwork_ids: Optional[list[int]] = None,
        collection_id: Optional[int] = None,
    ) -> dict[str, int]:
        """
        Re-run index_artwork over a selection of artworks.

        No filters means all artworks. A storage failure on one artwork is
        counted as failed and the loop moves on.
        """
        query = select(Artwork.id).order_by(Artwork.id)
        if artwork_ids:
            query = query.where(Artwork.id.in_(artwork_ids))
        if collection_id:
            query = query.where(Artwork.collection_id == collection_id)

        try:
            async with self.session_factory() as session:
                ids = list((await session.execute(query)).scalars())
        except SQLAlchemyError as e:
            raise classify_storage_error(e) from e

        counts: Counter = Counter({outcome.value: 0 for outcome in IndexOutcome})
        for artwork_id in ids:
            try:
                outcome = await self.index_artwork(artwork_id)
            except StorageError:
                outcome = IndexOutcome.FAILED
            counts[outcome.value] += 1

        logger.info("Reindexed %d artworks: %s", len(ids), dict(counts))
        return dict(counts)

    async def ingest(
        self,
        raw: dict,
        type: NftType = "owned",
        indexing_wallet: Optional[str] = None,
    ) -> int:
        """Discovery path: adapt a raw source payload and upsert it."""
        nft = adapt(raw)
        return await self.store.store_nft(
            nft, type=type, indexing_wallet=indexing_wallet, raw_response=raw
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _mark_failed_quietly(
        self, contract_address: Optional[str], token_id: Optional[str], message: str
    ) -> None:
        try:
            await self.store.mark_failed(contract_address, token_id, message)
        except StorageError as e:
            logger.warning("Could not mark %s:%s as failed: %s", contract_address, token_id, e)
