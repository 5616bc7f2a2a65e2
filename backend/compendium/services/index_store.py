"""
Index Store: upsert-by-natural-key persistence for ArtworkIndex rows.

The natural key is (contract_address, token_id), contract lowercased. The
unique constraint on that pair is the only guard against concurrent
upserts; an insert that loses the race re-reads the winner and updates it.

Rows are created only during discovery (store_nft). Promotion
(link_to_final_record) never fabricates a row; it logs and skips instead.
"""

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from compendium.core.errors import (
    NormalizationError,
    RecordValidationError,
    classify_storage_error,
)
from compendium.models import ArtworkIndex
from compendium.models.base import utcnow
from compendium.schemas.artwork_index import (
    IndexedArtworkData,
    IndexStats,
    NftType,
    Owner,
)
from compendium.schemas.nft import MinimalNftData
from compendium.services.cache import CacheService
from compendium.services.normalization.blockchain import (
    data_source_for,
    detect_blockchain_from_contract,
)
from compendium.services.normalization.normalizer import artwork_normalizer

logger = logging.getLogger(__name__)


def make_nft_uid(contract_address: Optional[str], token_id: Optional[str]) -> str:
    return f"{contract_address or 'unknown'}:{token_id or 'unknown'}"


def resolve_type(
    requested: NftType, creator_address: Optional[str], indexing_wallet: Optional[str]
) -> NftType:
    """'created' when the indexed wallet minted the token, else as requested."""
    if indexing_wallet and creator_address:
        if creator_address.lower() == indexing_wallet.lower():
            return "created"
    return requested


def merge_owners(existing: Any, indexing_wallet: Optional[str]) -> Optional[list[Owner]]:
    """Previously seen owners plus the wallet being indexed (case-insensitive)."""
    owners: list[Owner] = []
    for item in existing if isinstance(existing, list) else []:
        if not isinstance(item, dict) or not item.get("address"):
            continue
        try:
            owners.append(Owner(address=item["address"], quantity=item.get("quantity") or 1))
        except ValidationError:
            logger.warning("Dropping malformed owner entry: %.80r", item)

    if indexing_wallet and not any(
        o.address.lower() == indexing_wallet.lower() for o in owners
    ):
        # ERC721-style default
        owners.append(Owner(address=indexing_wallet, quantity=1))

    return owners or None


def parse_document(value: Any) -> Optional[dict]:
    """normalized_data as a dict, whether stored structured or as a JSON string."""
    if value is None:
        return None
    if isinstance(value, dict):
        return value
    if isinstance(value, (str, bytes)):
        try:
            parsed = json.loads(value)
        except ValueError:
            logger.error("Failed to parse normalized_data: %.80r", value)
            return None
        return parsed if isinstance(parsed, dict) else None
    return None


class IndexStore:
    """ArtworkIndex persistence. Every public method opens its own session."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: Optional[type[CacheService]] = CacheService,
    ):
        self.session_factory = session_factory
        self.cache = cache

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def store_nft(
        self,
        nft: MinimalNftData,
        type: NftType = "owned",
        indexing_wallet: Optional[str] = None,
        raw_response: Optional[dict] = None,
    ) -> int:
        """
        Upsert one discovered NFT and return its index row id.

        Existing row: refresh normalized_data and timestamps, upgrade the type
        owned → created (never the reverse). New row: insert as 'pending'.
        """
        if not nft.contract_address or not nft.token_id:
            raise RecordValidationError(
                f"Missing required fields: contract_address={nft.contract_address!r}, "
                f"token_id={nft.token_id!r}"
            )

        contract_address = nft.contract_address.lower()
        token_id = str(nft.token_id)
        uid = make_nft_uid(contract_address, token_id)
        blockchain = nft.blockchain or detect_blockchain_from_contract(contract_address)
        creator_address = nft.creator.address if nft.creator else None
        nft_type = resolve_type(type, creator_address, indexing_wallet)
        raw = raw_response if raw_response is not None else nft.to_payload()
        # column and document agree on the chain, search filters on the column
        nft = nft.model_copy(update={"blockchain": blockchain})

        try:
            async with self.session_factory() as session:
                row = await self._find(session, contract_address, token_id)

                if row is None:
                    row = ArtworkIndex(
                        nft_uid=uid,
                        type=nft_type,
                        blockchain=blockchain,
                        data_source=data_source_for(blockchain, "discovery"),
                        contract_address=contract_address,
                        token_id=token_id,
                        raw_response=raw,
                        normalized_data=self._discovery_document(nft, None, indexing_wallet),
                        import_status="pending",
                        last_attempt=utcnow(),
                    )
                    session.add(row)
                    try:
                        await session.commit()
                        logger.info("Created index record %s (type: %s)", uid, nft_type)
                    except IntegrityError:
                        # Lost the insert race: another writer created the key first
                        await session.rollback()
                        row = await self._find(session, contract_address, token_id)
                        if row is None:
                            raise
                        logger.info("Insert race on %s, updating winner row", uid)
                        self._apply_discovery_update(row, nft, nft_type, indexing_wallet)
                        await session.commit()
                else:
                    self._apply_discovery_update(row, nft, nft_type, indexing_wallet)
                    await session.commit()

                row_id = row.id
        except SQLAlchemyError as e:
            error = classify_storage_error(e)
            logger.error("Storage error for %s: %s", uid, error)
            raise error from e

        await self._invalidate()
        return row_id

    def _discovery_document(
        self, nft: MinimalNftData, existing: Optional[dict], indexing_wallet: Optional[str]
    ) -> dict:
        previous_owners = (existing or {}).get("owners")
        if previous_owners is None:
            previous_owners = (nft.model_extra or {}).get("owners")
        owners = merge_owners(previous_owners, indexing_wallet)
        try:
            return artwork_normalizer.normalize_nft(nft, owners).to_document()
        except ValidationError as e:
            raise NormalizationError(
                f"Could not build document for {nft.contract_address}:{nft.token_id}: "
                f"{e.error_count()} validation error(s)"
            ) from e

    def _apply_discovery_update(
        self,
        row: ArtworkIndex,
        nft: MinimalNftData,
        nft_type: NftType,
        indexing_wallet: Optional[str],
    ) -> None:
        now = utcnow()
        row.normalized_data = self._discovery_document(
            nft, parse_document(row.normalized_data), indexing_wallet
        )
        if nft.blockchain:
            row.blockchain = nft.blockchain
        row.last_attempt = now
        row.updated_at = now

        if row.type == "owned" and nft_type == "created":
            logger.info("Upgrading type owned → created for %s", row.nft_uid)
            row.type = "created"
        else:
            logger.debug("Updated existing index record %s (type: %s)", row.nft_uid, row.type)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, contract_address: str, token_id: str) -> Optional[ArtworkIndex]:
        try:
            async with self.session_factory() as session:
                return await self._find(session, contract_address.lower(), str(token_id))
        except SQLAlchemyError as e:
            raise classify_storage_error(e) from e

    @staticmethod
    def get_normalized(row: ArtworkIndex) -> Optional[IndexedArtworkData]:
        document = parse_document(row.normalized_data)
        if document is None:
            return None
        return IndexedArtworkData.model_validate(document)

    async def stats(self) -> IndexStats:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(ArtworkIndex.import_status, func.count(ArtworkIndex.id))
                    .group_by(ArtworkIndex.import_status)
                )
                counts = {status: count for status, count in result.all()}
        except SQLAlchemyError as e:
            raise classify_storage_error(e) from e

        return IndexStats(
            total=sum(counts.values()),
            pending=counts.get("pending", 0),
            imported=counts.get("imported", 0),
            failed=counts.get("failed", 0),
        )

    # ------------------------------------------------------------------
    # Promotion
    # ------------------------------------------------------------------

    async def link_to_final_record(
        self,
        contract_address: Optional[str],
        token_id: Optional[str],
        artwork_id: int,
        document: IndexedArtworkData,
        raw_response: Any = None,
        blockchain: Optional[str] = None,
    ) -> bool:
        """
        Link an existing index row to its Artwork and mark it imported.

        Returns False, without writing, when no row exists for the key.
        """
        contract_address = (contract_address or "unknown").lower()
        token_id = str(token_id) if token_id else "unknown"
        uid = make_nft_uid(contract_address, token_id)

        try:
            async with self.session_factory() as session:
                row = await self._find(session, contract_address, token_id)
                if row is None:
                    logger.warning(
                        "No index record for artwork %d (%s), skipping: "
                        "index records are only created during discovery",
                        artwork_id,
                        uid,
                    )
                    return False

                now = utcnow()
                row.artwork_id = artwork_id
                row.nft_uid = uid
                if blockchain:
                    row.blockchain = blockchain
                row.data_source = data_source_for(row.blockchain, "promotion")
                row.raw_response = raw_response
                row.normalized_data = document.to_document()
                row.import_status = "imported"
                row.error_message = None
                row.last_attempt = now
                row.updated_at = now
                await session.commit()
        except SQLAlchemyError as e:
            raise classify_storage_error(e) from e

        logger.info("Linked index record %s to artwork %d", uid, artwork_id)
        await self._invalidate()
        return True

    async def mark_failed(
        self, contract_address: Optional[str], token_id: Optional[str], message: str
    ) -> bool:
        contract_address = (contract_address or "unknown").lower()
        token_id = str(token_id) if token_id else "unknown"

        try:
            async with self.session_factory() as session:
                row = await self._find(session, contract_address, token_id)
                if row is None:
                    return False
                now = utcnow()
                row.import_status = "failed"
                row.error_message = message[:2000]
                row.last_attempt = now
                row.updated_at = now
                await session.commit()
        except SQLAlchemyError as e:
            raise classify_storage_error(e) from e

        await self._invalidate()
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _find(
        session: AsyncSession, contract_address: str, token_id: str
    ) -> Optional[ArtworkIndex]:
        result = await session.execute(
            select(ArtworkIndex).where(
                ArtworkIndex.contract_address == contract_address,
                ArtworkIndex.token_id == token_id,
            )
        )
        return result.scalar_one_or_none()

    async def _invalidate(self) -> None:
        if self.cache is not None:
            await self.cache.invalidate()
