"""
Artwork → IndexedArtworkData normalization.

Two entry points producing the same canonical document:

  normalize_artwork  final Artwork record (with collection and
                     wallet-address → artist relations loaded)
  normalize_nft      discovery-time MinimalNftData from an adapter

Both are pure and deterministic; only load_and_normalize touches storage.
"""

import logging
import re
from collections.abc import Iterable
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from compendium.models import Artwork, WalletAddress
from compendium.schemas.artwork_index import (
    ArtistRef,
    Attribute,
    CollectionRef,
    IndexedArtworkData,
    Owner,
)
from compendium.schemas.nft import MinimalNftData

logger = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"(\d+)")
_N_OF_M_RE = re.compile(r"(\d+)\s*(?:of|/)\s*(\d+)", re.IGNORECASE)


class ArtworkNormalizer:
    """
    Builds IndexedArtworkData documents.

    Handles:
    - Attribute flattening (missing keys → "")
    - Edition size extraction from an "Edition Size"-like trait
    - Collection fallback from the contract address
    - Artist de-duplication across wallet addresses
    """

    @staticmethod
    def flatten_attributes(raw: Any) -> list[Attribute]:
        """
        Flatten any iterable of attribute-like objects.

        Examples:
            [{"trait_type": "Color", "value": "Red"}] → [Attribute("Color", "Red")]
            [{"value": 3}]                             → [Attribute("", 3)]
            None                                       → []
        """
        if not raw or isinstance(raw, (str, bytes, dict)):
            return []
        if not isinstance(raw, Iterable):
            return []

        result = []
        for item in raw:
            if isinstance(item, Attribute):
                result.append(item)
                continue
            if not isinstance(item, dict):
                continue
            trait_type = item.get("trait_type")
            value = item.get("value")
            result.append(Attribute(
                trait_type="" if trait_type is None else str(trait_type),
                value="" if value is None else value,
            ))
        return result

    @staticmethod
    def extract_edition_size(attributes: list[Attribute]) -> Optional[int]:
        """
        Integer value of the first "edition ... size" trait.

        "N of M" values describe one print of M, so M is the size; anything
        else yields its first digit run.

        Examples:
            Edition Size = "1 of 250" → 250
            edition_size = 250        → 250
            Edition Size = "25 (AP)"  → 25
            Edition Size = "open"     → None
        """
        for attr in attributes:
            name = attr.trait_type.lower()
            if "edition" in name and "size" in name:
                value = str(attr.value)
                of_match = _N_OF_M_RE.search(value)
                if of_match:
                    return int(of_match.group(2))
                match = _DIGITS_RE.search(value)
                return int(match.group(1)) if match else None
        return None

    @staticmethod
    def collection_fallback(contract_address: Optional[str]) -> CollectionRef:
        if contract_address:
            return CollectionRef(id=None, name=f"Contract {contract_address[:10]}...", slug=None)
        return CollectionRef(id=None, name="Unknown Collection", slug=None)

    @staticmethod
    def collect_artists(wallet_addresses: Iterable[WalletAddress]) -> list[ArtistRef]:
        """One entry per underlying artist, in join order."""
        artists: list[ArtistRef] = []
        seen: set[int] = set()
        for wallet in wallet_addresses or []:
            artist = wallet.artist
            if artist is None or artist.id in seen:
                continue
            seen.add(artist.id)
            artists.append(ArtistRef(id=artist.id, name=artist.name))
        return artists

    def normalize_artwork(self, artwork: Artwork) -> IndexedArtworkData:
        """Canonical document for a final Artwork record."""
        attributes = self.flatten_attributes(artwork.attributes)

        if artwork.collection is not None:
            collection = CollectionRef(
                id=artwork.collection.id,
                name=artwork.collection.title,
                slug=artwork.collection.slug,
            )
            contract_alias = artwork.collection.title or None
        else:
            collection = self.collection_fallback(artwork.contract_address)
            contract_alias = None

        return IndexedArtworkData(
            id=artwork.id,
            title=artwork.title,
            description=artwork.description,
            image_url=artwork.image_url,
            animation_url=artwork.animation_url,
            blockchain=artwork.blockchain,
            collection=collection,
            artists=self.collect_artists(artwork.wallet_addresses),
            attributes=attributes,
            tags=[],
            contract_addr=artwork.contract_address,
            contract_alias=contract_alias,
            token_id=artwork.token_id,
            mime=artwork.mime,
            token_standard=artwork.token_standard,
            mint_date=artwork.mint_date.isoformat() if artwork.mint_date else None,
            edition_size=self.extract_edition_size(attributes),
        )

    def normalize_nft(
        self, nft: MinimalNftData, owners: Optional[list[Owner]] = None
    ) -> IndexedArtworkData:
        """Canonical document for an NFT that has no final Artwork yet."""
        attributes = self.flatten_attributes(nft.attributes)

        raw_collection = nft.collection
        if raw_collection is not None and (raw_collection.title or raw_collection.slug):
            collection = CollectionRef(
                id=None,
                name=raw_collection.title or raw_collection.slug,
                slug=raw_collection.slug,
            )
            contract_alias = raw_collection.title or None
        else:
            collection = self.collection_fallback(nft.contract_address)
            contract_alias = None

        return IndexedArtworkData(
            id=None,
            title=nft.title,
            description=nft.description,
            image_url=nft.image_url,
            animation_url=nft.animation_url,
            blockchain=nft.blockchain,
            collection=collection,
            artists=[],
            attributes=attributes,
            tags=[],
            contract_addr=nft.contract_address,
            contract_alias=contract_alias,
            token_id=nft.token_id,
            mime=nft.mime,
            token_standard=nft.token_standard,
            mint_date=nft.mint_date,
            edition_size=self.extract_edition_size(attributes),
            thumbnail_url=nft.thumbnail_url,
            generator_url=nft.generator_url,
            owners=owners,
        )

    @staticmethod
    async def load_artwork(session: AsyncSession, artwork_id: int) -> Optional[Artwork]:
        """Artwork with collection and wallet → artist relations eager-loaded."""
        result = await session.execute(
            select(Artwork)
            .where(Artwork.id == artwork_id)
            .options(
                selectinload(Artwork.collection),
                selectinload(Artwork.wallet_addresses).joinedload(WalletAddress.artist),
            )
        )
        return result.scalar_one_or_none()

    async def load_and_normalize(
        self, session: AsyncSession, artwork_id: int
    ) -> Optional[IndexedArtworkData]:
        """Fetch an Artwork with its relations; None if it no longer exists."""
        artwork = await self.load_artwork(session, artwork_id)
        if artwork is None:
            logger.warning("Artwork %d not found, nothing to normalize", artwork_id)
            return None
        return self.normalize_artwork(artwork)


# Singleton instance
artwork_normalizer = ArtworkNormalizer()


# Convenience functions
def flatten_attributes(raw: Any) -> list[Attribute]:
    return ArtworkNormalizer.flatten_attributes(raw)


def extract_edition_size(attributes: list[Attribute]) -> Optional[int]:
    return ArtworkNormalizer.extract_edition_size(attributes)


def collection_fallback(contract_address: Optional[str]) -> CollectionRef:
    return ArtworkNormalizer.collection_fallback(contract_address)


def normalize_artwork(artwork: Artwork) -> IndexedArtworkData:
    return artwork_normalizer.normalize_artwork(artwork)


def normalize_nft(
    nft: MinimalNftData, owners: Optional[list[Owner]] = None
) -> IndexedArtworkData:
    return artwork_normalizer.normalize_nft(nft, owners)


async def load_and_normalize(
    session: AsyncSession, artwork_id: int
) -> Optional[IndexedArtworkData]:
    return await artwork_normalizer.load_and_normalize(session, artwork_id)
