"""
Source adapters: OpenSea / Tezos (objkt) / minimal payloads → MinimalNftData.

Each raw payload is tagged by detect_source() and handed to exactly one
adapter. Adapters raise NormalizationError when a payload lacks what the
index needs; everything else is best-effort.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import ValidationError

from compendium.core.errors import NormalizationError
from compendium.schemas.nft import (
    MinimalNftData,
    NftCollection,
    NftCreator,
    OpenSeaRaw,
    SourceTag,
    TezosRaw,
)
from compendium.services.normalization.blockchain import (
    TEZOS,
    detect_blockchain_from_contract,
    is_excluded_contract,
)
from compendium.services.normalization.media import (
    guess_mime_type_from_url,
    is_interactive_platform,
)

logger = logging.getLogger(__name__)

GENERATIVE_ARTIFACT_MARKERS = (".html", "generator", "fxhash.xyz", "interactive")

GENERATIVE_TEZOS_CONTRACTS = {
    "KT1U6EHmNxJTkvaWJ4ThczG4FSDaHC21ssvi",  # fxhash v1
    "KT1KEa8z6vWXDJrVqtMrAeDVzsvxat3kHaCE",  # fxhash v2
    "KT1AaaBSo5AE6Eo8fpEN5xhCD4w3kHStafxk",  # fxhash gentk v1
    "KT1XCoGnfupWk7Sp8536EfrxcP73LmT68Nyr",  # fxhash gentk v2
}

# Platform thumbnails that render as a generic placeholder
PROBLEMATIC_THUMBNAIL_MARKERS = (
    "QmNrhZHUaEqxhyLfqoq1mtHSipkWHeT31LNHb1QEbDHgnc",  # Hic et Nunc
    "QmZzYmM5rKLTxXTaxzT4hzZHo6ZdgnUnwyjJk1Y1MBaeKd",  # Versum
)


def is_generative_collection(contract_address: Optional[str]) -> bool:
    """fxhash contracts, whose artifacts are generator pages."""
    return contract_address in GENERATIVE_TEZOS_CONTRACTS


def detect_source(raw: dict) -> SourceTag:
    """Tag a raw payload by its shape."""
    if "contractAddress" in raw or "tokenId" in raw:
        return "minimal"
    if "fa" in raw or "token_id" in raw or isinstance(raw.get("token"), dict):
        return "tezos"
    return "opensea"


def adapt(raw: Any) -> MinimalNftData:
    """Route a raw payload (dict or already-minimal record) to its adapter."""
    if isinstance(raw, MinimalNftData):
        return raw
    if not isinstance(raw, dict):
        raise NormalizationError(f"Unsupported payload type: {type(raw).__name__}")

    tag = detect_source(raw)
    return ADAPTERS[tag](raw)


def adapt_opensea(raw: dict) -> MinimalNftData:
    nft = _validate(OpenSeaRaw, raw, "opensea")

    if not nft.contract or not nft.identifier:
        raise NormalizationError("Missing required fields: contract and identifier")

    contract_address = nft.contract.lower()
    token_id = nft.identifier
    blockchain = detect_blockchain_from_contract(contract_address)

    image_url = nft.image_url or nft.display_image_url
    animation_url = nft.animation_url or nft.display_animation_url
    generator_url = animation_url if animation_url and is_interactive_platform(animation_url) else None

    creator = NftCreator(address=nft.creator) if nft.creator else None

    collection = NftCollection(
        slug=nft.collection or contract_address,
        title=nft.collection_name or "Unknown Collection",
        contract_address=contract_address,
    )

    return MinimalNftData(
        contract_address=contract_address,
        token_id=token_id,
        blockchain=blockchain,
        title=nft.name or nft.title or "Untitled",
        description=nft.description or None,
        mint_date=_parse_iso(nft.updated_at, f"{contract_address}:{token_id}"),
        image_url=image_url,
        thumbnail_url=nft.image_url,
        animation_url=animation_url,
        generator_url=generator_url,
        metadata_url=nft.metadata_url,
        mime=nft.mime or guess_mime_type_from_url(animation_url or image_url),
        token_standard=nft.token_standard or "ERC721",
        supply=nft.supply or 1,
        attributes=_opensea_traits(nft.traits),
        creator=creator,
        collection=collection,
    )


def adapt_tezos(raw: dict) -> MinimalNftData:
    # objkt sometimes nests the token one level down
    payload = raw["token"] if isinstance(raw.get("token"), dict) else raw
    token = _validate(TezosRaw, payload, "tezos")

    if not token.fa or not token.fa.contract or not token.token_id:
        raise NormalizationError("Missing required fields: fa.contract and token_id")

    contract_address = token.fa.contract
    if is_excluded_contract(contract_address):
        raise NormalizationError(
            f"Contract {contract_address} is excluded from indexing (wrapped tez)"
        )

    token_id = token.token_id
    uid = f"{contract_address}:{token_id}"

    image_url = token.display_uri or token.artifact_uri

    thumbnail_url = token.thumbnail_uri or token.display_uri
    if thumbnail_url and any(m in thumbnail_url for m in PROBLEMATIC_THUMBNAIL_MARKERS):
        logger.debug("Placeholder thumbnail for %s, using display/artifact image", uid)
        thumbnail_url = token.display_uri or token.artifact_uri
    if thumbnail_url and thumbnail_url == image_url:
        thumbnail_url = None

    generative = is_generative_collection(contract_address)
    generator_url = None
    if token.artifact_uri and (
        generative
        or any(marker in token.artifact_uri for marker in GENERATIVE_ARTIFACT_MARKERS)
    ):
        generator_url = token.artifact_uri

    creator = None
    if token.creators:
        first = token.creators[0]
        holder = first.holder
        creator = NftCreator(
            address=first.creator_address or (holder.address if holder else None) or "",
            username=holder.alias if holder else None,
            profile_url=holder.website if holder else None,
            avatar_url=holder.logo if holder else None,
            bio=holder.description if holder else None,
        )

    collection = NftCollection(
        slug=contract_address,
        title=token.fa.name or "Unknown Collection",
        description=token.fa.description,
        contract_address=contract_address,
        website_url=token.fa.website,
        image_url=token.fa.logo,
        is_generative_art=generative,
    )

    return MinimalNftData(
        contract_address=contract_address,
        token_id=token_id,
        blockchain=TEZOS,
        title=token.name,
        description=token.description or None,
        mint_date=_parse_iso(token.timestamp, uid),
        image_url=image_url,
        thumbnail_url=thumbnail_url,
        animation_url=token.animation_url,
        generator_url=generator_url,
        metadata_url=token.metadata_url,
        mime=token.mime or guess_mime_type_from_url(token.artifact_uri),
        symbol=token.symbol,
        token_standard="FA2",
        supply=_parse_supply(token.supply),
        attributes=_tezos_attributes(token.attributes),
        creator=creator,
        collection=collection,
    )


def adapt_minimal(raw: dict) -> MinimalNftData:
    return _validate(MinimalNftData, raw, "minimal")


ADAPTERS: dict[SourceTag, Callable[[dict], MinimalNftData]] = {
    "opensea": adapt_opensea,
    "tezos": adapt_tezos,
    "minimal": adapt_minimal,
}


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _validate(model, raw: dict, source: str):
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise NormalizationError(
            f"Malformed {source} payload: {e.error_count()} validation error(s)"
        ) from e


def _parse_iso(value: Optional[str], uid: str) -> Optional[str]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).isoformat()
    except ValueError:
        logger.warning("Unparseable date for %s: %r", uid, value)
        return None


def _parse_supply(value: Any) -> int:
    try:
        return int(str(value)) if value not in (None, "") else 1
    except ValueError:
        return 1


def _opensea_traits(traits: Optional[list]) -> list[dict]:
    if not traits:
        return []
    result = []
    for trait in traits:
        if not isinstance(trait, dict):
            continue
        result.append({
            "trait_type": trait.get("trait_type") or trait.get("name") or "Unknown",
            "value": trait.get("value"),
        })
    return result


def _tezos_attributes(attributes: Optional[list]) -> list[dict]:
    if not attributes:
        return []
    result = []
    for attr in attributes:
        if not isinstance(attr, dict):
            continue
        nested = attr.get("attribute") if isinstance(attr.get("attribute"), dict) else {}
        result.append({
            "trait_type": nested.get("name") or attr.get("name") or attr.get("trait_type"),
            "value": attr.get("value") or nested.get("value"),
        })
    return result
