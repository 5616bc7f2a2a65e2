"""
NFT metadata normalization: chain detection, media selection, source adapters
and the canonical IndexedArtworkData builder.
"""

from compendium.services.normalization.adapters import adapt, detect_source
from compendium.services.normalization.blockchain import (
    detect_blockchain,
    detect_blockchain_from_contract,
    data_source_for,
)
from compendium.services.normalization.media import (
    MediaResult,
    MediaUrls,
    get_best_media_url,
    get_media_display_type,
)
from compendium.services.normalization.normalizer import (
    ArtworkNormalizer,
    artwork_normalizer,
    collection_fallback,
    extract_edition_size,
    flatten_attributes,
    load_and_normalize,
    normalize_artwork,
    normalize_nft,
)

__all__ = [
    "adapt",
    "detect_source",
    "detect_blockchain",
    "detect_blockchain_from_contract",
    "data_source_for",
    "MediaResult",
    "MediaUrls",
    "get_best_media_url",
    "get_media_display_type",
    "ArtworkNormalizer",
    "artwork_normalizer",
    "collection_fallback",
    "extract_edition_size",
    "flatten_attributes",
    "load_and_normalize",
    "normalize_artwork",
    "normalize_nft",
]
