from compendium.models.base import Base
from compendium.models.artist import Artist
from compendium.models.wallet_address import WalletAddress
from compendium.models.collection import Collection
from compendium.models.artwork import Artwork, artwork_wallet_addresses
from compendium.models.artwork_index import ArtworkIndex
from compendium.models.setting import Setting

__all__ = [
    "Base",
    "Artist",
    "WalletAddress",
    "Collection",
    "Artwork",
    "artwork_wallet_addresses",
    "ArtworkIndex",
    "Setting",
]
