"""
Canonical indexed-artwork document and the index API schemas.

IndexedArtworkData is what gets stored in artwork_index.normalized_data and
what search returns. Keys are serialized with their historical names
(contractAddr, tokenID, editionSize, ...), so always dump with by_alias=True.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

NftType = Literal["owned", "created"]
ImportStatus = Literal["pending", "imported", "failed"]


class CollectionRef(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    slug: Optional[str] = None


class ArtistRef(BaseModel):
    id: int
    name: str


class Attribute(BaseModel):
    trait_type: str = ""
    value: Any = ""


class Owner(BaseModel):
    address: str
    quantity: int = 1


class IndexedArtworkData(BaseModel):
    """Normalized artwork, independent of the source marketplace."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    animation_url: Optional[str] = None
    blockchain: Optional[str] = None
    collection: CollectionRef = Field(default_factory=CollectionRef)
    artists: list[ArtistRef] = Field(default_factory=list)
    attributes: list[Attribute] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    contract_addr: Optional[str] = Field(None, alias="contractAddr")
    contract_alias: Optional[str] = Field(None, alias="contractAlias")
    token_id: Optional[str] = Field(None, alias="tokenID")
    mime: Optional[str] = None
    token_standard: Optional[str] = Field(None, alias="tokenStandard")
    mint_date: Optional[str] = Field(None, alias="mintDate")
    edition_size: Optional[int] = Field(None, alias="editionSize")

    # Discovery-time extras (absent once linked to a final Artwork)
    thumbnail_url: Optional[str] = None
    generator_url: Optional[str] = None
    owners: Optional[list[Owner]] = None

    def to_document(self) -> dict:
        """JSON-ready dict with stable key names, extras dropped when unset."""
        unset_extras = {
            name for name in DISCOVERY_EXTRAS if getattr(self, name) is None
        }
        return self.model_dump(mode="json", by_alias=True, exclude=unset_extras)


DISCOVERY_EXTRAS = ("thumbnail_url", "generator_url", "owners")


# ------------------------------------------------------------------
# API schemas
# ------------------------------------------------------------------

class IndexRecordOut(BaseModel):
    id: int
    nft_uid: str
    type: NftType
    blockchain: str
    data_source: str
    contract_address: str
    token_id: str
    import_status: ImportStatus
    artwork_id: Optional[int] = None
    error_message: Optional[str] = None
    normalized_data: Optional[dict] = None
    created_at: datetime
    updated_at: datetime
    last_attempt: datetime

    model_config = {"from_attributes": True}


class IndexStats(BaseModel):
    total: int
    pending: int
    imported: int
    failed: int


class PaginationMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    page_size: int = Field(alias="pageSize")
    total_count: int = Field(alias="totalCount")
    total_pages: int = Field(alias="totalPages")


class SearchResponse(BaseModel):
    items: list[dict]
    pagination: PaginationMeta


class StoreBatchRequest(BaseModel):
    """Raw records from any supported source, plus the wallet being indexed."""

    records: list[dict]
    type: NftType = "owned"
    indexing_wallet: Optional[str] = None


class BatchErrorOut(BaseModel):
    index: int
    error: str
    record: dict


class BatchResultOut(BaseModel):
    stored: int
    skipped: int
    errors: list[BatchErrorOut]
    success_rate: float
    job_id: Optional[str] = None


class ReindexRequest(BaseModel):
    artwork_ids: Optional[list[int]] = None
    collection_id: Optional[int] = None


class ReindexResponse(BaseModel):
    imported: int = 0
    skipped_missing: int = 0
    skipped_unlinked: int = 0
    skipped_invalid: int = 0
    failed: int = 0


class IndexArtworkResponse(BaseModel):
    artwork_id: int
    outcome: str
