"""
Source payload shapes and the minimal NFT record every adapter produces.

Raw payloads are tolerant: unknown keys are kept, missing keys default to
None. Only the adapters in services.normalization.adapters decide what is
actually required.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SourceTag = Literal["opensea", "tezos", "minimal"]


class _RawModel(BaseModel):
    model_config = ConfigDict(
        extra="allow", populate_by_name=True, coerce_numbers_to_str=True
    )


# ------------------------------------------------------------------
# OpenSea v2 NFT payload
# ------------------------------------------------------------------

class OpenSeaTrait(_RawModel):
    trait_type: Optional[str] = None
    name: Optional[str] = None
    value: Any = None


class OpenSeaRaw(_RawModel):
    identifier: Optional[str] = None
    contract: Optional[str] = None
    collection: Optional[str] = None
    collection_name: Optional[str] = None
    token_standard: Optional[str] = None
    name: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    display_image_url: Optional[str] = None
    animation_url: Optional[str] = None
    display_animation_url: Optional[str] = None
    metadata_url: Optional[str] = None
    mime: Optional[str] = None
    creator: Optional[str] = None
    supply: Optional[int] = None
    updated_at: Optional[str] = None
    traits: Optional[list[Any]] = None


# ------------------------------------------------------------------
# objkt / teztok token payload
# ------------------------------------------------------------------

class TezosHolder(_RawModel):
    address: Optional[str] = None
    alias: Optional[str] = None
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None


class TezosCreator(_RawModel):
    creator_address: Optional[str] = None
    holder: Optional[TezosHolder] = None


class TezosContract(_RawModel):
    contract: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None


class TezosRaw(_RawModel):
    token_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    artifact_uri: Optional[str] = None
    display_uri: Optional[str] = None
    thumbnail_uri: Optional[str] = None
    animation_url: Optional[str] = None
    metadata_url: Optional[str] = None
    mime: Optional[str] = None
    symbol: Optional[str] = None
    supply: Optional[Any] = None
    timestamp: Optional[str] = None
    fa: Optional[TezosContract] = None
    creators: Optional[list[TezosCreator]] = None
    attributes: Optional[list[Any]] = None


# ------------------------------------------------------------------
# Minimal (internal) shape, also the adapters' output
# ------------------------------------------------------------------

class NftCreator(_RawModel):
    address: str = ""
    username: Optional[str] = None
    profile_url: Optional[str] = Field(None, alias="profileUrl")
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")
    bio: Optional[str] = None


class NftCollection(_RawModel):
    slug: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    contract_address: Optional[str] = Field(None, alias="contractAddress")
    website_url: Optional[str] = Field(None, alias="websiteUrl")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    is_generative_art: Optional[bool] = Field(None, alias="isGenerativeArt")


class MinimalNftData(_RawModel):
    """Only the fields the index actually stores."""

    contract_address: Optional[str] = Field(None, alias="contractAddress")
    token_id: Optional[str] = Field(None, alias="tokenId")
    blockchain: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    mint_date: Optional[str] = Field(None, alias="mintDate")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")
    animation_url: Optional[str] = Field(None, alias="animationUrl")
    generator_url: Optional[str] = Field(None, alias="generatorUrl")
    metadata_url: Optional[str] = Field(None, alias="metadataUrl")
    mime: Optional[str] = None
    symbol: Optional[str] = None
    token_standard: Optional[str] = Field(None, alias="tokenStandard")
    supply: Optional[int] = None
    attributes: Optional[list[Any]] = None
    creator: Optional[NftCreator] = None
    collection: Optional[NftCollection] = None

    def to_payload(self) -> dict:
        """Serializable dict using the source-facing (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
