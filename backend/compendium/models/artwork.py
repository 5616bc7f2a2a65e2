from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from compendium.models.base import Base, JSONType
from compendium.models.collection import Collection
from compendium.models.wallet_address import WalletAddress

artwork_wallet_addresses = Table(
    "artwork_wallet_addresses",
    Base.metadata,
    Column("artwork_id", ForeignKey("artworks.id", ondelete="CASCADE"), primary_key=True),
    Column("wallet_address_id", ForeignKey("wallet_addresses.id", ondelete="CASCADE"), primary_key=True),
)


class Artwork(Base):
    """Final, curated artwork record. Index rows get linked to these on import."""

    __tablename__ = "artworks"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[str | None] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(Text)
    animation_url: Mapped[str | None] = mapped_column(Text)
    generator_url: Mapped[str | None] = mapped_column(Text)
    thumbnail_url: Mapped[str | None] = mapped_column(Text)
    blockchain: Mapped[str | None] = mapped_column(String(20))
    contract_address: Mapped[str | None] = mapped_column(String(100), index=True)
    token_id: Mapped[str | None] = mapped_column(String(100))
    mime: Mapped[str | None] = mapped_column(String(100))
    token_standard: Mapped[str | None] = mapped_column(String(20))
    mint_date: Mapped[datetime | None] = mapped_column(DateTime)
    attributes: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    collection_id: Mapped[int | None] = mapped_column(
        ForeignKey("collections.id", ondelete="SET NULL"), index=True
    )

    collection: Mapped[Collection | None] = relationship()
    wallet_addresses: Mapped[list[WalletAddress]] = relationship(
        secondary=artwork_wallet_addresses
    )
