from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from compendium.models.artist import Artist
from compendium.models.base import Base


class WalletAddress(Base):
    """Blockchain address attributed to an artist (many artworks per address)."""

    __tablename__ = "wallet_addresses"

    id: Mapped[int] = mapped_column(primary_key=True)
    address: Mapped[str] = mapped_column(String(100))
    blockchain: Mapped[str] = mapped_column(String(20), index=True)
    artist_id: Mapped[int | None] = mapped_column(
        ForeignKey("artists.id", ondelete="SET NULL"), index=True
    )
    last_indexed: Mapped[datetime | None] = mapped_column(DateTime)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    artist: Mapped[Artist | None] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("address", "blockchain", name="uq_wallet_addresses_address_blockchain"),
    )
