from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from compendium.models.base import Base, JSONType, utcnow


class ArtworkIndex(Base):
    """
    Staging row for one NFT discovered during wallet indexing.

    One row per (contract_address, token_id), upserted on every encounter.
    Rows start as 'pending' and become 'imported' once linked to a final
    Artwork. This subsystem never deletes them.
    """

    __tablename__ = "artwork_index"

    id: Mapped[int] = mapped_column(primary_key=True)
    nft_uid: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(10), default="owned")  # owned | created
    blockchain: Mapped[str] = mapped_column(String(20))
    data_source: Mapped[str] = mapped_column(String(20))  # opensea | objkt | teztok
    contract_address: Mapped[str] = mapped_column(String(100))
    token_id: Mapped[str] = mapped_column(String(100))
    raw_response: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    normalized_data: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    import_status: Mapped[str] = mapped_column(
        String(20), default="pending", server_default="pending"
    )  # pending | imported | failed
    error_message: Mapped[str | None] = mapped_column(Text)
    artwork_id: Mapped[int | None] = mapped_column(
        ForeignKey("artworks.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow
    )
    last_attempt: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "contract_address", "token_id", name="uq_artwork_index_contract_token"
        ),
        Index("ix_artwork_index_import_status", "import_status"),
        Index("ix_artwork_index_blockchain", "blockchain"),
    )
