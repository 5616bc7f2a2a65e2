from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from compendium.models.base import Base


class Collection(Base):
    __tablename__ = "collections"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    chain_identifier: Mapped[str | None] = mapped_column(String(20))
