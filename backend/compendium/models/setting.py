from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from compendium.models.base import Base


class Setting(Base):
    """Key/value application settings (values are JSON-encoded text)."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
