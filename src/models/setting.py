"""Setting model - generic key/value configuration store."""
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin


class Setting(Base, TimestampMixin):
    """
    A single configuration entry.

    Values are stored as strings and grouped by `category`. The AI settings
    live under category "ai" with keys "model", "temperature" and "maxTokens".
    """

    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(
        String(50), nullable=False, default="general", server_default="general", index=True,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
