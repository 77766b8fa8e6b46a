"""Bookmark model for storing saved URLs."""
from typing import TYPE_CHECKING

from sqlalchemy import Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin
from models.tag import bookmark_tags

if TYPE_CHECKING:
    from models.bookmark_tag_path import BookmarkTagPath
    from models.tag import Tag


class Bookmark(Base, TimestampMixin):
    """
    Bookmark model - stores URLs with fetched metadata.

    `url` is not unique at the storage level; uniqueness is checked by the
    service before insert.
    """

    __tablename__ = "bookmarks"
    __table_args__ = (
        # Equality lookups only; a btree entry cannot hold very long URLs
        Index("ix_bookmarks_url", "url", postgresql_using="hash"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    favicon: Mapped[str | None] = mapped_column(Text, nullable=True)
    screenshot: Mapped[str | None] = mapped_column(Text, nullable=True)

    tag_objects: Mapped[list["Tag"]] = relationship(
        secondary=bookmark_tags,
        back_populates="bookmarks",
        passive_deletes=True,
    )
    tag_paths: Mapped[list["BookmarkTagPath"]] = relationship(
        back_populates="bookmark",
        order_by="BookmarkTagPath.order",
        passive_deletes=True,
    )
