"""Tag model for the hierarchical tag taxonomy."""
from typing import TYPE_CHECKING

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.bookmark import Bookmark


# Junction table for the flat (non-hierarchical) tag set of a bookmark
bookmark_tags = Table(
    "bookmark_tags",
    Base.metadata,
    Column(
        "bookmark_id",
        Integer,
        ForeignKey("bookmarks.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    # Index for lookups by tag (composite PK already indexes bookmark_id first)
    Index("ix_bookmark_tags_tag_id", "tag_id"),
)


class Tag(Base, TimestampMixin):
    """
    A node in the tag hierarchy.

    `path` is the "/"-joined chain of names from the root down to this tag
    (e.g. "Frontend/Framework/Vue") and is globally unique. `level` is the
    1-based depth of that chain and `parent_id` is null only for level 1.

    `parent_id` is deliberately not a foreign key: deleting a tag leaves its
    children in place, and they are displayed as roots.
    """

    __tablename__ = "tags"
    __table_args__ = (
        Index("uq_tags_path", "path", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    parent_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, index=True)
    path: Mapped[str] = mapped_column(String(500), nullable=False)
    color: Mapped[str | None] = mapped_column(String(32), nullable=True)

    bookmarks: Mapped[list["Bookmark"]] = relationship(
        secondary=bookmark_tags,
        back_populates="tag_objects",
        passive_deletes=True,
    )
