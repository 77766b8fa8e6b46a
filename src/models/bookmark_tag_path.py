"""BookmarkTagPath model - one hierarchical placement of a bookmark."""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base

if TYPE_CHECKING:
    from models.bookmark import Bookmark


class BookmarkTagPath(Base):
    """
    Files a bookmark under a tag path such as "Frontend/Framework/Vue".

    A bookmark may have several independent paths; `order` keeps the order
    in which they were submitted.
    """

    __tablename__ = "bookmark_tag_paths"
    __table_args__ = (
        Index("ix_bookmark_tag_paths_bookmark_path", "bookmark_id", "tag_path"),
        Index("ix_bookmark_tag_paths_leaf_tag_id", "leaf_tag_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    bookmark_id: Mapped[int] = mapped_column(
        ForeignKey("bookmarks.id", ondelete="CASCADE"),
        nullable=False,
    )
    tag_path: Mapped[str] = mapped_column(String(500), nullable=False)
    leaf_tag_id: Mapped[int] = mapped_column(
        ForeignKey("tags.id", ondelete="CASCADE"),
        nullable=False,
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    bookmark: Mapped["Bookmark"] = relationship(back_populates="tag_paths")
