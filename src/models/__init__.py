"""SQLAlchemy models."""
from models.base import Base, TimestampMixin
from models.tag import Tag, bookmark_tags  # Must be before bookmark due to import
from models.bookmark import Bookmark
from models.bookmark_tag_path import BookmarkTagPath
from models.setting import Setting

__all__ = [
    "Base",
    "Bookmark",
    "BookmarkTagPath",
    "Setting",
    "Tag",
    "TimestampMixin",
    "bookmark_tags",
]
