"""Pydantic schemas for bookmark endpoints."""
from datetime import datetime

from pydantic import field_validator

from schemas.base import CamelModel
from schemas.tag import TagPathView, TagRead
from schemas.validators import is_absolute_url


def _strip_or_none(v: str | None) -> str | None:
    """Trim a string; empty results become None."""
    if v is None:
        return None
    v = v.strip()
    return v or None


class BookmarkCreate(CamelModel):
    """
    Schema for creating a new bookmark.

    `tags` are flat tag names (a leading '#' is allowed, and names containing
    '/' are treated as tag paths). `tag_paths` are explicit hierarchical paths
    and `tag_ids` link existing tags directly.
    """

    url: str
    title: str | None = None
    description: str | None = None
    favicon: str | None = None
    screenshot: str | None = None
    tags: list[str] = []
    tag_paths: list[str] = []
    tag_ids: list[int] = []

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """URL must be absolute; apart from trimming it is stored as given."""
        v = v.strip()
        if not is_absolute_url(v):
            raise ValueError("Invalid URL")
        return v

    @field_validator("title", "description", "favicon", "screenshot")
    @classmethod
    def strip_optional(cls, v: str | None) -> str | None:
        """Treat blank strings as missing."""
        return _strip_or_none(v)

    @field_validator("tags", "tag_paths", mode="before")
    @classmethod
    def none_to_empty(cls, v: list[str] | None) -> list[str]:
        """Accept null for list fields."""
        return v if v is not None else []

    @property
    def has_client_data(self) -> bool:
        """True if the client sent anything beyond the URL (skips enrichment)."""
        return bool(
            self.title
            or self.description
            or self.screenshot
            or self.tags
            or self.tag_paths,
        )


class BookmarkUpdate(CamelModel):
    """
    Schema for updating an existing bookmark.

    `title` and `url` are required by the service; they are optional here so
    that a missing value is reported as a 400 with a clear message. `tag_ids`,
    when present (even empty), replaces the flat tag set.
    """

    title: str | None = None
    url: str | None = None
    description: str | None = None
    favicon: str | None = None
    screenshot: str | None = None
    tag_ids: list[int] | None = None


class BookmarkRead(CamelModel):
    """Schema for a hydrated bookmark in responses."""

    id: int
    title: str | None = None
    url: str
    description: str | None = None
    favicon: str | None = None
    screenshot: str | None = None
    created_at: datetime
    updated_at: datetime
    tags: list[TagRead] = []
    tag_paths: list[TagPathView] = []

