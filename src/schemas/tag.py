"""Pydantic schemas for tag endpoints."""
from datetime import datetime

from pydantic import Field, field_validator

from schemas.base import CamelModel


class TagRead(CamelModel):
    """Schema for a tag as returned by the API."""

    id: int
    name: str
    parent_id: int | None = None
    level: int = 1
    path: str
    color: str | None = None
    created_at: datetime
    updated_at: datetime


class TagNode(TagRead):
    """A tag with its children, used for the sidebar tree."""

    children: list["TagNode"] = []


class TagTreeResponse(CamelModel):
    """Tags split into flat chips and collapsible menu trees."""

    standalone: list[TagNode]
    hierarchical: list[TagNode]


class TagPathView(CamelModel):
    """
    Display form of one of a bookmark's tag paths.

    `tags` is the root-to-leaf chain; its ids are synthetic and must not be
    used to look anything up.
    """

    path: str
    tags: list[TagRead]
    leaf_tag: TagRead


class TagUpdate(CamelModel):
    """Schema for renaming or recoloring a tag."""

    name: str | None = None
    color: str | None = Field(default=None, max_length=32)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        """Trim the name; emptiness is checked by the service."""
        return v.strip() if v is not None else None
