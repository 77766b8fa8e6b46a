"""Repository for Tag database operations."""
from collections.abc import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark_tag_path import BookmarkTagPath
from models.tag import Tag
from services.utils import escape_like


class TagRepository:
    """Repository for Tag database operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, tag_id: int) -> Tag | None:
        """Get a tag by id."""
        return await self.db.get(Tag, tag_id)

    async def get_by_path(self, path: str) -> Tag | None:
        """Get a tag by its exact (unique) path."""
        result = await self.db.execute(select(Tag).where(Tag.path == path))
        return result.scalar_one_or_none()

    async def get_first_by_name(self, name: str) -> Tag | None:
        """Get the oldest tag with exactly this name, at any level."""
        result = await self.db.execute(
            select(Tag).where(Tag.name == name).order_by(Tag.id).limit(1),
        )
        return result.scalar_one_or_none()

    async def list(self, search: str | None = None) -> Sequence[Tag]:
        """List all tags, or those whose name contains `search`."""
        query = select(Tag)
        if search:
            query = query.where(Tag.name.ilike(f"%{escape_like(search)}%", escape="\\"))
        result = await self.db.execute(query.order_by(Tag.id))
        return result.scalars().all()

    async def list_descendants(self, path: str) -> Sequence[Tag]:
        """List tags strictly below `path` in the hierarchy."""
        result = await self.db.execute(
            select(Tag)
            .where(Tag.path.like(f"{escape_like(path)}/%", escape="\\"))
            .order_by(Tag.level, Tag.id),
        )
        return result.scalars().all()

    async def create(
        self,
        name: str,
        path: str,
        level: int,
        parent_id: int | None = None,
    ) -> Tag:
        """Insert a tag and load its server-generated columns."""
        tag = Tag(name=name, path=path, level=level, parent_id=parent_id)
        self.db.add(tag)
        await self.db.flush()
        await self.db.refresh(tag)
        return tag

    async def path_taken(self, path: str, exclude_ids: Sequence[int] = ()) -> bool:
        """True if some tag outside `exclude_ids` already uses `path`."""
        query = select(func.count()).select_from(Tag).where(Tag.path == path)
        if exclude_ids:
            query = query.where(Tag.id.not_in(exclude_ids))
        return (await self.db.scalar(query) or 0) > 0

    async def rename_bookmark_paths(self, old_path: str, new_path: str) -> None:
        """Rewrite stored bookmark tag-path strings at or below `old_path`."""
        await self.db.execute(
            update(BookmarkTagPath)
            .where(BookmarkTagPath.tag_path == old_path)
            .values(tag_path=new_path),
        )
        prefix_rows = await self.db.execute(
            select(BookmarkTagPath).where(
                BookmarkTagPath.tag_path.like(f"{escape_like(old_path)}/%", escape="\\"),
            ),
        )
        for row in prefix_rows.scalars():
            row.tag_path = new_path + row.tag_path[len(old_path):]

    async def delete(self, tag: Tag) -> None:
        """Delete a tag; junction rows are removed by the database cascade."""
        await self.db.execute(delete(Tag).where(Tag.id == tag.id))

    async def delete_all(self) -> int:
        """Delete every tag. Returns the number of rows removed."""
        result = await self.db.execute(delete(Tag))
        return result.rowcount or 0

