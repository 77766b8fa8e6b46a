"""Repository for Bookmark database operations."""
from collections import defaultdict
from collections.abc import Iterable, Sequence

from sqlalchemy import delete, func, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark import Bookmark
from models.bookmark_tag_path import BookmarkTagPath
from models.tag import Tag, bookmark_tags
from services.utils import escape_like


class BookmarkRepository:
    """Repository for Bookmark rows and their tag links."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, bookmark_id: int) -> Bookmark | None:
        """Get a bookmark by id."""
        return await self.db.get(Bookmark, bookmark_id)

    async def get_by_url(self, url: str) -> Bookmark | None:
        """Get the first bookmark whose URL matches exactly."""
        result = await self.db.execute(
            select(Bookmark).where(Bookmark.url == url).order_by(Bookmark.id).limit(1),
        )
        return result.scalar_one_or_none()

    async def create(self, **fields: str | None) -> Bookmark:
        """Insert a bookmark and load its server-generated columns."""
        bookmark = Bookmark(**fields)
        self.db.add(bookmark)
        await self.db.flush()
        await self.db.refresh(bookmark)
        return bookmark

    async def update(self, bookmark: Bookmark, **fields: str | None) -> Bookmark:
        """Apply field changes and bump updated_at."""
        for key, value in fields.items():
            setattr(bookmark, key, value)
        bookmark.updated_at = func.now()
        await self.db.flush()
        await self.db.refresh(bookmark)
        return bookmark

    async def delete(self, bookmark: Bookmark) -> None:
        """Delete a bookmark; tag links are removed by the database cascade."""
        await self.db.execute(delete(Bookmark).where(Bookmark.id == bookmark.id))

    async def linked_tag_ids(self, bookmark_id: int) -> set[int]:
        """Ids of the flat tags currently linked to a bookmark."""
        result = await self.db.execute(
            select(bookmark_tags.c.tag_id).where(bookmark_tags.c.bookmark_id == bookmark_id),
        )
        return set(result.scalars())

    async def link_tags(self, bookmark_id: int, tag_ids: Iterable[int]) -> None:
        """Link flat tags to a bookmark, skipping ids already linked."""
        existing = await self.linked_tag_ids(bookmark_id)
        rows = []
        for tag_id in tag_ids:
            if tag_id in existing:
                continue
            existing.add(tag_id)
            rows.append({"bookmark_id": bookmark_id, "tag_id": tag_id})
        if rows:
            await self.db.execute(insert(bookmark_tags), rows)

    async def clear_tags(self, bookmark_id: int) -> None:
        """Remove every flat tag link of a bookmark."""
        await self.db.execute(
            delete(bookmark_tags).where(bookmark_tags.c.bookmark_id == bookmark_id),
        )

    async def add_tag_path(
        self,
        bookmark_id: int,
        tag_path: str,
        leaf_tag_id: int,
        order: int,
    ) -> BookmarkTagPath:
        """File a bookmark under a resolved tag path."""
        row = BookmarkTagPath(
            bookmark_id=bookmark_id,
            tag_path=tag_path,
            leaf_tag_id=leaf_tag_id,
            order=order,
        )
        self.db.add(row)
        await self.db.flush()
        return row

    async def search(
        self,
        *,
        search: str | None = None,
        tag_id: int | None = None,
        menu_path: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[Bookmark]:
        """
        Filter bookmarks by exactly one mode, newest first.

        Modes by precedence: menu_path (optionally with title search), tag_id
        (optionally with title search), title search, everything.
        """
        query = select(Bookmark)
        if menu_path:
            matching_ids = (
                select(BookmarkTagPath.bookmark_id)
                .where(
                    or_(
                        BookmarkTagPath.tag_path == menu_path,
                        BookmarkTagPath.tag_path.like(
                            f"{escape_like(menu_path)}/%", escape="\\",
                        ),
                    ),
                )
                .distinct()
            )
            query = query.where(Bookmark.id.in_(matching_ids))
        elif tag_id is not None:
            query = query.join(
                bookmark_tags, bookmark_tags.c.bookmark_id == Bookmark.id,
            ).where(bookmark_tags.c.tag_id == tag_id)
        if search:
            query = query.where(
                Bookmark.title.ilike(f"%{escape_like(search)}%", escape="\\"),
            )
        query = (
            query.order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        return result.scalars().all()

    async def tags_for(self, bookmark_ids: Sequence[int]) -> dict[int, list[Tag]]:
        """Flat tags of each bookmark, in one query."""
        grouped: dict[int, list[Tag]] = defaultdict(list)
        if not bookmark_ids:
            return grouped
        result = await self.db.execute(
            select(bookmark_tags.c.bookmark_id, Tag)
            .select_from(bookmark_tags)
            .join(Tag, Tag.id == bookmark_tags.c.tag_id)
            .where(bookmark_tags.c.bookmark_id.in_(bookmark_ids))
            .order_by(Tag.id),
        )
        for bookmark_id, tag in result.all():
            grouped[bookmark_id].append(tag)
        return grouped

    async def tag_paths_for(
        self, bookmark_ids: Sequence[int],
    ) -> dict[int, list[BookmarkTagPath]]:
        """Tag-path rows of each bookmark in submission order, in one query."""
        grouped: dict[int, list[BookmarkTagPath]] = defaultdict(list)
        if not bookmark_ids:
            return grouped
        result = await self.db.execute(
            select(BookmarkTagPath)
            .where(BookmarkTagPath.bookmark_id.in_(bookmark_ids))
            .order_by(BookmarkTagPath.order, BookmarkTagPath.id),
        )
        for row in result.scalars():
            grouped[row.bookmark_id].append(row)
        return grouped
