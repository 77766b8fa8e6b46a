"""Read-side service: search, filter, paginate and hydrate bookmarks."""
from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark import Bookmark
from repositories.bookmark_repository import BookmarkRepository
from schemas.bookmark import BookmarkRead
from schemas.tag import TagRead
from schemas.validators import normalize_tag_path
from services.bookmark_service import get_bookmark_row
from services.tag_hierarchy import build_tag_path_view

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


async def hydrate(db: AsyncSession, bookmarks: Sequence[Bookmark]) -> list[BookmarkRead]:
    """
    Attach flat tags and tag-path chains to bookmark rows.

    Uses two batched queries regardless of how many bookmarks are passed.
    """
    repo = BookmarkRepository(db)
    ids = [b.id for b in bookmarks]
    tags_by_bookmark = await repo.tags_for(ids)
    paths_by_bookmark = await repo.tag_paths_for(ids)
    now = datetime.now(UTC)

    # Built field by field: reading the ORM relationships here would lazy-load
    return [
        BookmarkRead(
            id=bookmark.id,
            title=bookmark.title,
            url=bookmark.url,
            description=bookmark.description,
            favicon=bookmark.favicon,
            screenshot=bookmark.screenshot,
            created_at=bookmark.created_at,
            updated_at=bookmark.updated_at,
            tags=[TagRead.model_validate(t) for t in tags_by_bookmark.get(bookmark.id, [])],
            tag_paths=[
                build_tag_path_view(row.tag_path, row.leaf_tag_id, now)
                for row in paths_by_bookmark.get(bookmark.id, [])
            ],
        )
        for bookmark in bookmarks
    ]


async def list_bookmarks(
    db: AsyncSession,
    *,
    search: str | None = None,
    tag_id: int | None = None,
    menu_path: str | None = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> list[BookmarkRead]:
    """
    List bookmarks, newest first.

    Filters are mutually exclusive, applied by precedence:
    - `menu_path`: bookmarks filed under that path or anything below it
      (optionally narrowed by `search` on the title)
    - `tag_id`: bookmarks linked to that flat tag (optionally narrowed by `search`)
    - `search`: title substring
    - none: everything
    """
    menu_path = normalize_tag_path(menu_path) if menu_path else None
    search = search.strip() if search else None
    limit = max(1, min(limit, MAX_LIMIT))
    offset = max(0, offset)

    rows = await BookmarkRepository(db).search(
        search=search or None,
        tag_id=None if menu_path else tag_id,
        menu_path=menu_path or None,
        limit=limit,
        offset=offset,
    )
    return await hydrate(db, rows)


async def get_bookmark(db: AsyncSession, bookmark_id: int) -> BookmarkRead:
    """
    Get one hydrated bookmark.

    Raises:
        NotFoundError: If the bookmark does not exist.
    """
    bookmark = await get_bookmark_row(db, bookmark_id)
    return (await hydrate(db, [bookmark]))[0]
