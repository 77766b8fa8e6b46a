"""Service layer for bookmark CRUD operations."""
import logging
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import is_missing_table_error
from models.bookmark import Bookmark
from repositories.bookmark_repository import BookmarkRepository
from schemas.bookmark import BookmarkUpdate
from schemas.validators import clean_tag_name, is_absolute_url, is_hierarchical, normalize_tag_path
from services import tag_service
from services.exceptions import NotFoundError, ValidationError
from services.utils import dedupe

logger = logging.getLogger(__name__)


async def check_url_exists(db: AsyncSession, url: str) -> Bookmark | None:
    """Return the bookmark saved under exactly this URL, if any. No normalization."""
    return await BookmarkRepository(db).get_by_url(url)


async def create_bookmark(
    db: AsyncSession,
    *,
    url: str,
    title: str | None = None,
    description: str | None = None,
    favicon: str | None = None,
    screenshot: str | None = None,
    tag_names: Sequence[str] = (),
    tag_paths: Sequence[str] = (),
    tag_ids: Sequence[int] = (),
) -> Bookmark:
    """
    Insert a bookmark and attach its tags.

    The row is inserted first because every tag association needs its id.
    Tag handling is best-effort: a tag that cannot be resolved is logged and
    skipped, and never fails the bookmark itself.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    repo = BookmarkRepository(db)
    bookmark = await repo.create(
        url=url,
        title=title,
        description=description,
        favicon=favicon,
        screenshot=screenshot,
    )

    if tag_names or tag_paths:
        await process_tags_and_paths(db, bookmark.id, tag_names, tag_paths)

    if tag_ids:
        await repo.link_tags(bookmark.id, tag_ids)

    return bookmark


async def process_tags_and_paths(
    db: AsyncSession,
    bookmark_id: int,
    tag_names: Sequence[str],
    tag_paths: Sequence[str],
) -> None:
    """
    Attach flat tags and tag paths to a bookmark.

    Names containing '/' are hierarchical and are folded into the path list.
    Each tag and each path is handled inside its own savepoint so that one
    failure does not undo the others or the request transaction.
    """
    repo = BookmarkRepository(db)
    flat_ids: list[int] = []
    all_paths = list(tag_paths)

    for name in tag_names:
        cleaned = clean_tag_name(name)
        if not cleaned:
            continue
        if is_hierarchical(cleaned):
            all_paths.append(cleaned)
            continue
        try:
            async with db.begin_nested():
                flat_ids.append(await tag_service.resolve_or_create_flat_tag(db, cleaned))
        except (SQLAlchemyError, ValidationError) as e:
            logger.warning("Failed to resolve tag %r for bookmark %s: %s", name, bookmark_id, e)

    if flat_ids:
        await repo.link_tags(bookmark_id, dedupe(flat_ids))

    normalized_paths = dedupe([p for p in (normalize_tag_path(p) for p in all_paths) if p])
    for order, path in enumerate(normalized_paths):
        try:
            async with db.begin_nested():
                leaf_tag_id = await tag_service.resolve_or_create_path(db, path)
                await repo.add_tag_path(bookmark_id, path, leaf_tag_id, order)
        except SQLAlchemyError as e:
            if is_missing_table_error(e, "bookmark_tag_paths"):
                logger.warning("bookmark_tag_paths table is missing, skipping tag path %s", path)
            else:
                logger.exception("Failed to save tag path %s for bookmark %s", path, bookmark_id)
        except ValidationError as e:
            logger.warning("Skipping tag path %r for bookmark %s: %s", path, bookmark_id, e)


async def get_bookmark_row(db: AsyncSession, bookmark_id: int) -> Bookmark:
    """
    Get a bookmark row by id.

    Raises:
        NotFoundError: If the bookmark does not exist.
    """
    bookmark = await BookmarkRepository(db).get_by_id(bookmark_id)
    if bookmark is None:
        raise NotFoundError("Bookmark", bookmark_id)
    return bookmark


async def update_bookmark(
    db: AsyncSession,
    bookmark_id: int,
    data: BookmarkUpdate,
) -> Bookmark:
    """
    Update a bookmark in place.

    Title and URL are required. Optional text fields are trimmed and blank
    values are stored as null. When `tag_ids` is present (even empty) the
    flat tag set is replaced; tag paths are left untouched.

    Note: Does not commit. Caller (session generator) handles commit at request end.

    Raises:
        ValidationError: If title or URL is missing, or the URL is not absolute.
        NotFoundError: If the bookmark does not exist.
    """
    title = (data.title or "").strip()
    url = (data.url or "").strip()
    if not title or not url:
        raise ValidationError("Title and URL are required")
    if not is_absolute_url(url):
        raise ValidationError("Invalid URL")

    repo = BookmarkRepository(db)
    bookmark = await get_bookmark_row(db, bookmark_id)

    def _optional(value: str | None) -> str | None:
        return (value or "").strip() or None

    await repo.update(
        bookmark,
        title=title,
        url=url,
        description=_optional(data.description),
        favicon=_optional(data.favicon),
        screenshot=_optional(data.screenshot),
    )

    if data.tag_ids is not None:
        await repo.clear_tags(bookmark.id)
        await repo.link_tags(bookmark.id, data.tag_ids)

    return bookmark


async def delete_bookmark(db: AsyncSession, bookmark_id: int) -> None:
    """
    Delete a bookmark. Tag links and tag-path rows go with it.

    Raises:
        NotFoundError: If the bookmark does not exist.
    """
    bookmark = await get_bookmark_row(db, bookmark_id)
    await BookmarkRepository(db).delete(bookmark)
