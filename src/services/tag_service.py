"""Service layer for tag operations."""
import logging
from collections.abc import Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.tag import Tag
from repositories.tag_repository import TagRepository
from schemas.tag import TagTreeResponse, TagUpdate
from schemas.validators import (
    MAX_TAG_NAME_LENGTH,
    MAX_TAG_PATH_LENGTH,
    TAG_PATH_SEPARATOR,
    clean_tag_name,
    is_hierarchical,
    split_tag_path,
)
from services.exceptions import NotFoundError, TagPathConflictError, ValidationError
from services.tag_hierarchy import partition, to_forest

logger = logging.getLogger(__name__)


def _check_length(name: str, path: str) -> None:
    """Reject a tag whose name or path would not fit its column."""
    if len(name) > MAX_TAG_NAME_LENGTH:
        raise ValidationError(f"Tag name cannot exceed {MAX_TAG_NAME_LENGTH} characters")
    if len(path) > MAX_TAG_PATH_LENGTH:
        raise ValidationError(f"Tag path cannot exceed {MAX_TAG_PATH_LENGTH} characters")


async def _get_or_create(
    repo: TagRepository,
    name: str,
    path: str,
    level: int,
    parent_id: int | None,
) -> Tag:
    """
    Insert a tag inside a savepoint.

    If another request created the same path first, the unique index rejects
    the insert; the savepoint is rolled back and the existing row is reused.
    """
    try:
        async with repo.db.begin_nested():
            return await repo.create(name=name, path=path, level=level, parent_id=parent_id)
    except IntegrityError:
        existing = await repo.get_by_path(path)
        if existing is None:
            raise
        logger.info("Tag path %s was created concurrently, reusing id %s", path, existing.id)
        return existing


async def resolve_or_create_path(db: AsyncSession, path_string: str) -> int:
    """
    Resolve a tag path to its leaf tag id, creating missing prefixes.

    "Frontend/Framework/Vue" resolves (or creates) "Frontend" at level 1,
    "Frontend/Framework" at level 2 and "Frontend/Framework/Vue" at level 3,
    each pointing at the previous one. Calling this twice with the same path
    returns the same id and creates nothing the second time.

    Note: Does not commit. Caller (session generator) handles commit at request end.

    Raises:
        ValidationError: If the path has no non-empty segments or is too long.
    """
    segments = split_tag_path(path_string)
    if not segments:
        raise ValidationError("Tag path cannot be empty")
    _check_length(max(segments, key=len), TAG_PATH_SEPARATOR.join(segments))

    repo = TagRepository(db)
    parent_id: int | None = None
    current_path = ""
    for position, segment in enumerate(segments):
        current_path = f"{current_path}{TAG_PATH_SEPARATOR}{segment}" if current_path else segment
        tag = await repo.get_by_path(current_path)
        if tag is None:
            tag = await _get_or_create(repo, segment, current_path, position + 1, parent_id)
        parent_id = tag.id

    return parent_id


async def resolve_or_create_flat_tag(db: AsyncSession, name: str) -> int:
    """
    Resolve a flat tag name to a tag id, creating a root tag if needed.

    A leading '#' is stripped. The oldest tag with exactly that name is
    reused even if it lives deeper in a hierarchy.

    Raises:
        ValidationError: If the name is empty after cleaning or too long.
    """
    cleaned = clean_tag_name(name)
    if not cleaned:
        raise ValidationError("Tag name cannot be empty")
    _check_length(cleaned, cleaned)

    repo = TagRepository(db)
    tag = await repo.get_first_by_name(cleaned)
    if tag is None:
        tag = await _get_or_create(repo, cleaned, cleaned, 1, None)
    return tag.id


async def list_tags(db: AsyncSession, search: str | None = None) -> Sequence[Tag]:
    """All tags, or those whose name contains `search`."""
    return await TagRepository(db).list(search=search)


async def get_tag_tree(db: AsyncSession) -> TagTreeResponse:
    """All tags arranged as a forest and split into standalone and menu tags."""
    tags = await TagRepository(db).list()
    return partition(to_forest(tags))


async def update_tag(db: AsyncSession, tag_id: int, data: TagUpdate) -> Tag:
    """
    Rename or recolor a tag.

    Renaming rewrites the tag's path, the paths of all its descendants and
    the stored bookmark tag-path strings, so path identity stays consistent.
    An omitted color clears it.

    Raises:
        ValidationError: If the name is missing or contains '/', or a renamed path is too long.
        NotFoundError: If the tag does not exist.
        TagPathConflictError: If the new path is already used by another tag.
    """
    name = data.name
    if not name:
        raise ValidationError("Tag name is required")
    if is_hierarchical(name):
        raise ValidationError(f"Tag name cannot contain '{TAG_PATH_SEPARATOR}'")
    _check_length(name, name)

    repo = TagRepository(db)
    tag = await repo.get_by_id(tag_id)
    if tag is None:
        raise NotFoundError("Tag", tag_id)

    old_path = tag.path
    parent_segments = split_tag_path(old_path)[:-1]
    new_path = TAG_PATH_SEPARATOR.join([*parent_segments, name])

    if new_path != old_path:
        descendants = await repo.list_descendants(old_path)
        moving_ids = [tag.id, *(d.id for d in descendants)]
        if await repo.path_taken(new_path, exclude_ids=moving_ids):
            raise TagPathConflictError(new_path)
        renamed = {d.id: new_path + d.path[len(old_path):] for d in descendants}
        _check_length(name, max([new_path, *renamed.values()], key=len))
        for descendant in descendants:
            if await repo.path_taken(renamed[descendant.id], exclude_ids=moving_ids):
                raise TagPathConflictError(renamed[descendant.id])

        for descendant in descendants:
            descendant.path = renamed[descendant.id]
            descendant.updated_at = func.now()
        tag.path = new_path
        await repo.rename_bookmark_paths(old_path, new_path)

    tag.name = name
    tag.color = data.color or None
    tag.updated_at = func.now()
    try:
        await db.flush()
    except IntegrityError as e:
        raise TagPathConflictError(new_path) from e
    await db.refresh(tag)
    return tag


async def delete_tag(db: AsyncSession, tag_id: int) -> None:
    """
    Delete a tag.

    Bookmark links are removed by the database cascade. Child tags are left
    in place and are shown as roots afterwards.

    Raises:
        NotFoundError: If the tag does not exist.
    """
    repo = TagRepository(db)
    tag = await repo.get_by_id(tag_id)
    if tag is None:
        raise NotFoundError("Tag", tag_id)
    await repo.delete(tag)


async def clear_tags(db: AsyncSession) -> int:
    """Delete every tag. Returns the number removed."""
    deleted = await TagRepository(db).delete_all()
    logger.info("Cleared %s tags", deleted)
    return deleted
