"""Tag endpoints."""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, require_write_access
from api.helpers import success_response
from schemas.tag import TagRead, TagUpdate
from services import tag_service
from services.exceptions import ValidationError

router = APIRouter(prefix="/tags", tags=["tags"])


def _require_id(tag_id: int | None) -> int:
    if tag_id is None:
        raise ValidationError("Missing tag id")
    return tag_id


@router.get("")
async def list_tags(
    search: str | None = Query(default=None, description="Name substring"),
    db: AsyncSession = Depends(get_async_session),
) -> JSONResponse:
    """List all tags, or those whose name contains `search`."""
    tags = await tag_service.list_tags(db, search=search)
    return success_response([TagRead.model_validate(tag) for tag in tags])


@router.get("/tree")
async def get_tag_tree(db: AsyncSession = Depends(get_async_session)) -> JSONResponse:
    """
    Get all tags as a forest for the sidebar.

    `standalone` holds flat tags shown as chips; `hierarchical` holds the
    trees shown as collapsible menus.
    """
    tree = await tag_service.get_tag_tree(db)
    return success_response(tree)


@router.put("")
async def update_tag(
    data: TagUpdate,
    tag_id: int | None = Query(default=None, alias="id"),
    db: AsyncSession = Depends(get_async_session),
) -> JSONResponse:
    """Rename or recolor a tag; paths below it follow the new name."""
    tag = await tag_service.update_tag(db, _require_id(tag_id), data)
    return success_response(TagRead.model_validate(tag))


@router.delete("")
async def delete_tag(
    tag_id: int | None = Query(default=None, alias="id"),
    db: AsyncSession = Depends(get_async_session),
) -> JSONResponse:
    """Delete a tag. Its bookmark links are removed; child tags remain."""
    await tag_service.delete_tag(db, _require_id(tag_id))
    return success_response(message="Tag deleted")


@router.api_route("/clear", methods=["GET", "DELETE"], dependencies=[Depends(require_write_access)])
async def clear_tags(db: AsyncSession = Depends(get_async_session)) -> JSONResponse:
    """Delete every tag."""
    deleted = await tag_service.clear_tags(db)
    return success_response({"deleted": deleted}, message="All tags deleted")
