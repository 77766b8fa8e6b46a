"""Bookmark CRUD endpoints."""
from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_async_session,
    get_enrichment_service,
    get_settings,
    require_write_access,
)
from api.helpers import allowed_origin, get_cors_headers, preflight_headers, success_response
from core.config import Settings
from schemas.base import ApiResponse, ErrorResponse
from schemas.bookmark import BookmarkCreate, BookmarkRead, BookmarkUpdate
from services import bookmark_query_service, bookmark_service
from services.enrichment_service import EnrichmentService
from services.exceptions import ValidationError

router = APIRouter(
    prefix="/bookmarks",
    tags=["bookmarks"],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


def _require_id(bookmark_id: int | None) -> int:
    if bookmark_id is None:
        raise ValidationError("Missing bookmark id")
    return bookmark_id


@router.options("")
async def preflight(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Response:
    """Answer CORS preflight for allow-listed origins only."""
    origin = allowed_origin(request.headers.get("origin"), settings)
    if origin is None:
        return Response(content="Forbidden", status_code=403)
    return Response(status_code=204, headers=preflight_headers(origin))


@router.get("")
async def list_bookmarks(
    search: str | None = Query(default=None, description="Title substring"),
    tag_id: int | None = Query(default=None, alias="tagId", description="Flat tag id"),
    menu_path: str | None = Query(
        default=None, alias="menuPath", description="Tag path; includes everything below it",
    ),
    limit: int = Query(default=50, description="Pagination limit, clamped to 1..100"),
    offset: int = Query(default=0, description="Pagination offset; negative values mean 0"),
    db: AsyncSession = Depends(get_async_session),
    cors: dict[str, str] = Depends(get_cors_headers),
) -> JSONResponse:
    """
    List bookmarks, newest first.

    - **menuPath**: bookmarks filed under the path or any path below it
    - **tagId**: bookmarks with that flat tag
    - **search**: title substring; combined with menuPath or tagId when given
    """
    bookmarks = await bookmark_query_service.list_bookmarks(
        db,
        search=search,
        tag_id=tag_id,
        menu_path=menu_path,
        limit=limit,
        offset=offset,
    )
    return success_response(bookmarks, headers=cors)


@router.get("/{bookmark_id}")
async def get_bookmark(
    bookmark_id: int,
    db: AsyncSession = Depends(get_async_session),
    cors: dict[str, str] = Depends(get_cors_headers),
) -> JSONResponse:
    """Get a single bookmark by ID."""
    bookmark = await bookmark_query_service.get_bookmark(db, bookmark_id)
    return success_response(bookmark, headers=cors)


@router.post(
    "",
    status_code=201,
    dependencies=[Depends(require_write_access)],
    responses={
        201: {"model": ApiResponse[BookmarkRead]},
        401: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "URL already saved; `data` is the existing bookmark"},
    },
)
async def create_bookmark(
    data: BookmarkCreate,
    db: AsyncSession = Depends(get_async_session),
    service: EnrichmentService = Depends(get_enrichment_service),
    cors: dict[str, str] = Depends(get_cors_headers),
) -> JSONResponse:
    """
    Create a bookmark.

    When only a URL is sent, title, description, favicon, screenshot and
    tags are filled in from the page, a screenshot service and AI analysis.
    """
    bookmark = await service.create_bookmark(db, data)
    return success_response(bookmark, "Bookmark created", status_code=201, headers=cors)


@router.put("", dependencies=[Depends(require_write_access)])
async def update_bookmark(
    data: BookmarkUpdate,
    bookmark_id: int | None = Query(default=None, alias="id"),
    db: AsyncSession = Depends(get_async_session),
    cors: dict[str, str] = Depends(get_cors_headers),
) -> JSONResponse:
    """Update a bookmark. `tagIds`, when sent, replaces its flat tags."""
    bookmark = await bookmark_service.update_bookmark(db, _require_id(bookmark_id), data)
    hydrated = await bookmark_query_service.get_bookmark(db, bookmark.id)
    return success_response(hydrated, "Bookmark updated", headers=cors)


@router.delete("", dependencies=[Depends(require_write_access)])
async def delete_bookmark(
    bookmark_id: int | None = Query(default=None, alias="id"),
    db: AsyncSession = Depends(get_async_session),
    cors: dict[str, str] = Depends(get_cors_headers),
) -> JSONResponse:
    """Delete a bookmark along with its tag links."""
    await bookmark_service.delete_bookmark(db, _require_id(bookmark_id))
    return success_response(message="Bookmark deleted", headers=cors)
