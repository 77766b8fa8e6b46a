"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.helpers import cors_headers, error_response
from api.routers import bookmarks, health, settings, tags
from core.config import get_settings
from services.exceptions import (
    DuplicateUrlError,
    NotFoundError,
    TagPathConflictError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    logging.basicConfig(level=app_settings.log_level.upper(), format=LOG_FORMAT)
    logger.info("Starting Bookmarks API (storage dir %s)", app_settings.storage_dir)

    yield

    from db.session import engine

    await engine.dispose()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # API responses are never meant to be framed
        response.headers["X-Frame-Options"] = "DENY"
        return response


app_settings = get_settings()

app = FastAPI(
    title="Bookmarks API",
    description="Bookmark manager with hierarchical tags and automatic enrichment.",
    version="0.1.0",
    lifespan=lifespan,
)


def _cors(request: Request) -> dict[str, str]:
    # Resolve settings the way route dependencies do, so overrides apply here too
    provider = request.app.dependency_overrides.get(get_settings, get_settings)
    return cors_headers(request.headers.get("origin"), provider())


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    if message == "Invalid URL" or not field:
        return message
    return f"{field}: {message}"


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Service-level input rejection."""
    return error_response(400, str(exc), headers=_cors(request))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Malformed body or query parameters."""
    return error_response(400, _validation_message(exc), headers=_cors(request))


@app.exception_handler(DuplicateUrlError)
async def duplicate_url_handler(request: Request, exc: DuplicateUrlError) -> JSONResponse:
    """Duplicate URL; the existing bookmark is returned so the client can show it."""
    return error_response(409, str(exc), data=exc.existing, headers=_cors(request))


@app.exception_handler(TagPathConflictError)
async def tag_path_conflict_handler(request: Request, exc: TagPathConflictError) -> JSONResponse:
    """Tag rename collides with an existing path."""
    return error_response(409, str(exc), headers=_cors(request))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Missing resource."""
    return error_response(404, str(exc), headers=_cors(request))


@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
    """Missing write access."""
    return error_response(
        401,
        str(exc),
        headers={"WWW-Authenticate": 'Basic realm="Bookmarks API"', **_cors(request)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else: log the details, return a generic message."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, "Internal server error", headers=_cors(request))


app.add_middleware(SecurityHeadersMiddleware)

app.include_router(health.router)
app.include_router(bookmarks.router)
app.include_router(tags.router)
app.include_router(settings.router)

# Stored screenshots; check_dir=False so the app starts before the first upload
app.mount(
    "/media",
    StaticFiles(directory=app_settings.storage_dir, check_dir=False),
    name="media",
)
