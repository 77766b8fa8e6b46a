"""
CORS for the bookmarks resource.

Only exact matches against the configured allow-list (the web app URL and
the browser extension origin) get CORS headers.
"""
from fastapi import Depends, Request

from core.config import Settings, get_settings

PREFLIGHT_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
PREFLIGHT_HEADERS = "Content-Type, Authorization"
PREFLIGHT_MAX_AGE = "86400"


def allowed_origin(origin: str | None, settings: Settings) -> str | None:
    """Return `origin` if it is allow-listed, else None."""
    if origin and origin in settings.allowed_origins:
        return origin
    return None


def cors_headers(origin: str | None, settings: Settings) -> dict[str, str]:
    """`Access-Control-Allow-Origin` for an allow-listed origin, else nothing."""
    allowed = allowed_origin(origin, settings)
    if allowed is None:
        return {}
    return {"Access-Control-Allow-Origin": allowed, "Vary": "Origin"}


def preflight_headers(origin: str) -> dict[str, str]:
    """Headers answering an allowed preflight request."""
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": PREFLIGHT_METHODS,
        "Access-Control-Allow-Headers": PREFLIGHT_HEADERS,
        "Access-Control-Max-Age": PREFLIGHT_MAX_AGE,
        "Vary": "Origin",
    }


def get_cors_headers(request: Request, settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """FastAPI dependency: CORS headers to echo on bookmark responses."""
    return cors_headers(request.headers.get("origin"), settings)
