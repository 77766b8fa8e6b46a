"""
Write-access check for mutating endpoints.

This is a capability check, not user identity. A request may write if:

1. API_TOKEN is configured and the Authorization header equals it exactly, or
2. no API_TOKEN is configured and the Origin header's hostname equals the
   Host header's hostname (same-origin browser requests).
"""
import logging
from urllib.parse import urlparse

from fastapi import Depends, Request

from core.config import Settings, get_settings
from services.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


def _hostname(value: str | None, *, is_url: bool) -> str | None:
    """Hostname without port, lowercased. `is_url` for Origin, bare host:port for Host."""
    if not value:
        return None
    parsed = urlparse(value if is_url else f"//{value}")
    return parsed.hostname


def is_authorized(
    settings: Settings,
    authorization: str | None,
    origin: str | None,
    host: str | None,
) -> bool:
    """Decide write access from the relevant request headers."""
    if settings.api_token:
        return authorization == settings.api_token

    origin_host = _hostname(origin, is_url=True)
    request_host = _hostname(host, is_url=False)
    return origin_host is not None and origin_host == request_host


async def require_write_access(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    """
    FastAPI dependency guarding mutating endpoints.

    Raises:
        UnauthorizedError: If the request may not write.
    """
    headers = request.headers
    if not is_authorized(
        settings,
        authorization=headers.get("authorization"),
        origin=headers.get("origin"),
        host=headers.get("host"),
    ):
        logger.warning(
            "Rejected write to %s %s from origin %s",
            request.method, request.url.path, headers.get("origin"),
        )
        raise UnauthorizedError()
