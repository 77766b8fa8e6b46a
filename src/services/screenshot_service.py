"""Screenshot capture and storage."""
import base64
import binascii
import hashlib
import logging
import re
import time

import httpx

from core.config import Settings
from services.object_storage import ObjectStorage, StorageError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/png"
BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/=]+$")
DATA_URL_TYPE_PATTERN = re.compile(r"^data:(image/[^;,]+)")


def url_hash(url: str) -> str:
    """First 16 hex chars of the URL's SHA-256, used to name stored files."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]


def extension_for(content_type: str | None) -> str:
    """File extension from a MIME type ("image/jpeg; q=1" -> "jpeg")."""
    if not content_type or "/" not in content_type:
        return "png"
    subtype = content_type.split(";", 1)[0].split("/", 1)[1].strip().lower()
    return subtype or "png"


def screenshot_key(url: str, content_type: str | None, now_ms: int | None = None) -> str:
    """Storage key: `screenshots/{hash}-{epoch_ms}.{ext}`."""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"screenshots/{url_hash(url)}-{now_ms}.{extension_for(content_type)}"


def is_inline_image(value: str) -> bool:
    """True for a `data:image/...` URL or a bare base64 string."""
    return value.startswith("data:image/") or bool(BASE64_PATTERN.match(value))


class ScreenshotService:
    """Captures page screenshots through an external API and stores them."""

    def __init__(self, settings: Settings, storage: ObjectStorage) -> None:
        self.api_url = settings.screenshot_api_url
        self.api_key = settings.screenshot_api_key
        self.timeout = settings.screenshot_timeout
        self.storage = storage

    async def capture(self, url: str) -> str | None:
        """
        Capture a screenshot of `url` and return its public URL.

        Returns None if the service is not configured or anything fails.
        """
        if not self.api_key or not self.api_url:
            logger.warning("Screenshot API is not configured, skipping capture")
            return None

        try:
            async with httpx.AsyncClient(timeout=self.timeout, http2=True) as client:
                response = await client.get(
                    self.api_url,
                    params={"url": url, "key": self.api_key},
                )
        except httpx.HTTPError as e:
            logger.warning("Screenshot request failed for %s: %s", url, e)
            return None

        if not response.is_success:
            logger.warning(
                "Screenshot API returned %s for %s: %s",
                response.status_code, url, response.text[:200],
            )
            return None
        if not response.content:
            logger.warning("Screenshot API returned an empty body for %s", url)
            return None

        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        return await self._store(url, response.content, content_type)

    async def store_client_screenshot(self, value: str, url: str) -> str | None:
        """
        Persist a screenshot sent by the client.

        Inline images (data URLs or bare base64) are decoded and stored; any
        other value is taken to be an image URL and returned unchanged.
        Returns None if an inline image cannot be decoded or stored.
        """
        value = value.strip()
        if not value:
            return None
        if not is_inline_image(value):
            return value

        content_type = DEFAULT_CONTENT_TYPE
        payload = value
        match = DATA_URL_TYPE_PATTERN.match(value)
        if match:
            content_type = match.group(1)
        if "," in value:
            payload = value.split(",", 1)[1]

        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.warning("Client screenshot for %s is not valid base64: %s", url, e)
            return None

        return await self._store(url, data, content_type)

    async def _store(self, url: str, data: bytes, content_type: str) -> str | None:
        key = screenshot_key(url, content_type)
        try:
            return await self.storage.put(key, data, content_type)
        except StorageError as e:
            logger.warning("Failed to store screenshot for %s: %s", url, e)
            return None
