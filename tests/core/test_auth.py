"""Tests for the write-access check."""
import pytest
from fastapi import Request

from core.auth import is_authorized, require_write_access
from core.config import Settings
from services.exceptions import UnauthorizedError


def _request(headers: dict[str, str], method: str = "POST") -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": "/bookmarks",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


class TestIsAuthorized:
    """Tests for is_authorized."""

    def test_same_origin_without_token(self, test_settings: Settings) -> None:
        assert is_authorized(test_settings, None, "https://app.example.com", "app.example.com")

    def test_same_origin_ignores_ports_and_scheme(self, test_settings: Settings) -> None:
        assert is_authorized(test_settings, None, "http://localhost:3000", "localhost:8000")

    def test_same_origin_is_case_insensitive(self, test_settings: Settings) -> None:
        assert is_authorized(test_settings, None, "https://App.Example.com", "app.example.COM")

    def test_cross_origin_rejected(self, test_settings: Settings) -> None:
        assert not is_authorized(test_settings, None, "https://evil.example.com", "app.example.com")

    @pytest.mark.parametrize(
        ("origin", "host"),
        [(None, "app.example.com"), ("", "app.example.com"), ("https://a.com", None), ("null", "a")],
    )
    def test_missing_headers_rejected(
        self, test_settings: Settings, origin: str | None, host: str | None,
    ) -> None:
        assert not is_authorized(test_settings, None, origin, host)

    def test_token_must_match_exactly(self, test_settings: Settings) -> None:
        test_settings.api_token = "s3cret"
        assert is_authorized(test_settings, "s3cret", None, None)
        assert not is_authorized(test_settings, "Bearer s3cret", None, None)
        assert not is_authorized(test_settings, None, None, None)

    def test_token_disables_same_origin(self, test_settings: Settings) -> None:
        test_settings.api_token = "s3cret"
        assert not is_authorized(test_settings, None, "https://a.example.com", "a.example.com")


class TestRequireWriteAccess:
    """Tests for the FastAPI dependency."""

    async def test_allows(self, test_settings: Settings) -> None:
        request = _request({"origin": "http://test", "host": "test"})
        await require_write_access(request, test_settings)

    async def test_rejects(self, test_settings: Settings) -> None:
        request = _request({"origin": "http://other", "host": "test"})
        with pytest.raises(UnauthorizedError):
            await require_write_access(request, test_settings)
