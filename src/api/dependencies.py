"""FastAPI dependencies for injection."""
from fastapi import Depends

from core.auth import require_write_access
from core.config import Settings, get_settings
from db.session import get_async_session
from services.enrichment_service import EnrichmentService


def get_enrichment_service(settings: Settings = Depends(get_settings)) -> EnrichmentService:
    """Enrichment service wired to the current settings."""
    return EnrichmentService(settings)


__all__ = [
    "get_async_session",
    "get_enrichment_service",
    "get_settings",
    "require_write_access",
]
