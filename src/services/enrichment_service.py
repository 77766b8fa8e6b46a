"""
Bookmark creation with best-effort enrichment.

When a bookmark is submitted with nothing but a URL, page metadata, a
screenshot and an AI analysis are gathered concurrently. Each of the three
may fail independently; the bookmark is created with whatever succeeded.
"""
import asyncio
import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from schemas.analysis import AIAnalysisResult
from schemas.bookmark import BookmarkCreate, BookmarkRead
from schemas.setting import AIConfig
from services import bookmark_query_service, bookmark_service, settings_service
from services.ai_analyzer import AIAnalyzer
from services.exceptions import DuplicateUrlError
from services.object_storage import ObjectStorage
from services.screenshot_service import ScreenshotService
from services.url_scraper import ExtractedMetadata, fetch_metadata

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentResult:
    """Whatever the enrichment calls managed to produce."""

    metadata: ExtractedMetadata | None = None
    screenshot: str | None = None
    analysis: AIAnalysisResult | None = None


@dataclass
class BookmarkDraft:
    """Final field values and tag inputs for a new bookmark."""

    url: str
    title: str
    description: str | None = None
    favicon: str | None = None
    screenshot: str | None = None
    tag_names: list[str] = field(default_factory=list)
    tag_paths: list[str] = field(default_factory=list)
    tag_ids: list[int] = field(default_factory=list)


def _settled(value: object, label: str, url: str) -> object:
    if isinstance(value, BaseException):
        logger.warning("%s failed for %s: %r", label, url, value)
        return None
    return value


def merge(data: BookmarkCreate, enrichment: EnrichmentResult | None = None) -> BookmarkDraft:
    """
    Combine client input with enrichment results.

    Client values always win. The AI summary is used as description only if
    neither the client nor the page provided one. AI tags and tag paths are
    appended after the client's.
    """
    enrichment = enrichment or EnrichmentResult()
    metadata = enrichment.metadata
    analysis = enrichment.analysis

    description = data.description or (metadata.description if metadata else None)
    if not description and analysis and analysis.summary:
        description = analysis.summary

    return BookmarkDraft(
        url=data.url,
        title=data.title or (metadata.title if metadata else None) or data.url,
        description=description,
        favicon=data.favicon or (metadata.favicon if metadata else None),
        screenshot=data.screenshot or enrichment.screenshot,
        tag_names=[*data.tags, *(analysis.tags if analysis else [])],
        tag_paths=[*data.tag_paths, *(analysis.tag_paths if analysis else [])],
        tag_ids=list(data.tag_ids),
    )


class EnrichmentService:
    """Creates bookmarks, enriching URL-only submissions."""

    def __init__(
        self,
        settings: Settings,
        screenshots: ScreenshotService | None = None,
        analyzer: AIAnalyzer | None = None,
    ) -> None:
        self.settings = settings
        self.screenshots = screenshots or ScreenshotService(settings, ObjectStorage(settings))
        self.analyzer = analyzer or AIAnalyzer(settings)

    async def enrich(self, url: str, ai_config: AIConfig) -> EnrichmentResult:
        """
        Run metadata fetch, screenshot capture and AI analysis concurrently.

        Never raises: a failed call leaves its field empty.
        """
        metadata, screenshot, analysis = await asyncio.gather(
            fetch_metadata(url, self.settings.fetch_timeout),
            self.screenshots.capture(url),
            self.analyzer.analyze_url(url, ai_config),
            return_exceptions=True,
        )
        return EnrichmentResult(
            metadata=_settled(metadata, "Metadata fetch", url),
            screenshot=_settled(screenshot, "Screenshot capture", url),
            analysis=_settled(analysis, "AI analysis", url),
        )

    async def create_bookmark(self, db: AsyncSession, data: BookmarkCreate) -> BookmarkRead:
        """
        Create a bookmark from a client request.

        Note: Does not commit. Caller (session generator) handles commit at request end.

        Raises:
            DuplicateUrlError: If a bookmark with exactly this URL exists.
        """
        existing = await bookmark_service.check_url_exists(db, data.url)
        if existing is not None:
            raise DuplicateUrlError(
                data.url, await bookmark_query_service.get_bookmark(db, existing.id),
            )

        run_enrichment = not data.has_client_data
        client_screenshot = None
        if data.screenshot:
            client_screenshot = await self.screenshots.store_client_screenshot(
                data.screenshot, data.url,
            )
        data = data.model_copy(update={"screenshot": client_screenshot})

        enrichment = None
        if run_enrichment:
            # Read before fanning out; the session must not be shared across tasks
            ai_config = await settings_service.get_ai_config(db)
            enrichment = await self.enrich(data.url, ai_config)

        draft = merge(data, enrichment)
        bookmark = await bookmark_service.create_bookmark(
            db,
            url=draft.url,
            title=draft.title,
            description=draft.description,
            favicon=draft.favicon,
            screenshot=draft.screenshot,
            tag_names=draft.tag_names,
            tag_paths=draft.tag_paths,
            tag_ids=draft.tag_ids,
        )
        logger.info("Created bookmark %s for %s", bookmark.id, draft.url)
        return await bookmark_query_service.get_bookmark(db, bookmark.id)
