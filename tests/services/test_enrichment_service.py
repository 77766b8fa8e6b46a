"""Tests for bookmark creation with enrichment."""
from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from models.bookmark import Bookmark
from schemas.analysis import AIAnalysisResult
from schemas.bookmark import BookmarkCreate
from schemas.setting import AIConfig, AIConfigUpdate
from services import settings_service
from services.enrichment_service import EnrichmentResult, EnrichmentService, merge
from services.exceptions import DuplicateUrlError
from services.url_scraper import ExtractedMetadata

METADATA = ExtractedMetadata(
    title="Page Title", description="Page description", favicon="https://example.com/favicon.ico",
)
ANALYSIS = AIAnalysisResult(
    summary="AI summary",
    tags=["#Python", "#Backend/API"],
    tag_paths=["Dev/Python"],
)


@pytest.fixture
def screenshots() -> MagicMock:
    mock = MagicMock()
    mock.capture = AsyncMock(return_value=None)
    mock.store_client_screenshot = AsyncMock(side_effect=lambda value, _url: value)
    return mock


@pytest.fixture
def analyzer() -> MagicMock:
    mock = MagicMock()
    mock.analyze_url = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def service(test_settings: Settings, screenshots: MagicMock, analyzer: MagicMock) -> EnrichmentService:
    return EnrichmentService(test_settings, screenshots=screenshots, analyzer=analyzer)


@pytest.fixture
def mock_fetch_metadata() -> Generator[AsyncMock]:
    with patch(
        "services.enrichment_service.fetch_metadata", new_callable=AsyncMock, return_value=None,
    ) as mock:
        yield mock


class TestMerge:
    """Tests for combining client input with enrichment results."""

    def test__merge__client_values_win(self) -> None:
        data = BookmarkCreate(
            url="https://example.com", title="Mine", description="My desc", favicon="f.ico",
        )
        draft = merge(data, EnrichmentResult(metadata=METADATA, analysis=ANALYSIS))
        assert draft.title == "Mine"
        assert draft.description == "My desc"
        assert draft.favicon == "f.ico"

    def test__merge__page_then_url(self) -> None:
        data = BookmarkCreate(url="https://example.com")
        assert merge(data, EnrichmentResult(metadata=METADATA)).title == "Page Title"
        assert merge(data, EnrichmentResult()).title == "https://example.com"
        assert merge(data).title == "https://example.com"

    def test__merge__ai_summary_only_without_other_description(self) -> None:
        data = BookmarkCreate(url="https://example.com")
        with_page = merge(data, EnrichmentResult(metadata=METADATA, analysis=ANALYSIS))
        assert with_page.description == "Page description"

        no_description = ExtractedMetadata(title="T", description=None, favicon=None)
        without_page = merge(data, EnrichmentResult(metadata=no_description, analysis=ANALYSIS))
        assert without_page.description == "AI summary"

    def test__merge__tags_are_client_then_ai(self) -> None:
        data = BookmarkCreate(url="https://example.com", tags=["mine"], tagPaths=["My/Path"])
        draft = merge(data, EnrichmentResult(analysis=ANALYSIS))
        assert draft.tag_names == ["mine", "#Python", "#Backend/API"]
        assert draft.tag_paths == ["My/Path", "Dev/Python"]

    def test__merge__screenshot_client_then_captured(self) -> None:
        data = BookmarkCreate(url="https://example.com")
        assert merge(data, EnrichmentResult(screenshot="cap.png")).screenshot == "cap.png"
        client = BookmarkCreate(url="https://example.com", screenshot="https://c/s.png")
        assert merge(client, EnrichmentResult(screenshot="cap.png")).screenshot == "https://c/s.png"


class TestEnrich:
    """Tests for the concurrent enrichment fan-out."""

    async def test__enrich__all_succeed(
        self,
        service: EnrichmentService,
        screenshots: MagicMock,
        analyzer: MagicMock,
        mock_fetch_metadata: AsyncMock,
    ) -> None:
        mock_fetch_metadata.return_value = METADATA
        screenshots.capture.return_value = "https://media/shot.png"
        analyzer.analyze_url.return_value = ANALYSIS

        config = AIConfig(model="m")
        result = await service.enrich("https://example.com", config)

        assert result == EnrichmentResult(
            metadata=METADATA, screenshot="https://media/shot.png", analysis=ANALYSIS,
        )
        analyzer.analyze_url.assert_awaited_once_with("https://example.com", config)

    async def test__enrich__failures_are_isolated(
        self,
        service: EnrichmentService,
        screenshots: MagicMock,
        analyzer: MagicMock,
        mock_fetch_metadata: AsyncMock,
    ) -> None:
        mock_fetch_metadata.side_effect = RuntimeError("fetch exploded")
        screenshots.capture.return_value = "https://media/shot.png"
        analyzer.analyze_url.side_effect = TimeoutError()

        result = await service.enrich("https://example.com", AIConfig())

        assert result.metadata is None
        assert result.screenshot == "https://media/shot.png"
        assert result.analysis is None


class TestCreateBookmark:
    """Tests for EnrichmentService.create_bookmark."""

    async def test__create_bookmark__url_only_is_enriched(
        self,
        db_session: AsyncSession,
        service: EnrichmentService,
        analyzer: MagicMock,
        mock_fetch_metadata: AsyncMock,
    ) -> None:
        mock_fetch_metadata.return_value = METADATA
        analyzer.analyze_url.return_value = ANALYSIS

        bookmark = await service.create_bookmark(
            db_session, BookmarkCreate(url="https://example.com/e"),
        )

        assert bookmark.title == "Page Title"
        assert bookmark.description == "Page description"
        assert [t.name for t in bookmark.tags] == ["Python"]
        assert [p.path for p in bookmark.tag_paths] == ["Dev/Python", "Backend/API"]

    async def test__create_bookmark__uses_saved_ai_config(
        self,
        db_session: AsyncSession,
        service: EnrichmentService,
        analyzer: MagicMock,
        mock_fetch_metadata: AsyncMock,  # noqa: ARG002
    ) -> None:
        await settings_service.save_ai_config(
            db_session, AIConfigUpdate(model="saved-model", temperature=0.1, max_tokens=100),
        )

        await service.create_bookmark(db_session, BookmarkCreate(url="https://example.com/c"))

        config = analyzer.analyze_url.call_args.args[1]
        assert config == AIConfig(model="saved-model", temperature=0.1, max_tokens=100)

    async def test__create_bookmark__client_data_skips_enrichment(
        self,
        db_session: AsyncSession,
        service: EnrichmentService,
        screenshots: MagicMock,
        analyzer: MagicMock,
        mock_fetch_metadata: AsyncMock,
    ) -> None:
        bookmark = await service.create_bookmark(
            db_session, BookmarkCreate(url="https://example.com/s", tags=["only"]),
        )

        assert bookmark.title == "https://example.com/s"
        mock_fetch_metadata.assert_not_called()
        screenshots.capture.assert_not_called()
        analyzer.analyze_url.assert_not_called()

    async def test__create_bookmark__client_screenshot_is_stored(
        self,
        db_session: AsyncSession,
        service: EnrichmentService,
        screenshots: MagicMock,
        mock_fetch_metadata: AsyncMock,
    ) -> None:
        """A screenshot alone counts as client data, even after it is replaced by its stored URL."""
        screenshots.store_client_screenshot.side_effect = None
        screenshots.store_client_screenshot.return_value = "https://media/stored.png"

        bookmark = await service.create_bookmark(
            db_session,
            BookmarkCreate(url="https://example.com/shot", screenshot="data:image/png;base64,AAAA"),
        )

        assert bookmark.screenshot == "https://media/stored.png"
        mock_fetch_metadata.assert_not_called()

    async def test__create_bookmark__duplicate(
        self,
        db_session: AsyncSession,
        service: EnrichmentService,
        mock_fetch_metadata: AsyncMock,  # noqa: ARG002
    ) -> None:
        first = await service.create_bookmark(
            db_session, BookmarkCreate(url="https://example.com/d", title="First"),
        )

        with pytest.raises(DuplicateUrlError) as exc_info:
            await service.create_bookmark(
                db_session, BookmarkCreate(url="https://example.com/d", title="Again"),
            )
        assert exc_info.value.existing.id == first.id
        assert exc_info.value.existing.title == "First"

    async def test__create_bookmark__long_url_with_failed_enrichment(
        self,
        db_session: AsyncSession,
        service: EnrichmentService,
        mock_fetch_metadata: AsyncMock,
    ) -> None:
        """The URL fallback title is stored whole, however long the query string is."""
        mock_fetch_metadata.side_effect = RuntimeError("fetch failed")
        url = "https://example.com/search?" + "&".join(f"param{i}=value{i}" for i in range(40))
        assert len(url) > 600

        bookmark = await service.create_bookmark(db_session, BookmarkCreate(url=url))

        assert bookmark.title == url
        assert Bookmark.__table__.c.title.type.length is None
        stored = await db_session.get(Bookmark, bookmark.id)
        assert stored.title == url
