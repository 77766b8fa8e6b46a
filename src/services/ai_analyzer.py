"""AI analysis of page content: summary, tags and tag paths."""
import logging
import re
from urllib.parse import urlparse

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from core.config import Settings
from schemas.analysis import AIAnalysisResult, ExtractedContent
from schemas.setting import AIConfig
from schemas.validators import normalize_tag_path
from services.url_scraper import extract_main_content, fetch_url

logger = logging.getLogger(__name__)

MAX_FALLBACK_TAGS = 8

SYSTEM_PROMPT = (
    "You are an expert web content analyst. Analyze the web page you are given "
    "and answer with a single JSON object and nothing else."
)

USER_PROMPT_TEMPLATE = """Analyze the following web page.

URL: {url}
Title: {title}
Description: {description}
Content: {content}

Return a JSON object with exactly these keys:
- "summary": a concise summary of about 100 words covering the page's main content, purpose and value.
- "tags": 5-8 relevant tags, each starting with "#". Hierarchical tags use "/" as separator, e.g. "#Business/Marketing".
- "tagPaths": for every hierarchical tag, its path without the "#", e.g. "Business/Marketing". Omit flat tags.
- "keywords": 5-8 core keywords, most important first.
- "language": the main language of the content as an ISO 639-1 code, e.g. "en".
- "sentiment": one of "positive", "neutral", "negative".
- "categories": 1-3 categories, each a path from broad to specific such as "Technology/Web".

Base the analysis strictly on the provided content."""

# (keyword, tag) pairs for the offline tagger; keywords match on word boundaries
TECH_KEYWORDS = (
    ("react", "React"),
    ("vue", "Vue.js"),
    ("angular", "Angular"),
    ("javascript", "JavaScript"),
    ("typescript", "TypeScript"),
    ("python", "Python"),
    ("java", "Java"),
    ("golang", "Go"),
    ("rust", "Rust"),
    ("docker", "Docker"),
    ("kubernetes", "Kubernetes"),
    ("api", "API"),
    ("database", "Database"),
    ("frontend", "Frontend"),
    ("backend", "Backend"),
)

DOMAIN_TAGS = (
    ("github", "GitHub"),
    ("stackoverflow", "StackOverflow"),
    ("medium", "Blog"),
    ("dev.to", "Development"),
    ("docs", "Documentation"),
)


def extract_json_object(text: str) -> str:
    """
    Return the outermost `{...}` span of a model reply.

    Some models wrap JSON in prose or code fences even in JSON mode.

    Raises:
        ValueError: If the reply contains no JSON object.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("Model reply contains no JSON object")
    return text[start:end + 1]


def heuristic_tags(content: ExtractedContent) -> list[str]:
    """
    Tag a page without a model.

    Matches a fixed technology vocabulary against the page text and adds
    tags for well-known domains. At most MAX_FALLBACK_TAGS, without '#'.
    """
    text = f"{content.title} {content.description} {content.content}".lower()
    tags: list[str] = []
    for keyword, tag in TECH_KEYWORDS:
        if tag not in tags and re.search(rf"\b{re.escape(keyword)}\b", text):
            tags.append(tag)

    domain = (urlparse(content.url).hostname or "").lower()
    for fragment, tag in DOMAIN_TAGS:
        if fragment in domain and tag not in tags:
            tags.append(tag)

    return tags[:MAX_FALLBACK_TAGS]


def heuristic_analysis(content: ExtractedContent) -> AIAnalysisResult:
    """Offline stand-in for a model analysis."""
    tags = heuristic_tags(content)
    return AIAnalysisResult(
        summary=content.description or content.title,
        tags=[f"#{tag}" for tag in tags],
        tag_paths=[],
        keywords=tags,
        language=content.metadata.language or "unknown",
        sentiment="neutral",
        categories=[],
    )


class AIAnalyzer:
    """Runs page analysis against an OpenAI-compatible chat completions endpoint."""

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self.settings = settings
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url,
            )
        return self._client

    async def analyze_url(self, url: str, config: AIConfig) -> AIAnalysisResult | None:
        """
        Fetch a page and analyze it.

        Returns None when no model is configured or the page cannot be
        fetched. Model failures fall back to the heuristic tagger.
        """
        if not config.enabled:
            logger.info("No AI model configured, skipping analysis for %s", url)
            return None

        result = await fetch_url(url, self.settings.fetch_timeout)
        if result.html is None:
            logger.warning("Failed to fetch %s for AI analysis: %s", url, result.error)
            return None

        content = extract_main_content(result.html, url)
        return await self.analyze_content(content, config)

    async def analyze_content(
        self, content: ExtractedContent, config: AIConfig,
    ) -> AIAnalysisResult:
        """Analyze extracted content with the model, or heuristically if that fails."""
        prompt = USER_PROMPT_TEMPLATE.format(
            url=content.url,
            title=content.title,
            description=content.description or "None",
            content=content.content[: self.settings.ai_content_max_chars],
        )
        try:
            response = await self._get_client().chat.completions.create(
                model=config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=config.temperature,
                max_tokens=config.max_tokens,
            )
            reply = response.choices[0].message.content or ""
            analysis = AIAnalysisResult.model_validate_json(extract_json_object(reply))
        except (openai.OpenAIError, PydanticValidationError, ValueError) as e:
            logger.warning("AI analysis failed for %s, using keyword fallback: %s", content.url, e)
            return heuristic_analysis(content)

        analysis.tag_paths = [p for p in (normalize_tag_path(p) for p in analysis.tag_paths) if p]
        return analysis
