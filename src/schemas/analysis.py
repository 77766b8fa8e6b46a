"""Schemas for page content extraction and AI analysis results."""
from typing import Literal

from pydantic import BaseModel, field_validator

from schemas.base import CamelModel


class ContentMetadata(BaseModel):
    """Derived statistics about extracted page text."""

    word_count: int
    reading_time: int  # minutes, at 200 words per minute
    language: str | None = None


class ExtractedContent(BaseModel):
    """Main readable content of a page, used as input to the analyzer."""

    url: str
    title: str
    description: str
    content: str
    metadata: ContentMetadata


class AIAnalysisResult(CamelModel):
    """
    Structured analysis of a page.

    Produced either by the language model (parsed from its JSON reply) or by
    the keyword heuristic when the model call fails.
    """

    summary: str = ""
    tags: list[str] = []
    tag_paths: list[str] = []
    keywords: list[str] = []
    language: str = "unknown"
    sentiment: Literal["positive", "neutral", "negative"] = "neutral"
    categories: list[str] = []

    @field_validator("sentiment", mode="before")
    @classmethod
    def normalize_sentiment(cls, v: object) -> object:
        """Models tend to answer "Positive"; accept any casing."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("categories", mode="before")
    @classmethod
    def flatten_categories(cls, v: object) -> object:
        """Categories may come back as lists of path segments; join them."""
        if isinstance(v, list):
            return [
                "/".join(str(part) for part in item) if isinstance(item, list) else item
                for item in v
            ]
        return v
