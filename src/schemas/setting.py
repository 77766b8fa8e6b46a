"""Pydantic schemas for the settings endpoints."""
from pydantic import Field

from schemas.base import CamelModel

DEFAULT_AI_TEMPERATURE = 0.5
DEFAULT_AI_MAX_TOKENS = 2048

# Values written by POST /settings/ai when the client omits them
FALLBACK_AI_TEMPERATURE = "0.7"
FALLBACK_AI_MAX_TOKENS = "4000"


class AIConfig(CamelModel):
    """AI analysis configuration as stored under category "ai"."""

    model: str = ""
    temperature: float = DEFAULT_AI_TEMPERATURE
    max_tokens: int = DEFAULT_AI_MAX_TOKENS

    @property
    def enabled(self) -> bool:
        """AI analysis runs only when a model is configured."""
        return bool(self.model.strip())


class AIConfigUpdate(CamelModel):
    """Body of POST /settings/ai. Numbers may arrive as strings."""

    model: str = ""
    temperature: float | str | None = None
    max_tokens: int | str | None = Field(default=None)
