"""Service layer for persisted settings (AI configuration)."""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import is_missing_table_error
from repositories.setting_repository import SettingRepository
from schemas.setting import (
    DEFAULT_AI_MAX_TOKENS,
    DEFAULT_AI_TEMPERATURE,
    FALLBACK_AI_MAX_TOKENS,
    FALLBACK_AI_TEMPERATURE,
    AIConfig,
    AIConfigUpdate,
)

logger = logging.getLogger(__name__)

AI_CATEGORY = "ai"
SETTINGS_TABLE = "settings"


def _parse_float(value: str | None, default: float) -> float:
    try:
        return float(value) if value is not None else default
    except ValueError:
        return default


def _parse_int(value: str | None, default: int) -> int:
    try:
        return int(float(value)) if value is not None else default
    except ValueError:
        return default


async def get_ai_config(db: AsyncSession) -> AIConfig:
    """
    Read the AI configuration.

    Missing rows fall back to defaults. A missing settings table (fresh
    database before migrations) is treated as "nothing configured".
    """
    repo = SettingRepository(db)
    try:
        async with db.begin_nested():
            rows = await repo.list_by_category(AI_CATEGORY)
    except SQLAlchemyError as e:
        if not is_missing_table_error(e, SETTINGS_TABLE):
            raise
        logger.warning("Settings table does not exist, using default AI configuration")
        return AIConfig()

    values = {row.key: row.value for row in rows}
    return AIConfig(
        model=values.get("model", "").strip(),
        temperature=_parse_float(values.get("temperature"), DEFAULT_AI_TEMPERATURE),
        max_tokens=_parse_int(values.get("maxTokens"), DEFAULT_AI_MAX_TOKENS),
    )


def _ai_rows(update: AIConfigUpdate) -> list[tuple[str, str]]:
    def _or_fallback(value: float | int | str | None, fallback: str) -> str:
        text = str(value).strip() if value is not None else ""
        return text or fallback

    return [
        ("model", (update.model or "").strip()),
        ("temperature", _or_fallback(update.temperature, FALLBACK_AI_TEMPERATURE)),
        ("maxTokens", _or_fallback(update.max_tokens, FALLBACK_AI_MAX_TOKENS)),
    ]


async def _write_rows(repo: SettingRepository, rows: list[tuple[str, str]]) -> None:
    for key, value in rows:
        await repo.upsert(
            key, value, category=AI_CATEGORY, description=f"AI setting: {key}",
        )


async def save_ai_config(db: AsyncSession, update: AIConfigUpdate) -> None:
    """
    Upsert one settings row per AI key.

    Omitted temperature and maxTokens are written as "0.7" and "4000". If
    the settings table does not exist yet it is created and the write is
    retried once.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    repo = SettingRepository(db)
    rows = _ai_rows(update)
    try:
        async with db.begin_nested():
            await _write_rows(repo, rows)
    except SQLAlchemyError as e:
        if not is_missing_table_error(e, SETTINGS_TABLE):
            raise
        logger.warning("Settings table does not exist, creating it")
        await repo.create_table()
        await _write_rows(repo, rows)
