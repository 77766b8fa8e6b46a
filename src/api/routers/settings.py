"""Settings endpoints (AI configuration)."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session
from schemas.setting import AIConfig, AIConfigUpdate
from services import settings_service

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/ai", response_model=AIConfig, response_model_by_alias=True)
async def get_ai_settings(db: AsyncSession = Depends(get_async_session)) -> AIConfig:
    """Get the AI configuration; defaults fill anything not saved yet."""
    return await settings_service.get_ai_config(db)


@router.post("/ai")
async def save_ai_settings(
    data: AIConfigUpdate,
    db: AsyncSession = Depends(get_async_session),
) -> dict[str, bool]:
    """Save the AI configuration. Omitted temperature/maxTokens get defaults."""
    await settings_service.save_ai_config(db, data)
    return {"success": True}
