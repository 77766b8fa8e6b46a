"""Repository for Setting database operations."""
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.setting import Setting


class SettingRepository:
    """Repository for key/value settings."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_by_category(self, category: str) -> Sequence[Setting]:
        """All settings in a category."""
        result = await self.db.execute(
            select(Setting).where(Setting.category == category).order_by(Setting.id),
        )
        return result.scalars().all()

    async def get_by_key(self, key: str) -> Setting | None:
        """Get a setting by its unique key."""
        result = await self.db.execute(select(Setting).where(Setting.key == key))
        return result.scalar_one_or_none()

    async def upsert(
        self,
        key: str,
        value: str,
        category: str = "general",
        description: str | None = None,
    ) -> Setting:
        """Insert the key, or overwrite its value if it already exists."""
        setting = await self.get_by_key(key)
        if setting is None:
            setting = Setting(
                key=key, value=value, category=category, description=description,
            )
            self.db.add(setting)
        else:
            setting.value = value
            setting.category = category
            setting.updated_at = func.now()
        await self.db.flush()
        return setting

    async def create_table(self) -> None:
        """Create the settings table if it does not exist."""
        connection = await self.db.connection()
        await connection.run_sync(
            lambda sync_conn: Setting.__table__.create(sync_conn, checkfirst=True),
        )
