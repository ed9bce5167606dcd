from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from libs.db.base import Base
from libs.db.config import AsyncSessionLocal, engine


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an async database session.
    Uncommitted work is rolled back if the request fails.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def create_all_tables() -> None:
    """Create every mapped table. Used by local runs against a fresh database."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
