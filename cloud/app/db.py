from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from .settings import DATABASE_URL
from .models import Base

engine = create_async_engine(DATABASE_URL, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_models() -> None:
    # Creates the table and the one-active-per-project index if missing.
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
