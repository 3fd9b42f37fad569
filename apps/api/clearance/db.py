from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from clearance.config import settings

engine = create_async_engine(settings.database_url, pool_pre_ping=True)

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_models() -> None:
  # Tests and first boot on SQLite; real deployments run the alembic revisions.
  from clearance.models import Base

  async with engine.begin() as conn:
    await conn.run_sync(Base.metadata.create_all)


async def drop_models() -> None:
  from clearance.models import Base

  async with engine.begin() as conn:
    await conn.run_sync(Base.metadata.drop_all)
