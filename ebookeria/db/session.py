from typing import Any, AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ebookeria.core.config import config
from ebookeria.db.schema import Base


def create_session_factory(db_url: str) -> async_sessionmaker[AsyncSession]:
    engine_options: dict[str, Any] = {"echo": config.debug}
    # SQLite engines do not use a sized connection pool.
    if not db_url.startswith("sqlite"):
        engine_options.update(pool_size=config.db_pool_size, max_overflow=config.db_max_overflow)

    engine: AsyncEngine = create_async_engine(db_url, **engine_options)
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session; anything left uncommitted is rolled back when an error escapes."""

    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
