"""grant-reaper Database Configuration - Async SQLAlchemy."""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from grant_reaper.core.config import settings

# Pool settings come from DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_TIMEOUT and
# DB_POOL_RECYCLE. SQLite uses its own pool class and rejects these arguments.
_engine_kwargs: dict = {
    "pool_pre_ping": True,
    "echo": settings.debug and settings.log_level == "DEBUG",
}
if not settings.is_sqlite:
    _engine_kwargs.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
    )

engine = create_async_engine(str(settings.database_url), **_engine_kwargs)

# Session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base()
