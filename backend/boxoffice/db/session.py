"""
Store handle and unit-of-work helpers.

The Database object is created once in the application lifespan, stored on
app.state, and disposed on shutdown. Nothing imports a module-level engine;
every component receives the handle (or a session made from it) explicitly.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from boxoffice.core.config import Settings
from boxoffice.core.exceptions import BoxOfficeError, InternalFailure
from boxoffice.core.logging import get_logger
from boxoffice.db.base import Base

logger = get_logger(__name__)


class Database:
    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        kwargs = {"echo": settings.DEBUG, "pool_pre_ping": True}
        if not settings.DATABASE_URL.startswith("sqlite"):
            kwargs.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
            )
        return cls(settings.DATABASE_URL, **kwargs)

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_all(self) -> None:
        # Import models so their tables are registered on Base.metadata
        import boxoffice.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session. Services commit their own units of work."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session


@asynccontextmanager
async def transaction(db: AsyncSession, operation: str = "transaction") -> AsyncIterator[AsyncSession]:
    """
    Commit on success, roll back on every error path.

    Storage errors are translated to InternalFailure here so callers only
    ever see typed errors. Domain errors raised inside the block roll back
    and propagate unchanged.
    """
    try:
        yield db
        await db.commit()
    except BoxOfficeError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("transaction_failed", operation=operation, error=str(e))
        raise InternalFailure(f"Storage failure during {operation}") from e
    except BaseException:
        await db.rollback()
        raise
