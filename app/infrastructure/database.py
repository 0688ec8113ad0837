import asyncio
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)

# Base model
Base = declarative_base()


def create_engine_for_url(database_url: str) -> AsyncEngine:
    """Build an async engine, tuned for SQLite or PostgreSQL"""
    if "sqlite" in database_url.lower():
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/").endswith("aiosqlite:"):
            # In-memory databases must share one connection
            kwargs["poolclass"] = StaticPool
        return create_async_engine(database_url, echo=settings.DEBUG, **kwargs)

    return create_async_engine(
        database_url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=settings.DEBUG,
        connect_args={"timeout": settings.DATABASE_CONNECT_TIMEOUT},
    )


class Database:
    """Owns the engine and session factory for one process"""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_url(cls, database_url: str) -> "Database":
        return cls(create_engine_for_url(database_url))

    async def ping(self) -> bool:
        """Return True when the database answers a trivial query"""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Database unreachable: {e}")
            return False

    async def create_all(self) -> None:
        """Initialize database tables"""
        # Register mappers on Base.metadata
        import app.domain.auth.models  # noqa: F401
        import app.domain.prescriptions.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close database connections"""
        await self.engine.dispose()


async def connect_database(database_url: Optional[str]) -> Optional[Database]:
    """Connect to the configured database, or return None when it is absent or unreachable"""
    if not database_url:
        logger.info("No DATABASE_URL configured")
        return None

    try:
        database = Database.from_url(database_url)
    except (SQLAlchemyError, ImportError, ValueError) as e:
        logger.warning(f"Invalid DATABASE_URL: {e}")
        return None

    if not await database.ping():
        await database.dispose()
        return None

    logger.info("Database connection established")
    return database
