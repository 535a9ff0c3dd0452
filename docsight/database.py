"""
Async SQLAlchemy engine, session factory and the ``get_db`` dependency.

PostgreSQL + pgvector in production; any SQLAlchemy async URL works, which is
how the test-suite runs on SQLite.
"""
import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from docsight.config import settings

logger = logging.getLogger(__name__)

# NullPool: every session gets a fresh connection, nothing is shared across event loops
engine = create_async_engine(settings.DATABASE_URL, echo=False, poolclass=NullPool)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session for one request.

    Commits when the endpoint returns normally and rolls back when it raises.
    Endpoints that must keep partial work on an error path (failed uploads)
    commit explicitly before raising.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.error("Database session rolled back: %s", exc)
            raise


async def ensure_vector_extension(conn: AsyncConnection) -> None:
    """Create the pgvector extension; other dialects store vectors without it."""
    if conn.dialect.name == "postgresql":
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        logger.info("pgvector extension created/verified")


async def init_db() -> None:
    """Create any missing tables registered on ``Base``."""
    from docsight.models import database_models  # noqa: F401  (registers the tables)

    async with engine.begin() as conn:
        await ensure_vector_extension(conn)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created/verified (%s)", engine.dialect.name)


async def close_db() -> None:
    await engine.dispose()
    logger.info("Database connections closed")
