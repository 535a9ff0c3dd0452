"""
Shared fixtures for docsight backend integration tests.

Uses a throwaway SQLite database (aiosqlite) unless TEST_DATABASE_URL points
at a PostgreSQL + pgvector instance.  Each test function gets its own
session; all tables are dropped after the test so each test starts clean.
Ollama is never contacted: embeddings come from ``fake_embeddings``.
"""
from __future__ import annotations

import os
import tempfile
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Override DATABASE_URL and UPLOAD_DIR *before* any docsight module is
# imported, so that settings and the global engine point at the test setup.
if "DOCSIGHT_TEST_DIR" not in os.environ:
    os.environ["DOCSIGHT_TEST_DIR"] = tempfile.mkdtemp(prefix="docsight-tests-")
_TEST_DIR = os.environ["DOCSIGHT_TEST_DIR"]

TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'test.db')}",
)
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DIR, "uploads")

from docsight.config import settings  # noqa: E402
from docsight.database import Base, ensure_vector_extension, get_db  # noqa: E402
from docsight.main import app  # noqa: E402
from docsight.models import database_models  # noqa: E402,F401
from docsight.services import embedding as embedding_module  # noqa: E402
from docsight.services.embedding import OllamaEmbeddingService  # noqa: E402


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a DB session for each test. After the test, all tables are dropped
    so each test starts with a clean slate.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)

    async with engine.begin() as conn:
        await ensure_vector_extension(conn)
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the DB dependency
    overridden to use the per-test session.
    """

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def fake_embeddings(monkeypatch) -> List[str]:
    """
    Replace Ollama with a deterministic embedder.

    Text mentioning "budget" maps to one axis, text mentioning "recipe" to
    another, anything else to a third, so cosine similarity between texts on
    the same topic is 1.0 and across topics 0.0.  Returns the list of texts
    that were embedded.
    """
    calls: List[str] = []

    async def _embed(self, text_in: str) -> Optional[List[float]]:
        calls.append(text_in)
        lowered = text_in.lower()
        if "budget" in lowered:
            axis = 0
        elif "recipe" in lowered:
            axis = 1
        else:
            axis = 2
        vector = [0.0] * settings.VECTOR_DIMENSION
        vector[axis] = 1.0
        return vector

    async def _healthy(self) -> bool:
        return True

    monkeypatch.setattr(OllamaEmbeddingService, "embed_text", _embed)
    monkeypatch.setattr(OllamaEmbeddingService, "check_ollama_health", _healthy)
    monkeypatch.setattr(embedding_module, "_embedding_cache", {})
    return calls


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

AUTH_HEADERS = {
    "X-User-Id": "test-user-1",
}

AUTH_HEADERS_USER2 = {
    "X-User-Id": "test-user-2",
}
