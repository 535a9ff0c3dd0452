"""Unit tests for the Ollama embedding client (no network)."""
import math

import httpx
import pytest

from docsight.services import embedding
from docsight.services.embedding import OllamaEmbeddingService, _normalize, prepare_embedding_text

_RealAsyncClient = httpx.AsyncClient


def _mock_ollama(monkeypatch, handler):
    """Route every AsyncClient created by the embedding module through *handler*."""
    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(
        embedding.httpx,
        "AsyncClient",
        lambda **kwargs: _RealAsyncClient(transport=transport, **kwargs),
    )


@pytest.fixture(autouse=True)
def _clear_cache():
    embedding._embedding_cache.clear()
    yield
    embedding._embedding_cache.clear()


def test_normalize():
    assert _normalize([3.0, 4.0]) == [0.6, 0.8]
    assert _normalize([0.0, 0.0]) == [0.0, 0.0]


def test_prepare_embedding_text_collapses_and_truncates():
    assert prepare_embedding_text("  a \n\n b\t c ", max_chars=4) == "a b "
    assert prepare_embedding_text("x" * 9000) == "x" * 8000


@pytest.mark.asyncio
async def test_embed_text_normalizes_and_caches(monkeypatch):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"embedding": [2.0] + [0.0] * 767})

    _mock_ollama(monkeypatch, handler)
    service = OllamaEmbeddingService()

    first = await service.embed_text("hello   world")
    second = await service.embed_text("hello world")

    assert first == second
    assert first[0] == 1.0
    assert math.isclose(sum(x * x for x in first), 1.0)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_embed_text_blank_input_skips_call(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("Ollama should not be called")

    _mock_ollama(monkeypatch, handler)
    assert await OllamaEmbeddingService().embed_text("   ") is None


@pytest.mark.asyncio
async def test_dimension_mismatch_returns_none(monkeypatch):
    _mock_ollama(monkeypatch, lambda request: httpx.Response(200, json={"embedding": [1.0, 2.0]}))
    assert await OllamaEmbeddingService().embed_text("text") is None


@pytest.mark.asyncio
async def test_retries_then_gives_up(monkeypatch):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, text="boom")

    async def no_sleep(_seconds):
        return None

    _mock_ollama(monkeypatch, handler)
    monkeypatch.setattr(embedding.asyncio, "sleep", no_sleep)

    assert await OllamaEmbeddingService().embed_text("text") is None
    assert len(calls) == OllamaEmbeddingService.MAX_RETRIES


@pytest.mark.asyncio
async def test_health_check(monkeypatch):
    _mock_ollama(monkeypatch, lambda request: httpx.Response(200, json={"models": []}))
    assert await OllamaEmbeddingService().check_ollama_health() is True

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    _mock_ollama(monkeypatch, refuse)
    assert await OllamaEmbeddingService().check_ollama_health() is False
