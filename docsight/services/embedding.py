"""
Embedding generation service using the Ollama API.

Documents, templates and dataset schema descriptions are embedded through
this one service; nothing else in the codebase talks to Ollama.

Failures never propagate: after MAX_RETRIES attempts ``embed_text`` returns
``None`` and the caller stores a record without an embedding.
"""
from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Dict, List, Optional

import httpx

from docsight.config import settings
from docsight.utils.helpers import clean_text, generate_hash

logger = logging.getLogger(__name__)

# sha256(model:text) → normalized vector, shared by every service instance
_embedding_cache: Dict[str, List[float]] = {}


class _Retryable(Exception):
    """Transient Ollama failure worth another attempt."""


def _normalize(vector: List[float]) -> List[float]:
    """Return a unit-length copy of *vector*; the zero vector is returned as is."""
    magnitude = math.sqrt(sum(x * x for x in vector))
    if magnitude == 0.0:
        return vector
    return [x / magnitude for x in vector]


def prepare_embedding_text(text: str, max_chars: Optional[int] = None) -> str:
    """Collapse whitespace and truncate to the embedder's input limit."""
    limit = max_chars or settings.EMBEDDING_MAX_CHARS
    return clean_text(text)[:limit]


class OllamaEmbeddingService:
    """
    Ollama ``/api/embeddings`` client.

    * at most MAX_CONCURRENT requests in flight per instance
    * exponential backoff (1 s, 2 s, ...) between attempts
    * vectors are dimension-checked and L2-normalised before they are cached
    """

    MAX_CONCURRENT: int = 3
    MAX_RETRIES: int = 3

    def __init__(self) -> None:
        self.base_url = settings.OLLAMA_BASE_URL
        self.model = settings.OLLAMA_EMBED_MODEL
        self.expected_dim = settings.VECTOR_DIMENSION
        self.timeout = httpx.Timeout(60.0, connect=10.0)
        self._semaphore = asyncio.Semaphore(self.MAX_CONCURRENT)

    async def embed_text(self, text: str) -> Optional[List[float]]:
        """Embed *text*; ``None`` for blank input or when Ollama cannot deliver."""
        prepared = prepare_embedding_text(text or "")
        if not prepared:
            logger.warning("embed_text: blank input, nothing to embed")
            return None

        key = generate_hash(f"{self.model}:{prepared}")
        cached = _embedding_cache.get(key)
        if cached is not None:
            return cached

        embedding = await self._call_ollama_with_retry(prepared)
        if embedding is not None:
            _embedding_cache[key] = embedding
        return embedding

    async def check_ollama_health(self) -> bool:
        """True when Ollama answers ``/api/tags`` with HTTP 200."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self.base_url}/api/tags")
        except httpx.HTTPError as exc:
            logger.error("Ollama health check failed: %s", exc)
            return False
        return resp.status_code == 200

    async def _call_ollama_with_retry(self, text: str) -> Optional[List[float]]:
        async with self._semaphore:
            for attempt in range(1, self.MAX_RETRIES + 1):
                try:
                    return await self._request_embedding(text)
                except _Retryable as exc:
                    logger.warning(
                        "Embedding attempt %d/%d failed: %s", attempt, self.MAX_RETRIES, exc
                    )
                except (httpx.HTTPError, ValueError) as exc:
                    logger.error("Unexpected error calling Ollama: %s", exc)
                    return None
                if attempt < self.MAX_RETRIES:
                    await asyncio.sleep(2 ** (attempt - 1))

        logger.error(
            "All %d embedding attempts failed for text (length=%d)",
            self.MAX_RETRIES,
            len(text),
        )
        return None

    async def _request_embedding(self, text: str) -> Optional[List[float]]:
        """
        One POST to Ollama.

        Raises _Retryable for connection errors, timeouts, non-200 responses
        and responses without an embedding.  A wrong dimension returns None
        straight away since another attempt would give the same vector.
        """
        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    f"{self.base_url}/api/embeddings",
                    json={"model": self.model, "prompt": text},
                )
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise _Retryable(f"{type(exc).__name__}: {exc}") from exc

        if resp.status_code != 200:
            raise _Retryable(f"HTTP {resp.status_code}: {resp.text[:300]}")

        raw = resp.json().get("embedding")
        if not raw:
            raise _Retryable("response has no 'embedding' field")

        if len(raw) != self.expected_dim:
            logger.error("Dimension mismatch: expected %d, got %d", self.expected_dim, len(raw))
            return None

        logger.debug(
            "Embedded %d chars → %d-dim in %.1f ms",
            len(text),
            self.expected_dim,
            (time.perf_counter() - started) * 1000,
        )
        return _normalize([float(x) for x in raw])
