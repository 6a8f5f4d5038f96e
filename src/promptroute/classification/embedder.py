"""Text embedding for semantic classification.

The embedding model itself is external: an EmbeddingBackend turns one
string into one fixed-length vector. `Embedder` wraps a backend with
text normalisation, a 24h content-keyed cache and one-time initialisation
shared by concurrent callers.
"""

import asyncio
import logging
import re
from typing import Any, Protocol, Sequence

import numpy as np

from promptroute.classification.cache import EMBEDDING_TTL, TTLCache
from promptroute.errors import EmbeddingError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


class EmbeddingBackend(Protocol):
    """text → vector. Deterministic for identical input."""

    async def embed(self, text: str) -> list[float]:
        ...


class LiteLLMEmbeddingBackend:
    """Embeds through any provider LiteLLM supports."""

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        timeout: float = 30.0,
    ):
        self.model = model
        self.api_key = api_key
        self.timeout = timeout

    async def embed(self, text: str) -> list[float]:
        import litellm

        kwargs: dict[str, Any] = {"model": self.model, "input": [text], "timeout": self.timeout}
        if self.api_key:
            kwargs["api_key"] = self.api_key

        response = await litellm.aembedding(**kwargs)
        item = response.data[0]
        vector = item["embedding"] if isinstance(item, dict) else item.embedding
        return [float(x) for x in vector]


def normalize_text(text: str) -> str:
    """Trim, collapse whitespace and lower-case before embedding."""
    return _WHITESPACE.sub(" ", text.strip()).lower()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        raise ValueError(
            f"Embeddings must have the same dimensionality ({va.shape} vs {vb.shape})")

    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def centroid(vectors: Sequence[Sequence[float]]) -> list[float]:
    """Component-wise mean of equally sized vectors."""
    if not vectors:
        raise ValueError("Cannot calculate centroid of no embeddings")
    return np.mean(np.asarray(vectors, dtype=float), axis=0).tolist()


class Embedder:
    """Cached, initialise-once front for an EmbeddingBackend."""

    def __init__(
        self,
        backend: EmbeddingBackend,
        cache: TTLCache[list[float]] | None = None,
    ):
        self.backend = backend
        self.cache = cache or TTLCache(EMBEDDING_TTL)
        self._ready = False
        self._init_task: asyncio.Task | None = None

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        """Run the backend's one-time setup, if it has one.

        Concurrent callers share a single in-flight initialisation.
        """
        if self._ready:
            return
        # A finished task here means the previous attempt failed; retry
        if self._init_task is None or self._init_task.done():
            self._init_task = asyncio.ensure_future(self._initialize_backend())
        await asyncio.shield(self._init_task)

    async def _initialize_backend(self) -> None:
        setup = getattr(self.backend, "initialize", None)
        try:
            if setup is not None:
                await setup()
        except Exception as e:
            logger.error(f"Embedding backend failed to initialize: {e}")
            raise EmbeddingError(f"Embedding backend failed to initialize: {e}") from e
        self._ready = True
        logger.debug("Embedding backend ready")

    async def embed(self, text: str) -> list[float]:
        cached = self.cache.get(text)
        if cached is not None:
            logger.debug(f"Using cached embedding for text ({len(text)} chars)")
            return cached

        await self.initialize()

        try:
            vector = await self.backend.embed(normalize_text(text))
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"Failed to embed text: {e}") from e

        if not vector:
            raise EmbeddingError("Embedding backend returned an empty vector")

        self.cache.set(text, vector)
        return vector
