"""Reference (centroid) embeddings per prompt category.

Each category is represented by the mean embedding of a handful of
example prompts. A category whose examples all fail to embed is an error;
individual failed examples are skipped. After a failed build, further
attempts fail fast until RETRY_INTERVAL_SECONDS have passed.
"""

import asyncio
import logging
import time
from typing import Callable

from promptroute.classification.embedder import Embedder, centroid
from promptroute.errors import EmbeddingError
from promptroute.types import PromptType

logger = logging.getLogger(__name__)

RETRY_INTERVAL_SECONDS = 60.0

REFERENCE_TEXTS: dict[PromptType, tuple[str, ...]] = {
    PromptType.CODING: (
        "Write a Python function that sorts an array using quicksort algorithm",
        "Debug this JavaScript code that has a syntax error in the for loop",
        "Create a REST API endpoint with proper error handling and validation",
        "Implement a binary search tree class with insert and delete methods",
        "Write unit tests for this React component using Jest and testing library",
    ),
    PromptType.CREATIVE: (
        "Write a short story about a time traveler who gets stuck in the past",
        "Create a poem about the beauty of autumn leaves falling in the wind",
        "Design a fantasy character with unique magical abilities and backstory",
        "Imagine what life would be like on a planet with two suns",
        "Write dialogue between two characters meeting for the first time",
    ),
    PromptType.ANALYTICAL: (
        "Analyze the sales trends from this quarterly data and identify patterns",
        "Compare and contrast the economic impacts of remote work policies",
        "Evaluate the effectiveness of different marketing strategies based on metrics",
        "Examine the correlation between education levels and income distribution",
        "Assess the risks and benefits of investing in renewable energy stocks",
    ),
    PromptType.REASONING: (
        "Solve this logic puzzle using deductive reasoning steps",
        "If all roses are flowers and some flowers are red, what can we conclude",
        "Given these premises, determine the logical conclusion using syllogism",
        "Explain the reasoning behind the solution to this mathematical proof",
        "What would be the most logical approach to solve this complex problem",
    ),
    PromptType.CONVERSATIONAL: (
        "Hello, how are you doing today? I hope you're having a great morning",
        "Thank you so much for your help, I really appreciate your assistance",
        "Could you please tell me more about your weekend plans and activities",
        "Good evening! What's your favorite way to relax after a long day",
        "I'd love to chat about movies, do you have any recommendations for comedies",
    ),
    PromptType.GENERAL: (
        "What is the capital of France and its population",
        "Explain how photosynthesis works in simple terms",
        "What are the main causes of climate change",
        "How does the internet work at a basic level",
        "What is the difference between weather and climate",
    ),
}


class ReferenceEmbeddings:
    """Holds one centroid per category, built once from REFERENCE_TEXTS."""

    def __init__(
        self,
        embedder: Embedder,
        texts: dict[PromptType, tuple[str, ...]] | None = None,
        retry_interval: float = RETRY_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.embedder = embedder
        self.texts = texts or REFERENCE_TEXTS
        self.retry_interval = retry_interval
        self._clock = clock
        self._failed_at: float | None = None
        self._centroids: dict[PromptType, list[float]] = {}
        self._sample_counts: dict[PromptType, int] = {}
        self._initialized = False
        self._init_task: asyncio.Task | None = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        if self._initialized:
            return
        if self._init_task is None or self._init_task.done():
            if self._failed_at is not None:
                wait = self.retry_interval - (self._clock() - self._failed_at)
                if wait > 0:
                    raise EmbeddingError(
                        f"Reference embeddings unavailable, next attempt in {wait:.0f}s")
            self._init_task = asyncio.ensure_future(self._build_all())
        await asyncio.shield(self._init_task)

    async def _build_all(self) -> None:
        try:
            await self._build_centroids()
        except Exception:
            self._failed_at = self._clock()
            raise
        self._failed_at = None

    async def _build_centroids(self) -> None:
        logger.info("Creating reference embeddings for all categories")
        await self.embedder.initialize()

        centroids = {}
        counts = {}
        for category, texts in self.texts.items():
            vectors = await self._embed_all(category, texts)
            if not vectors:
                raise EmbeddingError(
                    f"No valid embeddings generated for category {category.value}")
            centroids[category] = centroid(vectors)
            counts[category] = len(vectors)
            logger.debug(
                f"Reference embedding for {category.value} ({len(vectors)} samples)")

        self._centroids = centroids
        self._sample_counts = counts
        self._initialized = True
        logger.info(f"Reference embeddings ready for {len(centroids)} categories")

    async def _embed_all(self, category: PromptType, texts: tuple[str, ...] | list[str]) -> list[list[float]]:
        vectors = []
        for text in texts:
            try:
                vectors.append(await self.embedder.embed(text))
            except EmbeddingError as e:
                logger.warning(
                    f"Failed to embed reference text for {category.value}: {e}")
        return vectors

    def get(self, category: PromptType) -> list[float] | None:
        return self._centroids.get(category)

    def all(self) -> dict[PromptType, list[float]]:
        return dict(self._centroids)

    async def add_reference_texts(self, category: PromptType, texts: list[str]) -> int:
        """Fold extra example prompts into a category's centroid.

        The existing centroid counts as one sample alongside the new ones.
        Returns the number of texts that embedded successfully.
        """
        await self.initialize()

        vectors = await self._embed_all(category, texts)
        if not vectors:
            logger.warning(f"No custom texts embedded for {category.value}")
            return 0

        existing = self._centroids.get(category)
        samples = [existing, *vectors] if existing else vectors
        updated = dict(self._centroids)
        updated[category] = centroid(samples)
        self._centroids = updated
        self._sample_counts[category] = self._sample_counts.get(category, 0) + len(vectors)

        logger.info(
            f"Updated reference embedding for {category.value} "
            f"with {len(vectors)} custom samples")
        return len(vectors)

    def stats(self) -> dict[str, int]:
        return {
            "total_categories": len(self.texts),
            "initialized_categories": len(self._centroids),
            "samples": sum(self._sample_counts.values()),
        }
