"""Semantic prompt classification.

Embeds the prompt and compares it (cosine similarity) against one
centroid embedding per category:

- best similarity < 0.3 → GENERAL at a fixed 0.4 confidence
- otherwise confidence = 0.5 + 0.4 * (0.7 * best + 0.3 * uniqueness),
  where uniqueness rewards a clear winner over the runner-up

Results are cached per prompt for 30 minutes.
"""

import logging
import time
from dataclasses import dataclass, field

from promptroute.classification.cache import CLASSIFICATION_TTL, TTLCache
from promptroute.classification.embedder import Embedder, cosine_similarity
from promptroute.classification.references import ReferenceEmbeddings
from promptroute.errors import EmbeddingError
from promptroute.types import PromptCategory, PromptType

logger = logging.getLogger(__name__)

MIN_SIMILARITY_THRESHOLD = 0.3
FALLBACK_CONFIDENCE = 0.4
CONFIDENCE_BASE = 0.5
CONFIDENCE_SCALE = 0.4
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 0.95


@dataclass
class SemanticClassificationResult:
    category: PromptCategory
    similarities: dict[PromptType, float] = field(default_factory=dict)
    processing_time_ms: float = 0.0
    cache_hit: bool = False


class SemanticClassifier:
    """Classifies prompts by similarity to category centroids.

    Usage:
        classifier = SemanticClassifier(Embedder(LiteLLMEmbeddingBackend(model)))
        await classifier.initialize()
        result = await classifier.classify("Write a haiku about rain")
    """

    def __init__(
        self,
        embedder: Embedder,
        references: ReferenceEmbeddings | None = None,
        cache: TTLCache[PromptCategory] | None = None,
    ):
        self.embedder = embedder
        self.references = references or ReferenceEmbeddings(embedder)
        self.cache = cache or TTLCache(CLASSIFICATION_TTL)

    @property
    def is_ready(self) -> bool:
        return self.embedder.is_ready and self.references.is_initialized

    async def initialize(self) -> None:
        """Idempotent; concurrent callers share one in-flight build."""
        await self.references.initialize()
        if not self.references.all():
            raise EmbeddingError("No reference embeddings available for classification")

    async def classify(self, prompt: str) -> PromptCategory:
        return (await self.classify_detailed(prompt)).category

    async def classify_detailed(self, prompt: str) -> SemanticClassificationResult:
        start = time.perf_counter()

        cached = self.cache.get(prompt)
        if cached is not None:
            logger.debug("Using cached semantic classification")
            return SemanticClassificationResult(
                category=cached,
                processing_time_ms=(time.perf_counter() - start) * 1000,
                cache_hit=True,
            )

        similarities = await self.detailed_similarities(prompt)
        category = self._categorize(similarities)
        self.cache.set(prompt, category)

        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(
            f"Semantic classification: {category.type.value} "
            f"({category.confidence:.3f}) in {elapsed:.0f}ms")
        return SemanticClassificationResult(
            category=category,
            similarities=similarities,
            processing_time_ms=elapsed,
        )

    async def detailed_similarities(self, prompt: str) -> dict[PromptType, float]:
        """Cosine similarity of the prompt to every category centroid."""
        await self.initialize()

        vector = await self.embedder.embed(prompt)
        similarities = {}
        for category, reference in self.references.all().items():
            try:
                similarities[category] = cosine_similarity(vector, reference)
            except ValueError as e:
                logger.warning(f"Failed to compare with {category.value}: {e}")
                similarities[category] = 0.0
        return similarities

    def _categorize(self, similarities: dict[PromptType, float]) -> PromptCategory:
        if not similarities:
            raise EmbeddingError("No similarities computed")

        ranked = sorted(similarities.values(), reverse=True)
        best_category = max(similarities, key=similarities.get)
        best = ranked[0]

        if best < MIN_SIMILARITY_THRESHOLD:
            logger.debug(f"Low similarity ({best:.4f}), falling back to general")
            return PromptCategory(PromptType.GENERAL, FALLBACK_CONFIDENCE)

        return PromptCategory(best_category, self._confidence(ranked))

    @staticmethod
    def _confidence(ranked: list[float]) -> float:
        best = ranked[0]
        uniqueness = 1.0
        if len(ranked) >= 2:
            second = ranked[1]
            uniqueness = max(0.0, (best - second) / max(best, 0.1))

        combined = 0.7 * min(best, 1.0) + 0.3 * uniqueness
        confidence = CONFIDENCE_BASE + CONFIDENCE_SCALE * combined
        return max(MIN_CONFIDENCE, min(confidence, MAX_CONFIDENCE))

    async def add_reference_texts(self, category: PromptType, texts: list[str]) -> int:
        added = await self.references.add_reference_texts(category, texts)
        if added:
            # Cached classifications were made against the old centroid
            self.cache.clear()
        return added

    def stats(self) -> dict:
        return {
            "ready": self.is_ready,
            "embedder_ready": self.embedder.is_ready,
            "references": self.references.stats(),
            "cache": {
                "embeddings": len(self.embedder.cache),
                "classifications": len(self.cache),
            },
        }

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Semantic classification cache cleared")
