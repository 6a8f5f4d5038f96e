"""Prompt router: picks the best model for a prompt.

Selection pipeline for one `recommend()` call:
1. Full profile set from the catalog cache
2. Provider allow/block lists
3. Reasoning-only models, if the caller asked for reasoning
4. Models whose context window fits `token_limit`
5. Hybrid classification of the prompt
6. Models scoring at least 0.3 for the prompt's category
7. Final pick delegated to a selector model; if it fails or answers
   out of contract, the top-scoring candidate is used instead

Filters that empty the candidate set raise NoSuitableModelsError.
"""

import asyncio
import logging
import time
from typing import Any, Callable

from promptroute.analytics import AnalyticsCollector, AnalyticsSink
from promptroute.catalog import CatalogSource, ModelCatalogCache, OpenRouterCatalogSource
from promptroute.classification import (
    Embedder,
    EmbeddingBackend,
    HybridClassification,
    HybridClassifier,
    KeywordClassifier,
    LiteLLMEmbeddingBackend,
    SemanticClassifier,
)
from promptroute.config import RouterConfig, load_router_config
from promptroute.errors import (
    DecisionCollaboratorError,
    NoSuitableModelsError,
    PromptRouteError,
    UninitializedError,
)
from promptroute.profiling import ModelProfiler
from promptroute.routing.decision import (
    CandidateSummary,
    DecisionMaker,
    LiteLLMDecisionMaker,
    build_selection_prompt,
    parse_decision,
    summarize_candidates,
)
from promptroute.types import (
    ModelProfile,
    ModelSelection,
    PromptCategory,
    PromptProperties,
    PromptType,
)

logger = logging.getLogger(__name__)

MIN_CATEGORY_SCORE = 0.3
FALLBACK_CONFIDENCE = 0.5


class PromptRouter:
    """Recommends a model for each prompt from the live catalog.

    Every external collaborator can be injected; anything left out is
    built from the config.

    Usage:
        router = PromptRouter(load_router_config())
        await router.initialize()
        selection = await router.recommend("Write a haiku", PromptProperties(cost=0.2))
        await router.shutdown()
    """

    def __init__(
        self,
        config: RouterConfig | None = None,
        *,
        catalog_source: CatalogSource | None = None,
        embedding_backend: EmbeddingBackend | None = None,
        decision_maker: DecisionMaker | None = None,
        analytics_sink: AnalyticsSink | None = None,
        profiler: ModelProfiler | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or load_router_config()

        self.catalog = ModelCatalogCache(
            catalog_source or OpenRouterCatalogSource(
                self.config.api_key,
                url=self.config.catalog_url,
                timeout=self.config.request_timeout,
            ),
            profiler=profiler,
            ttl_seconds=self.config.catalog_ttl_seconds,
            clock=clock,
        )

        self.semantic: SemanticClassifier | None = None
        if self.config.semantic_enabled:
            backend = embedding_backend or LiteLLMEmbeddingBackend(
                self.config.embedding_model, timeout=self.config.request_timeout)
            self.semantic = SemanticClassifier(Embedder(backend))
        self.classifier = HybridClassifier(
            KeywordClassifier(), self.semantic,
            semantic_timeout=self.config.request_timeout)

        self.decision_maker = decision_maker or LiteLLMDecisionMaker(
            self.config.selector_model,
            self.config.api_key,
            timeout=self.config.decision_timeout,
        )
        self.analytics = AnalyticsCollector(self.config.analytics, sink=analytics_sink)

        self._initialized = False
        self._requests = 0
        self._fallbacks = 0

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Validate config and populate the catalog.

        Raises:
            ConfigurationError: missing or invalid credential/settings.
            CatalogFetchError: the catalog feed failed.
        """
        start = time.perf_counter()
        self.config.validate()
        self.analytics.start()

        try:
            profiles = await self.catalog.get_profiles()
        except PromptRouteError as e:
            self.analytics.track_error(e, "initialize")
            raise

        if self.semantic is not None:
            try:
                await self.semantic.initialize()
            except PromptRouteError as e:
                # Semantic classification stays lazily retryable per request
                logger.warning(f"Semantic classifier not ready, keyword-only until it is: {e}")

        self._initialized = True
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(f"Prompt router initialized with {len(profiles)} models in {elapsed:.0f}ms")
        self.analytics.track_session_start(
            self.config.to_dict(), elapsed, len(profiles))

    async def recommend(
        self,
        prompt: str,
        properties: PromptProperties | None = None,
    ) -> ModelSelection:
        """Pick one model for the prompt.

        Raises:
            UninitializedError: initialize() has not succeeded yet.
            NoSuitableModelsError: filtering left no candidates.
            CatalogFetchError: the catalog had to be refetched and failed.
        """
        if not self._initialized:
            raise UninitializedError(
                "Prompt router not initialized. Call initialize() first.")

        properties = properties or PromptProperties()
        start = time.perf_counter()
        self._requests += 1

        try:
            candidates = self.filter_candidates(
                await self.catalog.get_profiles(), properties)

            classification = await self.classifier.classify_detailed(prompt)
            category = classification.category
            logger.debug(
                f"Prompt classified as {category.type.value} "
                f"({category.confidence:.2f}, {classification.method})")

            candidates = [
                p for p in candidates
                if p.category_score(category.type) >= MIN_CATEGORY_SCORE
            ]
            if not candidates:
                raise NoSuitableModelsError(
                    category.type.value,
                    f"no model scores at least {MIN_CATEGORY_SCORE} for this category")
            logger.debug(f"{len(candidates)} candidates after category filter")

            selection = await self._select(prompt, category, properties, candidates)
        except PromptRouteError as e:
            self.analytics.track_error(e, "recommend", prompt)
            raise

        self._track(prompt, properties, classification, selection, start)
        return selection

    def filter_candidates(
        self,
        profiles: list[ModelProfile],
        properties: PromptProperties,
    ) -> list[ModelProfile]:
        """Apply the provider, reasoning and context filters, in that order."""
        candidates = profiles
        allowed = set(self.config.allowed_providers)
        blocked = set(self.config.blocked_providers)

        if allowed:
            candidates = [p for p in candidates if p.characteristics.provider in allowed]
            self._require(candidates, "no models from the allowed providers")
        if blocked:
            candidates = [p for p in candidates if p.characteristics.provider not in blocked]
            self._require(candidates, "every provider is blocked")

        if properties.reasoning:
            candidates = [p for p in candidates if p.characteristics.is_reasoning]
            self._require(candidates, "no reasoning-capable models")

        candidates = [p for p in candidates if p.context_length >= properties.token_limit]
        self._require(
            candidates, f"no model has a context window of {properties.token_limit} tokens")

        logger.debug(f"{len(candidates)} of {len(profiles)} models pass the filters")
        return candidates

    @staticmethod
    def _require(candidates: list[ModelProfile], reason: str) -> None:
        if not candidates:
            raise NoSuitableModelsError(PromptType.GENERAL.value, reason)

    async def _select(
        self,
        prompt: str,
        category: PromptCategory,
        properties: PromptProperties,
        candidates: list[ModelProfile],
    ) -> ModelSelection:
        summaries = summarize_candidates(candidates, category.type)
        candidate_ids = tuple(s.id for s in summaries)
        selection_prompt = build_selection_prompt(prompt, category, properties, summaries)

        try:
            raw = await asyncio.wait_for(
                self.decision_maker.decide(selection_prompt),
                timeout=self.config.decision_timeout,
            )
            result = parse_decision(raw, set(candidate_ids))
            if not result.ok:
                raise DecisionCollaboratorError(f"{result.status.value}: {result.error}")
        except asyncio.TimeoutError:
            logger.error(
                f"Selector model timed out after {self.config.decision_timeout}s")
            return self._fallback(summaries, category, "selector timed out")
        except Exception as e:
            logger.error(f"Model selection failed: {e}")
            return self._fallback(summaries, category, str(e))

        answer = result.answer
        logger.debug(f"Selector chose {answer.model} ({answer.confidence:.2f})")
        return ModelSelection(
            model=answer.model,
            reason=answer.reason,
            confidence=answer.confidence,
            category=category,
            candidates=candidate_ids,
        )

    def _fallback(
        self,
        summaries: list[CandidateSummary],
        category: PromptCategory,
        error: str,
    ) -> ModelSelection:
        best = summaries[0]
        self._fallbacks += 1
        logger.warning(f"Falling back to top {category.type.value} model {best.id}")
        return ModelSelection(
            model=best.id,
            reason=(
                f"Fallback selection: highest {category.type.value} score "
                f"({best.category_score}%) after selector failure ({error})"
            ),
            confidence=FALLBACK_CONFIDENCE,
            category=category,
            fallback=True,
            candidates=tuple(s.id for s in summaries),
        )

    def _track(
        self,
        prompt: str,
        properties: PromptProperties,
        classification: HybridClassification,
        selection: ModelSelection,
        start: float,
    ) -> None:
        if not self.analytics.enabled:
            return
        elapsed = (time.perf_counter() - start) * 1000
        semantic = classification.semantic
        keyword = classification.keyword
        self.analytics.track_prompt_request(
            prompt,
            properties,
            classification.category,
            selection,
            elapsed,
            semantic_confidence=semantic.confidence if semantic else None,
            keyword_confidence=keyword.confidence if keyword else None,
        )
        if semantic and keyword:
            self.analytics.track_semantic_metrics(prompt, semantic, keyword)

    async def classify(self, prompt: str) -> HybridClassification:
        """Classification only; does not need the catalog."""
        return await self.classifier.classify_detailed(prompt)

    async def list_profiles(self) -> list[ModelProfile]:
        """Current catalog snapshot, refreshed under the usual TTL rules."""
        return await self.catalog.get_profiles()

    def clear_cache(self) -> None:
        self.catalog.clear()

    async def shutdown(self) -> None:
        """Flush pending analytics. The router may be re-initialized later."""
        await self.analytics.shutdown()
        self._initialized = False
        logger.info("Prompt router shut down")

    @property
    def stats(self) -> dict[str, Any]:
        return {
            "initialized": self._initialized,
            "requests": self._requests,
            "fallbacks": self._fallbacks,
            "catalog": {
                "populated": self.catalog.is_populated,
                "generation": self.catalog.generation,
                "last_refreshed": self.catalog.last_refreshed,
                "ttl_seconds": self.catalog.ttl_seconds,
            },
            "semantic": self.semantic.stats() if self.semantic else None,
            "analytics": self.analytics.status(),
        }

