"""Hybrid classification: semantic + keyword, run concurrently.

Combination policy:
- both fail          → GENERAL / 0.6
- one fails          → the other's result, unchanged
- both agree         → min(0.95, 0.6*semantic + 0.4*keyword + 0.1)
- they disagree      → higher of 0.6*semantic vs 0.4*keyword wins,
                       confidence floored at 0.3 (semantic wins ties)
"""

import asyncio
import logging
from dataclasses import dataclass

from promptroute.classification.keywords import KeywordClassifier
from promptroute.classification.semantic import SemanticClassifier
from promptroute.types import PromptCategory, PromptType

logger = logging.getLogger(__name__)

SEMANTIC_WEIGHT = 0.6
KEYWORD_WEIGHT = 0.4
AGREEMENT_BONUS = 0.1
MAX_COMBINED_CONFIDENCE = 0.95
MIN_COMBINED_CONFIDENCE = 0.3
FALLBACK_CONFIDENCE = 0.6
SEMANTIC_TIMEOUT = 10.0


@dataclass
class HybridClassification:
    """The combined category plus what each method contributed."""
    category: PromptCategory
    semantic: PromptCategory | None = None
    keyword: PromptCategory | None = None
    semantic_error: str | None = None
    keyword_error: str | None = None

    @property
    def method(self) -> str:
        if self.semantic and self.keyword:
            return "hybrid"
        if self.semantic:
            return "semantic"
        if self.keyword:
            return "keyword"
        return "fallback"

    @property
    def agreement(self) -> bool:
        return bool(self.semantic and self.keyword
                    and self.semantic.type == self.keyword.type)


def combine(
    semantic: PromptCategory | None,
    keyword: PromptCategory | None,
) -> PromptCategory:
    """Merge two (possibly missing) classifications into one."""
    if semantic is None and keyword is None:
        logger.warning("Both semantic and keyword classification failed")
        return PromptCategory(PromptType.GENERAL, FALLBACK_CONFIDENCE)
    if semantic is None:
        logger.debug("Using keyword-only result (semantic failed)")
        return keyword
    if keyword is None:
        logger.debug("Using semantic-only result (keyword failed)")
        return semantic

    if semantic.type == keyword.type:
        confidence = min(
            SEMANTIC_WEIGHT * semantic.confidence
            + KEYWORD_WEIGHT * keyword.confidence
            + AGREEMENT_BONUS,
            MAX_COMBINED_CONFIDENCE,
        )
        logger.debug(
            f"Methods agree on {semantic.type.value}, combined {confidence:.3f}")
        return PromptCategory(semantic.type, confidence)

    semantic_score = SEMANTIC_WEIGHT * semantic.confidence
    keyword_score = KEYWORD_WEIGHT * keyword.confidence
    if semantic_score >= keyword_score:
        winner, score = semantic.type, semantic_score
    else:
        winner, score = keyword.type, keyword_score

    logger.debug(
        f"Methods disagree: semantic {semantic.type.value} ({semantic_score:.3f}) "
        f"vs keyword {keyword.type.value} ({keyword_score:.3f}) → {winner.value}")
    return PromptCategory(winner, max(score, MIN_COMBINED_CONFIDENCE))


class HybridClassifier:
    """Fans out to both classifiers and joins on both settling.

    Either classifier may be absent (semantic disabled) or fail; the
    combination policy handles both the same way. A semantic leg that
    runs past `semantic_timeout` counts as failed.
    """

    def __init__(
        self,
        keyword: KeywordClassifier | None = None,
        semantic: SemanticClassifier | None = None,
        semantic_timeout: float = SEMANTIC_TIMEOUT,
    ):
        self.keyword = keyword or KeywordClassifier()
        self.semantic = semantic
        self.semantic_timeout = semantic_timeout

    async def classify(self, prompt: str) -> PromptCategory:
        return (await self.classify_detailed(prompt)).category

    async def classify_detailed(self, prompt: str) -> HybridClassification:
        semantic_result, keyword_result = await asyncio.gather(
            self._run_semantic(prompt),
            self._run_keyword(prompt),
            return_exceptions=True,
        )

        semantic, semantic_error = self._settle("semantic", semantic_result)
        keyword, keyword_error = self._settle("keyword", keyword_result)

        return HybridClassification(
            category=combine(semantic, keyword),
            semantic=semantic,
            keyword=keyword,
            semantic_error=semantic_error,
            keyword_error=keyword_error,
        )

    async def _run_semantic(self, prompt: str) -> PromptCategory:
        if self.semantic is None:
            raise RuntimeError("semantic classification disabled")
        return await asyncio.wait_for(
            self.semantic.classify(prompt), timeout=self.semantic_timeout)

    async def _run_keyword(self, prompt: str) -> PromptCategory:
        return self.keyword.classify(prompt)

    @staticmethod
    def _settle(
        name: str,
        result: PromptCategory | BaseException,
    ) -> tuple[PromptCategory | None, str | None]:
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            logger.debug(f"{name} classification failed: {result}")
            return None, str(result) or type(result).__name__
        return result, None
