"""Keyword-based prompt classification.

Scores a prompt against weighted keyword sets per category. This is all
done locally with substring matching - no I/O, no hidden state.

Each category's keywords are split by specificity:
- high (weight 3): rarely seen outside the category
- medium (weight 2): common in the category, may appear elsewhere
- low (weight 1): ambiguous hints

A category's score is the weighted count of distinct keywords found. Ties
go to the category listed first in CLASSIFICATION_KEYWORDS; the order is
arbitrary but fixed, so results are deterministic.
"""

import logging
from dataclasses import dataclass, field

from promptroute.types import PromptCategory, PromptType

logger = logging.getLogger(__name__)

SPECIFICITY_WEIGHTS = {
    "high": 3,
    "medium": 2,
    "low": 1,
}

# Iteration order doubles as the tie-break order
CLASSIFICATION_KEYWORDS: dict[PromptType, dict[str, tuple[str, ...]]] = {
    PromptType.CODING: {
        "high": ("algorithm", "compile", "syntax", "import", "export",
                 "debug", "variable", "method"),
        "medium": ("code", "function", "program", "api", "script", "class"),
        "low": ("write", "return"),
    },
    PromptType.CREATIVE: {
        "high": ("poem", "novel", "character", "plot", "narrative",
                 "fiction", "imagine"),
        "medium": ("creative", "story", "design", "art"),
        "low": ("write",),
    },
    PromptType.ANALYTICAL: {
        "high": ("analyze", "statistics", "trends", "insights", "evaluate",
                 "assess"),
        "medium": ("data", "research", "study", "examine", "investigate",
                   "compare"),
        "low": (),
    },
    PromptType.REASONING: {
        "high": ("deduce", "infer", "proof", "theorem", "hypothesis",
                 "conclude"),
        "medium": ("reason", "logic", "puzzle"),
        "low": ("solve", "problem", "think"),
    },
    PromptType.CONVERSATIONAL: {
        "high": ("hi", "hello", "hey", "good morning", "good evening",
                 "thanks", "thank you", "how are you"),
        "medium": ("chat", "conversation"),
        "low": ("talk",),
    },
}

FALLBACK_CONFIDENCE = 0.6
MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.95


@dataclass
class KeywordScores:
    """Per-category weighted scores plus the keywords that produced them."""
    scores: dict[PromptType, int] = field(default_factory=dict)
    matches: dict[PromptType, list[str]] = field(default_factory=dict)

    @property
    def max_score(self) -> int:
        return max(self.scores.values(), default=0)

    @property
    def total_score(self) -> int:
        return sum(self.scores.values())


class KeywordClassifier:
    """Classifies prompts by weighted keyword hits.

    Usage:
        classifier = KeywordClassifier()
        category = classifier.classify("Debug this Python method")
        # category.type == PromptType.CODING
    """

    def __init__(
        self,
        keywords: dict[PromptType, dict[str, tuple[str, ...]]] | None = None,
    ):
        self.keywords = keywords or CLASSIFICATION_KEYWORDS

    def score(self, prompt: str) -> KeywordScores:
        """Score the prompt against every category."""
        lowered = prompt.lower()
        result = KeywordScores()

        for category, tiers in self.keywords.items():
            total = 0
            matched = []
            for tier, words in tiers.items():
                hits = [w for w in dict.fromkeys(words) if w in lowered]
                total += SPECIFICITY_WEIGHTS[tier] * len(hits)
                matched.extend(hits)
            result.scores[category] = total
            result.matches[category] = matched

        return result

    def classify(self, prompt: str) -> PromptCategory:
        scores = self.score(prompt)
        max_score = scores.max_score

        if max_score == 0:
            return PromptCategory(PromptType.GENERAL, FALLBACK_CONFIDENCE)

        # First category in enumeration order reaching the max wins
        winner = next(c for c, s in scores.scores.items() if s == max_score)
        confidence = self._confidence(max_score, scores.total_score)

        logger.debug(
            f"Keyword classification: {winner.value} ({confidence:.3f}) "
            f"matches={scores.matches[winner]}")
        return PromptCategory(winner, confidence)

    @staticmethod
    def _confidence(max_score: int, total_score: int) -> float:
        """Blend absolute keyword density with dominance over other categories."""
        if total_score == 0:
            return FALLBACK_CONFIDENCE

        strength = min(max_score / 10, 1.0)
        dominance = max_score / total_score
        confidence = 0.6 * strength + 0.4 * dominance
        return max(MIN_CONFIDENCE, min(confidence, MAX_CONFIDENCE))

    def explain(self, prompt: str) -> str:
        """Generate a human-readable explanation of the scoring."""
        scores = self.score(prompt)
        top = sorted(scores.scores.items(), key=lambda x: x[1], reverse=True)[:3]
        factors = ", ".join(f"{c.value}={s}" for c, s in top if s > 0)
        category = self.classify(prompt)
        return f"Category={category.type.value} (scores: {factors or 'none'})"
