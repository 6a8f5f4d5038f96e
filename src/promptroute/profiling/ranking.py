"""Category ranking over model profiles.

Scores each profile for a category by starting from its capability score
and applying small bonuses/penalties for price, speed, accuracy, reasoning
and context window, then weighting by profile confidence.
"""

import logging
from dataclasses import dataclass, field

from promptroute.types import (
    AccuracyTier,
    ContextTier,
    CostTier,
    ModelProfile,
    PromptType,
    SpeedTier,
)

logger = logging.getLogger(__name__)

TOP_N = 10

SPEED_BONUS = {
    SpeedTier.ULTRA_FAST: 0.05,
    SpeedTier.FAST: 0.03,
    SpeedTier.MEDIUM: 0.0,
    SpeedTier.SLOW: -0.02,
}

ACCURACY_BONUS = {
    AccuracyTier.EXCELLENT: 0.1,
    AccuracyTier.HIGH: 0.05,
    AccuracyTier.GOOD: 0.0,
    AccuracyTier.BASIC: -0.05,
}


@dataclass
class RankingRequirements:
    """Hard requirements a profile must meet to be ranked at all."""
    max_cost: float | None = None  # prompt price per token
    min_speed: SpeedTier | None = None
    min_accuracy: AccuracyTier | None = None
    needs_reasoning: bool = False


@dataclass
class RankedModel:
    profile: ModelProfile
    score: float
    reasoning: str


@dataclass
class CategoryRanking:
    category: PromptType
    ranked: list[RankedModel] = field(default_factory=list)

    @property
    def best(self) -> ModelProfile | None:
        return self.ranked[0].profile if self.ranked else None


def meets_requirements(
    profile: ModelProfile,
    requirements: RankingRequirements | None,
) -> bool:
    if requirements is None:
        return True

    c = profile.characteristics
    if requirements.max_cost and float(profile.descriptor.prompt_price) > requirements.max_cost:
        return False
    if requirements.needs_reasoning and not c.is_reasoning:
        return False
    if requirements.min_speed and c.speed.weight < requirements.min_speed.weight:
        return False
    if requirements.min_accuracy and c.accuracy.weight < requirements.min_accuracy.weight:
        return False
    return True


def category_score(
    profile: ModelProfile,
    category: PromptType,
    requirements: RankingRequirements | None = None,
) -> float:
    c = profile.characteristics
    score = profile.category_score(category)

    if requirements and requirements.max_cost:
        cost_ratio = float(profile.descriptor.prompt_price) / requirements.max_cost
        if cost_ratio <= 0.5:
            score += 0.1
        elif cost_ratio > 0.8:
            score -= 0.1

    score += SPEED_BONUS[c.speed]
    score += ACCURACY_BONUS[c.accuracy]

    if category == PromptType.REASONING and c.is_reasoning:
        score += 0.1

    if profile.context_length >= 100_000:
        score += 0.05
    elif profile.context_length >= 32_000:
        score += 0.02

    score *= profile.profile_confidence
    return max(0.0, min(score, 1.0))


def explain_score(profile: ModelProfile, category: PromptType, score: float) -> str:
    """Human-readable summary of why a profile ranked where it did."""
    c = profile.characteristics
    reasons = [f"{profile.category_score(category) * 100:.0f}% {category.value} capability"]

    if c.accuracy == AccuracyTier.EXCELLENT:
        reasons.append("excellent accuracy")
    elif c.accuracy == AccuracyTier.HIGH:
        reasons.append("high accuracy")

    if c.speed == SpeedTier.ULTRA_FAST:
        reasons.append("ultra-fast response")
    elif c.speed == SpeedTier.FAST:
        reasons.append("fast response")

    if c.cost in (CostTier.FREE, CostTier.CHEAP):
        reasons.append("cost-effective")

    if c.context in (ContextTier.HUGE, ContextTier.LARGE):
        reasons.append("large context window")

    if category == PromptType.REASONING and c.is_reasoning:
        reasons.append("reasoning optimized")

    return ", ".join(reasons) + f" ({score * 100:.0f}% overall)"


def rank_models_for_category(
    profiles: list[ModelProfile],
    category: PromptType,
    requirements: RankingRequirements | None = None,
    limit: int = TOP_N,
) -> CategoryRanking:
    """Rank profiles for a category, best first, keeping the top `limit`."""
    ranked = []
    for profile in profiles:
        if not meets_requirements(profile, requirements):
            continue
        score = category_score(profile, category, requirements)
        ranked.append(RankedModel(
            profile=profile,
            score=score,
            reasoning=explain_score(profile, category, score),
        ))

    ranked.sort(key=lambda r: r.score, reverse=True)
    logger.debug(
        f"Ranked {len(ranked)} of {len(profiles)} models for {category.value}")
    return CategoryRanking(category=category, ranked=ranked[:limit])


def get_best_model_for_category(
    profiles: list[ModelProfile],
    category: PromptType,
    requirements: RankingRequirements | None = None,
) -> ModelProfile | None:
    return rank_models_for_category(profiles, category, requirements).best
