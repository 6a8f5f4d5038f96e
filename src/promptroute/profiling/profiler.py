"""Capability profiling for catalog models.

Turns a ModelDescriptor into a ModelProfile:
1. Known model (curated table in known_models.yaml) → hand-set scores,
   profile confidence 0.95
2. Unknown model → heuristic inference from provider, family, price and
   id substrings, profile confidence 0.4–0.8

Profiling is a pure function of the descriptor plus the static table.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from importlib import resources
from typing import Any

import yaml

from promptroute.types import (
    AccuracyTier,
    CapabilityScores,
    Characteristics,
    ContextTier,
    CostTier,
    ModelDescriptor,
    ModelProfile,
    PromptType,
    SpeedTier,
)

logger = logging.getLogger(__name__)

KNOWN_PROFILE_CONFIDENCE = 0.95
BASELINE_SCORE = 0.5

# Ordered (substring, family); first match wins
FAMILY_PATTERNS: list[tuple[str, str]] = [
    ("gpt-4", "gpt-4"),
    ("gpt-3", "gpt-3.5"),
    ("claude-3", "claude-3"),
    ("claude-2", "claude-2"),
    ("gemini", "gemini"),
    ("llama-3", "llama-3"),
    ("llama-2", "llama-2"),
    ("wizard", "wizard"),
    ("mixtral", "mixtral"),
]

REASONING_FAMILIES = ("gpt-4", "claude-3", "claude-2", "llama-3", "gemini")
MULTIMODAL_MARKERS = ("vision", "gpt-4", "claude-3", "gemini", "gpt-4o")
WELL_KNOWN_PROVIDERS = ("openai", "anthropic", "google")

PROVIDER_ADJUSTMENTS: dict[str, dict[str, float]] = {
    "openai": {"coding": 0.2, "reasoning": 0.15, "general": 0.1},
    "anthropic": {"creative": 0.2, "conversational": 0.2, "reasoning": 0.15},
    "google": {"analytical": 0.15, "general": 0.1},
    "meta-llama": {"coding": 0.1, "reasoning": 0.1},
}

FAMILY_ADJUSTMENTS: dict[str, dict[str, float]] = {
    "gpt-4": {"coding": 0.15, "reasoning": 0.2},
    "claude-3": {"creative": 0.15, "conversational": 0.15},
}

MAX_COST_BONUS = 0.15

# Average per-token price breakpoints (exclusive upper bounds)
COST_BREAKPOINTS: list[tuple[Decimal, CostTier]] = [
    (Decimal("0.0001"), CostTier.CHEAP),
    (Decimal("0.001"), CostTier.MODERATE),
    (Decimal("0.01"), CostTier.EXPENSIVE),
]

# Inclusive lower bounds, checked top-down
CONTEXT_BREAKPOINTS: list[tuple[int, ContextTier]] = [
    (1_000_000, ContextTier.HUGE),
    (100_000, ContextTier.LARGE),
    (32_000, ContextTier.MEDIUM),
]


@dataclass(frozen=True)
class KnownProfile:
    """One curated table entry."""
    capabilities: CapabilityScores
    speed: SpeedTier | None = None
    accuracy: AccuracyTier | None = None
    is_reasoning: bool | None = None
    is_multimodal: bool | None = None


@dataclass(frozen=True)
class KnownProfileTable:
    """Versioned lookup of curated profiles, keyed by exact model id."""
    version: int
    entries: dict[str, KnownProfile] = field(default_factory=dict)

    def get(self, model_id: str) -> KnownProfile | None:
        return self.entries.get(model_id)

    def __contains__(self, model_id: str) -> bool:
        return model_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KnownProfileTable":
        entries = {}
        for model_id, raw in (data.get("models") or {}).items():
            scores = raw.get("capabilities") or {}
            entries[model_id] = KnownProfile(
                capabilities=CapabilityScores(
                    **{t.value: float(scores.get(t.value, BASELINE_SCORE))
                       for t in PromptType}
                ),
                speed=SpeedTier(raw["speed"]) if "speed" in raw else None,
                accuracy=AccuracyTier(raw["accuracy"]) if "accuracy" in raw else None,
                is_reasoning=raw.get("is_reasoning"),
                is_multimodal=raw.get("is_multimodal"),
            )
        return cls(version=int(data.get("version", 0)), entries=entries)


@lru_cache(maxsize=1)
def load_known_profiles() -> KnownProfileTable:
    """Load the curated table shipped with the package."""
    text = resources.files("promptroute.profiling").joinpath(
        "known_models.yaml").read_text(encoding="utf-8")
    table = KnownProfileTable.from_dict(yaml.safe_load(text) or {})
    logger.debug(
        f"Loaded {len(table)} known model profiles (v{table.version})")
    return table


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(value, high))


class ModelProfiler:
    """Builds ModelProfiles from catalog descriptors.

    Usage:
        profiler = ModelProfiler()
        profile = profiler.profile(descriptor)
        profile.category_score(PromptType.CODING)
    """

    def __init__(self, known_profiles: KnownProfileTable | None = None):
        self.known_profiles = known_profiles or load_known_profiles()

    def profile(self, descriptor: ModelDescriptor) -> ModelProfile:
        """Create a profile for one descriptor. Never raises for valid input."""
        known = self.known_profiles.get(descriptor.id)
        provider = self.extract_provider(descriptor.id)
        family = self.extract_model_family(descriptor.id)

        if known:
            capabilities = known.capabilities
            confidence = KNOWN_PROFILE_CONFIDENCE
        else:
            capabilities = self.infer_capabilities(descriptor, provider, family)
            confidence = self.inferred_confidence(descriptor)

        characteristics = Characteristics(
            speed=(known and known.speed) or self.infer_speed_tier(descriptor.id),
            cost=self.infer_cost_tier(descriptor),
            accuracy=(known and known.accuracy)
            or self.infer_accuracy_tier(descriptor.id, provider),
            context=self.infer_context_tier(descriptor.context_length),
            provider=provider,
            model_family=family,
            is_reasoning=self._known_flag(known, "is_reasoning",
                                          self.infer_reasoning(family)),
            is_multimodal=self._known_flag(known, "is_multimodal",
                                           self.infer_multimodal(descriptor.id)),
        )

        logger.debug(
            f"Profiled {descriptor.id} "
            f"({'known' if known else 'inferred'}, confidence {confidence:.2f})")

        return ModelProfile(
            descriptor=descriptor,
            capabilities=capabilities,
            characteristics=characteristics,
            profile_confidence=confidence,
        )

    @staticmethod
    def _known_flag(known: KnownProfile | None, name: str, inferred: bool) -> bool:
        if known is None:
            return inferred
        value = getattr(known, name)
        return inferred if value is None else value

    @staticmethod
    def extract_provider(model_id: str) -> str:
        return model_id.split("/", 1)[0] or "unknown"

    @staticmethod
    def extract_model_family(model_id: str) -> str:
        lowered = model_id.lower()
        for pattern, family in FAMILY_PATTERNS:
            if pattern in lowered:
                return family
        return "unknown"

    def infer_capabilities(
        self,
        descriptor: ModelDescriptor,
        provider: str,
        family: str,
    ) -> CapabilityScores:
        """Baseline 0.5 + provider/family nudges + price bonus, clamped."""
        scores = {t.value: BASELINE_SCORE for t in PromptType}

        for axis, delta in PROVIDER_ADJUSTMENTS.get(provider, {}).items():
            scores[axis] += delta
        for axis, delta in FAMILY_ADJUSTMENTS.get(family, {}).items():
            scores[axis] += delta

        # Price is a weak proxy for claimed quality
        bonus = min(float(descriptor.average_price) * 1000, MAX_COST_BONUS)

        return CapabilityScores(
            **{axis: _clamp(value + bonus) for axis, value in scores.items()}
        )

    @staticmethod
    def infer_speed_tier(model_id: str) -> SpeedTier:
        lowered = model_id.lower()
        if any(m in lowered for m in ("turbo", "flash", "haiku", "mini")):
            return SpeedTier.ULTRA_FAST
        if any(m in lowered for m in ("3.5", "8b", "small")):
            return SpeedTier.FAST
        if any(m in lowered for m in ("opus", "405b")):
            return SpeedTier.SLOW
        return SpeedTier.MEDIUM

    @staticmethod
    def infer_cost_tier(descriptor: ModelDescriptor) -> CostTier:
        average = descriptor.average_price
        if average == 0:
            return CostTier.FREE
        for limit, tier in COST_BREAKPOINTS:
            if average < limit:
                return tier
        return CostTier.PREMIUM

    @staticmethod
    def infer_accuracy_tier(model_id: str, provider: str) -> AccuracyTier:
        lowered = model_id.lower()
        if any(m in lowered for m in ("opus", "gpt-4o", "405b")):
            return AccuracyTier.EXCELLENT
        if any(m in lowered for m in ("sonnet", "gpt-4", "70b")):
            return AccuracyTier.HIGH
        if provider in ("openai", "anthropic"):
            return AccuracyTier.GOOD
        return AccuracyTier.BASIC

    @staticmethod
    def infer_context_tier(context_length: int) -> ContextTier:
        for minimum, tier in CONTEXT_BREAKPOINTS:
            if context_length >= minimum:
                return tier
        return ContextTier.SMALL

    @staticmethod
    def infer_reasoning(family: str) -> bool:
        return family in REASONING_FAMILIES

    @staticmethod
    def infer_multimodal(model_id: str) -> bool:
        lowered = model_id.lower()
        return any(m in lowered for m in MULTIMODAL_MARKERS)

    def inferred_confidence(self, descriptor: ModelDescriptor) -> float:
        """0.4 base, +0.2 well-known provider, +0.1 rich description, cap 0.8."""
        confidence = 0.4
        if self.extract_provider(descriptor.id) in WELL_KNOWN_PROVIDERS:
            confidence += 0.2
        if len(descriptor.description) > 50:
            confidence += 0.1
        return min(round(confidence, 2), 0.8)
