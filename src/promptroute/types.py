"""Core data types shared across the routing pipeline.

Everything here is a plain value object:
- ModelDescriptor: one entry of the hosted model catalog, as fetched
- ModelProfile: capability scores + characteristics derived from a descriptor
- PromptProperties: caller-supplied soft requirements
- PromptCategory / ModelSelection: classification and recommendation output
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


class PromptType(str, Enum):
    """The six task categories a prompt can be classified into."""
    CODING = "coding"
    CREATIVE = "creative"
    ANALYTICAL = "analytical"
    REASONING = "reasoning"
    CONVERSATIONAL = "conversational"
    GENERAL = "general"


class _Tier(str, Enum):
    """Ordered categorical tier. Declaration order is lowest → highest."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    @property
    def weight(self) -> float:
        """Ordinal position scaled into [0, 1]."""
        members = list(type(self))
        return self.rank / (len(members) - 1)


class SpeedTier(_Tier):
    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"
    ULTRA_FAST = "ultra-fast"


class CostTier(_Tier):
    FREE = "free"
    CHEAP = "cheap"
    MODERATE = "moderate"
    EXPENSIVE = "expensive"
    PREMIUM = "premium"


class AccuracyTier(_Tier):
    BASIC = "basic"
    GOOD = "good"
    HIGH = "high"
    EXCELLENT = "excellent"


class ContextTier(_Tier):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    HUGE = "huge"


def _to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid price: {value!r}")
    if price < 0 or not price.is_finite():
        raise ValueError(f"Invalid price: {value!r}")
    return price


@dataclass(frozen=True)
class ModelDescriptor:
    """A model as listed by the catalog feed. Prices are per token."""
    id: str
    name: str
    context_length: int
    prompt_price: Decimal = Decimal("0")
    completion_price: Decimal = Decimal("0")
    description: str = ""
    max_completion_tokens: int | None = None
    is_moderated: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ModelDescriptor":
        """Build a descriptor from one `data[]` entry of the models endpoint.

        Raises:
            ValueError / KeyError / TypeError: for malformed entries.
        """
        model_id = data["id"]
        if not isinstance(model_id, str) or not model_id:
            raise ValueError(f"Invalid model id: {model_id!r}")

        context_length = int(data["context_length"])
        if context_length <= 0:
            raise ValueError(
                f"Invalid context length for {model_id}: {context_length}")

        pricing = data.get("pricing") or {}
        top_provider = data.get("top_provider") or {}
        max_completion = top_provider.get("max_completion_tokens")

        return cls(
            id=model_id,
            name=data.get("name") or model_id,
            description=data.get("description") or "",
            context_length=context_length,
            prompt_price=_to_decimal(pricing.get("prompt")),
            completion_price=_to_decimal(pricing.get("completion")),
            max_completion_tokens=int(max_completion) if max_completion else None,
            is_moderated=bool(top_provider.get("is_moderated", False)),
        )

    @property
    def provider(self) -> str:
        return self.id.split("/", 1)[0] or "unknown"

    @property
    def average_price(self) -> Decimal:
        return (self.prompt_price + self.completion_price) / 2


@dataclass(frozen=True)
class CapabilityScores:
    """Six independent capability axes, each in [0, 1]."""
    coding: float = 0.5
    creative: float = 0.5
    analytical: float = 0.5
    reasoning: float = 0.5
    conversational: float = 0.5
    general: float = 0.5

    def for_category(self, category: PromptType) -> float:
        return getattr(self, PromptType(category).value)

    def to_dict(self) -> dict[str, float]:
        return {t.value: self.for_category(t) for t in PromptType}


@dataclass(frozen=True)
class Characteristics:
    """Categorical tiers and derived flags for a model."""
    speed: SpeedTier
    cost: CostTier
    accuracy: AccuracyTier
    context: ContextTier
    provider: str
    model_family: str
    is_reasoning: bool
    is_multimodal: bool


@dataclass(frozen=True)
class ModelProfile:
    """Descriptor plus everything the profiler derived from it. Immutable."""
    descriptor: ModelDescriptor
    capabilities: CapabilityScores
    characteristics: Characteristics
    profile_confidence: float

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def context_length(self) -> int:
        return self.descriptor.context_length

    def category_score(self, category: PromptType) -> float:
        return self.capabilities.for_category(category)

    def to_dict(self) -> dict[str, Any]:
        c = self.characteristics
        return {
            "id": self.id,
            "name": self.name,
            "description": self.descriptor.description,
            "context_length": self.context_length,
            "prompt_price": str(self.descriptor.prompt_price),
            "completion_price": str(self.descriptor.completion_price),
            "max_completion_tokens": self.descriptor.max_completion_tokens,
            "is_moderated": self.descriptor.is_moderated,
            "capabilities": self.capabilities.to_dict(),
            "characteristics": {
                "speed": c.speed.value,
                "cost": c.cost.value,
                "accuracy": c.accuracy.value,
                "context": c.context.value,
                "provider": c.provider,
                "model_family": c.model_family,
                "is_reasoning": c.is_reasoning,
                "is_multimodal": c.is_multimodal,
            },
            "profile_confidence": self.profile_confidence,
        }


@dataclass
class PromptProperties:
    """Soft requirements for one recommendation.

    accuracy/speed: higher = more important.
    cost: 0 = very cost-sensitive, 1 = cost is no object.
    """
    accuracy: float = 0.5
    cost: float = 0.5
    speed: float = 0.5
    token_limit: int = 4000
    reasoning: bool = False

    def __post_init__(self) -> None:
        for name in ("accuracy", "cost", "speed"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.token_limit <= 0:
            raise ValueError(
                f"token_limit must be positive, got {self.token_limit}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "accuracy": self.accuracy,
            "cost": self.cost,
            "speed": self.speed,
            "token_limit": self.token_limit,
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class PromptCategory:
    """Classification result."""
    type: PromptType
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "confidence": round(self.confidence, 4)}


@dataclass(frozen=True)
class ModelSelection:
    """The final recommendation."""
    model: str
    reason: str
    confidence: float
    category: PromptCategory
    fallback: bool = False
    candidates: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "reason": self.reason,
            "confidence": self.confidence,
            "category": self.category.to_dict(),
            "fallback": self.fallback,
            "candidate_count": len(self.candidates),
        }
