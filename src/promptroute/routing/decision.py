"""The decision step: ask an LLM to pick one model from the candidates.

The collaborator's answer is untrusted. `parse_decision` turns the raw
text into a tagged DecisionResult:

- OK               → answer is schema-valid and names a supplied candidate
- PARSE_ERROR      → not a JSON object
- VALIDATION_ERROR → wrong shape, bad confidence, or an unknown model id
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from promptroute.errors import DecisionCollaboratorError
from promptroute.types import ModelProfile, PromptCategory, PromptProperties, PromptType

logger = logging.getLogger(__name__)


@dataclass
class CandidateSummary:
    """What the decision model gets to see about one candidate."""
    id: str
    name: str
    raw_score: float
    category_score: int  # 0-100
    speed: str
    cost: str
    accuracy: str
    context_length: int
    prompt_price: float
    completion_price: float
    provider: str
    is_reasoning: bool
    confidence: int  # 0-100

    @classmethod
    def from_profile(cls, profile: ModelProfile, category: PromptType) -> "CandidateSummary":
        c = profile.characteristics
        score = profile.category_score(category)
        return cls(
            id=profile.id,
            name=profile.name,
            raw_score=score,
            category_score=round(score * 100),
            speed=c.speed.value,
            cost=c.cost.value,
            accuracy=c.accuracy.value,
            context_length=profile.context_length,
            prompt_price=float(profile.descriptor.prompt_price),
            completion_price=float(profile.descriptor.completion_price),
            provider=c.provider,
            is_reasoning=c.is_reasoning,
            confidence=round(profile.profile_confidence * 100),
        )


def summarize_candidates(
    profiles: list[ModelProfile],
    category: PromptType,
) -> list[CandidateSummary]:
    """Candidates best-first by category score; catalog order breaks ties."""
    summaries = [CandidateSummary.from_profile(p, category) for p in profiles]
    summaries.sort(key=lambda s: s.raw_score, reverse=True)
    return summaries


def build_selection_prompt(
    prompt: str,
    category: PromptCategory,
    properties: PromptProperties,
    candidates: list[CandidateSummary],
) -> str:
    label = category.type.value
    blocks = []
    for c in candidates:
        blocks.append(
            f"{c.id}:\n"
            f"  - {label} Performance: {c.category_score}%\n"
            f"  - Speed: {c.speed} | Cost: {c.cost} | Accuracy: {c.accuracy}\n"
            f"  - Context: {c.context_length:,} tokens\n"
            f"  - Pricing: ${c.prompt_price:.6f}/${c.completion_price:.6f} per token\n"
            f"  - Provider: {c.provider} | Reasoning: {'Yes' if c.is_reasoning else 'No'}\n"
            f"  - Profile Confidence: {c.confidence}%"
        )
    profiles_text = "\n\n".join(blocks)

    return f"""You are an expert LLM selection system. Based on the user's prompt and requirements, select the best model from the available profiles.

PROMPT ANALYSIS:
- Classified Category: {label} ({round(category.confidence * 100)}% confidence)
- User Input: "{prompt}"

USER REQUIREMENTS:
- Accuracy Priority: {properties.accuracy}/1 (1 = highest accuracy needed)
- Cost Sensitivity: {properties.cost}/1 (0 = very cost-sensitive, 1 = cost no object)
- Speed Priority: {properties.speed}/1 (1 = fastest response needed)
- Context Length: {properties.token_limit} tokens minimum
- Reasoning Required: {str(properties.reasoning).lower()}

AVAILABLE MODEL PROFILES (filtered for {label} tasks):
{profiles_text}

Select the optimal model considering the user's priorities (accuracy/cost/speed) and the models' {label} capabilities.

Respond with valid JSON only, in this exact format:
{{
  "model": "exact_model_id_from_list",
  "reason": "brief explanation of why this model was selected",
  "confidence": 0.85
}}

The "model" field must exactly match one of the model IDs listed above. Do not wrap the JSON in code fences or add any other text."""


class DecisionAnswer(BaseModel):
    """Schema the decision model's JSON must satisfy."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    model: str = Field(min_length=1)
    reason: str = ""
    confidence: float = Field(ge=0.0, le=1.0)


class DecisionStatus(str, Enum):
    OK = "ok"
    PARSE_ERROR = "parse_error"
    VALIDATION_ERROR = "validation_error"


@dataclass
class DecisionResult:
    status: DecisionStatus
    answer: DecisionAnswer | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status == DecisionStatus.OK


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines).strip()
    return text


def parse_decision(raw: str, candidate_ids: set[str]) -> DecisionResult:
    """Validate a raw collaborator answer against the schema and candidate set."""
    try:
        data = json.loads(_strip_fences(raw or ""))
    except json.JSONDecodeError as e:
        return DecisionResult(DecisionStatus.PARSE_ERROR, error=f"Invalid JSON: {e}")
    if not isinstance(data, dict):
        return DecisionResult(
            DecisionStatus.PARSE_ERROR, error="Answer is not a JSON object")

    try:
        answer = DecisionAnswer.model_validate(data)
    except ValidationError as e:
        return DecisionResult(
            DecisionStatus.VALIDATION_ERROR,
            error=f"Answer failed schema validation: {e.error_count()} error(s)")

    if answer.model not in candidate_ids:
        return DecisionResult(
            DecisionStatus.VALIDATION_ERROR,
            answer=answer,
            error=f"Model {answer.model!r} is not one of the candidates")

    return DecisionResult(DecisionStatus.OK, answer=answer)


class DecisionMaker(Protocol):
    """Consumes a selection prompt, returns the raw model answer text."""

    async def decide(self, selection_prompt: str) -> str:
        ...


class LiteLLMDecisionMaker:
    """Asks a selector model (via OpenRouter, through LiteLLM) to decide."""

    def __init__(
        self,
        model: str,
        api_key: str,
        timeout: float = 30.0,
        temperature: float = 0.1,
    ):
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.temperature = temperature

    @property
    def litellm_model(self) -> str:
        if self.model.startswith("openrouter/"):
            return self.model
        return f"openrouter/{self.model}"

    async def decide(self, selection_prompt: str) -> str:
        import litellm

        try:
            response = await litellm.acompletion(
                model=self.litellm_model,
                messages=[{"role": "system", "content": selection_prompt}],
                api_key=self.api_key,
                temperature=self.temperature,
                timeout=self.timeout,
            )
        except Exception as e:
            raise DecisionCollaboratorError(f"Selector call failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise DecisionCollaboratorError("No response content from selector model")
        return content
