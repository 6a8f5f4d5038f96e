"""Model selection: candidate filtering plus the selector-model decision."""

from promptroute.routing.decision import (
    DecisionAnswer,
    DecisionMaker,
    DecisionResult,
    DecisionStatus,
    LiteLLMDecisionMaker,
    build_selection_prompt,
    parse_decision,
)
from promptroute.routing.router import PromptRouter

__all__ = [
    "PromptRouter",
    "DecisionMaker",
    "LiteLLMDecisionMaker",
    "DecisionAnswer",
    "DecisionResult",
    "DecisionStatus",
    "build_selection_prompt",
    "parse_decision",
]
