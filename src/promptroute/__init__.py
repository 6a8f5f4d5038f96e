"""promptroute - pick the right LLM for each prompt.

Profiles every model in a hosted catalog, classifies the prompt
(keyword + semantic), and asks a small selector model to choose among
the candidates that fit, with a deterministic fallback.
"""

__version__ = "0.3.0"

from promptroute.config import AnalyticsConfig, RouterConfig, load_router_config
from promptroute.errors import (
    CatalogFetchError,
    ConfigurationError,
    NoSuitableModelsError,
    PromptRouteError,
    UninitializedError,
)
from promptroute.routing.router import PromptRouter
from promptroute.types import (
    ModelProfile,
    ModelSelection,
    PromptCategory,
    PromptProperties,
    PromptType,
)

__all__ = [
    "__version__",
    "PromptRouter",
    "RouterConfig",
    "AnalyticsConfig",
    "load_router_config",
    "PromptProperties",
    "PromptCategory",
    "PromptType",
    "ModelProfile",
    "ModelSelection",
    "PromptRouteError",
    "ConfigurationError",
    "CatalogFetchError",
    "UninitializedError",
    "NoSuitableModelsError",
]
