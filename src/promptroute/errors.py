"""Error taxonomy for promptroute.

Only UninitializedError, NoSuitableModelsError and CatalogFetchError ever
escape `PromptRouter.recommend()`. DecisionCollaboratorError and
EmbeddingError are raised internally and absorbed by fallback policies.
"""


class PromptRouteError(Exception):
    """Base class for every error raised by promptroute."""


class ConfigurationError(PromptRouteError):
    """Missing or invalid credential / setting."""


class CatalogFetchError(PromptRouteError):
    """The model catalog feed was unreachable or returned non-2xx."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UninitializedError(PromptRouteError):
    """recommend() was called before a successful initialize()."""


class NoSuitableModelsError(PromptRouteError):
    """Filtering emptied the candidate set."""

    def __init__(self, category: str, reason: str = ""):
        message = f"No suitable models found for category: {category}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.category = category
        self.reason = reason


class DecisionCollaboratorError(PromptRouteError):
    """The decision model failed, timed out, or answered out of contract."""


class EmbeddingError(PromptRouteError):
    """The embedding backend failed for a text."""
