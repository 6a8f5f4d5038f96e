"""Model catalog: feed access and the TTL-bounded profile cache."""

from promptroute.catalog.cache import CatalogSnapshot, ModelCatalogCache
from promptroute.catalog.source import CatalogSource, OpenRouterCatalogSource

__all__ = [
    "CatalogSource",
    "OpenRouterCatalogSource",
    "ModelCatalogCache",
    "CatalogSnapshot",
]
