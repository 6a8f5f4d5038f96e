"""Model catalog feed.

The feed is an OpenRouter-compatible `GET /models` endpoint returning
`{"data": [ {id, name, description, context_length, pricing, top_provider}, ... ]}`.
Raw entries are returned untouched; parsing happens during the cache
rebuild so one malformed entry never sinks the whole catalog.
"""

import logging
from typing import Any, Protocol

import httpx

from promptroute.config import DEFAULT_CATALOG_URL
from promptroute.errors import CatalogFetchError, ConfigurationError

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    """Anything that can list the raw model catalog."""

    async def fetch_catalog(self) -> list[dict[str, Any]]:
        ...


class OpenRouterCatalogSource:
    """Fetches the model list over HTTPS with a bearer credential."""

    def __init__(
        self,
        api_key: str,
        url: str = DEFAULT_CATALOG_URL,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self._client = client

    async def fetch_catalog(self) -> list[dict[str, Any]]:
        if not self.api_key:
            raise ConfigurationError("Catalog source requires an API key")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        logger.info(f"Fetching model catalog from {self.url}")
        try:
            if self._client is not None:
                resp = await self._client.get(self.url, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(self.url, headers=headers)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as e:
            raise CatalogFetchError(
                f"Catalog request failed: HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise CatalogFetchError(f"Catalog request failed: {e}") from e
        except ValueError as e:
            raise CatalogFetchError(f"Catalog response is not JSON: {e}") from e

        entries = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            raise CatalogFetchError("Catalog response has no `data` list")

        logger.info(f"Fetched {len(entries)} catalog entries")
        return entries
