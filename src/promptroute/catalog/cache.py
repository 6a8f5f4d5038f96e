"""In-memory, TTL-bounded model catalog.

State machine:

    EMPTY --fetch ok--> POPULATED(age=0) --TTL elapsed / clear()--> EMPTY
    EMPTY --fetch fails--> EMPTY (error propagates)

A rebuild builds a complete new snapshot off to the side and swaps it in
with a single assignment, so readers only ever see one fetch generation.
Concurrent callers that hit an EMPTY/expired cache wait on the same lock
and reuse whichever snapshot the first one installed.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from decimal import InvalidOperation
from typing import Callable

from promptroute.catalog.source import CatalogSource
from promptroute.config import DEFAULT_CATALOG_TTL
from promptroute.errors import CatalogFetchError, PromptRouteError
from promptroute.profiling import ModelProfiler
from promptroute.types import ModelDescriptor, ModelProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    """One fetch generation. Never mutated after construction."""
    profiles: dict[str, ModelProfile]
    refreshed_at: float
    generation: int
    skipped: tuple[str, ...] = field(default_factory=tuple)


class ModelCatalogCache:
    """Owns the profile snapshot. `get_profiles()` and `clear()` are the
    only ways in.

    Usage:
        cache = ModelCatalogCache(OpenRouterCatalogSource(api_key))
        profiles = await cache.get_profiles()
    """

    def __init__(
        self,
        source: CatalogSource,
        profiler: ModelProfiler | None = None,
        ttl_seconds: float = DEFAULT_CATALOG_TTL,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.profiler = profiler or ModelProfiler()
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        self._snapshot: CatalogSnapshot | None = None
        self._generation = 0
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_populated(self) -> bool:
        return self._snapshot is not None

    @property
    def last_refreshed(self) -> float | None:
        return self._snapshot.refreshed_at if self._snapshot else None

    @property
    def generation(self) -> int:
        return self._snapshot.generation if self._snapshot else 0

    def _is_fresh(self, snapshot: CatalogSnapshot | None) -> bool:
        if snapshot is None:
            return False
        return (self._clock() - snapshot.refreshed_at) <= self.ttl_seconds

    def _refresh_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def get_profiles(self) -> list[ModelProfile]:
        """Return the current snapshot, rebuilding it first if EMPTY or stale.

        Raises:
            CatalogFetchError: the feed failed; the cache is left EMPTY.
        """
        snapshot = self._snapshot
        if not self._is_fresh(snapshot):
            async with self._refresh_lock():
                snapshot = self._snapshot
                if not self._is_fresh(snapshot):
                    snapshot = await self._rebuild()
        return list(snapshot.profiles.values())

    async def get_profile(self, model_id: str) -> ModelProfile | None:
        profiles = await self.get_profiles()
        return next((p for p in profiles if p.id == model_id), None)

    def clear(self) -> None:
        """Force the cache back to EMPTY."""
        self._snapshot = None
        logger.info("Model catalog cache cleared")

    async def _rebuild(self) -> CatalogSnapshot:
        try:
            entries = await self.source.fetch_catalog()
        except PromptRouteError:
            self._snapshot = None
            logger.error("Catalog fetch failed; cache left empty")
            raise
        except Exception as e:
            self._snapshot = None
            logger.error(f"Catalog source raised {type(e).__name__}; cache left empty")
            raise CatalogFetchError(f"Catalog source failed: {e}") from e

        profiles: dict[str, ModelProfile] = {}
        skipped: list[str] = []
        for entry in entries:
            try:
                descriptor = ModelDescriptor.from_api(entry)
                profiles[descriptor.id] = self.profiler.profile(descriptor)
            except (KeyError, TypeError, ValueError, AttributeError, InvalidOperation) as e:
                entry_id = entry.get("id", "?") if isinstance(entry, dict) else "?"
                skipped.append(str(entry_id))
                logger.warning(f"Skipping catalog entry {entry_id}: {e}")

        self._generation += 1
        snapshot = CatalogSnapshot(
            profiles=profiles,
            refreshed_at=self._clock(),
            generation=self._generation,
            skipped=tuple(skipped),
        )
        self._snapshot = snapshot

        logger.info(
            f"Cached {len(profiles)} model profiles "
            f"(generation {snapshot.generation}, {len(skipped)} skipped)")
        return snapshot
