"""Content-keyed TTL caches for embeddings and classifications.

Keys are a SHA-256 of the text, so prompts are never held as dict keys.
Entries expire after a fixed TTL; the oldest entries are evicted once the
cache is over capacity. Single-key get/set only, no cross-key invariants.
"""

import hashlib
import time
from collections import OrderedDict
from typing import Callable, Generic, TypeVar

V = TypeVar("V")

EMBEDDING_TTL = 24 * 60 * 60  # 24h
CLASSIFICATION_TTL = 30 * 60  # 30min


class TTLCache(Generic[V]):
    """Text → value cache with per-entry expiry and LRU eviction."""

    def __init__(
        self,
        ttl_seconds: float,
        max_size: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, tuple[V, float]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(text: str) -> str:
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    def get(self, text: str) -> V | None:
        key = self.make_key(text)
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        value, stored_at = entry
        if self._clock() - stored_at > self.ttl_seconds:
            self._entries.pop(key, None)
            self.misses += 1
            return None

        self._entries.move_to_end(key)
        self.hits += 1
        return value

    def set(self, text: str, value: V) -> None:
        key = self.make_key(text)
        self._entries[key] = (value, self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def purge_expired(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = self._clock()
        expired = [k for k, (_, ts) in self._entries.items()
                   if now - ts > self.ttl_seconds]
        for key in expired:
            self._entries.pop(key, None)
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)
