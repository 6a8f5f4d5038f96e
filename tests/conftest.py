"""Shared fakes for promptroute tests.

Nothing here touches the network: the catalog feed, embedding backend,
selector model and analytics sink are all in-memory stand-ins.
"""

import asyncio
import json

import pytest

from promptroute.classification.embedder import normalize_text
from promptroute.classification.references import REFERENCE_TEXTS
from promptroute.config import AnalyticsConfig, RouterConfig
from promptroute.types import PromptType

CATEGORY_AXES = list(PromptType)
EMBEDDING_DIMS = len(CATEGORY_AXES) + 1  # last axis = "unrelated to anything"


def catalog_entry(
    model_id: str,
    context_length: int = 128_000,
    prompt: str = "0.000005",
    completion: str = "0.000015",
    description: str = "",
) -> dict:
    """One `data[]` entry shaped like the OpenRouter models endpoint."""
    return {
        "id": model_id,
        "name": model_id.split("/")[-1],
        "description": description,
        "context_length": context_length,
        "pricing": {"prompt": prompt, "completion": completion},
        "top_provider": {"max_completion_tokens": 4096, "is_moderated": False},
    }


STANDARD_CATALOG = [
    catalog_entry("openai/gpt-4o", 128_000, "0.000005", "0.000015"),
    catalog_entry("openai/gpt-3.5-turbo", 16_385, "0.0000005", "0.0000015"),
    catalog_entry("anthropic/claude-3-haiku", 200_000, "0.00000025", "0.00000125"),
    catalog_entry("meta-llama/llama-3.1-8b", 131_072, "0.00000005", "0.00000005"),
    catalog_entry("gryphe/mythomist-7b:free", 32_768, "0", "0"),
]


def axis_vector(category: PromptType | None) -> list[float]:
    """One-hot vector for a category, or the unrelated axis for None."""
    vector = [0.0] * EMBEDDING_DIMS
    index = CATEGORY_AXES.index(category) if category is not None else -1
    vector[index] = 1.0
    return vector


class FakeCatalogSource:
    """In-memory catalog feed that counts fetches."""

    def __init__(self, entries=None, error: Exception | None = None, delay: float = 0.0):
        self.entries = list(entries if entries is not None else STANDARD_CATALOG)
        self.error = error
        self.delay = delay
        self.calls = 0

    async def fetch_catalog(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [dict(e) if isinstance(e, dict) else e for e in self.entries]


class FakeEmbeddingBackend:
    """Maps reference texts to their category axis.

    Extra prompts can be pinned to a category with `assign()`; anything
    else lands on the unrelated axis (similarity 0 to every centroid).
    """

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = 0
        self.initialized = 0
        self.mapping: dict[str, list[float]] = {}
        for category, texts in REFERENCE_TEXTS.items():
            for text in texts:
                self.mapping[normalize_text(text)] = axis_vector(category)

    def assign(self, text: str, category: PromptType) -> None:
        self.mapping[normalize_text(text)] = axis_vector(category)

    async def initialize(self):
        self.initialized += 1

    async def embed(self, text: str) -> list[float]:
        self.calls += 1
        if self.fail:
            raise RuntimeError("embedding service unavailable")
        return self.mapping.get(text, axis_vector(None))


class FakeDecisionMaker:
    """Selector stand-in. Answers with `answer` (dict → JSON) or raises `error`."""

    def __init__(self, answer=None, error: Exception | None = None, delay: float = 0.0):
        self.answer = answer
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []

    async def decide(self, selection_prompt: str) -> str:
        self.prompts.append(selection_prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if isinstance(self.answer, str):
            return self.answer
        return json.dumps(self.answer)


class RecordingSink:
    """Analytics sink that keeps every batch it receives."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.batches: list[list[dict]] = []

    @property
    def events(self) -> list[dict]:
        return [e for batch in self.batches for e in batch]

    async def send(self, events):
        if self.fail:
            raise ConnectionError("analytics endpoint down")
        self.batches.append(list(events))


# ── Fixtures ──────────────────────────────────────────────────

@pytest.fixture
def promptroute_home(tmp_path, monkeypatch):
    """Point config/credential files at a temp dir (never touch ~/.promptroute)."""
    home = tmp_path / "promptroute"
    monkeypatch.setenv("PROMPTROUTE_HOME", str(home))
    monkeypatch.delenv("OPEN_ROUTER_API_KEY", raising=False)
    monkeypatch.delenv("MODEL_SELECTOR_MODEL", raising=False)
    return home


@pytest.fixture
def router_config():
    return RouterConfig(api_key="sk-or-test", decision_timeout=1.0)


@pytest.fixture
def embedding_backend():
    return FakeEmbeddingBackend()


@pytest.fixture
def make_router(router_config, embedding_backend):
    """Factory for a PromptRouter wired entirely to fakes."""
    from promptroute.routing.router import PromptRouter

    def _make(decision=None, source=None, config=None, **kwargs):
        return PromptRouter(
            config or router_config,
            catalog_source=source or FakeCatalogSource(),
            embedding_backend=kwargs.pop("embedding_backend", embedding_backend),
            decision_maker=decision or FakeDecisionMaker(error=RuntimeError("no selector")),
            **kwargs,
        )

    return _make


@pytest.fixture
def analytics_config():
    return AnalyticsConfig(
        enabled=True,
        endpoint="https://analytics.example.test/events",
        batch_size=3,
        batch_interval_seconds=0.05,
    )
