"""Tests for the analytics queue, collector and privacy helpers."""

import asyncio

import httpx
import pytest

from conftest import RecordingSink


def event(n=0):
    from promptroute.analytics import AnalyticsEvent
    return AnalyticsEvent(event_type="test", data={"n": n}, library_version="0.0.0")


# ═══════════════════════════════════════════════════════════════
# 1. UTILITIES
# ═══════════════════════════════════════════════════════════════

class TestAnalyticsUtils:

    def test_content_hash(self):
        from promptroute.analytics.utils import content_hash

        h = content_hash("hello")
        assert len(h) == 16
        assert h == content_hash("hello")
        assert h != content_hash("hello!")

    def test_sanitize_config(self):
        from promptroute.analytics.utils import sanitize_config

        clean = sanitize_config({
            "api_key": "sk-secret",
            "selector_model": "m",
            "analytics": {"api_key": "x", "enabled": True},
            "secret": "s",
        })
        assert clean == {"selector_model": "m", "analytics": {"enabled": True}}

    def test_session_ids_are_unique(self):
        from promptroute.analytics.utils import generate_session_id

        assert generate_session_id() != generate_session_id()

    def test_fingerprint_is_stable(self):
        from promptroute.analytics.utils import user_fingerprint

        assert user_fingerprint() == user_fingerprint()

    def test_library_version(self):
        from promptroute.analytics.utils import library_version

        assert library_version()


# ═══════════════════════════════════════════════════════════════
# 2. QUEUE
# ═══════════════════════════════════════════════════════════════

class TestAnalyticsQueue:
    """Batching and draining."""

    def test_batches_by_size(self):
        from promptroute.analytics import AnalyticsQueue

        sink = RecordingSink()
        queue = AnalyticsQueue(sink, batch_size=2, batch_interval=60)

        async def run():
            queue.start()
            for i in range(4):
                queue.enqueue(event(i))
            await asyncio.sleep(0.05)
            return [len(b) for b in sink.batches]

        sizes = asyncio.run(run())
        assert sizes == [2, 2]

    def test_batches_by_interval(self):
        from promptroute.analytics import AnalyticsQueue

        sink = RecordingSink()
        queue = AnalyticsQueue(sink, batch_size=100, batch_interval=0.02)

        async def run():
            queue.start()
            queue.enqueue(event())
            await asyncio.sleep(0.1)
            return len(sink.events)

        assert asyncio.run(run()) == 1

    def test_shutdown_drains(self):
        from promptroute.analytics import AnalyticsQueue

        sink = RecordingSink()
        queue = AnalyticsQueue(sink, batch_size=100, batch_interval=60)

        async def run():
            queue.start()
            for i in range(7):
                queue.enqueue(event(i))
            await queue.shutdown()

        asyncio.run(run())
        assert [e["data"]["n"] for e in sink.events] == list(range(7))
        assert not queue.is_running
        assert queue.status()["sent"] == 7

    def test_events_carry_session(self):
        from promptroute.analytics import AnalyticsQueue

        sink = RecordingSink()
        queue = AnalyticsQueue(sink)

        async def run():
            queue.start()
            queue.enqueue(event())
            await queue.shutdown()

        asyncio.run(run())
        assert sink.events[0]["session_id"] == queue.session_id
        assert sink.events[0]["user_fingerprint"]

    def test_enqueue_without_start_drops(self):
        from promptroute.analytics import AnalyticsQueue

        queue = AnalyticsQueue(RecordingSink())
        assert queue.enqueue(event()) is False
        assert queue.dropped == 1

    def test_sink_failure_is_swallowed(self):
        from promptroute.analytics import AnalyticsQueue

        queue = AnalyticsQueue(RecordingSink(fail=True), batch_size=1)

        async def run():
            queue.start()
            queue.enqueue(event())
            await queue.shutdown()

        asyncio.run(run())
        assert queue.dropped == 1


class TestHttpAnalyticsSink:

    def test_posts_json_batch(self):
        from promptroute.analytics import HttpAnalyticsSink

        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = request.read()
            return httpx.Response(201)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        sink = HttpAnalyticsSink("https://analytics.test/events", api_key="anon", client=client)
        asyncio.run(sink.send([{"event_type": "x"}]))
        assert seen["auth"] == "Bearer anon"
        assert b'"event_type"' in seen["body"]

    def test_http_error_raises(self):
        from promptroute.analytics import HttpAnalyticsSink

        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        sink = HttpAnalyticsSink("https://analytics.test/events", client=client)
        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(sink.send([]))


# ═══════════════════════════════════════════════════════════════
# 3. COLLECTOR
# ═══════════════════════════════════════════════════════════════

class TestAnalyticsCollector:

    def _selection(self):
        from promptroute.types import ModelSelection, PromptCategory, PromptType

        category = PromptCategory(PromptType.CODING, 0.8)
        return category, ModelSelection("openai/gpt-4o", "best", 0.9, category)

    def test_disabled_collector_is_inert(self):
        from promptroute.analytics import AnalyticsCollector
        from promptroute.config import AnalyticsConfig
        from promptroute.types import PromptProperties

        collector = AnalyticsCollector(AnalyticsConfig(enabled=False))
        category, selection = self._selection()
        collector.track_prompt_request("p", PromptProperties(), category, selection, 1.0)
        assert collector.status()["queue"] is None
        asyncio.run(collector.shutdown())

    def test_prompt_request_event(self, analytics_config):
        from promptroute.analytics import AnalyticsCollector
        from promptroute.analytics.utils import content_hash
        from promptroute.types import PromptProperties

        sink = RecordingSink()
        collector = AnalyticsCollector(analytics_config, sink=sink)
        category, selection = self._selection()

        async def run():
            collector.start()
            collector.track_prompt_request(
                "write a parser", PromptProperties(cost=0.1), category, selection, 12.3,
                semantic_confidence=0.7, keyword_confidence=0.5)
            await collector.shutdown()

        asyncio.run(run())
        data = sink.events[0]["data"]
        assert data["prompt_hash"] == content_hash("write a parser")
        assert data["prompt_type"] == "coding"
        assert data["model_selected"] == "openai/gpt-4o"
        assert data["requirements"]["cost"] == 0.1
        assert data["semantic_confidence"] == 0.7

    def test_prompt_metrics_opt_out(self, analytics_config):
        from promptroute.analytics import AnalyticsCollector
        from promptroute.types import PromptProperties

        analytics_config.collect_prompt_metrics = False
        sink = RecordingSink()
        collector = AnalyticsCollector(analytics_config, sink=sink)
        category, selection = self._selection()

        async def run():
            collector.start()
            collector.track_prompt_request("p", PromptProperties(), category, selection, 1.0)
            await collector.shutdown()

        asyncio.run(run())
        assert sink.events == []

    def test_track_outside_event_loop_does_not_raise(self, analytics_config):
        from promptroute.analytics import AnalyticsCollector

        collector = AnalyticsCollector(analytics_config, sink=RecordingSink())
        collector.track_error(ValueError("x"), "test")
        assert collector.queue.dropped == 1
