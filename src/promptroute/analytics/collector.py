"""Anonymous usage analytics.

Every `track_*` method is fire-and-forget: it never raises and never
waits on the network. Prompts are only ever shipped as content hashes.
"""

import logging
from typing import Any

from promptroute.analytics.queue import (
    AnalyticsEvent,
    AnalyticsQueue,
    AnalyticsSink,
    HttpAnalyticsSink,
)
from promptroute.analytics.utils import (
    content_hash,
    library_version,
    sanitize_config,
    system_info,
)
from promptroute.config import AnalyticsConfig
from promptroute.types import ModelSelection, PromptCategory, PromptProperties

logger = logging.getLogger(__name__)


class AnalyticsCollector:
    """Turns router activity into analytics events.

    Usage:
        collector = AnalyticsCollector(config.analytics)
        collector.start()
        collector.track_prompt_request(...)
        await collector.shutdown()
    """

    def __init__(self, config: AnalyticsConfig, sink: AnalyticsSink | None = None):
        self.config = config
        self.library_version = library_version()
        self.system_info = system_info() if config.collect_system_info else None

        self.queue: AnalyticsQueue | None = None
        if config.enabled:
            sink = sink or HttpAnalyticsSink(config.endpoint, config.api_key)
            self.queue = AnalyticsQueue(
                sink,
                batch_size=config.batch_size,
                batch_interval=config.batch_interval_seconds,
                debug=config.debug,
            )

    @property
    def enabled(self) -> bool:
        return self.queue is not None

    def start(self) -> None:
        if self.queue is None:
            return
        try:
            self.queue.start()
        except Exception as e:
            logger.warning(f"Could not start analytics queue: {e}")

    def _emit(self, event_type: str, data: dict[str, Any]) -> None:
        try:
            self.queue.enqueue(AnalyticsEvent(
                event_type=event_type,
                data=data,
                library_version=self.library_version,
            ))
        except Exception as e:
            logger.debug(f"Failed to record {event_type} event: {e}")

    def track_session_start(
        self,
        config_options: dict[str, Any],
        initialization_time_ms: float,
        model_cache_size: int,
    ) -> None:
        if not self.enabled:
            return
        try:
            data = {
                "config_options": sanitize_config(config_options),
                "initialization_time_ms": round(initialization_time_ms, 1),
                "model_cache_size": model_cache_size,
            }
            if self.system_info is not None:
                data["system_info"] = self.system_info
        except Exception as e:
            logger.debug(f"Failed to build session_start event: {e}")
            return
        self._emit("session_start", data)

    def track_prompt_request(
        self,
        prompt: str,
        properties: PromptProperties,
        classification: PromptCategory,
        selection: ModelSelection,
        response_time_ms: float,
        semantic_confidence: float | None = None,
        keyword_confidence: float | None = None,
    ) -> None:
        if not self.enabled or not self.config.collect_prompt_metrics:
            return
        try:
            data: dict[str, Any] = {
                "prompt_hash": content_hash(prompt),
                "prompt_length": len(prompt),
                "prompt_type": classification.type.value,
                "classification_confidence": classification.confidence,
                "requirements": properties.to_dict(),
                "response_time_ms": round(response_time_ms, 1),
            }
            if self.config.collect_model_performance:
                data.update({
                    "model_selected": selection.model,
                    "selection_confidence": selection.confidence,
                    "selection_reason": selection.reason,
                    "fallback": selection.fallback,
                })
            if semantic_confidence is not None:
                data["semantic_confidence"] = semantic_confidence
            if keyword_confidence is not None:
                data["keyword_confidence"] = keyword_confidence
        except Exception as e:
            logger.debug(f"Failed to build prompt_request event: {e}")
            return
        self._emit("prompt_request", data)

    def track_semantic_metrics(
        self,
        prompt: str,
        semantic: PromptCategory,
        keyword: PromptCategory,
        compute_time_ms: float = 0.0,
        cache_hit: bool = False,
    ) -> None:
        if not self.enabled or not self.config.collect_semantic_features:
            return
        try:
            data = {
                "prompt_hash": content_hash(prompt),
                "semantic_category": semantic.type.value,
                "semantic_confidence": semantic.confidence,
                "keyword_category": keyword.type.value,
                "keyword_confidence": keyword.confidence,
                "agreement": semantic.type == keyword.type,
                "embedding_compute_time_ms": round(compute_time_ms, 1),
                "embedding_cache_hit": cache_hit,
            }
        except Exception as e:
            logger.debug(f"Failed to build semantic_classification event: {e}")
            return
        self._emit("semantic_classification", data)

    def track_error(
        self,
        error: BaseException,
        context: str,
        prompt: str | None = None,
    ) -> None:
        if not self.enabled:
            return
        data = {
            "error_type": type(error).__name__,
            "error_message": str(error)[:500],
            "context": context,
        }
        if prompt is not None:
            data["prompt_hash"] = content_hash(prompt)
        self._emit("error_event", data)

    async def shutdown(self) -> None:
        if self.queue is None:
            return
        try:
            await self.queue.shutdown()
        except Exception as e:
            logger.warning(f"Analytics shutdown failed: {e}")

    def status(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "library_version": self.library_version,
            "queue": self.queue.status() if self.queue is not None else None,
        }
