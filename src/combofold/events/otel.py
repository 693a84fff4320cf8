"""OpenTelemetry export processor — converts collapse session events to OTel spans.

Opt-in via::

    pip install combofold[otel]

Usage::

    from combofold.events.otel import OpenTelemetryProcessor

    session = CollapseSession(model, processors=[OpenTelemetryProcessor()])

Each transition becomes one span; dropped requests become zero-length spans.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from combofold.events.processor import TypedEventProcessor

if TYPE_CHECKING:
    from combofold.events.types import (
        RenderSyncRepairedEvent,
        TransitionEndEvent,
        TransitionRejectedEvent,
        TransitionStartEvent,
    )


def _require_opentelemetry() -> None:
    """Raise a clear error if opentelemetry is not installed."""
    try:
        import opentelemetry  # noqa: F401
    except ImportError:
        raise ImportError(
            "The 'opentelemetry' package is required for OpenTelemetryProcessor. "
            "Install with: pip install 'combofold[otel]' "
            "or: pip install opentelemetry-api opentelemetry-sdk"
        ) from None


class OpenTelemetryProcessor(TypedEventProcessor):
    """Converts collapse session events to OpenTelemetry spans.

    Mapping:
        TransitionStartEvent     → span (``transition:{action}``)
        RenderSyncRepairedEvent  → span event on the transition span
        TransitionEndEvent       → end span with visibility delta attributes
                                   (error status if the transition raised)
        TransitionRejectedEvent  → zero-length span (``rejected:{action}``)
    """

    def __init__(self, tracer_name: str = "combofold", tracer_provider: Any = None) -> None:
        _require_opentelemetry()
        from opentelemetry import trace
        from opentelemetry.trace import StatusCode

        self._tracer = trace.get_tracer(tracer_name, tracer_provider=tracer_provider)
        self._StatusCode = StatusCode
        self._spans: dict[str, Any] = {}  # transition_id → OTel Span

    def on_transition_start(self, event: TransitionStartEvent) -> None:
        span = self._tracer.start_span(
            name=f"transition:{event.action}",
            attributes={
                "combofold.session_id": event.session_id,
                "combofold.action": event.action,
                "combofold.target": event.target,
            },
        )
        self._spans[event.transition_id] = span

    def on_render_sync_repaired(self, event: RenderSyncRepairedEvent) -> None:
        span = self._spans.get(event.transition_id)
        if span is None:
            return
        span.add_event("render_sync_repaired", attributes={"revealed": list(event.revealed)})

    def on_transition_end(self, event: TransitionEndEvent) -> None:
        span = self._spans.pop(event.transition_id, None)
        if span is None:
            return
        span.set_attribute("combofold.applied", event.applied)
        span.set_attribute("combofold.hidden_count", len(event.hidden))
        span.set_attribute("combofold.shown_count", len(event.shown))
        span.set_attribute("combofold.proxies_added", event.proxies_added)
        span.set_attribute("combofold.proxies_removed", event.proxies_removed)
        span.set_attribute("combofold.duration_ms", event.duration_ms)
        if event.error:
            span.set_status(self._StatusCode.ERROR, event.error)
        span.end()

    def on_transition_rejected(self, event: TransitionRejectedEvent) -> None:
        span = self._tracer.start_span(
            name=f"rejected:{event.action}",
            attributes={
                "combofold.session_id": event.session_id,
                "combofold.target": event.target,
                "combofold.running": event.running,
            },
        )
        span.end()

    def shutdown(self) -> None:
        """End any remaining open spans (safety net)."""
        for span in self._spans.values():
            span.end()
        self._spans.clear()
