"""Event processor base classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from combofold.events.types import (
        Event,
        RenderSyncRepairedEvent,
        TransitionEndEvent,
        TransitionRejectedEvent,
        TransitionStartEvent,
    )


# Mapping from event class name to handler method name.
_EVENT_METHOD_MAP: dict[str, str] = {
    "TransitionStartEvent": "on_transition_start",
    "TransitionEndEvent": "on_transition_end",
    "TransitionRejectedEvent": "on_transition_rejected",
    "RenderSyncRepairedEvent": "on_render_sync_repaired",
}


class EventProcessor:
    """Base class for synchronous event consumers.

    Subclass and override ``on_event`` to receive all events,
    or use ``TypedEventProcessor`` for per-type dispatch.
    """

    def on_event(self, event: Event) -> None:
        """Called for every event. Override in subclasses."""

    def shutdown(self) -> None:
        """Called once when the session is closed. Override to flush buffers."""


class AsyncEventProcessor(EventProcessor):
    """Extends EventProcessor with async variants.

    The session prefers ``on_event_async`` and ``shutdown_async`` when
    available, falling back to the sync methods otherwise.
    """

    async def on_event_async(self, event: Event) -> None:
        """Async version of on_event. Override in subclasses."""

    async def shutdown_async(self) -> None:
        """Async version of shutdown. Override to flush buffers."""


class TypedEventProcessor(EventProcessor):
    """Dispatches ``on_event`` to typed handler methods automatically.

    Override any of the ``on_*`` methods below to handle specific event types.
    Unhandled event types are silently ignored.
    """

    def on_event(self, event: Event) -> None:
        method_name = _EVENT_METHOD_MAP.get(type(event).__name__)
        if method_name is not None:
            method = getattr(self, method_name, None)
            if method is not None:
                method(event)

    def on_transition_start(self, event: TransitionStartEvent) -> None: ...
    def on_transition_end(self, event: TransitionEndEvent) -> None: ...
    def on_transition_rejected(self, event: TransitionRejectedEvent) -> None: ...
    def on_render_sync_repaired(self, event: RenderSyncRepairedEvent) -> None: ...
