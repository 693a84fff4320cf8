"""Event system for observing collapse transitions."""

from combofold.events.dispatcher import EventDispatcher
from combofold.events.processor import (
    AsyncEventProcessor,
    EventProcessor,
    TypedEventProcessor,
)
from combofold.events.types import (
    BaseEvent,
    Event,
    RenderSyncRepairedEvent,
    TransitionEndEvent,
    TransitionRejectedEvent,
    TransitionStartEvent,
)

__all__ = [
    # Event types
    "BaseEvent",
    "Event",
    "RenderSyncRepairedEvent",
    "TransitionEndEvent",
    "TransitionRejectedEvent",
    "TransitionStartEvent",
    # Processor interfaces
    "AsyncEventProcessor",
    "EventProcessor",
    "TypedEventProcessor",
    # Dispatcher
    "EventDispatcher",
]
