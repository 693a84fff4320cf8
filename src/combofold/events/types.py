"""Event types emitted by a collapse session."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field


def _generate_transition_id() -> str:
    """Generate a unique transition ID."""
    return uuid.uuid4().hex[:16]


def _now() -> float:
    """Current timestamp."""
    return time.time()


@dataclass(frozen=True)
class BaseEvent:
    """Base class for all session events.

    Attributes:
        session_id: Identifier of the session that produced this event.
        transition_id: Identifier shared by the events of one transition.
        timestamp: Unix timestamp when the event was created.
    """

    session_id: str
    transition_id: str = field(default_factory=_generate_transition_id)
    timestamp: float = field(default_factory=_now)


@dataclass(frozen=True)
class TransitionStartEvent(BaseEvent):
    """Emitted when a collapse/expand transition acquires the session.

    Attributes:
        action: "collapse_node", "expand_node", "collapse_combo" or "expand_combo".
        target: Id of the node or combo being toggled.
    """

    action: str = ""
    target: str = ""


@dataclass(frozen=True)
class TransitionEndEvent(BaseEvent):
    """Emitted when a transition has settled.

    Attributes:
        action: Transition kind.
        target: Id of the node or combo that was toggled.
        applied: False if the request turned out to be a no-op.
        hidden: Ids hidden by the transition.
        shown: Ids shown by the transition.
        proxies_added: Number of proxy edges created.
        proxies_removed: Number of proxy edges deleted.
        duration_ms: Wall-clock duration in milliseconds.
        error: "ExceptionType: message" if the transition raised, else None.
    """

    action: str = ""
    target: str = ""
    applied: bool = True
    hidden: tuple[str, ...] = ()
    shown: tuple[str, ...] = ()
    proxies_added: int = 0
    proxies_removed: int = 0
    duration_ms: float = 0.0
    error: str | None = None


@dataclass(frozen=True)
class TransitionRejectedEvent(BaseEvent):
    """Emitted when a transition is dropped because another one is in flight.

    Attributes:
        action: Kind of the dropped transition.
        target: Id it was requested for.
        running: Label of the transition holding the session.
    """

    action: str = ""
    target: str = ""
    running: str = ""


@dataclass(frozen=True)
class RenderSyncRepairedEvent(BaseEvent):
    """Emitted when a full redraw revealed elements that must stay hidden.

    The engine re-hides them before the transition completes.

    Attributes:
        revealed: Ids the redraw made visible and that were hidden again.
    """

    revealed: tuple[str, ...] = ()


Event = (
    TransitionStartEvent
    | TransitionEndEvent
    | TransitionRejectedEvent
    | RenderSyncRepairedEvent
)
