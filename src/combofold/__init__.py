"""combofold - collapse/visibility consistency engine for node-link diagrams."""

from combofold.config import EngineConfig, load_config
from combofold.engine import (
    CollapseStateStore,
    ComboCollapseRecord,
    ProxyEdgeSynthesizer,
    ReachabilityWalker,
    TransitionResult,
)
from combofold.events import (
    AsyncEventProcessor,
    BaseEvent,
    Event,
    EventDispatcher,
    EventProcessor,
    RenderSyncRepairedEvent,
    TransitionEndEvent,
    TransitionRejectedEvent,
    TransitionStartEvent,
    TypedEventProcessor,
)
from combofold.exceptions import StaleElementError, TransitionInFlightError
from combofold.model import (
    Bounds,
    ComboData,
    EdgeData,
    ElementType,
    GraphModel,
    InMemoryGraphModel,
    NodeData,
    OverlayPlugin,
)
from combofold.session import CollapseSession, TransitionToken

__all__ = [
    # Session
    "CollapseSession",
    "TransitionToken",
    "TransitionResult",
    # Engine state
    "CollapseStateStore",
    "ComboCollapseRecord",
    "ProxyEdgeSynthesizer",
    "ReachabilityWalker",
    # Model
    "Bounds",
    "ComboData",
    "EdgeData",
    "ElementType",
    "GraphModel",
    "InMemoryGraphModel",
    "NodeData",
    "OverlayPlugin",
    # Config
    "EngineConfig",
    "load_config",
    # Errors
    "StaleElementError",
    "TransitionInFlightError",
    # Events
    "AsyncEventProcessor",
    "BaseEvent",
    "Event",
    "EventDispatcher",
    "EventProcessor",
    "RenderSyncRepairedEvent",
    "TransitionEndEvent",
    "TransitionRejectedEvent",
    "TransitionStartEvent",
    "TypedEventProcessor",
]
