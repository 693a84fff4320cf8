"""Element records exchanged with the graph model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ElementType(Enum):
    """Kind of a graph element.

    Values:
        NODE: A plain node, optionally inside a combo
        EDGE: A directed edge, real or proxy
        COMBO: A grouping container
    """

    NODE = "node"
    EDGE = "edge"
    COMBO = "combo"


@dataclass
class NodeData:
    """A node record.

    Attributes:
        id: Unique node id
        combo: Id of the combo that directly contains this node, if any
        visible: Current visibility
        collapsed: Whether the node is DAG-collapsed (drives its toggle icon)
        hidden_descendants: Badge count shown while collapsed ("+N")
        collapse: Optional collapse toggle config (placement, radius, ...)
        x: Center x coordinate
        y: Center y coordinate
        size: Width/height of the node's box
        ports: Port keys declared on the node
    """

    id: str
    combo: str | None = None
    visible: bool = True
    collapsed: bool = False
    hidden_descendants: int = 0
    collapse: dict[str, Any] | None = None
    x: float = 0.0
    y: float = 0.0
    size: float = 32.0
    ports: list[str] = field(default_factory=list)


@dataclass
class EdgeData:
    """An edge record.

    Proxy edges carry ``is_proxy=True`` and never take part in reachability
    or port counting.
    """

    id: str
    source: str
    target: str
    visible: bool = True
    is_proxy: bool = False
    source_port: str | None = None
    target_port: str | None = None
    style: dict[str, Any] = field(default_factory=dict)


@dataclass
class ComboData:
    """A combo (grouping container) record.

    Attributes:
        id: Unique combo id
        combo: Parent combo id for nested combos
        visible: Current visibility
        collapsed: Whether the user collapsed this combo
        hidden_count: Badge count of members hidden by the collapse ("+N")
        center: Cached content center, reused when no member is visible
        x, y, width, height: Current geometry
    """

    id: str
    combo: str | None = None
    visible: bool = True
    collapsed: bool = False
    hidden_count: int = 0
    center: tuple[float, float] | None = None
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def center(self) -> tuple[float, float]:
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def union(self, other: Bounds) -> Bounds:
        return Bounds(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def expand(self, padding: float) -> Bounds:
        return Bounds(
            self.min_x - padding,
            self.min_y - padding,
            self.max_x + padding,
            self.max_y + padding,
        )

    @classmethod
    def around(cls, center: tuple[float, float], size: float) -> Bounds:
        """Square box of side ``size`` centered on ``center``."""
        half = size / 2
        cx, cy = center
        return cls(cx - half, cy - half, cx + half, cy + half)
