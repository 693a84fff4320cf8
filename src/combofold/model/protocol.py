"""Collaborator protocols consumed by the collapse engine.

The engine never talks to a concrete rendering framework. It depends on:
- GraphModel: element records, mutation, visibility toggling and redraw
- OverlayPlugin: anything that tracks a member list (hulls, bubble sets)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Protocol

if TYPE_CHECKING:
    from combofold.model.types import Bounds, ComboData, EdgeData, ElementType, NodeData


class GraphModel(Protocol):
    """Protocol for the graph model / rendering collaborator.

    Lookups raise ``StaleElementError`` for unknown ids. Visibility toggles
    and redraw are coroutines that settle once the frame is committed; they
    must be idempotent over their target ids.
    """

    def nodes(self) -> list[NodeData]: ...

    def edges(self) -> list[EdgeData]: ...

    def combos(self) -> list[ComboData]: ...

    def get_node(self, node_id: str) -> NodeData: ...

    def get_edge(self, edge_id: str) -> EdgeData: ...

    def get_combo(self, combo_id: str) -> ComboData: ...

    def has_element(self, element_id: str) -> bool: ...

    def element_type(self, element_id: str) -> ElementType: ...

    def is_visible(self, element_id: str) -> bool: ...

    def add_edges(self, edges: Iterable[EdgeData]) -> None: ...

    def remove_edges(self, edge_ids: Iterable[str]) -> None: ...

    def update_nodes(self, patches: dict[str, dict[str, Any]]) -> None: ...

    def update_combo(self, combo_id: str, patch: dict[str, Any]) -> None: ...

    async def hide_elements(self, ids: Iterable[str], animate: bool = True) -> None: ...

    async def show_elements(self, ids: Iterable[str], animate: bool = True) -> None: ...

    async def draw(self) -> None: ...

    def get_bounds(self, element_id: str) -> Bounds: ...

    def update_element(self, element_id: str, style: dict[str, Any]) -> None: ...


class OverlayPlugin(Protocol):
    """Narrow capability interface for overlay plugins."""

    def get_members(self) -> list[str]: ...

    def set_members(self, members: list[str]) -> None: ...
