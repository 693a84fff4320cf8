"""Headless in-memory graph model.

Implements the GraphModel protocol on top of a NetworkX MultiDiGraph so the
engine can run without a canvas: in tests, from the CLI, or while
prototyping in a notebook. Nodes and combos are both vertices of the
underlying graph (edges may attach to combos); edges are keyed by their id.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, fields
from typing import Any, Iterable

import networkx as nx

from combofold.exceptions import StaleElementError
from combofold.model.types import Bounds, ComboData, EdgeData, ElementType, NodeData

logger = logging.getLogger(__name__)


class InMemoryGraphModel:
    """Dict-backed graph model with async visibility toggles.

    Every mutating call is appended to ``history`` as ``(operation, ids)`` so
    callers can observe exactly what the engine asked for.

    Example:
        >>> model = InMemoryGraphModel(
        ...     nodes=[NodeData("a"), NodeData("b")],
        ...     edges=[EdgeData("a-b", "a", "b")],
        ... )
        >>> model.get_edge("a-b").target
        'b'
    """

    def __init__(
        self,
        nodes: Iterable[NodeData] = (),
        edges: Iterable[EdgeData] = (),
        combos: Iterable[ComboData] = (),
    ) -> None:
        self._graph = nx.MultiDiGraph()
        self._nodes: dict[str, NodeData] = {}
        self._combos: dict[str, ComboData] = {}
        self._edges: dict[str, EdgeData] = {}
        self.history: list[tuple[str, tuple[str, ...]]] = []
        self.draw_count = 0

        for combo in combos:
            self._combos[combo.id] = combo
            self._graph.add_node(combo.id, kind=ElementType.COMBO)
        for node in nodes:
            self._nodes[node.id] = node
            self._graph.add_node(node.id, kind=ElementType.NODE)
        self.add_edges(edges)
        self.history.clear()

    # ------------------------------------------------------------------
    # Snapshot I/O
    # ------------------------------------------------------------------

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> InMemoryGraphModel:
        """Build a model from a ``{"nodes", "edges", "combos"}`` mapping.

        Unknown keys on individual records are ignored.
        """
        return cls(
            nodes=[NodeData(**_known(NodeData, item)) for item in data.get("nodes", ())],
            edges=[EdgeData(**_known(EdgeData, item)) for item in data.get("edges", ())],
            combos=[ComboData(**_known(ComboData, item)) for item in data.get("combos", ())],
        )

    def to_snapshot(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "nodes": [asdict(n) for n in self._nodes.values()],
            "edges": [asdict(e) for e in self._edges.values()],
            "combos": [asdict(c) for c in self._combos.values()],
        }

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def nodes(self) -> list[NodeData]:
        return list(self._nodes.values())

    def edges(self) -> list[EdgeData]:
        return list(self._edges.values())

    def combos(self) -> list[ComboData]:
        return list(self._combos.values())

    def get_node(self, node_id: str) -> NodeData:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise StaleElementError(node_id, "node") from None

    def get_edge(self, edge_id: str) -> EdgeData:
        try:
            return self._edges[edge_id]
        except KeyError:
            raise StaleElementError(edge_id, "edge") from None

    def get_combo(self, combo_id: str) -> ComboData:
        try:
            return self._combos[combo_id]
        except KeyError:
            raise StaleElementError(combo_id, "combo") from None

    def has_element(self, element_id: str) -> bool:
        return element_id in self._nodes or element_id in self._edges or element_id in self._combos

    def element_type(self, element_id: str) -> ElementType:
        if element_id in self._nodes:
            return ElementType.NODE
        if element_id in self._edges:
            return ElementType.EDGE
        if element_id in self._combos:
            return ElementType.COMBO
        raise StaleElementError(element_id)

    def is_visible(self, element_id: str) -> bool:
        return self._record(element_id).visible

    def _record(self, element_id: str) -> NodeData | EdgeData | ComboData:
        record = self._nodes.get(element_id) or self._edges.get(element_id) or self._combos.get(element_id)
        if record is None:
            raise StaleElementError(element_id)
        return record

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_edges(self, edges: Iterable[EdgeData]) -> None:
        added = []
        for edge in edges:
            self._edges[edge.id] = edge
            self._graph.add_edge(edge.source, edge.target, key=edge.id)
            added.append(edge.id)
        if added:
            self.history.append(("add_edges", tuple(added)))

    def remove_edges(self, edge_ids: Iterable[str]) -> None:
        removed = []
        for edge_id in edge_ids:
            edge = self._edges.pop(edge_id, None)
            if edge is None:
                continue
            self._graph.remove_edge(edge.source, edge.target, key=edge_id)
            removed.append(edge_id)
        if removed:
            self.history.append(("remove_edges", tuple(removed)))

    def add_node(self, node: NodeData) -> None:
        """Insert a node created after the model was built."""
        self._nodes[node.id] = node
        self._graph.add_node(node.id, kind=ElementType.NODE)

    def remove_node(self, node_id: str) -> None:
        """Remove a node and every edge touching it."""
        if node_id not in self._nodes:
            return
        touching = [key for _, _, key in self._graph.in_edges(node_id, keys=True)]
        touching += [key for _, _, key in self._graph.out_edges(node_id, keys=True)]
        for edge_id in touching:
            self._edges.pop(edge_id, None)
        del self._nodes[node_id]
        self._graph.remove_node(node_id)

    def update_nodes(self, patches: dict[str, dict[str, Any]]) -> None:
        for node_id, patch in patches.items():
            _apply_patch(self.get_node(node_id), patch)
        if patches:
            self.history.append(("update_nodes", tuple(patches)))

    def update_combo(self, combo_id: str, patch: dict[str, Any]) -> None:
        _apply_patch(self.get_combo(combo_id), patch)
        self.history.append(("update_combo", (combo_id,)))

    def update_element(self, element_id: str, style: dict[str, Any]) -> None:
        record = self._record(element_id)
        if isinstance(record, EdgeData):
            record.style.update(style)
        else:
            _apply_patch(record, style)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    async def hide_elements(self, ids: Iterable[str], animate: bool = True) -> None:
        ids = tuple(ids)
        for element_id in ids:
            self._record(element_id).visible = False
        self.history.append(("hide", ids))
        await asyncio.sleep(0)

    async def show_elements(self, ids: Iterable[str], animate: bool = True) -> None:
        ids = tuple(ids)
        for element_id in ids:
            self._record(element_id).visible = True
        self.history.append(("show", ids))
        await asyncio.sleep(0)

    async def draw(self) -> None:
        self.draw_count += 1
        self.history.append(("draw", ()))
        await asyncio.sleep(0)

    def get_bounds(self, element_id: str) -> Bounds:
        record = self._record(element_id)
        if isinstance(record, NodeData):
            return Bounds.around((record.x, record.y), record.size)
        if isinstance(record, ComboData):
            return Bounds(
                record.x - record.width / 2,
                record.y - record.height / 2,
                record.x + record.width / 2,
                record.y + record.height / 2,
            )
        raise TypeError(f"Edges have no bounds: '{element_id}'")


def _known(cls: type, item: dict[str, Any]) -> dict[str, Any]:
    """Keep only keys that are dataclass fields of ``cls``."""
    names = {f.name for f in fields(cls)}
    kept = {key: value for key, value in item.items() if key in names}
    if "center" in kept and kept["center"] is not None:
        kept["center"] = tuple(kept["center"])
    return kept


def _apply_patch(record: Any, patch: dict[str, Any]) -> None:
    for key, value in patch.items():
        if not hasattr(record, key):
            logger.debug("Ignoring unknown attribute %r on %s", key, record.id)
            continue
        setattr(record, key, value)
