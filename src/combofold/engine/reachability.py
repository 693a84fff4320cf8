"""Reachability over real edges.

DAG collapse hides everything reachable from a node through outgoing edges.
Proxy edges are synthetic and never extend reachability.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

import networkx as nx

from combofold.engine._common import incident_edges, real_edges
from combofold.model.types import ElementType

if TYPE_CHECKING:
    from combofold.model.protocol import GraphModel


class ReachabilityWalker:
    """Computes descendant node and edge sets from the current model.

    The walker holds no state of its own: each query builds a fresh
    directed graph of real edges, so edits to the model are always seen.

    Example:
        >>> walker = ReachabilityWalker(model)
        >>> walker.descendants("a")  # a -> b -> c
        {'b', 'c'}
    """

    def __init__(self, model: GraphModel) -> None:
        self._model = model

    def real_edge_graph(self) -> nx.DiGraph:
        """Directed graph of all real (non-proxy) edges."""
        G = nx.DiGraph()
        for edge in real_edges(self._model):
            G.add_edge(edge.source, edge.target)
        return G

    def descendants(self, node_id: str) -> set[str]:
        """Node ids reachable from ``node_id`` via outgoing real edges.

        Cycle-safe; ``node_id`` itself is never included, even when it sits
        on a cycle. Combo ids reached through edges that target a combo are
        walked through but not returned.
        """
        return self._descendants_in(self.real_edge_graph(), node_id)

    def descendant_edges(self, node_id: str) -> set[str]:
        """Real edges touching the subtree hidden by collapsing ``node_id``.

        Covers the edges from ``node_id`` to its children and every edge
        incident to a descendant. Incoming edges of ``node_id`` itself stay
        out: the collapsed node remains on screen together with them.
        """
        return incident_edges(self._model, self.descendants(node_id))

    def dag_hidden(self, collapsed: Iterable[str]) -> set[str]:
        """Union of descendants of every id in ``collapsed``."""
        G = self.real_edge_graph()
        hidden: set[str] = set()
        for node_id in collapsed:
            hidden |= self._descendants_in(G, node_id)
        return hidden

    def _descendants_in(self, G: nx.DiGraph, node_id: str) -> set[str]:
        if node_id not in G:
            return set()
        reached = nx.descendants(G, node_id)
        reached.discard(node_id)
        return {
            element_id
            for element_id in reached
            if self._model.has_element(element_id)
            and self._model.element_type(element_id) is ElementType.NODE
        }
