"""Port connection counts for the edge-creation interaction."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from combofold.engine._common import real_edges

if TYPE_CHECKING:
    from combofold.model.protocol import GraphModel


def query_port_connections(model: GraphModel, node_id: str) -> dict[str, int]:
    """Count real edges attached to each port of ``node_id``.

    Hidden edges still occupy their port; proxy edges never do. Edges that
    do not name a port on this node's side are not counted.

    Example:
        >>> query_port_connections(model, "a")
        {'out-1': 2, 'in-1': 1}
    """
    counts: Counter[str] = Counter()
    for edge in real_edges(model):
        if edge.source == node_id and edge.source_port is not None:
            counts[edge.source_port] += 1
        if edge.target == node_id and edge.target_port is not None:
            counts[edge.target_port] += 1
    return dict(counts)
