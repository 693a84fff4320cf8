"""Shared lookups for the collapse engine.

Every dereference of a stored id goes through these helpers so that ids
deleted from the model behind the engine's back are skipped, not raised.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from combofold.exceptions import StaleElementError
from combofold.model.types import ElementType

if TYPE_CHECKING:
    from combofold.model.protocol import GraphModel
    from combofold.model.types import ComboData, EdgeData, NodeData

logger = logging.getLogger(__name__)


# =============================================================================
# Stale-safe dereference
# =============================================================================


def find_node(model: GraphModel, node_id: str) -> NodeData | None:
    try:
        return model.get_node(node_id)
    except StaleElementError:
        logger.debug("Skipping stale node id %r", node_id)
        return None


def find_combo(model: GraphModel, combo_id: str) -> ComboData | None:
    try:
        return model.get_combo(combo_id)
    except StaleElementError:
        logger.debug("Skipping stale combo id %r", combo_id)
        return None


def find_edge(model: GraphModel, edge_id: str) -> EdgeData | None:
    try:
        return model.get_edge(edge_id)
    except StaleElementError:
        logger.debug("Skipping stale edge id %r", edge_id)
        return None


def existing(model: GraphModel, ids: Iterable[str]) -> set[str]:
    """Filter ``ids`` down to those still present in the model."""
    return {element_id for element_id in ids if model.has_element(element_id)}


def is_combo(model: GraphModel, element_id: str) -> bool:
    try:
        return model.element_type(element_id) is ElementType.COMBO
    except StaleElementError:
        return False


def is_visible(model: GraphModel, element_id: str) -> bool:
    """Visibility of ``element_id``; missing elements count as hidden."""
    try:
        return model.is_visible(element_id)
    except StaleElementError:
        return False


def visible_subset(model: GraphModel, ids: Iterable[str]) -> set[str]:
    return {element_id for element_id in ids if is_visible(model, element_id)}


def hidden_subset(model: GraphModel, ids: Iterable[str]) -> set[str]:
    """Ids that exist and are hidden."""
    return {
        element_id
        for element_id in existing(model, ids)
        if not is_visible(model, element_id)
    }


# =============================================================================
# Membership and incidence
# =============================================================================


def combo_members(model: GraphModel, combo_id: str, nested: bool = False) -> set[str]:
    """Node ids directly inside ``combo_id``, or at any depth with ``nested``."""
    if nested:
        return {node.id for node in model.nodes() if combo_id in combo_ancestors(model, node.id)}
    return {node.id for node in model.nodes() if node.combo == combo_id}


def child_combos(model: GraphModel, combo_id: str, nested: bool = False) -> set[str]:
    """Combo ids directly inside ``combo_id``, or at any depth with ``nested``."""
    if nested:
        return {combo.id for combo in model.combos() if combo_id in combo_ancestors(model, combo.id)}
    return {combo.id for combo in model.combos() if combo.combo == combo_id}


def real_edges(model: GraphModel) -> list[EdgeData]:
    return [edge for edge in model.edges() if not edge.is_proxy]


def incident_edges(model: GraphModel, ids: Iterable[str]) -> set[str]:
    """Real edges with at least one endpoint in ``ids``."""
    ids = set(ids)
    return {
        edge.id
        for edge in real_edges(model)
        if edge.source in ids or edge.target in ids
    }


def endpoints_visible(model: GraphModel, edge: EdgeData) -> bool:
    return is_visible(model, edge.source) and is_visible(model, edge.target)


def combo_ancestors(model: GraphModel, element_id: str) -> list[str]:
    """Chain of containing combos, from immediate parent to root."""
    chain: list[str] = []
    record = find_node(model, element_id) if not is_combo(model, element_id) else find_combo(model, element_id)
    parent = record.combo if record is not None else None
    while parent is not None and parent not in chain:
        chain.append(parent)
        combo = find_combo(model, parent)
        parent = combo.combo if combo is not None else None
    return chain
