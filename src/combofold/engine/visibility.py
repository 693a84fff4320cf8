"""Visibility reconciliation for DAG collapse and combo collapse.

Every transition runs the same pipeline, strictly in order:

    hide/show  ->  combo auto-visibility  ->  bounds refresh  ->  proxy refresh

Each step reads the state committed by the previous one. Visibility is never
set anywhere else in the engine, except by the ConsistencyReapplier.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable

from combofold.engine._common import (
    child_combos,
    combo_ancestors,
    combo_members,
    endpoints_visible,
    existing,
    find_combo,
    find_edge,
    find_node,
    hidden_subset,
    incident_edges,
    is_visible,
    visible_subset,
)

if TYPE_CHECKING:
    from combofold.config import EngineConfig
    from combofold.engine.bounds import BoundsRefresher
    from combofold.engine.proxy import ProxyEdgeSynthesizer, ProxyPatch
    from combofold.engine.reachability import ReachabilityWalker
    from combofold.engine.reapply import ConsistencyReapplier
    from combofold.engine.state import CollapseStateStore
    from combofold.model.protocol import GraphModel

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    """Outcome of one collapse/expand transition.

    Attributes:
        action: "collapse_node", "expand_node", "collapse_combo", "expand_combo"
            or "reconcile"
        target: Id the action was requested for
        applied: False when the request was a no-op (unknown id, already in
            the requested state, nothing to collapse)
        hidden: Ids hidden during the transition
        shown: Ids shown during the transition
        proxies: Proxy patch applied at the end, if the pipeline ran
    """

    action: str
    target: str
    applied: bool = True
    hidden: set[str] = field(default_factory=set)
    shown: set[str] = field(default_factory=set)
    proxies: ProxyPatch | None = None


class VisibilityReconciler:
    """Runs hide/show transitions and the follow-up consistency steps."""

    def __init__(
        self,
        model: GraphModel,
        store: CollapseStateStore,
        walker: ReachabilityWalker,
        synthesizer: ProxyEdgeSynthesizer,
        bounds: BoundsRefresher,
        reapplier: ConsistencyReapplier,
        config: EngineConfig,
        on_visibility_change: Callable[[], None] | None = None,
    ) -> None:
        self._model = model
        self._store = store
        self._walker = walker
        self._synthesizer = synthesizer
        self._bounds = bounds
        self._reapplier = reapplier
        self._config = config
        self._on_visibility_change = on_visibility_change

    # =========================================================================
    # DAG collapse
    # =========================================================================

    async def collapse_node(self, node_id: str) -> TransitionResult:
        result = TransitionResult("collapse_node", node_id)
        if find_node(self._model, node_id) is None or self._store.is_dag_collapsed(node_id):
            result.applied = False
            return result

        descendants = self._walker.descendants(node_id)
        if not descendants:
            result.applied = False
            return result

        self._store.mark_dag(node_id)
        self._model.update_nodes({
            node_id: {"collapsed": True, "hidden_descendants": len(descendants)},
        })
        await self._hide(descendants | incident_edges(self._model, descendants), result)
        await self.auto_visibility_pass(result)
        await self._finish(result)
        return result

    async def expand_node(self, node_id: str) -> TransitionResult:
        result = TransitionResult("expand_node", node_id)
        if not self._store.is_dag_collapsed(node_id):
            result.applied = False
            return result

        # Only the expanded node is cleared; nested collapses below it keep
        # their own subtrees hidden.
        self._store.clear_dag([node_id])
        self._store.forget_dag_member(node_id)
        if find_node(self._model, node_id) is not None:
            self._model.update_nodes({node_id: {"collapsed": False, "hidden_descendants": 0}})
        descendants = self._walker.descendants(node_id)

        # Nodes still under another DAG collapse stay hidden. Released nodes
        # inside a collapsed combo become hidden on that combo's behalf.
        dag_held = self._walker.dag_hidden(self._store.dag_collapsed)
        released = descendants - dag_held
        released_edges = set()
        for edge_id in incident_edges(self._model, released):
            edge = find_edge(self._model, edge_id)
            if edge is not None and edge.source not in dag_held and edge.target not in dag_held:
                released_edges.add(edge_id)
        combo_held = self._adopt(released | released_edges)
        await self._show(released - combo_held, result)
        await self._show_edges(incident_edges(self._model, descendants), result)
        await self.auto_visibility_pass(result)

        records = self._reapplier.overlapping(descendants | {node_id})
        if records:
            rehidden = await self._reapplier.reapply(records)
            result.hidden |= rehidden
            result.shown -= rehidden
            if rehidden:
                await self.auto_visibility_pass(result)

        await self._finish(result)
        return result

    # =========================================================================
    # Combo collapse
    # =========================================================================

    async def collapse_combo(self, combo_id: str) -> TransitionResult:
        result = TransitionResult("collapse_combo", combo_id)
        if find_combo(self._model, combo_id) is None or self._store.is_combo_collapsed(combo_id):
            result.applied = False
            return result

        # Nested combos and everything below them fold into this one
        members = combo_members(self._model, combo_id, nested=True)
        members |= child_combos(self._model, combo_id, nested=True)
        edges = incident_edges(self._model, members)
        record = self._store.collapse_combo(
            combo_id,
            members,
            edges,
            hidden_subset(self._model, members | edges),
        )
        self._model.update_combo(combo_id, {"collapsed": True, "hidden_count": record.hidden_count})
        await self._hide(record.hidden_by_collapse, result)
        await self.auto_visibility_pass(result)
        await self._finish(result)
        return result

    async def expand_combo(self, combo_id: str) -> TransitionResult:
        result = TransitionResult("expand_combo", combo_id)
        record = self._store.expand_combo(combo_id)
        if record is None:
            result.applied = False
            return result

        restored = existing(self._model, record.dag_collapsed_members)
        for node_id in restored:
            self._store.mark_dag(node_id)
        if restored:
            self._model.update_nodes({
                node_id: {
                    "collapsed": True,
                    "hidden_descendants": len(self._walker.descendants(node_id)),
                }
                for node_id in sorted(restored)
            })

        # Members of another collapsed combo (nested or enclosing) stay hidden
        # on that combo's behalf.
        held = self._walker.dag_hidden(self._store.dag_collapsed)
        members = existing(self._model, record.members)
        released = members - record.already_hidden - held
        released_edges = existing(self._model, record.connected_edges) - record.already_hidden
        combo_held = self._adopt(released | released_edges)
        await self._show(released - combo_held, result)
        await self._show_edges(released_edges, result)

        for node_id in sorted(members & self._store.dag_collapsed):
            below = self._walker.descendants(node_id)
            await self._hide(below | incident_edges(self._model, below), result)

        # Sweep: edges snapshotted by another combo's record can miss this one
        inside = combo_members(self._model, combo_id, nested=True)
        inside |= child_combos(self._model, combo_id, nested=True)
        touching = incident_edges(self._model, inside | {combo_id})
        await self._show_edges(touching, result)

        if find_combo(self._model, combo_id) is not None:
            self._model.update_combo(combo_id, {"collapsed": False, "hidden_count": 0})
        await self.auto_visibility_pass(result)
        await self._finish(result)
        return result

    # =========================================================================
    # Derived visibility
    # =========================================================================

    async def auto_visibility_pass(self, result: TransitionResult) -> None:
        """Show/hide combos from the visibility of their members.

        A combo without a collapse record is visible iff at least one direct
        member node or child combo is. A collapsed combo stays visible (as a
        placeholder) unless every node below it is under an active DAG
        collapse. A combo inside a collapsed combo is always hidden.

        Combos with neither member nodes nor child combos are left alone.
        """
        dag_hidden = self._walker.dag_hidden(self._store.dag_collapsed)
        decided: dict[str, bool] = {}
        to_hide: set[str] = set()
        to_show: set[str] = set()
        # Deepest first, so a parent sees its children's new visibility
        ordered = sorted(
            self._model.combos(),
            key=lambda combo: -len(combo_ancestors(self._model, combo.id)),
        )
        for combo in ordered:
            members = combo_members(self._model, combo.id)
            children = child_combos(self._model, combo.id)
            if not members and not children:
                continue
            if any(self._store.is_combo_collapsed(a) for a in combo_ancestors(self._model, combo.id)):
                wanted = False
            elif self._store.is_combo_collapsed(combo.id):
                below = combo_members(self._model, combo.id, nested=True)
                wanted = not (below and below <= dag_hidden)
            else:
                wanted = bool(visible_subset(self._model, members)) or any(
                    decided.get(child, is_visible(self._model, child)) for child in children
                )
            decided[combo.id] = wanted
            if wanted and not combo.visible:
                to_show.add(combo.id)
            elif not wanted and combo.visible:
                to_hide.add(combo.id)
        await self._hide(to_hide, result)
        await self._show(to_show, result)

    async def reconcile(self) -> TransitionResult:
        """Re-run derived visibility, bounds and proxies without a toggle."""
        result = TransitionResult("reconcile", "")
        await self.auto_visibility_pass(result)
        await self._finish(result)
        return result

    # =========================================================================
    # Helpers
    # =========================================================================

    def _adopt(self, ids: set[str]) -> set[str]:
        """Hand released ``ids`` over to the combos still collapsed around them.

        Returns every member of an active combo record; those must stay hidden.
        """
        held: set[str] = set()
        for record in self._store.records():
            adopted = self._store.adopt_hidden(record.combo_id, ids)
            if adopted is not None and find_combo(self._model, record.combo_id) is not None:
                self._model.update_combo(record.combo_id, {"hidden_count": adopted.hidden_count})
            held |= record.members
        return held

    async def _finish(self, result: TransitionResult) -> None:
        self._bounds.refresh()
        result.proxies = await self._synthesizer.refresh()
        if self._on_visibility_change is not None:
            self._on_visibility_change()

    async def _hide(self, ids: Iterable[str], result: TransitionResult) -> None:
        targets = visible_subset(self._model, existing(self._model, ids))
        if not targets:
            return
        logger.debug("%s(%s): hiding %s", result.action, result.target, sorted(targets))
        await self._model.hide_elements(sorted(targets), self._config.animate)
        result.hidden |= targets
        result.shown -= targets

    async def _show(self, ids: Iterable[str], result: TransitionResult) -> None:
        targets = hidden_subset(self._model, ids)
        if not targets:
            return
        logger.debug("%s(%s): showing %s", result.action, result.target, sorted(targets))
        await self._model.show_elements(sorted(targets), self._config.animate)
        result.shown |= targets
        result.hidden -= targets

    async def _show_edges(self, edge_ids: Iterable[str], result: TransitionResult) -> None:
        """Show hidden edges whose endpoints are both visible."""
        ready = []
        for edge_id in edge_ids:
            edge = find_edge(self._model, edge_id)
            if edge is None or edge.is_proxy or is_visible(self._model, edge_id):
                continue
            if endpoints_visible(self._model, edge):
                ready.append(edge_id)
        await self._show(ready, result)
