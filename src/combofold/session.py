"""Collapse session: the public entry point of the engine.

A session binds one graph model to its collapse state and exposes the four
transitions used by the UI collapse controls:

    session = CollapseSession(model)
    await session.collapse_node("a")
    await session.collapse_combo("k")
    await session.expand_combo("k")
    await session.expand_node("a")

Only one transition runs at a time. A request arriving while another is in
flight is dropped (the coroutine returns False); re-issuing it later is the
expected recovery since every transition is idempotent per id.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING, Awaitable, Callable

from combofold.config import EngineConfig
from combofold.engine import (
    BoundsRefresher,
    CollapseStateStore,
    ConsistencyReapplier,
    ProxyEdgeSynthesizer,
    ReachabilityWalker,
    TransitionResult,
    VisibilityReconciler,
    query_port_connections,
)
from combofold.engine._common import is_visible
from combofold.events import (
    EventDispatcher,
    RenderSyncRepairedEvent,
    TransitionEndEvent,
    TransitionRejectedEvent,
    TransitionStartEvent,
)
from combofold.exceptions import TransitionInFlightError

if TYPE_CHECKING:
    from combofold.events import EventProcessor
    from combofold.model.protocol import GraphModel, OverlayPlugin

logger = logging.getLogger(__name__)


class TransitionToken:
    """Single-slot token held by the running transition.

    Guards logical overlap under cooperative scheduling only. A session
    shared between threads would need a real lock instead.
    """

    def __init__(self) -> None:
        self._holder: str | None = None

    @property
    def holder(self) -> str | None:
        return self._holder

    @property
    def busy(self) -> bool:
        return self._holder is not None

    def acquire(self, label: str) -> None:
        if self._holder is not None:
            raise TransitionInFlightError(label, self._holder)
        self._holder = label

    def release(self) -> None:
        self._holder = None


class CollapseSession:
    """Collapse/expand controller for one graph model.

    Args:
        model: The graph model to keep consistent
        config: Engine tunables (defaults to ``EngineConfig()``)
        processors: Event processors notified of every transition
        session_id: Identifier stamped on emitted events
        strict: Propagate event processor failures instead of logging them
    """

    def __init__(
        self,
        model: GraphModel,
        *,
        config: EngineConfig | None = None,
        processors: list[EventProcessor] | None = None,
        session_id: str | None = None,
        strict: bool = False,
    ) -> None:
        self.model = model
        self.config = config or EngineConfig()
        self.session_id = session_id or f"session-{uuid.uuid4().hex[:12]}"
        self.store = CollapseStateStore()
        self._token = TransitionToken()
        self._dispatcher = EventDispatcher(processors, strict=strict)
        self._overlays: list[tuple[OverlayPlugin, list[str]]] = []

        self.walker = ReachabilityWalker(model)
        self.synthesizer = ProxyEdgeSynthesizer(model, self.store, self.config)
        self.bounds = BoundsRefresher(model, self.config)
        self.reapplier = ConsistencyReapplier(model, self.store, self.walker, self.config)
        self.reconciler = VisibilityReconciler(
            model,
            self.store,
            self.walker,
            self.synthesizer,
            self.bounds,
            self.reapplier,
            self.config,
            on_visibility_change=self._refresh_overlays,
        )

    @property
    def busy(self) -> bool:
        """True while a transition holds the session."""
        return self._token.busy

    # =========================================================================
    # Transitions
    # =========================================================================

    async def collapse_node(self, node_id: str) -> bool:
        """Hide everything reachable from ``node_id``."""
        return await self._run("collapse_node", node_id, self.reconciler.collapse_node)

    async def expand_node(self, node_id: str) -> bool:
        """Undo a DAG collapse on ``node_id``."""
        return await self._run("expand_node", node_id, self.reconciler.expand_node)

    async def collapse_combo(self, combo_id: str) -> bool:
        """Hide the members of ``combo_id``, keeping the combo as a placeholder."""
        return await self._run("collapse_combo", combo_id, self.reconciler.collapse_combo)

    async def expand_combo(self, combo_id: str) -> bool:
        """Restore exactly what collapsing ``combo_id`` hid."""
        return await self._run("expand_combo", combo_id, self.reconciler.expand_combo)

    async def reconcile(self) -> bool:
        """Re-derive combo visibility, bounds and proxies, e.g. after external edits."""
        return await self._run("reconcile", "", lambda _: self.reconciler.reconcile())

    async def apply_initial_state(self) -> list[str]:
        """Collapse whatever the model already flags as collapsed.

        Snapshots and freshly created elements may carry ``collapsed`` (or
        ``collapse["collapsed"]`` on nodes) before the engine knows about
        them. Each flagged node and combo is run through the matching
        transition; a node with nothing below it gets its flag cleared so
        its toggle does not get stuck. Returns the ids that were collapsed.
        """
        collapsed = []
        for node in self.model.nodes():
            flagged = node.collapsed or bool((node.collapse or {}).get("collapsed"))
            if not flagged or self.store.is_dag_collapsed(node.id):
                continue
            if await self.collapse_node(node.id):
                collapsed.append(node.id)
            elif not self.walker.descendants(node.id):
                logger.debug("Clearing collapsed flag on %r: nothing below it", node.id)
                self.model.update_nodes({node.id: {"collapsed": False, "hidden_descendants": 0}})
        for combo in self.model.combos():
            if combo.collapsed and not self.store.is_combo_collapsed(combo.id):
                if await self.collapse_combo(combo.id):
                    collapsed.append(combo.id)
        return collapsed

    async def _run(
        self,
        action: str,
        target: str,
        transition: Callable[[str], Awaitable[TransitionResult]],
    ) -> bool:
        label = f"{action}:{target}" if target else action
        try:
            self._token.acquire(label)
        except TransitionInFlightError as exc:
            logger.debug("Dropped %s", exc)
            await self._dispatcher.emit_async(
                TransitionRejectedEvent(
                    session_id=self.session_id,
                    action=action,
                    target=target,
                    running=exc.running,
                )
            )
            return False

        transition_id = uuid.uuid4().hex[:16]
        started = time.perf_counter()
        error: Exception | None = None
        try:
            await self._dispatcher.emit_async(
                TransitionStartEvent(
                    session_id=self.session_id,
                    transition_id=transition_id,
                    action=action,
                    target=target,
                )
            )
            result = await transition(target)
        except Exception as e:
            error = e
        finally:
            self._token.release()

        if error is not None:
            await self._emit_end(transition_id, action, target, started, error=error)
            raise error

        patch = result.proxies
        if patch is not None and patch.repaired:
            await self._dispatcher.emit_async(
                RenderSyncRepairedEvent(
                    session_id=self.session_id,
                    transition_id=transition_id,
                    revealed=tuple(patch.repaired),
                )
            )
        await self._emit_end(transition_id, action, target, started, result=result)
        return result.applied

    async def _emit_end(
        self,
        transition_id: str,
        action: str,
        target: str,
        started: float,
        *,
        result: TransitionResult | None = None,
        error: BaseException | None = None,
    ) -> None:
        """Emit TransitionEndEvent for a settled or failed transition."""
        patch = result.proxies if result is not None else None
        await self._dispatcher.emit_async(
            TransitionEndEvent(
                session_id=self.session_id,
                transition_id=transition_id,
                action=action,
                target=target,
                applied=result.applied if result is not None else False,
                hidden=tuple(sorted(result.hidden)) if result is not None else (),
                shown=tuple(sorted(result.shown)) if result is not None else (),
                proxies_added=len(patch.added) if patch else 0,
                proxies_removed=len(patch.removed) if patch else 0,
                duration_ms=(time.perf_counter() - started) * 1000,
                error=f"{type(error).__name__}: {error}" if error is not None else None,
            )
        )

    # =========================================================================
    # Queries and collaborators
    # =========================================================================

    def query_port_connections(self, node_id: str) -> dict[str, int]:
        """Port key -> number of real edges attached to it."""
        return query_port_connections(self.model, node_id)

    def register_overlay(self, plugin: OverlayPlugin) -> None:
        """Track an overlay plugin; its members follow visibility from now on.

        The plugin's current membership is taken as its full membership.
        """
        self._overlays.append((plugin, list(plugin.get_members())))
        self._refresh_overlays()

    def _refresh_overlays(self) -> None:
        for plugin, members in self._overlays:
            plugin.set_members([m for m in members if is_visible(self.model, m)])

    async def close(self) -> None:
        """Shut down event processors."""
        await self._dispatcher.shutdown_async()
