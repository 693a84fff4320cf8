"""Proxy edge synthesis.

When a real edge's endpoint is hidden inside a collapsed combo that is still
on screen, the edge is represented by a proxy edge attached to that combo.
Each reconciliation pass computes the desired proxy set from the current
visibility, diffs it against the proxies already in the model and applies
the smallest patch:

- added/removed proxies -> model mutation + full redraw (expensive)
- existing but hidden proxies -> show_elements (cheap)

Proxy keys are ``(resolved_source, resolved_target)`` tuples; they become a
string id only when an EdgeData is handed to the model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from combofold.engine._common import combo_ancestors, is_combo, is_visible, real_edges
from combofold.model.types import EdgeData

if TYPE_CHECKING:
    from combofold.config import EngineConfig
    from combofold.engine.state import CollapseStateStore
    from combofold.model.protocol import GraphModel

logger = logging.getLogger(__name__)

ProxyKey = tuple[str, str]

PROXY_ID_PREFIX = "proxy-"


def proxy_edge_id(key: ProxyKey) -> str:
    """Serialize a proxy key into the model-facing edge id."""
    source, target = key
    return f"{PROXY_ID_PREFIX}{source}_to_{target}"


@dataclass(frozen=True)
class ProxySpec:
    """One desired proxy edge.

    Attributes:
        key: (resolved_source, resolved_target)
        origin: Id of the real edge that first produced this key
        curve_offset: 0 for a lone edge; +/- offset for a mutual pair
    """

    key: ProxyKey
    origin: str
    curve_offset: float = 0.0

    @property
    def mutual(self) -> bool:
        return self.curve_offset != 0.0


@dataclass
class ProxyPatch:
    """What a diff_and_apply call changed."""

    added: list[ProxyKey] = field(default_factory=list)
    removed: list[ProxyKey] = field(default_factory=list)
    shown: list[ProxyKey] = field(default_factory=list)
    repaired: list[str] = field(default_factory=list)

    @property
    def structural(self) -> bool:
        return bool(self.added or self.removed)

    @property
    def empty(self) -> bool:
        return not (self.added or self.removed or self.shown)


class ProxyEdgeSynthesizer:
    """Keeps the model's proxy edges in line with current visibility."""

    def __init__(self, model: GraphModel, store: CollapseStateStore, config: EngineConfig) -> None:
        self._model = model
        self._store = store
        self._config = config

    def resolve(self, element_id: str) -> str | None:
        """Id used to draw an endpoint, or None if it cannot be drawn.

        The element itself when visible; otherwise the nearest containing
        combo that is collapsed and visible.
        """
        if is_visible(self._model, element_id):
            return element_id
        for combo_id in combo_ancestors(self._model, element_id):
            if self._store.is_combo_collapsed(combo_id) and is_visible(self._model, combo_id):
                return combo_id
        return None

    def compute_desired(self) -> dict[ProxyKey, ProxySpec]:
        """Desired proxy edges keyed by resolved (source, target)."""
        origins: dict[ProxyKey, str] = {}
        for edge in real_edges(self._model):
            source = self.resolve(edge.source)
            target = self.resolve(edge.target)
            if source is None or target is None or source == target:
                continue
            if (source, target) == (edge.source, edge.target):
                # Directly drawable; the real edge represents itself
                continue
            if not (is_combo(self._model, source) or is_combo(self._model, target)):
                continue
            origins.setdefault((source, target), edge.id)

        offset = self._config.proxy_curve_offset
        desired: dict[ProxyKey, ProxySpec] = {}
        for key, origin in origins.items():
            reverse = (key[1], key[0])
            if reverse in origins:
                curve = offset if key < reverse else -offset
            else:
                curve = 0.0
            desired[key] = ProxySpec(key=key, origin=origin, curve_offset=curve)
        return desired

    def existing(self) -> dict[ProxyKey, EdgeData]:
        return {
            (edge.source, edge.target): edge
            for edge in self._model.edges()
            if edge.is_proxy
        }

    async def refresh(self) -> ProxyPatch:
        return await self.diff_and_apply(self.compute_desired())

    async def diff_and_apply(self, desired: dict[ProxyKey, ProxySpec]) -> ProxyPatch:
        current = self.existing()
        stale_ids = [
            edge.id
            for edge in self._model.edges()
            if edge.is_proxy and current.get((edge.source, edge.target)) is not edge
        ]

        changed = [
            key
            for key, spec in desired.items()
            if key in current and current[key].style.get("curve_offset", 0.0) != spec.curve_offset
        ]
        patch = ProxyPatch(
            added=sorted((desired.keys() - current.keys()) | set(changed)),
            removed=sorted((current.keys() - desired.keys()) | set(changed)),
        )
        patch.shown = sorted(
            key
            for key in desired.keys() & current.keys()
            if key not in changed and not current[key].visible
        )

        if patch.structural or stale_ids:
            remove_ids = [current[key].id for key in patch.removed] + stale_ids
            await self._redraw_with(
                remove_ids=remove_ids,
                add_edges=[self._build_edge(desired[key]) for key in patch.added],
                patch=patch,
            )

        if patch.shown:
            await self._model.show_elements(
                [current[key].id for key in patch.shown],
                self._config.animate,
            )

        if not patch.empty:
            logger.debug(
                "Proxy patch: +%d -%d shown=%d",
                len(patch.added),
                len(patch.removed),
                len(patch.shown),
            )
        return patch

    def _build_edge(self, spec: ProxySpec) -> EdgeData:
        source, target = spec.key
        style = dict(self._config.proxy_edge_style)
        style["curve_offset"] = spec.curve_offset
        return EdgeData(
            id=proxy_edge_id(spec.key),
            source=source,
            target=target,
            is_proxy=True,
            style=style,
        )

    async def _redraw_with(
        self,
        *,
        remove_ids: list[str],
        add_edges: list[EdgeData],
        patch: ProxyPatch,
    ) -> None:
        """Mutate the model and redraw without letting the redraw change visibility."""
        removing = set(remove_ids)
        hidden_before = [
            element_id
            for element_id in self._all_ids()
            if element_id not in removing and not is_visible(self._model, element_id)
        ]

        if remove_ids:
            self._model.remove_edges(remove_ids)
        if add_edges:
            self._model.add_edges(add_edges)
        await self._model.draw()

        revealed = [
            element_id
            for element_id in hidden_before
            if self._model.has_element(element_id) and is_visible(self._model, element_id)
        ]
        if revealed:
            logger.warning("Redraw revealed %d hidden element(s); re-hiding %s", len(revealed), revealed)
            await self._model.hide_elements(revealed, False)
            patch.repaired = revealed

    def _all_ids(self) -> list[str]:
        model = self._model
        return (
            [node.id for node in model.nodes()]
            + [edge.id for edge in model.edges()]
            + [combo.id for combo in model.combos()]
        )
