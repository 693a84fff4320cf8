"""Re-enforce combo collapse records after a DAG expand.

A DAG expand hands released ids to the combos still collapsed around them, so
it should not reveal anything a record covers. This pass runs afterwards for
the records touching the expanded subtree and puts back anything that did
slip out, such as a DAG-collapsed member captured in a record.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from combofold.engine._common import existing, incident_edges, visible_subset

if TYPE_CHECKING:
    from combofold.config import EngineConfig
    from combofold.engine.reachability import ReachabilityWalker
    from combofold.engine.state import CollapseStateStore, ComboCollapseRecord
    from combofold.model.protocol import GraphModel

logger = logging.getLogger(__name__)


class ConsistencyReapplier:
    """Restores what active combo collapse records say must stay hidden."""

    def __init__(
        self,
        model: GraphModel,
        store: CollapseStateStore,
        walker: ReachabilityWalker,
        config: EngineConfig,
    ) -> None:
        self._model = model
        self._store = store
        self._walker = walker
        self._config = config

    def overlapping(self, ids: Iterable[str]) -> list[ComboCollapseRecord]:
        """Active records whose members or DAG-collapsed members touch ``ids``."""
        ids = set(ids)
        return [
            record
            for record in self._store.records()
            if record.members & ids or record.dag_collapsed_members & ids
        ]

    async def reapply(self, records: Iterable[ComboCollapseRecord] | None = None) -> set[str]:
        """Re-apply ``records`` (all active records by default).

        Returns the ids that had to be hidden again.
        """
        records = list(self._store.records() if records is None else records)
        to_hide: set[str] = set()
        flag_patches: dict[str, dict] = {}

        for record in records:
            restored = existing(self._model, record.dag_collapsed_members)
            for node_id in sorted(restored):
                self._store.mark_dag(node_id)
                descendants = self._walker.descendants(node_id)
                flag_patches[node_id] = {
                    "collapsed": True,
                    "hidden_descendants": len(descendants),
                }
                to_hide |= descendants | incident_edges(self._model, descendants)

            to_hide |= existing(self._model, record.hidden_by_collapse)

        to_hide = visible_subset(self._model, to_hide)
        if flag_patches:
            self._model.update_nodes(flag_patches)
        if to_hide:
            logger.debug("Reapplying %d combo record(s): re-hiding %s", len(records), sorted(to_hide))
            await self._model.hide_elements(sorted(to_hide), self._config.animate)
        return to_hide
