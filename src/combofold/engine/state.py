"""Collapse state owned by one graph session.

Holds the DAG collapse set and one record per collapsed combo. The store is
the only shared mutable state in the engine; every transition receives the
session's instance explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator


@dataclass(frozen=True)
class ComboCollapseRecord:
    """Snapshot taken when a combo is collapsed.

    Attributes:
        combo_id: The collapsed combo
        members: Node and nested combo ids inside the combo, at any depth,
            at collapse time
        connected_edges: Real edge ids touching a member at collapse time
        already_hidden: Members/edges that were hidden before this collapse
            for other reasons; expanding the combo leaves them alone
        hidden_count: Members newly hidden by this collapse (the "+N" badge)
        dag_collapsed_members: Members that were DAG-collapsed at collapse time
    """

    combo_id: str
    members: frozenset[str] = frozenset()
    connected_edges: frozenset[str] = frozenset()
    already_hidden: frozenset[str] = frozenset()
    hidden_count: int = 0
    dag_collapsed_members: frozenset[str] = frozenset()

    @property
    def hidden_by_collapse(self) -> frozenset[str]:
        """Members and edges this collapse itself hid."""
        return (self.members | self.connected_edges) - self.already_hidden


@dataclass
class CollapseStateStore:
    """DAG collapse set plus per-combo collapse records."""

    dag_collapsed: set[str] = field(default_factory=set)
    combo_records: dict[str, ComboCollapseRecord] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # DAG collapse
    # ------------------------------------------------------------------

    def is_dag_collapsed(self, node_id: str) -> bool:
        return node_id in self.dag_collapsed

    def mark_dag(self, node_id: str) -> bool:
        """Add to the DAG set. Returns False if it was already there."""
        if node_id in self.dag_collapsed:
            return False
        self.dag_collapsed.add(node_id)
        return True

    def clear_dag(self, node_ids: Iterable[str]) -> set[str]:
        """Remove ids from the DAG set, returning the ones that were present."""
        cleared = self.dag_collapsed.intersection(node_ids)
        self.dag_collapsed -= cleared
        return cleared

    def toggle_dag(self, node_id: str) -> bool:
        """Flip DAG collapse for ``node_id``. Returns the new collapsed state."""
        if self.mark_dag(node_id):
            return True
        self.clear_dag([node_id])
        return False

    # ------------------------------------------------------------------
    # Combo collapse
    # ------------------------------------------------------------------

    def is_combo_collapsed(self, combo_id: str) -> bool:
        return combo_id in self.combo_records

    def collapse_combo(
        self,
        combo_id: str,
        member_ids: Iterable[str],
        edge_ids: Iterable[str],
        hidden_ids: Iterable[str],
    ) -> ComboCollapseRecord | None:
        """Snapshot and store a record. None if the combo is already collapsed."""
        if combo_id in self.combo_records:
            return None
        members = frozenset(member_ids)
        edges = frozenset(edge_ids)
        already_hidden = frozenset(hidden_ids) & (members | edges)
        record = ComboCollapseRecord(
            combo_id=combo_id,
            members=members,
            connected_edges=edges,
            already_hidden=already_hidden,
            hidden_count=len(members - already_hidden),
            dag_collapsed_members=frozenset(members & self.dag_collapsed),
        )
        self.combo_records[combo_id] = record
        return record

    def expand_combo(self, combo_id: str) -> ComboCollapseRecord | None:
        """Consume and delete the record. None if the combo is not collapsed."""
        return self.combo_records.pop(combo_id, None)

    def toggle_combo(
        self,
        combo_id: str,
        member_ids: Iterable[str] = (),
        edge_ids: Iterable[str] = (),
        hidden_ids: Iterable[str] = (),
    ) -> ComboCollapseRecord | None:
        """Collapse if expanded, expand if collapsed; returns the record involved."""
        if combo_id in self.combo_records:
            return self.expand_combo(combo_id)
        return self.collapse_combo(combo_id, member_ids, edge_ids, hidden_ids)

    def adopt_hidden(self, combo_id: str, ids: Iterable[str]) -> ComboCollapseRecord | None:
        """Move ``ids`` out of ``already_hidden`` of a combo's record.

        Used when whatever hid them first has let go while the combo is still
        collapsed: from now on the combo's own collapse is what keeps them
        hidden, and expanding the combo must show them. Returns the updated
        record, or None if nothing changed.
        """
        record = self.combo_records.get(combo_id)
        if record is None:
            return None
        adopted = record.already_hidden.intersection(ids)
        if not adopted:
            return None
        updated = replace(
            record,
            already_hidden=record.already_hidden - adopted,
            hidden_count=record.hidden_count + len(adopted & record.members),
        )
        self.combo_records[combo_id] = updated
        return updated

    def forget_dag_member(self, node_id: str) -> None:
        """Drop ``node_id`` from every record's DAG-collapse snapshot.

        Called when the user expands the node explicitly, so a later
        reapplication does not collapse it again.
        """
        for combo_id, record in list(self.combo_records.items()):
            if node_id in record.dag_collapsed_members:
                self.combo_records[combo_id] = replace(
                    record,
                    dag_collapsed_members=record.dag_collapsed_members - {node_id},
                )

    def records(self) -> Iterator[ComboCollapseRecord]:
        return iter(list(self.combo_records.values()))
