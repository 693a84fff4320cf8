"""Combo geometry refresh.

After members are hidden or shown, combos must be resized around what is
still on screen. A combo with no visible member collapses to a small box at
its last known content center instead of jumping to the origin.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from combofold.engine._common import child_combos, combo_members, is_visible
from combofold.exceptions import StaleElementError
from combofold.model.types import Bounds

if TYPE_CHECKING:
    from combofold.config import EngineConfig
    from combofold.model.protocol import GraphModel

logger = logging.getLogger(__name__)


class BoundsRefresher:
    """Recomputes geometry of visible combos from their visible members."""

    def __init__(self, model: GraphModel, config: EngineConfig) -> None:
        self._model = model
        self._config = config

    def refresh(self) -> list[str]:
        """Resize every visible combo. Returns the ids that were updated."""
        updated = []
        for combo in self._model.combos():
            if not combo.visible:
                continue
            box = self.content_bounds(combo.id)
            if box is not None:
                center = box.center
                self._model.update_combo(combo.id, {"center": center})
                box = box.expand(self._config.combo_padding)
            else:
                center = combo.center or (combo.x, combo.y)
                box = Bounds.around(center, self._config.collapsed_combo_size)
            self._model.update_element(
                combo.id,
                {"x": box.center[0], "y": box.center[1], "width": box.width, "height": box.height},
            )
            updated.append(combo.id)
        return updated

    def content_bounds(self, combo_id: str) -> Bounds | None:
        """Union of the bounds of visible members, or None if none is visible.

        Nested combos count as members.
        """
        box: Bounds | None = None
        members = combo_members(self._model, combo_id) | child_combos(self._model, combo_id)
        for member_id in sorted(members):
            if not is_visible(self._model, member_id):
                continue
            try:
                member_box = self._model.get_bounds(member_id)
            except StaleElementError:
                logger.debug("Skipping stale member %r of combo %r", member_id, combo_id)
                continue
            box = member_box if box is None else box.union(member_box)
        return box
