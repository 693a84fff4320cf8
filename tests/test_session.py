"""Tests for CollapseSession: reentrancy, events, overlays, ports, stale ids."""

from __future__ import annotations

import asyncio

import pytest

from combofold import (
    CollapseSession,
    ComboData,
    EdgeData,
    EventProcessor,
    InMemoryGraphModel,
    NodeData,
    TransitionEndEvent,
    TransitionInFlightError,
    TransitionRejectedEvent,
    TransitionStartEvent,
    TransitionToken,
)

from tests.builders import FailingModel, build_model, make_session, visible_ids

# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


class ListProcessor(EventProcessor):
    """Collects all events synchronously for assertion."""

    def __init__(self):
        self.events: list = []
        self.shutdown_called = False

    def on_event(self, event):
        self.events.append(event)

    def shutdown(self):
        self.shutdown_called = True

    def of_type(self, cls):
        return [e for e in self.events if isinstance(e, cls)]

    def event_types(self):
        return [type(e).__name__ for e in self.events]


class ExplodingProcessor(EventProcessor):
    def on_event(self, event):
        raise ValueError("processor bug")


class RecordingOverlay:
    def __init__(self, members):
        self._members = list(members)
        self.calls: list[list[str]] = []

    def get_members(self):
        return list(self._members)

    def set_members(self, members):
        self._members = list(members)
        self.calls.append(list(members))


# ---------------------------------------------------------------------------
# Transition token
# ---------------------------------------------------------------------------


class TestTransitionToken:
    def test_acquire_release(self):
        token = TransitionToken()
        token.acquire("collapse_node:A")
        assert token.busy
        assert token.holder == "collapse_node:A"
        token.release()
        assert not token.busy

    def test_second_acquire_raises(self):
        token = TransitionToken()
        token.acquire("collapse_node:A")
        with pytest.raises(TransitionInFlightError) as exc_info:
            token.acquire("expand_combo:K")
        assert exc_info.value.requested == "expand_combo:K"
        assert exc_info.value.running == "collapse_node:A"


class TestReentrancy:
    @pytest.mark.asyncio
    async def test_overlapping_request_is_dropped(self, chain_model):
        session = make_session(chain_model)
        results = await asyncio.gather(
            session.collapse_node("A"),
            session.collapse_node("B"),
        )
        assert results == [True, False]
        assert session.store.dag_collapsed == {"A"}
        assert not session.busy

    @pytest.mark.asyncio
    async def test_dropped_request_emits_rejection(self, chain_model):
        processor = ListProcessor()
        session = make_session(chain_model, processors=[processor])
        await asyncio.gather(session.collapse_node("A"), session.collapse_node("B"))

        [rejected] = processor.of_type(TransitionRejectedEvent)
        assert rejected.action == "collapse_node"
        assert rejected.target == "B"
        assert rejected.running == "collapse_node:A"

    @pytest.mark.asyncio
    async def test_retry_after_settle_runs(self, chain_model):
        session = make_session(chain_model)
        await asyncio.gather(session.collapse_node("A"), session.expand_node("A"))
        assert await session.expand_node("A") is True
        assert visible_ids(chain_model) == {"A", "B", "C", "A-B", "B-C"}

    @pytest.mark.asyncio
    async def test_token_released_when_model_raises(self):
        model = build_model([("A", "B"), ("B", "C")], model_cls=FailingModel)
        session = make_session(model)

        with pytest.raises(RuntimeError, match="renderer went away"):
            await session.collapse_node("A")
        assert not session.busy

        model.fail = False
        assert await session.collapse_node("B") is True


class TestEvents:
    @pytest.mark.asyncio
    async def test_start_and_end_events(self, chain_model):
        processor = ListProcessor()
        session = make_session(chain_model, processors=[processor], session_id="s-1")
        await session.collapse_node("A")

        assert processor.event_types() == ["TransitionStartEvent", "TransitionEndEvent"]
        [start] = processor.of_type(TransitionStartEvent)
        [end] = processor.of_type(TransitionEndEvent)
        assert start.session_id == end.session_id == "s-1"
        assert start.transition_id == end.transition_id
        assert end.action == "collapse_node"
        assert end.target == "A"
        assert end.applied is True
        assert end.hidden == ("A-B", "B", "B-C", "C")
        assert end.shown == ()
        assert end.duration_ms >= 0
        assert end.error is None

    @pytest.mark.asyncio
    async def test_noop_is_reported_as_not_applied(self, chain_model):
        processor = ListProcessor()
        session = make_session(chain_model, processors=[processor])
        await session.collapse_node("C")
        [end] = processor.of_type(TransitionEndEvent)
        assert end.applied is False

    @pytest.mark.asyncio
    async def test_proxy_counts(self, combo_model):
        processor = ListProcessor()
        session = make_session(combo_model, processors=[processor])
        await session.collapse_combo("K")
        await session.expand_combo("K")

        collapse_end, expand_end = processor.of_type(TransitionEndEvent)
        assert (collapse_end.proxies_added, collapse_end.proxies_removed) == (1, 0)
        assert (expand_end.proxies_added, expand_end.proxies_removed) == (0, 1)

    @pytest.mark.asyncio
    async def test_failed_transition_still_emits_end(self):
        model = build_model([("A", "B"), ("B", "C")], model_cls=FailingModel)
        processor = ListProcessor()
        session = make_session(model, processors=[processor])

        with pytest.raises(RuntimeError):
            await session.collapse_node("A")

        assert processor.event_types() == ["TransitionStartEvent", "TransitionEndEvent"]
        [start] = processor.of_type(TransitionStartEvent)
        [end] = processor.of_type(TransitionEndEvent)
        assert end.transition_id == start.transition_id
        assert end.applied is False
        assert end.error == "RuntimeError: renderer went away"

    @pytest.mark.asyncio
    async def test_processor_errors_are_logged_by_default(self, chain_model, caplog):
        session = make_session(chain_model, processors=[ExplodingProcessor()])
        assert await session.collapse_node("A") is True
        assert "failed on TransitionStartEvent" in caplog.text

    @pytest.mark.asyncio
    async def test_strict_session_propagates_processor_errors(self, chain_model):
        session = make_session(chain_model, processors=[ExplodingProcessor()], strict=True)
        with pytest.raises(ValueError, match="processor bug"):
            await session.collapse_node("A")
        assert not session.busy

    @pytest.mark.asyncio
    async def test_close_shuts_down_processors(self, chain_model):
        processor = ListProcessor()
        session = make_session(chain_model, processors=[processor])
        await session.close()
        assert processor.shutdown_called


class TestInitialState:
    @pytest.mark.asyncio
    async def test_flagged_node_is_collapsed(self):
        model = InMemoryGraphModel.from_snapshot({
            "nodes": [{"id": "A", "collapsed": True}, {"id": "B"}, {"id": "C"}],
            "edges": [
                {"id": "A-B", "source": "A", "target": "B"},
                {"id": "B-C", "source": "B", "target": "C"},
            ],
        })
        session = make_session(model)

        assert await session.apply_initial_state() == ["A"]
        assert visible_ids(model) == {"A"}
        assert session.store.dag_collapsed == {"A"}
        assert model.get_node("A").hidden_descendants == 2

        assert await session.expand_node("A") is True
        assert visible_ids(model) == {"A", "B", "C", "A-B", "B-C"}
        assert model.get_node("A").collapsed is False

    @pytest.mark.asyncio
    async def test_toggle_config_flag_counts(self):
        model = InMemoryGraphModel(
            nodes=[NodeData("A", collapse={"placement": "bottom", "collapsed": True}), NodeData("B")],
            edges=[EdgeData("A-B", "A", "B")],
        )
        session = make_session(model)
        assert await session.apply_initial_state() == ["A"]
        assert model.get_node("B").visible is False

    @pytest.mark.asyncio
    async def test_leaf_flag_is_cleared(self, chain_model):
        chain_model.update_nodes({"C": {"collapsed": True}})
        session = make_session(chain_model)

        assert await session.apply_initial_state() == []
        assert chain_model.get_node("C").collapsed is False
        assert visible_ids(chain_model) == {"A", "B", "C", "A-B", "B-C"}

    @pytest.mark.asyncio
    async def test_flagged_combo_is_collapsed(self):
        model = InMemoryGraphModel(
            nodes=[NodeData("X", combo="K"), NodeData("Z")],
            edges=[EdgeData("X-Z", "X", "Z")],
            combos=[ComboData("K", collapsed=True)],
        )
        session = make_session(model)

        assert await session.apply_initial_state() == ["K"]
        assert session.store.is_combo_collapsed("K")
        assert visible_ids(model) == {"K", "Z"}
        assert model.get_combo("K").hidden_count == 1

    @pytest.mark.asyncio
    async def test_node_created_later(self, chain_model):
        session = make_session(chain_model)
        chain_model.add_node(NodeData("N", collapsed=True))
        chain_model.add_edges([EdgeData("N-A", "N", "A")])

        assert await session.apply_initial_state() == ["N"]
        assert visible_ids(chain_model) == {"N"}
        assert await session.apply_initial_state() == []


class TestOverlays:
    @pytest.mark.asyncio
    async def test_members_follow_visibility(self, chain_model):
        overlay = RecordingOverlay(["A", "B", "C"])
        session = make_session(chain_model)
        session.register_overlay(overlay)
        assert overlay.calls == [["A", "B", "C"]]

        await session.collapse_node("A")
        assert overlay.calls[-1] == ["A"]

        await session.expand_node("A")
        assert overlay.calls[-1] == ["A", "B", "C"]


class TestPortConnections:
    def test_counts_real_edges_per_port(self):
        model = InMemoryGraphModel(
            nodes=[NodeData("A", ports=["out", "in"]), NodeData("B"), NodeData("C")],
            edges=[
                EdgeData("e1", "A", "B", source_port="out"),
                EdgeData("e2", "A", "C", source_port="out"),
                EdgeData("e3", "C", "A", target_port="in"),
                EdgeData("e4", "B", "C"),
                EdgeData("proxy-A_to_K", "A", "K", is_proxy=True, source_port="out"),
            ],
        )
        session = CollapseSession(model)
        assert session.query_port_connections("A") == {"out": 2, "in": 1}
        assert session.query_port_connections("B") == {}

    @pytest.mark.asyncio
    async def test_hidden_edges_still_count(self):
        model = InMemoryGraphModel(
            nodes=[NodeData("A"), NodeData("B")],
            edges=[EdgeData("e1", "A", "B", target_port="in")],
        )
        session = make_session(model)
        await session.collapse_node("A")
        assert model.get_edge("e1").visible is False
        assert session.query_port_connections("B") == {"in": 1}


class TestStaleIds:
    @pytest.mark.asyncio
    async def test_deleted_descendant_is_skipped_on_expand(self, chain_model):
        session = make_session(chain_model)
        await session.collapse_node("A")
        chain_model.remove_node("C")

        assert await session.expand_node("A") is True
        assert visible_ids(chain_model) == {"A", "B", "A-B"}

    @pytest.mark.asyncio
    async def test_deleted_collapsed_node_can_still_be_expanded(self, chain_model):
        session = make_session(chain_model)
        await session.collapse_node("A")
        chain_model.remove_node("A")

        assert await session.expand_node("A") is True
        assert session.store.dag_collapsed == set()

    @pytest.mark.asyncio
    async def test_deleted_combo_member_is_skipped(self, combo_model):
        session = make_session(combo_model)
        await session.collapse_combo("K")
        combo_model.remove_node("X")

        assert await session.reconcile() is True
        assert await session.expand_combo("K") is True
        assert combo_model.get_node("Y").visible is True
