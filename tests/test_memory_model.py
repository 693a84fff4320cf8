"""Tests for the in-memory graph model."""

import pytest

from combofold import ComboData, EdgeData, ElementType, InMemoryGraphModel, NodeData, StaleElementError


@pytest.fixture
def model():
    return InMemoryGraphModel(
        nodes=[NodeData("a", combo="k"), NodeData("b", x=10, y=10, size=4)],
        edges=[EdgeData("a-b", "a", "b")],
        combos=[ComboData("k", x=0, y=0, width=20, height=10)],
    )


class TestLookups:
    def test_element_type(self, model):
        assert model.element_type("a") is ElementType.NODE
        assert model.element_type("a-b") is ElementType.EDGE
        assert model.element_type("k") is ElementType.COMBO

    def test_missing_id_raises_stale_error(self, model):
        with pytest.raises(StaleElementError) as exc_info:
            model.get_node("zz")
        assert exc_info.value.element_id == "zz"
        assert str(exc_info.value) == "No node with id 'zz' in the graph model"

    def test_stale_error_is_a_key_error(self, model):
        with pytest.raises(KeyError):
            model.is_visible("zz")


class TestMutation:
    def test_remove_node_drops_touching_edges(self, model):
        model.remove_node("b")
        assert not model.has_element("b")
        assert not model.has_element("a-b")

    def test_update_ignores_unknown_attributes(self, model):
        model.update_nodes({"a": {"collapsed": True, "colour": "red"}})
        assert model.get_node("a").collapsed is True
        assert not hasattr(model.get_node("a"), "colour")

    def test_update_element_merges_edge_style(self, model):
        model.update_element("a-b", {"stroke": "#999"})
        assert model.get_edge("a-b").style == {"stroke": "#999"}

    def test_history_records_calls(self, model):
        model.remove_edges(["a-b", "missing"])
        assert model.history == [("remove_edges", ("a-b",))]


class TestRendering:
    @pytest.mark.asyncio
    async def test_hide_and_show(self, model):
        await model.hide_elements(["a", "a-b"])
        assert model.is_visible("a") is False
        await model.show_elements(["a"])
        assert model.is_visible("a") is True
        assert [op for op, _ in model.history] == ["hide", "show"]

    @pytest.mark.asyncio
    async def test_draw_counts(self, model):
        await model.draw()
        assert model.draw_count == 1

    def test_bounds(self, model):
        node_box = model.get_bounds("b")
        assert (node_box.min_x, node_box.max_x) == (8, 12)
        combo_box = model.get_bounds("k")
        assert (combo_box.min_x, combo_box.max_y) == (-10, 5)
        with pytest.raises(TypeError):
            model.get_bounds("a-b")


class TestSnapshot:
    def test_from_snapshot_ignores_unknown_keys(self):
        model = InMemoryGraphModel.from_snapshot({
            "nodes": [{"id": "a", "label": "A"}, {"id": "b"}],
            "edges": [{"id": "e", "source": "a", "target": "b", "weight": 3}],
            "combos": [{"id": "k", "center": [1, 2]}],
        })
        assert model.get_edge("e").target == "b"
        assert model.get_combo("k").center == (1, 2)

    def test_snapshot_round_trip(self, model):
        copy = InMemoryGraphModel.from_snapshot(model.to_snapshot())
        assert copy.to_snapshot() == model.to_snapshot()
