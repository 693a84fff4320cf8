"""Integration tests for the apply and ports commands.

Uses CliRunner to test command output without subprocess overhead.
"""

import json

import pytest
from typer.testing import CliRunner

from combofold.cli import create_app

runner_cli = CliRunner()


@pytest.fixture
def snapshot_path(tmp_path):
    """Combo K = {X, Y}; X -> Z leaves K; A -> X enters it."""
    data = {
        "nodes": [
            {"id": "A"},
            {"id": "X", "combo": "K", "x": 0, "y": 0},
            {"id": "Y", "combo": "K", "x": 100, "y": 0},
            {"id": "Z", "ports": ["in"]},
        ],
        "edges": [
            {"id": "A-X", "source": "A", "target": "X", "source_port": "out"},
            {"id": "X-Z", "source": "X", "target": "Z", "target_port": "in"},
            {"id": "Y-Z", "source": "Y", "target": "Z", "target_port": "in", "label": "ignored"},
        ],
        "combos": [{"id": "K"}],
    }
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(data))
    return path


class TestApply:
    def test_collapse_combo_json(self, snapshot_path):
        app = create_app()
        result = runner_cli.invoke(app, ["apply", str(snapshot_path), "-a", "collapse-combo:K", "--json"])
        assert result.exit_code == 0, result.output

        envelope = json.loads(result.output)
        assert envelope["command"] == "apply"
        data = envelope["data"]
        assert data["visible_nodes"] == ["A", "Z"]
        assert data["hidden_nodes"] == ["X", "Y"]
        assert data["collapsed_combos"] == {"K": 2}
        assert data["proxy_edges"] == [["A", "K"], ["K", "Z"]]
        assert data["actions"] == [{"action": "collapse_combo", "target": "K", "applied": True}]

    def test_actions_run_in_order(self, snapshot_path):
        app = create_app()
        result = runner_cli.invoke(
            app,
            ["apply", str(snapshot_path), "-a", "collapse-combo:K", "-a", "expand-combo:K", "--json"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert data["hidden_nodes"] == []
        assert data["proxy_edges"] == []
        assert [a["applied"] for a in data["actions"]] == [True, True]

    def test_dag_collapse_reports_badge(self, snapshot_path):
        app = create_app()
        result = runner_cli.invoke(app, ["apply", str(snapshot_path), "-a", "collapse:A", "--json"])
        data = json.loads(result.output)["data"]
        assert data["collapsed_nodes"] == {"A": 2}
        assert data["hidden_nodes"] == ["X", "Z"]

    def test_table_output(self, snapshot_path):
        app = create_app()
        result = runner_cli.invoke(app, ["apply", str(snapshot_path), "-a", "collapse-combo:K", "-a", "collapse:Q"])
        assert result.exit_code == 0, result.output
        assert "collapse_combo" in result.output
        assert "no-op" in result.output
        assert "K->Z" in result.output

    def test_output_file(self, snapshot_path, tmp_path):
        app = create_app()
        out = tmp_path / "result.json"
        result = runner_cli.invoke(
            app,
            ["apply", str(snapshot_path), "-a", "collapse-combo:K", "--json", "--output", str(out)],
        )
        assert result.exit_code == 0, result.output
        assert "Wrote apply output" in result.output
        assert json.loads(out.read_text())["data"]["collapsed_combos"] == {"K": 2}

    def test_initially_collapsed_node_is_applied(self, tmp_path):
        data = {
            "nodes": [{"id": "A", "collapsed": True}, {"id": "B"}, {"id": "C"}],
            "edges": [
                {"id": "A-B", "source": "A", "target": "B"},
                {"id": "B-C", "source": "B", "target": "C"},
            ],
        }
        path = tmp_path / "collapsed.json"
        path.write_text(json.dumps(data))

        app = create_app()
        result = runner_cli.invoke(app, ["apply", str(path), "-a", "expand:A", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert data["actions"] == [{"action": "expand_node", "target": "A", "applied": True}]
        assert data["hidden_nodes"] == []
        assert data["collapsed_nodes"] == {}

    def test_invalid_action(self, snapshot_path):
        app = create_app()
        result = runner_cli.invoke(app, ["apply", str(snapshot_path), "-a", "fold:K"])
        assert result.exit_code == 1
        assert "Invalid action" in result.output

    def test_missing_snapshot(self, tmp_path):
        app = create_app()
        result = runner_cli.invoke(app, ["apply", str(tmp_path / "nope.json")])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestPorts:
    def test_counts(self, snapshot_path):
        app = create_app()
        result = runner_cli.invoke(app, ["ports", str(snapshot_path), "Z", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["data"] == {"node": "Z", "ports": {"in": 2}}

    def test_table(self, snapshot_path):
        app = create_app()
        result = runner_cli.invoke(app, ["ports", str(snapshot_path), "A"])
        assert result.exit_code == 0
        assert "out" in result.output

    def test_no_ports(self, snapshot_path):
        app = create_app()
        result = runner_cli.invoke(app, ["ports", str(snapshot_path), "Y"])
        assert result.exit_code == 0
        assert "No port connections" in result.output

    def test_unknown_node(self, snapshot_path):
        app = create_app()
        result = runner_cli.invoke(app, ["ports", str(snapshot_path), "missing"])
        assert result.exit_code == 1
