"""Snapshot commands: apply, ports."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer

from combofold.cli._format import emit_json, emit_lines, format_summary, format_table
from combofold.config import load_config
from combofold.model import InMemoryGraphModel
from combofold.session import CollapseSession

# action prefix -> CollapseSession method
ACTIONS = {
    "collapse": "collapse_node",
    "expand": "expand_node",
    "collapse-combo": "collapse_combo",
    "expand-combo": "expand_combo",
}

JsonFlag = Annotated[bool, typer.Option("--json", help="Output as JSON")]
OutputOption = Annotated[str | None, typer.Option("--output", help="Write JSON to file")]


def load_snapshot(path: Path) -> InMemoryGraphModel:
    """Read a {"nodes", "edges", "combos"} JSON file into an in-memory model."""
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError:
        print(f"Error: Snapshot '{path}' not found")
        raise typer.Exit(1) from None
    except json.JSONDecodeError as e:
        print(f"Error: Snapshot '{path}' is not valid JSON: {e}")
        raise typer.Exit(1) from e
    return InMemoryGraphModel.from_snapshot(data)


def parse_action(spec: str) -> tuple[str, str]:
    """Split 'collapse-combo:K' into ('collapse_combo', 'K')."""
    kind, sep, target = spec.partition(":")
    if not sep or not target or kind not in ACTIONS:
        valid = ", ".join(f"{name}:ID" for name in ACTIONS)
        print(f"Error: Invalid action '{spec}'. Expected one of: {valid}")
        raise typer.Exit(1)
    return ACTIONS[kind], target


def visibility_summary(model: InMemoryGraphModel) -> dict[str, Any]:
    return {
        "visible_nodes": sorted(n.id for n in model.nodes() if n.visible),
        "hidden_nodes": sorted(n.id for n in model.nodes() if not n.visible),
        "visible_combos": sorted(c.id for c in model.combos() if c.visible),
        "collapsed_combos": {c.id: c.hidden_count for c in model.combos() if c.collapsed},
        "collapsed_nodes": {n.id: n.hidden_descendants for n in model.nodes() if n.collapsed},
        "proxy_edges": sorted([e.source, e.target] for e in model.edges() if e.is_proxy and e.visible),
    }


def register_commands(app: typer.Typer) -> None:
    """Register top-level snapshot commands on the app."""

    @app.command("apply")
    def apply(
        snapshot: Annotated[Path, typer.Argument(help="Graph snapshot JSON file")],
        action: Annotated[
            list[str] | None,
            typer.Option("--action", "-a", help="collapse:ID, expand:ID, collapse-combo:ID or expand-combo:ID"),
        ] = None,
        as_json: JsonFlag = False,
        output: OutputOption = None,
    ):
        """Apply collapse/expand actions in order and show the resulting state."""
        steps = [parse_action(spec) for spec in action or []]
        model = load_snapshot(snapshot)
        session = CollapseSession(model, config=load_config())

        async def _run() -> list[bool]:
            await session.apply_initial_state()
            applied = []
            for method, target in steps:
                applied.append(await getattr(session, method)(target))
            await session.close()
            return applied

        applied = asyncio.run(_run())
        summary = visibility_summary(model)

        if as_json:
            summary["actions"] = [
                {"action": method, "target": target, "applied": ok}
                for (method, target), ok in zip(steps, applied)
            ]
            emit_json("apply", summary, output)
            return

        rows = [
            [method, target, "yes" if ok else "no-op"]
            for (method, target), ok in zip(steps, applied)
        ]
        emit_lines(format_table(["Action", "Target", "Applied"], rows) + [""] + format_summary(summary))

    @app.command("ports")
    def ports(
        snapshot: Annotated[Path, typer.Argument(help="Graph snapshot JSON file")],
        node_id: Annotated[str, typer.Argument(help="Node to inspect")],
        as_json: JsonFlag = False,
        output: OutputOption = None,
    ):
        """Show how many real edges are attached to each port of a node."""
        model = load_snapshot(snapshot)
        if not model.has_element(node_id):
            print(f"Error: No element '{node_id}' in snapshot")
            raise typer.Exit(1)

        session = CollapseSession(model, config=load_config())
        counts = session.query_port_connections(node_id)

        if as_json:
            emit_json("ports", {"node": node_id, "ports": counts}, output)
            return

        if not counts:
            print(f"No port connections on '{node_id}'.")
            return
        rows = [[key, str(count)] for key, count in sorted(counts.items())]
        emit_lines(format_table(["Port", "Count"], rows, right_align=["Count"]))
