"""Output helpers for the snapshot commands.

Human output is a small aligned table plus a visibility summary block;
``--json`` output is wrapped in a versioned envelope.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Sequence

# JSON envelope version: bump on breaking changes to JSON structure
SCHEMA_VERSION = 1

MAX_LINES = 100


def json_envelope(command: str, data: Any) -> dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "command": command,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }


def emit_json(command: str, data: Any, output: str | None = None) -> None:
    """Print the envelope, or write it to ``output`` and say where it went."""
    text = json.dumps(json_envelope(command, data), indent=2, default=str)
    if not output:
        print(text)
        return
    Path(output).write_text(text)
    print(f"Wrote {command} output to {output} ({len(text.encode()) / 1024:.1f}KB)")


def format_ids(ids: Iterable[str], max_items: int = 8) -> str:
    """Comma-join ids, eliding the tail of long lists."""
    ids = list(ids)
    if not ids:
        return "—"
    shown = ", ".join(ids[:max_items])
    if len(ids) > max_items:
        shown += f", … (+{len(ids) - max_items})"
    return shown


def format_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    right_align: Iterable[str] = (),
    indent: int = 2,
) -> list[str]:
    """Aligned columns under a ruled header; ``right_align`` names numeric columns."""
    if not rows:
        return []
    widths = [max(len(cell) for cell in column) for column in zip(headers, *rows)]
    right = set(right_align)

    def line(cells: Sequence[str], justify_header: bool = False) -> str:
        padded = [
            cell.rjust(width) if header in right and not justify_header else cell.ljust(width)
            for header, cell, width in zip(headers, cells, widths)
        ]
        return " " * indent + "  ".join(padded).rstrip()

    return [line(headers, justify_header=True), " " * indent + "  ".join("─" * w for w in widths)] + [
        line(row) for row in rows
    ]


def format_summary(summary: dict[str, Any]) -> list[str]:
    """Render the visibility summary produced by the apply command."""
    proxies = [f"{source}->{target}" for source, target in summary["proxy_edges"]]
    return [
        f"  Visible nodes:  {format_ids(summary['visible_nodes'])}",
        f"  Hidden nodes:   {format_ids(summary['hidden_nodes'])}",
        f"  Visible combos: {format_ids(summary['visible_combos'])}",
        f"  Proxy edges:    {format_ids(proxies)}",
    ]


def emit_lines(lines: list[str], max_lines: int = MAX_LINES) -> None:
    print("\n".join(lines[:max_lines]))
    if len(lines) > max_lines:
        print(f"\n  # ... {len(lines) - max_lines} more lines")
