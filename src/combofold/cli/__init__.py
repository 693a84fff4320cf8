"""combofold CLI — replay collapse/expand actions on a graph snapshot.

Entry point for the `combofold` command. Requires ``pip install combofold[cli]``.

Commands:
    apply   Apply collapse/expand actions in order and show the result
    ports   Show port connection counts for a node
"""

from __future__ import annotations


def _require_typer():
    """Check that typer is available."""
    try:
        import typer  # noqa: F401
    except ImportError:
        import sys

        print("Error: typer is required for the CLI. Install with: pip install combofold[cli]", file=sys.stderr)
        raise SystemExit(1) from None


def create_app():
    """Create the Typer app with all commands."""
    _require_typer()

    import typer

    from combofold.cli.apply_cmd import register_commands

    app = typer.Typer(
        name="combofold",
        help="Replay collapse/expand actions on a graph snapshot.",
        no_args_is_help=True,
    )
    register_commands(app)

    return app


def main():
    """CLI entry point."""
    app = create_app()
    app()
