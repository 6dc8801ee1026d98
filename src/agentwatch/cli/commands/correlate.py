"""Conversation correlation command."""

from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

import typer

from agentwatch.cli.console import console, create_table, print_json


def _format_time(ms: int | None) -> str:
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000, UTC).strftime("%Y-%m-%d %H:%M:%S")


_MATCH_STYLES = {
    "exact": "green",
    "linked": "cyan",
    "partial": "yellow",
    "unmatched": "dim",
}


def register(app: typer.Typer) -> None:
    """Register the correlate command."""

    @app.command()
    def correlate(
        hours: Annotated[
            float | None,
            typer.Option(
                "--hours",
                "-H",
                help="Only consider records from the last N hours",
            ),
        ] = None,
        limit: Annotated[
            int,
            typer.Option("--limit", "-n", help="Maximum conversations to show"),
        ] = 50,
        as_json: Annotated[
            bool,
            typer.Option("--json", help="Print conversations and stats as JSON"),
        ] = False,
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Correlate hook sessions, transcripts and managed runs."""
        from rich.markup import escape

        from agentwatch.cli.runtime import load_cli_config, run_correlation

        config = load_cli_config(config_path)
        run = run_correlation(config, hours)
        shown = run.conversations[:limit]

        if as_json:
            print_json(
                {
                    "conversations": [c.to_dict(run.now_ms) for c in shown],
                    "stats": run.stats.to_dict(),
                }
            )
            return

        if not run.conversations:
            console.print("[dim]No conversations found[/dim]")
            return

        table = create_table(
            "Conversations",
            [
                ("ID", {"style": "dim", "max_width": 16}),
                ("Started", ""),
                ("Match", ""),
                ("Confidence", ""),
                ("Project", "cyan"),
                ("Directory", {"overflow": "fold"}),
                ("Tools", {"justify": "right"}),
            ],
        )
        for conv in shown:
            style = _MATCH_STYLES.get(conv.match_type, "")
            table.add_row(
                conv.correlation_id[:16],
                _format_time(conv.start_time),
                f"[{style}]{conv.match_type}[/{style}]" if style else conv.match_type,
                conv.confidence or "-",
                escape(conv.project.name) if conv.project else "-",
                escape(conv.cwd or "-"),
                str(len(conv.tool_usages)),
            )
        console.print(table)

        stats = run.stats
        console.print(
            f"\n{stats.total} conversations: {stats.exact} exact, "
            f"{stats.linked} linked, {stats.low_confidence} low confidence, "
            f"{stats.partial} partial, {stats.managed_only} managed only"
        )
        if stats.unmatched:
            console.print(
                f"[dim]{stats.unmatched} unmatched: dropped records and "
                "managed-only runs[/dim]"
            )
