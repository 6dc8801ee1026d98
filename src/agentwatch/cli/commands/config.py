"""Configuration inspection commands."""

from pathlib import Path
from typing import Annotated

import click
import typer
from rich.markup import escape

from agentwatch.cli.console import console, create_table, error, success

ACTIONS = ("show", "validate")


def _require_file(path: Path) -> None:
    if not path.exists():
        error(f"Config file not found: {escape(str(path))}")
        console.print("Defaults are used when no config file exists")
        raise typer.Exit(1)


def _show(path: Path) -> None:
    from rich.syntax import Syntax

    _require_file(path)
    console.print(f"[bold]Config file: {escape(str(path))}[/bold]\n")
    console.print(
        Syntax(path.read_text(), "toml", theme="monokai", line_numbers=True)
    )


def _validate(path: Path) -> None:
    from agentwatch.config import ConfigError, load_config

    _require_file(path)
    try:
        config = load_config(path)
    except ConfigError as e:
        error("Configuration validation failed:")
        console.print(str(e), markup=False)
        raise typer.Exit(1) from None

    sharing = config.sharing
    table = create_table(
        "Configuration Summary", [("Setting", "cyan"), ("Value", "green")]
    )
    for setting, value in (
        ("Profile", sharing.profile or "[dim]active profile[/dim]"),
        ("Bundle format", sharing.bundle_format),
        ("Export directory", escape(str(sharing.export_dir))),
        ("Contributor", escape(sharing.contributor.contributor_id)),
        ("Time window", f"{config.correlation.time_window_ms} ms"),
        ("Projects", str(len(config.projects))),
        ("Log level", config.logging.level or "WARNING"),
    ):
        table.add_row(setting, value)

    success("Configuration is valid!")
    console.print()
    console.print(table)


def register(app: typer.Typer) -> None:
    """Register the config command."""

    @app.command()
    def config(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: $AGENTWATCH_HOME/config.toml)",
            ),
        ] = None,
    ) -> None:
        """Show or validate the configuration file."""
        if action is None:
            click.echo(click.get_current_context().get_help())
            raise typer.Exit(0)

        if action not in ACTIONS:
            error(f"Unknown action: {escape(action)}")
            console.print(f"Valid actions: {', '.join(ACTIONS)}")
            raise typer.Exit(1)

        from agentwatch.config.paths import get_config_path

        target = path.expanduser() if path else get_config_path()
        if action == "show":
            _show(target)
        else:
            _validate(target)
