"""Main CLI application."""

from typing import Annotated

import typer

from agentwatch.cli.commands import config, correlate, profiles, redact, share

app = typer.Typer(
    name="agentwatch",
    help="agentwatch - correlate and safely share AI coding agent sessions",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log at INFO level"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Log at DEBUG level"),
    ] = False,
    log_file: Annotated[
        bool,
        typer.Option("--log-file", help="Also write logs to ~/.agentwatch/logs"),
    ] = False,
) -> None:
    """Configure logging before any command runs."""
    from agentwatch.logging import configure_logging

    level = "DEBUG" if debug else "INFO" if verbose else None
    ctx.obj = {"log_level": level, "log_file": log_file}
    configure_logging(level=level, use_rich=True, log_to_file=log_file)


for module in (correlate, redact, profiles, share, config):
    module.register(app)


if __name__ == "__main__":
    app()
