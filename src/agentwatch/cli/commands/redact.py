"""Redaction commands: sanitize, check and patterns."""

import json
import sys
from pathlib import Path
from typing import Annotated, Any

import click
import typer

from agentwatch.cli.console import console, create_table, error, print_json, success, warning


def _read_input(path: Path | None, text: str | None) -> str:
    if text is not None:
        return text
    if path is None or str(path) == "-":
        return sys.stdin.read()
    if not path.exists():
        error(f"File not found: {path}")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


def _as_json(content: str) -> Any | None:
    """Parse ``content`` as a JSON object or array, else None."""
    stripped = content.lstrip()
    if not stripped.startswith(("{", "[")):
        return None
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return None


def register(app: typer.Typer) -> None:
    """Register the redaction commands."""

    @app.command()
    def sanitize(
        path: Annotated[
            Path | None,
            typer.Argument(help="File to sanitize (JSON or text); stdin if omitted"),
        ] = None,
        text: Annotated[
            str | None,
            typer.Option("--text", "-t", help="Sanitize this text instead of a file"),
        ] = None,
        secrets: Annotated[
            bool, typer.Option("--secrets/--no-secrets", help="Redact secrets")
        ] = True,
        pii: Annotated[
            bool, typer.Option("--pii/--no-pii", help="Redact personal data")
        ] = True,
        paths: Annotated[
            bool, typer.Option("--paths/--no-paths", help="Redact home directories")
        ] = True,
        high_entropy: Annotated[
            bool,
            typer.Option(
                "--high-entropy/--no-high-entropy",
                help="Redact random-looking tokens",
            ),
        ] = True,
        pattern: Annotated[
            list[str] | None,
            typer.Option("--pattern", "-p", help="Extra regex to redact (repeatable)"),
        ] = None,
        as_json: Annotated[
            bool,
            typer.Option("--json", help="Print output and report as JSON"),
        ] = False,
    ) -> None:
        """Redact secrets, personal data and paths from text or JSON."""
        from pydantic import ValidationError

        from agentwatch.redaction import RedactionConfig, sanitize as run_sanitize

        try:
            config = RedactionConfig(
                redact_secrets=secrets,
                redact_pii=pii,
                redact_paths=paths,
                enable_high_entropy=high_entropy,
                custom_patterns=pattern or [],
            )
        except ValidationError as e:
            for err in e.errors():
                error(err["msg"])
            raise typer.Exit(1) from None

        content = _read_input(path, text)
        parsed = _as_json(content)
        output, report = run_sanitize(parsed if parsed is not None else content, config)

        if as_json:
            print_json({"output": output, "report": report.to_dict()})
            return

        if parsed is not None:
            typer.echo(json.dumps(output, indent=2, ensure_ascii=False))
        else:
            typer.echo(output, nl=not output.endswith("\n"))
        typer.echo(
            f"{report.total_redactions} redactions "
            + json.dumps(report.counts_by_category, sort_keys=True),
            err=True,
        )

    @app.command()
    def check(
        path: Annotated[
            Path | None,
            typer.Argument(help="Sanitized file to check; stdin if omitted"),
        ] = None,
        text: Annotated[
            str | None,
            typer.Option("--text", "-t", help="Check this text instead of a file"),
        ] = None,
    ) -> None:
        """Check sanitized output for leftover sensitive content.

        Exits with status 1 when the content must not be shared.
        """
        from agentwatch.redaction import iter_strings, residue_check

        content = _read_input(path, text)
        parsed = _as_json(content)
        strings = (
            list(iter_strings(parsed, include_keys=True))
            if parsed is not None
            else [content]
        )
        result = residue_check(strings)

        for message in result.warnings:
            warning(message)
        if result.blocked:
            error("Blocked: content must not be shared")
            raise typer.Exit(1)
        if not result.warnings:
            success("No residue found")

    @app.command()
    def patterns(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: list, test, validate"),
        ] = None,
        value: Annotated[
            str | None,
            typer.Argument(help="Text to test, or pattern to validate"),
        ] = None,
        category: Annotated[
            str | None,
            typer.Option("--category", help="Only rules in this category"),
        ] = None,
    ) -> None:
        """List, test and validate redaction patterns."""
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        from rich.markup import escape

        from agentwatch.redaction import (
            InvalidPatternError,
            list_patterns,
            scan_patterns,
            validate_pattern,
        )

        if action == "list":
            table = create_table(
                "Redaction Patterns",
                [
                    ("Name", "cyan"),
                    ("Category", ""),
                    ("Placeholder", "dim"),
                    ("Description", ""),
                ],
            )
            for rule in list_patterns(category):
                table.add_row(
                    rule.name,
                    rule.category,
                    escape(rule.placeholder),
                    rule.description,
                )
            console.print(table)

        elif action == "test":
            if value is None:
                error("Usage: agentwatch patterns test TEXT")
                raise typer.Exit(1)
            rules = list_patterns(category)
            matches = scan_patterns(value, rules)
            if not matches:
                console.print("[dim]No patterns matched[/dim]")
                return
            for match in matches:
                console.print(
                    f"[cyan]{match.name}[/cyan] ({match.category}): "
                    f"{match.match_count} match(es)"
                )
                for found in match.matches:
                    console.print(f"  {escape(found)}")

        elif action == "validate":
            if value is None:
                error("Usage: agentwatch patterns validate PATTERN")
                raise typer.Exit(1)
            try:
                notes = validate_pattern(value)
            except InvalidPatternError as e:
                error(escape(str(e)))
                raise typer.Exit(1) from None
            success("Pattern is valid")
            for note in notes:
                warning(note)

        else:
            error(f"Unknown action: {action}")
            console.print("Valid actions: list, test, validate")
            raise typer.Exit(1)
