"""Session sharing commands: prepare and export."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from agentwatch.cli.console import console, create_table, dim, error, print_json, success, warning

if TYPE_CHECKING:
    from agentwatch.config import AgentwatchConfig
    from agentwatch.share import PreparationResult, RawSession

HoursOption = Annotated[
    float | None,
    typer.Option("--hours", "-H", help="Only sessions from the last N hours"),
]
ProfileOption = Annotated[
    str | None,
    typer.Option("--profile", "-P", help="Redaction profile (default: active profile)"),
]
SessionOption = Annotated[
    list[str] | None,
    typer.Option("--session", "-s", help="Correlation id to include (repeatable)"),
]
InputOption = Annotated[
    Path | None,
    typer.Option(
        "--input",
        "-i",
        help="JSONL of raw sessions ({session_id, source, data}) instead of collected data",
    ),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to configuration file"),
]


def _raw_sessions_from_file(path: Path) -> list[RawSession]:
    from agentwatch.share import RawSession
    from agentwatch.sources import iter_jsonl

    if not path.exists():
        error(f"File not found: {path}")
        raise typer.Exit(1)
    sessions = []
    for index, record in enumerate(iter_jsonl(path)):
        sessions.append(
            RawSession(
                session_id=str(record.get("session_id") or f"session-{index + 1}"),
                source=str(record.get("source") or "unknown"),
                data=record.get("data"),
                mtime_utc=record.get("mtime_utc"),
                source_path_hint=record.get("source_path_hint"),
            )
        )
    return sessions


def _raw_sessions_from_store(
    config: AgentwatchConfig, hours: float | None, session_ids: list[str] | None
) -> list[RawSession]:
    from agentwatch.cli.runtime import run_correlation
    from agentwatch.share import raw_session_from_conversation
    from agentwatch.sources import load_transcript_messages

    run = run_correlation(config, hours)
    conversations = run.conversations
    if session_ids:
        wanted = set(session_ids)
        conversations = [c for c in conversations if c.correlation_id in wanted]
        missing = wanted - {c.correlation_id for c in conversations}
        for session_id in sorted(missing):
            warning(f"No conversation with id {session_id}")

    sessions = []
    for conv in conversations:
        messages = (
            load_transcript_messages(Path(conv.transcript.path))
            if conv.transcript
            else []
        )
        sessions.append(raw_session_from_conversation(conv, messages))
    return sessions


def _prepare(
    config: AgentwatchConfig,
    profile_id: str | None,
    hours: float | None,
    session_ids: list[str] | None,
    input_path: Path | None,
) -> PreparationResult:
    from agentwatch.profiles import ProfileStore, UnknownProfileError, resolve_profile
    from agentwatch.share import PreparationConfig, prepare_sessions

    store = ProfileStore()
    try:
        wanted = profile_id or config.sharing.profile
        profile = resolve_profile(wanted, store) if wanted else store.get_active()
    except UnknownProfileError as e:
        error(str(e))
        raise typer.Exit(1) from None

    if input_path is not None:
        raw_sessions = _raw_sessions_from_file(input_path)
    else:
        raw_sessions = _raw_sessions_from_store(config, hours, session_ids)

    prep_config = PreparationConfig.from_profile(
        profile,
        config.sharing.contributor,
        preview_chars=config.sharing.preview_chars,
    )
    return prepare_sessions(raw_sessions, prep_config)


def _print_result(result: PreparationResult) -> None:
    from rich.markup import escape

    if result.sessions:
        table = create_table(
            f"Prepared Sessions (profile: {result.profile_id})",
            [
                ("Session", {"style": "cyan", "max_width": 24}),
                ("Source", ""),
                ("Score", {"justify": "right"}),
                ("Redactions", {"justify": "right"}),
                ("Chars", {"justify": "right"}),
                ("SHA-256", "dim"),
            ],
        )
        for session in result.sessions:
            table.add_row(
                escape(session.session_id),
                session.source,
                str(session.score),
                str(session.redaction.total_redactions),
                str(session.approx_chars),
                session.content_sha256[:12],
            )
        console.print(table)
    else:
        dim("No sessions prepared")

    for blocked in result.blocked_sessions:
        error(
            f"Blocked {escape(blocked.session_id)}: "
            + "; ".join(blocked.warnings)
        )
    for skipped in result.skipped_sessions:
        warning(f"Skipped {escape(skipped.session_id)}: {escape(skipped.reason)}")
    for message in result.residue_warnings:
        warning(message)

    report = result.redaction_report
    console.print(
        f"\n{report.total_redactions} redactions "
        f"({report.high_entropy_redactions} high entropy), "
        f"{len(result.stripped_fields)} field paths stripped"
    )


def register(app: typer.Typer) -> None:
    """Register the prepare and export commands."""

    @app.command()
    def prepare(
        hours: HoursOption = None,
        profile: ProfileOption = None,
        session: SessionOption = None,
        input_path: InputOption = None,
        as_json: Annotated[
            bool, typer.Option("--json", help="Print the preparation result as JSON")
        ] = False,
        config_path: ConfigOption = None,
    ) -> None:
        """Preview what sharing sessions would include."""
        from agentwatch.cli.runtime import load_cli_config

        config = load_cli_config(config_path)
        result = _prepare(config, profile, hours, session, input_path)
        if as_json:
            print_json(result.to_dict())
            return
        _print_result(result)

    @app.command()
    def export(
        hours: HoursOption = None,
        profile: ProfileOption = None,
        session: SessionOption = None,
        input_path: InputOption = None,
        output: Annotated[
            Path | None,
            typer.Option("--output", "-o", help="Directory to write the bundle to"),
        ] = None,
        bundle_format: Annotated[
            str | None,
            typer.Option("--format", "-f", help="Bundle format: jsonl, zip, auto"),
        ] = None,
        config_path: ConfigOption = None,
    ) -> None:
        """Prepare sessions and write a shareable bundle."""
        from agentwatch.cli.runtime import load_cli_config
        from agentwatch.share import BundleError, build_bundle

        config = load_cli_config(config_path)
        result = _prepare(config, profile, hours, session, input_path)
        _print_result(result)

        try:
            bundle = build_bundle(result, bundle_format or config.sharing.bundle_format)
        except BundleError as e:
            error(str(e))
            raise typer.Exit(1) from None

        path = bundle.write((output or config.sharing.export_dir).expanduser())
        success(f"Wrote {bundle.session_count} sessions to {path}")
