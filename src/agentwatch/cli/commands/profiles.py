"""Redaction profile management commands."""

from typing import Annotated

import typer

from agentwatch.cli.console import (
    confirm_or_cancel,
    console,
    create_table,
    dim,
    error,
    print_json,
    success,
)


def register(app: typer.Typer) -> None:
    """Register the profiles command group."""
    profiles_app = typer.Typer(help="Manage redaction profiles", no_args_is_help=True)
    app.add_typer(profiles_app, name="profiles")

    @profiles_app.command("list")
    def profiles_list() -> None:
        """List built-in and saved profiles."""
        from agentwatch.profiles import ProfileStore, UnknownProfileError

        store = ProfileStore()
        try:
            active_id = store.get_active().id
        except UnknownProfileError:
            active_id = None

        table = create_table(
            "Redaction Profiles",
            [
                ("", {"width": 1}),
                ("ID", "cyan"),
                ("Name", ""),
                ("Fields", {"justify": "right"}),
                ("Type", "dim"),
            ],
        )
        for profile in store.list_profiles():
            table.add_row(
                "*" if profile.id == active_id else "",
                profile.id,
                profile.name,
                "all" if profile.keeps_everything else str(len(profile.kept_fields)),
                "built-in" if profile.builtin else "custom",
            )
        console.print(table)
        if active_id is None:
            error("The active profile no longer exists; run 'agentwatch profiles use'")

    @profiles_app.command("show")
    def profiles_show(
        profile_id: Annotated[str, typer.Argument(help="Profile id")],
        as_json: Annotated[bool, typer.Option("--json", help="Print as JSON")] = False,
    ) -> None:
        """Show a profile's fields and redaction settings."""
        from agentwatch.profiles import ProfileStore, UnknownProfileError, resolve_profile

        try:
            profile = resolve_profile(profile_id, ProfileStore())
        except UnknownProfileError as e:
            error(str(e))
            raise typer.Exit(1) from None

        if as_json:
            print_json(profile.to_dict())
            return

        console.print(f"[bold]{profile.name}[/bold] ({profile.id})")
        if profile.description:
            dim(profile.description)
        console.print("\n[bold]Kept fields[/bold]")
        for field in profile.kept_fields or ["(none)"]:
            console.print(f"  {field}")
        console.print("\n[bold]Redaction[/bold]")
        for key, value in profile.redaction.to_dict().items():
            console.print(f"  {key}: {value}")

    @profiles_app.command("create")
    def profiles_create(
        profile_id: Annotated[str, typer.Argument(help="New profile id")],
        name: Annotated[
            str | None, typer.Option("--name", help="Display name")
        ] = None,
        description: Annotated[
            str, typer.Option("--description", "-d", help="Description")
        ] = "",
        fields: Annotated[
            list[str] | None,
            typer.Option("--field", "-f", help="Field path to keep (repeatable)"),
        ] = None,
        base: Annotated[
            str | None,
            typer.Option("--from", help="Start from an existing profile"),
        ] = None,
        pattern: Annotated[
            list[str] | None,
            typer.Option("--pattern", "-p", help="Extra regex to redact (repeatable)"),
        ] = None,
    ) -> None:
        """Create or replace a custom profile."""
        from pydantic import ValidationError

        from agentwatch.profiles import (
            ProfileError,
            ProfileStore,
            RedactionProfile,
            resolve_profile,
        )

        store = ProfileStore()
        try:
            template = resolve_profile(base, store) if base else None
            kept = list(template.kept_fields) if template else []
            kept.extend(f for f in fields or [] if f not in kept)
            redaction = template.redaction.to_dict() if template else {}
            redaction["custom_patterns"] = [
                *redaction.get("custom_patterns", []),
                *(pattern or []),
            ]
            profile = store.save(
                RedactionProfile.model_validate(
                    {
                        "id": profile_id,
                        "name": name or profile_id,
                        "description": description,
                        "kept_fields": kept,
                        "redaction": redaction,
                    }
                )
            )
        except ValidationError as e:
            error("Invalid profile:")
            for err in e.errors():
                loc = ".".join(str(x) for x in err["loc"])
                console.print(f"  [yellow]{loc}[/yellow]: {err['msg']}")
            raise typer.Exit(1) from None
        except ProfileError as e:
            error(str(e))
            raise typer.Exit(1) from None

        success(f"Saved profile {profile.id} ({len(profile.kept_fields)} fields)")

    @profiles_app.command("delete")
    def profiles_delete(
        profile_id: Annotated[str, typer.Argument(help="Profile id")],
        force: Annotated[
            bool, typer.Option("--force", "-y", help="Skip confirmation")
        ] = False,
    ) -> None:
        """Delete a custom profile."""
        from agentwatch.profiles import ProfileError, ProfileStore

        store = ProfileStore()
        if not confirm_or_cancel(f"Delete profile {profile_id}?", force):
            return
        try:
            removed = store.delete(profile_id)
        except ProfileError as e:
            error(str(e))
            raise typer.Exit(1) from None
        if not removed:
            error(f"Profile not found: {profile_id}")
            raise typer.Exit(1)
        success(f"Deleted profile {profile_id}")

    @profiles_app.command("use")
    def profiles_use(
        profile_id: Annotated[str, typer.Argument(help="Profile id")],
    ) -> None:
        """Make a profile the active one."""
        from agentwatch.profiles import ProfileStore, UnknownProfileError

        try:
            profile = ProfileStore().set_active(profile_id)
        except UnknownProfileError as e:
            error(str(e))
            raise typer.Exit(1) from None
        success(f"Active profile: {profile.id}")
