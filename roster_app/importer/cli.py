"""
CLI commands for roster imports.

``flask roster import`` reads an exported CSV sheet and runs it through the
import pipeline; ``flask roster profiles`` lists the available profiles.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Optional

import click
from flask.cli import ScriptInfo, with_appcontext

from roster_app.models import User, db
from roster_app.utils.crypto import CredentialCipherError, decrypt_secret
from roster_app.utils.importer import get_quota_ceiling, is_importer_enabled

from .contracts import IMPORT_PROFILES, get_profile
from .errors import RosterImportError
from .pipeline import import_roster


@click.group(name="roster", invoke_without_command=True)
@click.pass_context
def roster_cli(ctx):
    """
    Roster import commands.

    Lists the available import profiles when invoked without a subcommand.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    if not is_importer_enabled(app):
        raise click.ClickException(
            "Importer is disabled via IMPORTER_ENABLED=false. " "Enable it to run roster import commands."
        )
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_profiles)


def get_disabled_roster_group() -> click.Group:
    """
    Return a minimal command group that informs the operator the importer is disabled.
    """

    @click.group(name="roster", invoke_without_command=True)
    def disabled_group():
        raise click.ClickException("Roster import commands are unavailable because IMPORTER_ENABLED=false.")

    return disabled_group


def _read_csv_rows(csv_path: Path) -> list[dict]:
    try:
        with csv_path.open("r", encoding="utf-8-sig", newline="") as handle:
            reader = csv.DictReader(handle)
            if not reader.fieldnames:
                raise click.ClickException(f"{csv_path} has no header row.")
            return [{key: value for key, value in row.items() if key is not None} for row in reader]
    except (UnicodeDecodeError, csv.Error) as exc:
        raise click.ClickException(f"Could not read {csv_path}: {exc}") from exc


@roster_cli.command("profiles")
@with_appcontext
def list_profiles():
    """List import profiles and the columns each one requires."""
    for profile in IMPORT_PROFILES.values():
        ceiling = get_quota_ceiling(profile.name, default=profile.quota_ceiling)
        click.echo(f"{profile.name}: {profile.title}")
        click.echo(f"  required columns : {', '.join(profile.required_labels)}")
        click.echo(f"  village ceiling  : {ceiling if ceiling is not None else 'none'}")
        if profile.requires_owner:
            click.echo("  requires         : --coordinator-id")


@roster_cli.command("import")
@click.option("--profile", "profile_name", required=True, help="Import profile (coordinator, coordinator_apk, volunteer).")
@click.option(
    "--file",
    "file_path",
    required=True,
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="CSV export of the roster sheet (first line holds the headers).",
)
@click.option("--dry-run", is_flag=True, help="Run every check but roll back each row instead of committing.")
@click.option(
    "--coordinator-id",
    type=int,
    default=None,
    help="Coordinator the batch is imported under (volunteer profile).",
)
@with_appcontext
def import_command(profile_name: str, file_path: Path, dry_run: bool, coordinator_id: Optional[int]):
    """Import a roster sheet and print the batch report as JSON."""
    try:
        profile = get_profile(profile_name)
    except RosterImportError as exc:
        raise click.ClickException(str(exc)) from exc

    rows = _read_csv_rows(file_path.resolve())
    try:
        result = import_roster(
            rows,
            profile,
            dry_run=dry_run,
            coordinator_id=coordinator_id,
            source=f"csv:{file_path.name}",
        )
    except RosterImportError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))


@roster_cli.command("reveal-credential")
@click.option("--login", "login", required=True, help="Login handle of the account.")
@with_appcontext
def reveal_credential(login: str):
    """Print the active generated password for an imported account."""
    user = db.session.query(User).filter(User.login == login).first()
    if user is None:
        raise click.ClickException(f"No account with login '{login}'.")
    credential = user.active_credential
    if credential is None:
        raise click.ClickException(f"Account '{login}' has no active generated credential.")
    try:
        password = decrypt_secret(credential.encrypted_password)
    except CredentialCipherError as exc:
        raise click.ClickException(str(exc)) from exc
    credential.mark_used()
    db.session.commit()
    click.echo(password)
