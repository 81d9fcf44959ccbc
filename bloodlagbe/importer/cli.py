"""
``flask donors`` commands for operating the donor import pipeline from a shell.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
from flask.cli import with_appcontext

from bloodlagbe.importer.adapters import CSVAdapterError
from bloodlagbe.importer.pipeline import (
    DonorUploadError,
    SubmissionError,
    SubmissionService,
    upload_donors_from_csv,
)
from bloodlagbe.importer.utils import allowed_file
from bloodlagbe.models import AdminLog, User
from bloodlagbe.utils.permissions import AuthContext, auth_context_from_user


def _admin_context(email: str) -> AuthContext:
    user = User.find_by_email(email)
    if user is None:
        raise click.ClickException(f"No user found with email {email}.")
    if not user.is_admin:
        raise click.ClickException(f"User {email} is not an admin.")
    return auth_context_from_user(user)


@click.group(name="donors")
def donors_cli():
    """Donor directory import commands."""


@donors_cli.command("upload-csv")
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--admin-email", required=True, help="Email of the admin performing the upload.")
@click.option("--json-output", is_flag=True, help="Print the full summary as JSON.")
@with_appcontext
def upload_csv_command(csv_path: Path, admin_email: str, json_output: bool):
    """Insert donors from CSV_PATH directly into the directory."""

    if not allowed_file(csv_path.name):
        raise click.ClickException("Only .csv files can be uploaded.")
    auth = _admin_context(admin_email)
    try:
        with csv_path.open("r", encoding="utf-8-sig", newline="") as handle:
            summary = upload_donors_from_csv(handle, auth=auth)
    except CSVAdapterError as exc:
        raise click.ClickException(str(exc)) from exc
    except DonorUploadError as exc:
        raise click.ClickException(exc.message) from exc

    AdminLog.log_action(
        admin_user_id=auth.user_id,
        action="UPLOAD_DONORS_CSV",
        details=json.dumps({"file": csv_path.name, "success": summary.success_count, "errors": summary.error_count}),
    )

    if json_output:
        click.echo(json.dumps(summary.to_dict(), indent=2))
        return
    click.echo(summary.message)
    for error in summary.errors:
        click.echo(f"  row {error['row']}: {error['message']}")


@donors_cli.command("approve")
@click.argument("submission_id", type=int)
@click.option("--admin-email", required=True, help="Email of the reviewing admin.")
@click.option("--notes", default=None, help="Admin notes stored on the submission.")
@with_appcontext
def approve_command(submission_id: int, admin_email: str, notes: str | None):
    """Approve SUBMISSION_ID and import its donors."""

    auth = _admin_context(admin_email)
    try:
        result = SubmissionService().approve(auth, submission_id, admin_notes=notes)
    except SubmissionError as exc:
        raise click.ClickException(exc.message) from exc

    AdminLog.log_action(
        admin_user_id=auth.user_id,
        action="APPROVE_SUBMISSION",
        target_user_id=result.submission.submitted_by_user_id,
        details=json.dumps({"submission_id": submission_id, **result.summary.counts()}),
    )
    click.echo(result.message)
    for message in result.import_errors:
        click.echo(f"  {message}")


@donors_cli.command("pending")
@click.option("--admin-email", required=True, help="Email of the admin listing submissions.")
@with_appcontext
def pending_command(admin_email: str):
    """List submissions awaiting review, oldest first."""

    auth = _admin_context(admin_email)
    submissions = SubmissionService().list_for_admin(auth)
    if not submissions:
        click.echo("No submissions pending review.")
        return
    for submission in submissions:
        click.echo(
            f"{submission.id}\t{submission.list_name}\t{submission.record_count} records\t"
            f"{submission.submitted_at:%Y-%m-%d %H:%M}"
        )
