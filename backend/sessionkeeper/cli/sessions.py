"""Flask CLI commands for session maintenance and forced logout."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from sessionkeeper.models.enums import SubjectType
from sessionkeeper.services._shared.subject import SubjectRef
from sessionkeeper.services.sessions import get_session_services

LOGGER = logging.getLogger(__name__)

SUBJECT_TYPE = click.Choice([t.value for t in SubjectType], case_sensitive=False)


def _subject(subject_type: str, subject_id: int) -> SubjectRef:
    if subject_id <= 0:
        raise click.BadParameter("must be a positive integer", param_hint="SUBJECT_ID")
    return SubjectRef(type=SubjectType(subject_type.upper()), id=subject_id)


@click.group("sessions")
def sessions_cli() -> None:
    """Inspect and revoke refresh-token sessions."""


@sessions_cli.command("purge-expired")
@with_appcontext
def purge_expired() -> None:
    """Deactivate every session past its refresh lifetime."""
    count = get_session_services().revocation.purge_expired()
    click.echo(f"Deactivated {count} expired session(s).")


@sessions_cli.command("logout-all")
@click.argument("subject_type", type=SUBJECT_TYPE)
@click.argument("subject_id", type=int)
@with_appcontext
def logout_all(subject_type: str, subject_id: int) -> None:
    """Force logout of SUBJECT_TYPE/SUBJECT_ID on every device."""
    subject = _subject(subject_type, subject_id)
    count = get_session_services().revocation.logout_all(subject)
    LOGGER.info("cli.logout_all", extra={"subject": subject.sub, "count": count})
    click.echo(f"Revoked {count} session(s) for {subject.sub}.")


@sessions_cli.command("list")
@click.argument("subject_type", type=SUBJECT_TYPE)
@click.argument("subject_id", type=int)
@with_appcontext
def list_sessions(subject_type: str, subject_id: int) -> None:
    """Show the active sessions of SUBJECT_TYPE/SUBJECT_ID."""
    subject = _subject(subject_type, subject_id)
    sessions = get_session_services().revocation.list_sessions(subject)
    if not sessions:
        click.echo(f"No active sessions for {subject.sub}.")
        return
    click.echo(f"Active sessions for {subject.sub}:")
    for view in sessions:
        click.echo(
            f"  id={view.id:<6} created={view.created_at.isoformat()}  "
            f"expires={view.expires_at.isoformat()}"
        )
