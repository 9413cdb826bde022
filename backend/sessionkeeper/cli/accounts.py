"""Flask CLI commands for bootstrapping accounts."""

from __future__ import annotations

import click
from flask.cli import with_appcontext

from sessionkeeper.core.extensions import db
from sessionkeeper.models.enums import SubjectType
from sessionkeeper.repositories import AccountRepository
from sessionkeeper.services._shared.subject import SubjectRef

SUBJECT_TYPE = click.Choice([t.value for t in SubjectType], case_sensitive=False)


@click.group("accounts")
def accounts_cli() -> None:
    """Create and (de)activate accounts of any subject type."""


@accounts_cli.command("create")
@click.argument("subject_type", type=SUBJECT_TYPE)
@click.argument("email")
@click.password_option()
@with_appcontext
def create(subject_type: str, email: str, password: str) -> None:
    """Create a SUBJECT_TYPE account identified by EMAIL."""
    kind = SubjectType(subject_type.upper())
    repo = AccountRepository(session=db.session)
    if repo.get_by_email(kind, email) is not None:
        raise click.UsageError(f"A {kind.value} account with that email already exists.")
    try:
        account = repo.create(kind, email=email, password=password)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    db.session.commit()
    click.echo(f"Created {SubjectRef(type=kind, id=account.id).sub} <{account.email}>.")


@accounts_cli.command("set-active")
@click.argument("subject_type", type=SUBJECT_TYPE)
@click.argument("subject_id", type=int)
@click.option("--active/--inactive", default=True, show_default=True)
@with_appcontext
def set_active(subject_type: str, subject_id: int, active: bool) -> None:
    """Activate or deactivate SUBJECT_TYPE/SUBJECT_ID.

    Deactivated accounts keep their sessions on record, but none of their
    tokens validate any more.
    """
    subject = SubjectRef(type=SubjectType(subject_type.upper()), id=subject_id)
    if not AccountRepository(session=db.session).set_active(subject, active):
        raise click.UsageError(f"No account {subject.sub}.")
    db.session.commit()
    click.echo(f"{subject.sub} is now {'active' if active else 'inactive'}.")
