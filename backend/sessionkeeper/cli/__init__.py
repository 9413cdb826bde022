"""Command-line interface registration for the Flask application."""

from __future__ import annotations

from flask import Flask

from .accounts import accounts_cli
from .sessions import sessions_cli


def init_app(app: Flask) -> None:
    """Register application-specific CLI command groups.

    Parameters
    ----------
    app:
        Flask application instance whose CLI registry will receive the
        ``sessions`` and ``accounts`` command groups.
    """
    app.cli.add_command(sessions_cli)
    app.cli.add_command(accounts_cli)
