"""Expose the application factory at package level.

Provide convenient access to :func:`sessionkeeper.factory.create_app` so callers
can ``from sessionkeeper import create_app`` without traversing the package.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
