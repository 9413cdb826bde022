"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from sessionkeeper.core.errors import NotFound, Unauthorized
from sessionkeeper.models.enums import SubjectType
from sessionkeeper.services.auth.service import AuthService
from sessionkeeper.services.sessions import AuthenticatedSubject, get_session_services

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "bearer "


def bearer_token() -> str:
    """Extract the token from ``Authorization: Bearer <token>``.

    :raises Unauthorized: When the header is missing or malformed.
    """
    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        raise Unauthorized()
    token = header[len(BEARER_PREFIX) :].strip()
    if not token:
        raise Unauthorized()
    return token


def parse_subject_type(raw: str) -> SubjectType:
    """Map a URL segment (``user``, ``admin``...) to a subject type.

    :raises NotFound: For segments naming no subject type.
    """
    try:
        return SubjectType(raw.upper())
    except ValueError:
        raise NotFound(f"Unknown subject type '{raw}'") from None


def require_subject(*subject_types: SubjectType) -> Callable[[F], F]:
    """Authenticate the request with an access token of one of ``subject_types``.

    With no arguments every subject type is accepted. The validated identity is
    stored on ``g.auth``.
    """
    allowed = tuple(subject_types) or tuple(SubjectType)

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            token = bearer_token()
            g.auth = get_session_services().validator.validate_access(token, allowed)
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def current_auth() -> AuthenticatedSubject:
    """Return the identity set by :func:`require_subject`."""
    return cast(AuthenticatedSubject, g.auth)


def auth_service() -> AuthService:
    """Build the auth use-case service bound to the app's lifecycle services."""
    return AuthService(sessions=get_session_services())


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
