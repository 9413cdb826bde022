"""Authentication and session-management endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from sessionkeeper.api.deps import (
    auth_service,
    current_auth,
    json_response,
    parse_subject_type,
    require_subject,
    timing,
)
from sessionkeeper.schemas import (
    AccessTokenSchema,
    LoginSchema,
    RefreshSchema,
    RevokedCountSchema,
    SessionSchema,
    TokenPairSchema,
    WhoAmISchema,
)
from sessionkeeper.services.auth.dto import LoginIn, RefreshIn

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
refresh_schema = RefreshSchema()
token_pair_schema = TokenPairSchema()
access_token_schema = AccessTokenSchema()
whoami_schema = WhoAmISchema()
sessions_schema = SessionSchema(many=True)
revoked_schema = RevokedCountSchema()


@bp.post("/<string:subject_type>/login")
@timing
def login(subject_type: str):
    """Authenticate credentials and start a new session."""

    kind = parse_subject_type(subject_type)
    data = login_schema.load(request.get_json(silent=True) or {})
    pair = auth_service().login(
        LoginIn(subject_type=kind, email=data["email"], password=data["password"])
    )
    body = {"data": token_pair_schema.dump(pair)}
    return json_response(body, status=201)


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new access token."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    out = auth_service().refresh(RefreshIn(refresh_token=data["refresh_token"]))
    return json_response({"data": access_token_schema.dump(out)})


@bp.post("/logout")
@require_subject()
@timing
def logout():
    """Close the current session."""

    auth_service().logout(current_auth())
    return "", 204


@bp.post("/logout-all")
@require_subject()
@timing
def logout_all():
    """Close every session of the caller."""

    revoked = auth_service().logout_everywhere(current_auth())
    return json_response({"data": revoked_schema.dump({"revoked": revoked})})


@bp.get("/whoami")
@require_subject()
@timing
def whoami():
    """Return the identity behind the access token."""

    out = auth_service().whoami(current_auth())
    return json_response({"data": whoami_schema.dump(out)})


@bp.get("/sessions")
@require_subject()
@timing
def list_sessions():
    """List the caller's active sessions, oldest first."""

    sessions = auth_service().list_sessions(current_auth())
    return json_response({"data": sessions_schema.dump(sessions)})


@bp.delete("/sessions/<int:session_id>")
@require_subject()
@timing
def revoke_session(session_id: int):
    """Close one of the caller's sessions."""

    auth_service().revoke_session(current_auth(), session_id)
    return "", 204
