"""Administrative session controls."""

from __future__ import annotations

from flask import Blueprint

from sessionkeeper.api.deps import json_response, parse_subject_type, require_subject, timing
from sessionkeeper.models.enums import SubjectType
from sessionkeeper.schemas import RevokedCountSchema
from sessionkeeper.services._shared.subject import SubjectRef
from sessionkeeper.services.sessions import get_session_services

bp = Blueprint("admin", __name__)

revoked_schema = RevokedCountSchema()


@bp.post("/subjects/<string:subject_type>/<int:subject_id>/logout-all")
@require_subject(SubjectType.ADMIN)
@timing
def force_logout(subject_type: str, subject_id: int):
    """Close every session of any subject, without needing its tokens."""

    subject = SubjectRef(type=parse_subject_type(subject_type), id=subject_id)
    revoked = get_session_services().revocation.logout_all(subject)
    return json_response({"data": revoked_schema.dump({"revoked": revoked})})
