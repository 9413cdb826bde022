"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class LoginSchema(Schema):
    """Input payload for authenticating an account."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    """Input payload for exchanging a refresh token."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1, max=1024))


class TokenPairSchema(Schema):
    """Response payload of a successful login."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")


class AccessTokenSchema(Schema):
    """Response payload of a successful refresh."""

    access_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")


class WhoAmISchema(Schema):
    """Response payload exposing the identity behind an access token."""

    subject_type = fields.Function(lambda obj: obj.subject_type.value)
    subject_id = fields.Integer(required=True)
    email = fields.Email(required=True)
    session_id = fields.Integer(attribute="ref_id")


class SessionSchema(Schema):
    """One active session, as listed for device management."""

    id = fields.Integer(required=True)
    created_at = fields.DateTime(required=True)
    expires_at = fields.DateTime(required=True)
    current = fields.Boolean(required=True)


class RevokedCountSchema(Schema):
    """Number of sessions closed by a bulk logout."""

    revoked = fields.Integer(required=True)
