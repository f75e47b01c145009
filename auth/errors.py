"""
auth/errors.py -- Typed failures raised by the session authority.

Every error carries the HTTP-like status code, a machine-readable code, and a
human-readable message. The transport layer maps them to responses in one
place (api/main.py); nothing inside auth/ knows about HTTP responses.

Layer rule: no imports from api/, core/, or notify/.
"""

from __future__ import annotations


class SessionError(Exception):
    """Base class for all caller-visible authentication/session failures."""

    status_code: int = 500
    code: str = "server_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Conflict(SessionError):
    """Email already in use (registration or profile email change)."""

    status_code = 409
    code = "conflict"
    default_message = "Email is already in use"


class Unauthorized(SessionError):
    """Bad credentials or missing/invalid access token.

    The same message is used for unknown email and wrong password.
    """

    status_code = 401
    code = "unauthorized"
    default_message = "Email or password is wrong"


class Forbidden(SessionError):
    """Invalid, expired, or rotated-out refresh token."""

    status_code = 403
    code = "forbidden"
    default_message = "Token invalid"


class ServerError(SessionError):
    """A downstream collaborator (email, storage) failed."""


class TokenError(Exception):
    """A JWT failed signature, expiry, or type verification.

    Internal to auth/: SessionAuthority turns it into Forbidden, the access
    token dependency turns it into Unauthorized.
    """
