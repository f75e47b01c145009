"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Access tokens arrive as `Authorization: Bearer <token>`. A token is accepted
only if:
  1. its signature, expiry and typ verify against the access-signing key, and
  2. it is the access token currently stored on the user record.

Check 2 is what makes logout and refresh effective immediately: a rotated-out
or logged-out access token no longer matches the stored value.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises Unauthorized if unauthenticated.

Layer rule: no imports from api/ or notify/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import TokenError, Unauthorized
from auth.models import User
from auth.session import SessionAuthority


def get_authority(request: Request) -> SessionAuthority:
    return request.app.state.authority


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def try_get_current_user(request: Request) -> User | None:
    """Authenticate the request by its Bearer access token. Never raises."""
    token = _bearer_token(request)
    if not token:
        return None
    authority = get_authority(request)
    try:
        claims = authority.issuer.decode_access(token)
    except TokenError:
        return None
    user = authority.store.get_by_id(claims["id"])
    if user is None or user.access_token != token:
        return None
    return user


def get_current_user(request: Request) -> User:
    """Require authentication. Raises Unauthorized (401) if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise Unauthorized("Not authorized")
    return user
