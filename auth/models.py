"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store and the session authority do the work.

Layer rule: no imports from api/, core/, or notify/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account and its current session record.

    access_token / refresh_token are both None when logged out and both set
    while a session is active. They are always written together.

    confirmation_token is issued at registration and kept until an email
    confirmation flow consumes it (not implemented yet).
    """

    email: str
    name: str = ""
    id: int | None = None
    hashed_password: str | None = None
    theme: str = "light"
    avatar_url: str = ""
    confirmation_token: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_logged_in(self) -> bool:
        return bool(self.access_token and self.refresh_token)


@dataclass(frozen=True)
class TokenPair:
    """Access + refresh JWTs minted together for one user."""

    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class AvatarUpload:
    filename: str
    data: bytes


@dataclass(frozen=True)
class RegistrationResult:
    email: str
    message: str


@dataclass(frozen=True)
class LoginResult:
    tokens: TokenPair
    user: User


@dataclass(frozen=True)
class CurrentSession:
    token: str | None
    user: User
