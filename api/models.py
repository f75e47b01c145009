"""
API request and response models for TaskPro REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import TokenPair, User

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: the address must only look deliverable. Case is
# preserved because emails are matched exactly as stored.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bcrypt rejects inputs longer than 72 bytes. The character cap is a cheap
# first check; password_fits_bcrypt() enforces the byte limit.
PASSWORD_MAX_LENGTH = 72
PASSWORD_MAX_BYTES = 72


def password_fits_bcrypt(password: str) -> bool:
    return len(password.encode("utf-8")) <= PASSWORD_MAX_BYTES


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _check_password(value: str) -> str:
    if not password_fits_bcrypt(value):
        raise ValueError(f"password must be at most {PASSWORD_MAX_BYTES} bytes in UTF-8")
    return value


# ---------------------------------------------------------------------------
# Request models
#
# Passwords are never stripped: the exact string is hashed, on every route.
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/users/register."""

    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)
    name: str = Field(default="", max_length=255)
    theme: str = Field(default="light", min_length=1, max_length=30)

    @field_validator("email", "name", "theme", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)

    @field_validator("password")
    @classmethod
    def password_byte_limit(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return _strip(v)

    @field_validator("password")
    @classmethod
    def password_byte_limit(cls, v: str) -> str:
        return _check_password(v)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class ThemeUpdate(BaseModel):
    """Request body for PATCH /api/v1/users/theme."""

    model_config = ConfigDict(str_strip_whitespace=True)

    theme: str = Field(min_length=1, max_length=30)


class HelpRequest(BaseModel):
    """Request body for POST /api/v1/users/help."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    comment: str = Field(min_length=1, max_length=2000)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserView(BaseModel):
    """Public projection of a user. Never includes the password hash,
    tokens, confirmation token, or timestamps."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    theme: str
    avatar_url: str

    @classmethod
    def from_user(cls, user: User) -> "UserView":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            theme=user.theme,
            avatar_url=user.avatar_url,
        )


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    message: str


class TokenPairResponse(BaseModel):
    """Response for POST /api/v1/users/refresh."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str

    @classmethod
    def from_pair(cls, pair: TokenPair) -> "TokenPairResponse":
        return cls(access_token=pair.access_token, refresh_token=pair.refresh_token)


class LoginResponse(BaseModel):
    """Response for POST /api/v1/users/login."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    user: UserView


class CurrentUserResponse(BaseModel):
    """Response for GET /api/v1/users/current."""

    model_config = ConfigDict(frozen=True)

    token: Optional[str]
    user: UserView


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
