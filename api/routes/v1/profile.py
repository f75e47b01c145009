"""
api/routes/v1/profile.py -- Profile, theme and help-request endpoints.

Routes:
  PATCH /api/v1/users/theme    -- change UI theme (requires auth)
  PUT   /api/v1/users/profile  -- multipart: name, email, password, avatar (requires auth)
  POST  /api/v1/users/help     -- email the help desk and acknowledge the sender (public)

None of these change session state. A profile update re-hashes the password
only when a non-empty password field is sent.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from api.models import (
    EMAIL_PATTERN,
    PASSWORD_MAX_BYTES,
    PASSWORD_MAX_LENGTH,
    HelpRequest,
    MessageResponse,
    ThemeUpdate,
    UserView,
    password_fits_bcrypt,
)
from auth.dependencies import get_authority, get_current_user
from auth.models import AvatarUpload, User
from auth.session import SessionAuthority

router = APIRouter()

_MAX_AVATAR_BYTES = 5 * 1024 * 1024


@router.patch("/users/theme", response_model=UserView)
def update_theme(
    body: ThemeUpdate,
    current_user: User = Depends(get_current_user),
    authority: SessionAuthority = Depends(get_authority),
) -> UserView:
    return UserView.from_user(authority.update_theme(current_user.id, body.theme))


@router.put("/users/profile", response_model=UserView)
def update_profile(
    name: Optional[str] = Form(default=None, max_length=255),
    email: Optional[str] = Form(default=None, pattern=EMAIL_PATTERN, max_length=255),
    password: Optional[str] = Form(default=None, max_length=PASSWORD_MAX_LENGTH),
    avatar: Optional[UploadFile] = File(default=None),
    current_user: User = Depends(get_current_user),
    authority: SessionAuthority = Depends(get_authority),
) -> UserView:
    """Update any subset of the profile fields, optionally with a new avatar image.

    413 if the avatar exceeds 5 MB. 409 if the new email belongs to another account.
    The password is hashed exactly as sent, surrounding whitespace included.
    """
    if password and not password_fits_bcrypt(password):
        raise HTTPException(
            status_code=422,
            detail={
                "code": "validation_error",
                "message": f"Password must be at most {PASSWORD_MAX_BYTES} bytes in UTF-8.",
            },
        )

    upload: AvatarUpload | None = None
    if avatar is not None and avatar.filename:
        data = avatar.file.read(_MAX_AVATAR_BYTES + 1)
        if len(data) > _MAX_AVATAR_BYTES:
            raise HTTPException(
                status_code=413,
                detail={"code": "payload_too_large", "message": "Avatar must be 5 MB or smaller."},
            )
        upload = AvatarUpload(filename=avatar.filename, data=data)

    updated = authority.update_profile(
        current_user.id,
        name=name,
        email=email,
        password=password,
        avatar=upload,
    )
    return UserView.from_user(updated)


@router.post("/users/help", response_model=MessageResponse)
def request_help(
    body: HelpRequest,
    authority: SessionAuthority = Depends(get_authority),
) -> MessageResponse:
    """Send the help request to support and a confirmation to the requester."""
    return MessageResponse(message=authority.request_help(body.email, body.comment))
