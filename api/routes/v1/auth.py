"""
api/routes/v1/auth.py -- Registration and session REST endpoints.

Routes:
  POST /api/v1/users/register  -- create account, email confirmation link; 201
  POST /api/v1/users/login     -- password login; returns access/refresh pair
  POST /api/v1/users/refresh   -- rotate the pair behind a current refresh token
  GET  /api/v1/users/current   -- current user + access token (requires auth)
  POST /api/v1/users/logout    -- clear stored tokens; 204 (requires auth)

Security:
  SessionAuthority.login() goes through authenticate_user(), which equalizes
  timing for unknown emails. Never inline a lookup + verify.
  Cache-Control: no-store on every response that carries tokens.
  Handlers that hash or verify passwords are plain `def` so FastAPI runs them
  in the thread pool instead of on the event loop.

Errors are raised as auth.errors.SessionError subclasses; api/main.py maps
them to the JSON error envelope.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from api.models import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenPairResponse,
    UserView,
)
from auth.dependencies import get_authority, get_current_user
from auth.models import User
from auth.session import SessionAuthority

# Auth policy:
# - POST /api/v1/users/register:  public
# - POST /api/v1/users/login:     public
# - POST /api/v1/users/refresh:   public -- the refresh token is the credential
# - GET  /api/v1/users/current:   requires auth (get_current_user)
# - POST /api/v1/users/logout:    requires auth (get_current_user)
router = APIRouter()


def _no_store(content: dict, status_code: int = 200) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=content)
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/users/register", response_model=RegisterResponse, status_code=201)
def register(
    body: RegisterRequest,
    authority: SessionAuthority = Depends(get_authority),
) -> RegisterResponse:
    """Create an account and send its confirmation email.

    409 if the email is taken. 500 if the email could not be sent -- the
    account exists regardless.
    """
    result = authority.register(body.email, body.password, name=body.name, theme=body.theme)
    return RegisterResponse(email=result.email, message=result.message)


@router.post("/users/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    authority: SessionAuthority = Depends(get_authority),
) -> JSONResponse:
    """Authenticate with email and password; return a fresh token pair.

    Returns the same 401 for an unknown email and a wrong password.
    """
    result = authority.login(body.email, body.password)
    return _no_store(
        LoginResponse(
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
            user=UserView.from_user(result.user),
        ).model_dump()
    )


@router.post("/users/refresh", response_model=TokenPairResponse)
def refresh(
    body: RefreshRequest,
    authority: SessionAuthority = Depends(get_authority),
) -> JSONResponse:
    """Exchange the current refresh token for a new pair. 403 on any mismatch."""
    pair = authority.refresh(body.refresh_token)
    return _no_store(TokenPairResponse.from_pair(pair).model_dump())


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/users/current", response_model=CurrentUserResponse)
def current(
    current_user: User = Depends(get_current_user),
    authority: SessionAuthority = Depends(get_authority),
) -> CurrentUserResponse:
    session = authority.get_current(current_user)
    return CurrentUserResponse(token=session.token, user=UserView.from_user(session.user))


@router.post("/users/logout", status_code=204)
def logout(
    current_user: User = Depends(get_current_user),
    authority: SessionAuthority = Depends(get_authority),
) -> Response:
    """Clear both stored tokens. The access token used here stops working too."""
    authority.logout(current_user.id)
    return Response(status_code=204)
