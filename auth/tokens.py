"""
auth/tokens.py -- Password hashing, confirmation tokens, and session JWTs.

Security design decisions:
  JWT: python-jose with HS256. Every session is a pair of tokens:
       - access token, short-lived (10 minutes by default), signed with
         ACCESS_TOKEN_KEY, used to authorize individual requests.
       - refresh token, long-lived (7 days by default), signed with
         REFRESH_TOKEN_KEY, used only to obtain a new pair.
       Each token carries {"id", "typ", "jti", "iat", "exp"}. The typ claim and
       the separate keys mean an access token can never be replayed as a
       refresh token and vice versa. The random jti keeps two pairs minted in
       the same second distinct, which rotation depends on.

  Passwords: bcrypt directly (no passlib wrapper). The work factor is passed
       in by the caller (Settings.bcrypt_rounds). authenticate_user() checks
       unknown emails against a dummy hash of the same work factor, so response
       time does not reveal whether an email is registered. bcrypt only accepts
       72 bytes; longer input raises ValueError from hash_password().

  Confirmation tokens: secrets.token_hex(32) gives 256 bits of entropy, so
       uniqueness is never checked against existing tokens.

  SessionTokenIssuer takes its keys and lifetimes as constructor arguments.
       It never reads Settings or the environment itself.

Layer rule (see auth/__init__.py): no runtime imports from api/ or core/.
Settings is a type-only import for from_settings().
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.errors import TokenError
from auth.models import TokenPair

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore
    from core.config import Settings


_ALGORITHM = "HS256"
_DEFAULT_ROUNDS = 10

ACCESS = "access"
REFRESH = "refresh"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = _DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes (UTF-8) make bcrypt raise ValueError; the API
    layer rejects them with a 422 before they get here.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Fails closed: a malformed or missing hash is a non-match, never a crash.
    """
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Timing equalization dummy hashes, one per work factor. The dummy must cost
# exactly what a stored hash costs.
@lru_cache(maxsize=None)
def dummy_hash(rounds: int = _DEFAULT_ROUNDS) -> str:
    return hash_password("taskpro_timing_dummy", rounds)


def authenticate_user(
    store: UserStore, email: str, password: str, rounds: int = _DEFAULT_ROUNDS
) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against dummy_hash(rounds)
    - Wrong password: bcrypt runs against the real hash

    rounds must be the work factor the stored hashes were made with.
    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None or not user.hashed_password:
        verify_password(password, dummy_hash(rounds))
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# Confirmation tokens
# ---------------------------------------------------------------------------


def generate_confirmation_token() -> str:
    """Return 32 random bytes as 64 hex characters."""
    return secrets.token_hex(32)


# ---------------------------------------------------------------------------
# Session JWTs
# ---------------------------------------------------------------------------


class SessionTokenIssuer:
    """Mints and verifies access/refresh JWT pairs.

    Usage:
        issuer = SessionTokenIssuer.from_settings(get_settings())
        pair = issuer.mint(user.id)
        claims = issuer.decode_refresh(pair.refresh_token)
    """

    def __init__(
        self,
        access_key: str,
        refresh_key: str,
        access_ttl: int = 600,
        refresh_ttl: int = 7 * 24 * 3600,
        algorithm: str = _ALGORITHM,
    ) -> None:
        if not access_key or not refresh_key:
            raise ValueError("Both access and refresh signing keys are required.")
        if access_key == refresh_key:
            raise ValueError("Access and refresh signing keys must differ.")
        self._keys = {ACCESS: access_key, REFRESH: refresh_key}
        self._ttls = {ACCESS: access_ttl, REFRESH: refresh_ttl}
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionTokenIssuer:
        return cls(
            access_key=settings.access_token_key,
            refresh_key=settings.refresh_token_key,
            access_ttl=settings.access_token_expire_seconds,
            refresh_ttl=settings.refresh_token_expire_seconds,
        )

    def mint(self, user_id: int) -> TokenPair:
        """Return a fresh (access, refresh) pair carrying user_id."""
        now = datetime.now(timezone.utc)
        return TokenPair(
            access_token=self._encode(user_id, ACCESS, now),
            refresh_token=self._encode(user_id, REFRESH, now),
        )

    def decode_access(self, token: str) -> dict:
        return self._decode(token, ACCESS)

    def decode_refresh(self, token: str) -> dict:
        return self._decode(token, REFRESH)

    def _encode(self, user_id: int, typ: str, now: datetime) -> str:
        payload = {
            "id": user_id,
            "typ": typ,
            "jti": secrets.token_hex(16),
            "iat": now,
            "exp": now + timedelta(seconds=self._ttls[typ]),
        }
        return jwt.encode(payload, self._keys[typ], algorithm=self._algorithm)

    def _decode(self, token: str, typ: str) -> dict:
        """Verify signature, expiry and token type. Raises TokenError on any failure."""
        if not token:
            raise TokenError("Token missing")
        try:
            payload = jwt.decode(token, self._keys[typ], algorithms=[self._algorithm])
        except JWTError as exc:
            raise TokenError(str(exc)) from exc
        if payload.get("typ") != typ:
            raise TokenError(f"Expected {typ} token")
        if not isinstance(payload.get("id"), int):
            raise TokenError("Token payload missing user id")
        return payload
