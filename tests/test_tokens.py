"""
tests/test_tokens.py -- Unit tests for auth/tokens.py.

Covers:
  - bcrypt hash/verify round trip, wrong password, malformed stored hash
  - timing dummy hash follows the configured work factor
  - confirmation token shape and randomness
  - SessionTokenIssuer: distinct keys per token class, typ enforcement,
    expiry, tampering, and uniqueness of pairs minted back to back
"""

from __future__ import annotations

import string

import pytest
from jose import JWTError, jwt

from auth.errors import TokenError
from auth.models import User
from auth.tokens import (
    SessionTokenIssuer,
    authenticate_user,
    dummy_hash,
    generate_confirmation_token,
    hash_password,
    verify_password,
)

ACCESS_KEY = "access-" + "k" * 32
REFRESH_KEY = "refresh-" + "q" * 32


@pytest.fixture
def issuer() -> SessionTokenIssuer:
    return SessionTokenIssuer(ACCESS_KEY, REFRESH_KEY, access_ttl=600, refresh_ttl=7 * 24 * 3600)


class TestPasswordHashing:
    def test_round_trip(self) -> None:
        hashed = hash_password("pw123", rounds=4)
        assert hashed != "pw123"
        assert verify_password("pw123", hashed)

    def test_wrong_password(self) -> None:
        hashed = hash_password("pw123", rounds=4)
        assert not verify_password("pw1234", hashed)
        assert not verify_password("", hashed)

    def test_same_password_gets_different_salt(self) -> None:
        assert hash_password("pw123", rounds=4) != hash_password("pw123", rounds=4)

    def test_work_factor_is_encoded_in_hash(self) -> None:
        assert hash_password("pw123", rounds=5).startswith("$2b$05$")

    @pytest.mark.parametrize("stored", ["not-a-bcrypt-hash", "$2b$04$short", "", None])
    def test_malformed_hash_fails_closed(self, stored) -> None:
        assert verify_password("pw123", stored) is False


class TestAuthenticateUser:
    def test_success_and_failures(self, store) -> None:
        store.create_user(User(email="bob@example.com", hashed_password=hash_password("secret", rounds=4)))
        assert authenticate_user(store, "bob@example.com", "secret").email == "bob@example.com"
        assert authenticate_user(store, "bob@example.com", "wrong") is None
        assert authenticate_user(store, "nobody@example.com", "secret") is None

    def test_email_match_is_case_sensitive(self, store) -> None:
        store.create_user(User(email="bob@example.com", hashed_password=hash_password("secret", rounds=4)))
        assert authenticate_user(store, "Bob@example.com", "secret") is None

    @pytest.mark.parametrize("rounds", [4, 6])
    def test_dummy_hash_uses_configured_work_factor(self, rounds) -> None:
        assert dummy_hash(rounds).startswith(f"$2b${rounds:02d}$")
        assert dummy_hash(rounds) == dummy_hash(rounds)

    def test_unknown_email_costs_the_same_as_wrong_password(self, store, monkeypatch) -> None:
        store.create_user(User(email="bob@example.com", hashed_password=hash_password("secret", rounds=5)))
        checked = []
        real_verify = verify_password

        def recording_verify(plain, hashed):
            checked.append(hashed)
            return real_verify(plain, hashed)

        monkeypatch.setattr("auth.tokens.verify_password", recording_verify)
        assert authenticate_user(store, "bob@example.com", "wrong", rounds=5) is None
        assert authenticate_user(store, "nobody@example.com", "wrong", rounds=5) is None
        assert [h[:7] for h in checked] == ["$2b$05$", "$2b$05$"]


class TestConfirmationToken:
    def test_is_64_hex_chars(self) -> None:
        token = generate_confirmation_token()
        assert len(token) == 64
        assert set(token) <= set(string.hexdigits.lower())

    def test_tokens_differ(self) -> None:
        assert generate_confirmation_token() != generate_confirmation_token()


class TestSessionTokenIssuer:
    def test_mint_carries_user_id(self, issuer) -> None:
        pair = issuer.mint(42)
        assert issuer.decode_access(pair.access_token)["id"] == 42
        assert issuer.decode_refresh(pair.refresh_token)["id"] == 42

    def test_access_and_refresh_use_different_keys(self, issuer) -> None:
        pair = issuer.mint(1)
        assert pair.access_token != pair.refresh_token
        # Each token verifies only under its own key.
        jwt.decode(pair.access_token, ACCESS_KEY, algorithms=["HS256"])
        jwt.decode(pair.refresh_token, REFRESH_KEY, algorithms=["HS256"])
        with pytest.raises(JWTError):
            jwt.decode(pair.access_token, REFRESH_KEY, algorithms=["HS256"])

    def test_access_token_rejected_as_refresh(self, issuer) -> None:
        pair = issuer.mint(1)
        with pytest.raises(TokenError):
            issuer.decode_refresh(pair.access_token)

    def test_refresh_token_rejected_as_access(self, issuer) -> None:
        pair = issuer.mint(1)
        with pytest.raises(TokenError):
            issuer.decode_access(pair.refresh_token)

    def test_typ_claim_is_checked_even_with_right_key(self, issuer) -> None:
        forged = jwt.encode({"id": 1, "typ": "access"}, REFRESH_KEY, algorithm="HS256")
        with pytest.raises(TokenError):
            issuer.decode_refresh(forged)

    def test_expiry_windows(self, issuer) -> None:
        pair = issuer.mint(7)
        access = issuer.decode_access(pair.access_token)
        refresh = issuer.decode_refresh(pair.refresh_token)
        assert access["exp"] - access["iat"] == 600
        assert refresh["exp"] - refresh["iat"] == 7 * 24 * 3600

    def test_expired_token_rejected(self) -> None:
        expired = SessionTokenIssuer(ACCESS_KEY, REFRESH_KEY, access_ttl=-10, refresh_ttl=-10)
        pair = expired.mint(1)
        with pytest.raises(TokenError):
            expired.decode_access(pair.access_token)
        with pytest.raises(TokenError):
            expired.decode_refresh(pair.refresh_token)

    def test_tampered_token_rejected(self, issuer) -> None:
        token = issuer.mint(1).refresh_token
        tampered = token[:-2] + ("A" if token[-2] != "A" else "B") + token[-1]
        with pytest.raises(TokenError):
            issuer.decode_refresh(tampered)

    @pytest.mark.parametrize("garbage", ["", "not.a.jwt", "abc"])
    def test_garbage_rejected(self, issuer, garbage) -> None:
        with pytest.raises(TokenError):
            issuer.decode_refresh(garbage)

    def test_back_to_back_pairs_differ(self, issuer) -> None:
        first, second = issuer.mint(1), issuer.mint(1)
        assert first.access_token != second.access_token
        assert first.refresh_token != second.refresh_token

    def test_identical_keys_rejected(self) -> None:
        with pytest.raises(ValueError):
            SessionTokenIssuer(ACCESS_KEY, ACCESS_KEY)

    def test_missing_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            SessionTokenIssuer("", REFRESH_KEY)
