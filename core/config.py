"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for TaskPro happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  Explicit injection: the lifespan in api/main.py reads Settings once and
      passes the relevant values to SessionTokenIssuer, the notifier, and the
      avatar storage. Token-issuing code never reads configuration itself.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Dev mode generates missing signing keys
      with a warning, production mode refuses to start without them.

Security notes:
  [K1] ACCESS_TOKEN_KEY and REFRESH_TOKEN_KEY shorter than 32 chars are
       rejected. JWT HS256 signing relies on key entropy.

  [K2] The two keys must differ. A leaked access-signing key must not be
       usable to forge refresh tokens.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or notify/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("taskpro.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'taskpro_auth.db'}"

_MIN_KEY_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file, as long as DEBUG=true or both
    signing keys are supplied.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `access_token_key` reads from ACCESS_TOKEN_KEY.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    database_url: str = _DEFAULT_DB_URL
    cors_allow_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Session tokens
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    access_token_key: str = ""
    refresh_token_key: str = ""
    access_token_expire_seconds: int = Field(default=600, gt=0)  # 10 minutes
    refresh_token_expire_seconds: int = Field(default=7 * 24 * 3600, gt=0)  # 7 days

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    # bcrypt accepts log2 rounds in [4, 31]. Tests drop this to 4.
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # ------------------------------------------------------------------
    # Email
    # ------------------------------------------------------------------

    confirmation_base_url: str = "https://taskpro-be.onrender.com:5000/confirm"
    help_desk_email: str = "support@taskpro.local"

    # SMTP is optional -- an empty host means emails are logged, not sent.
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_from_email: str = ""
    smtp_use_tls: bool = True
    smtp_timeout_seconds: float = Field(default=10.0, gt=0)

    # ------------------------------------------------------------------
    # Avatars
    # ------------------------------------------------------------------

    avatar_dir: str = "avatars"
    avatar_url_prefix: str = "/avatars"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_signing_keys(self) -> "Settings":
        """Enforce the signing key policy [K1] [K2].

        Dev mode (DEBUG=true): auto-generate any missing key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if either
            key is missing.
        """
        for field in ("access_token_key", "refresh_token_key"):
            if getattr(self, field):
                continue
            env_name = field.upper()
            if not self.debug:
                raise ValueError(
                    f"{env_name} is required in production mode. "
                    f"Set {env_name} in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
            setattr(self, field, secrets.token_hex(32))
            logger.warning("Using auto-generated %s. Sessions will not persist across restarts.", env_name)

        if len(self.access_token_key) < _MIN_KEY_LENGTH or len(self.refresh_token_key) < _MIN_KEY_LENGTH:
            raise ValueError(f"Token signing keys must be at least {_MIN_KEY_LENGTH} characters.")
        if self.access_token_key == self.refresh_token_key:
            raise ValueError("ACCESS_TOKEN_KEY and REFRESH_TOKEN_KEY must be different.")
        return self

    @property
    def smtp_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_from_email)


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
