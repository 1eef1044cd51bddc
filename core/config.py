"""
core/config.py -- SmartBee settings, read from the environment and .env.

get_settings() is the only way in. It builds Settings on first call and
caches it, so the database URL, prefixes and rate limits are fixed for the
life of the process. Environment variable names are the upper-cased field
names (DATABASE_URL, TOKEN_PREFIX, RATE_LIMIT_ENABLED...).

Notes:
  The bcrypt work factor is not a setting. It is fixed at 12 in
  auth/passwords.py so every stored hash carries the same cost.

  DEBUG controls whether internal error detail reaches 500 responses. It must
  stay off outside local development.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/ or apiary/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("smartbee.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'smartbee.db'}"


class Settings(BaseSettings):
    """SmartBee settings. Every field has a default; a bare checkout runs on SQLite."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL
    # Ignored for SQLite, which uses SQLAlchemy's default pool for its URL form.
    db_pool_size: int = 10
    db_pool_timeout: int = 30

    # ------------------------------------------------------------------
    # Accounts and sessions
    # ------------------------------------------------------------------

    token_prefix: str = "smartbee"
    account_id_prefix: str = "USR"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = [
        "https://abeja-mu.vercel.app",
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("token_prefix", "account_id_prefix")
    @classmethod
    def validate_prefix(cls, value: str) -> str:
        """Reject prefixes that would break the underscore-delimited formats.

        Session tokens are "{prefix}_{account_id}_{timestamp}". An empty prefix
        or one containing "_" makes the namespace segment ambiguous.
        """
        value = value.strip()
        if not value or "_" in value:
            raise ValueError("prefix must be non-empty and must not contain '_'")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings, built on first call.

    Tests that change the environment after import must call
    get_settings.cache_clear() for the change to be seen.
    """
    settings = Settings()
    if settings.debug:
        logger.warning("DEBUG is enabled -- internal error detail will be returned to clients")
    return settings
