"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for SessionGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_access_secret -> JWT_ACCESS_SECRET).

  Explicit config struct: the token signing secrets and lifetimes are resolved
      ONCE into a frozen AuthConfig and handed to SessionManager at
      construction. Nothing in auth/ reads Settings for secrets at call time.

Fallback chain (first non-empty value wins):
  access secret   JWT_ACCESS_SECRET -> JWT_SECRET -> DEV_ACCESS_SECRET
  access ttl      JWT_ACCESS_EXPIRES_IN -> JWT_EXPIRES_IN -> DEFAULT_ACCESS_TTL
  refresh secret  JWT_REFRESH_SECRET -> DEV_REFRESH_SECRET
  refresh ttl     JWT_REFRESH_EXPIRES_IN -> DEFAULT_REFRESH_TTL

  The DEV_* secrets keep a fresh checkout operable. They are distinct from
  each other so access and refresh tokens never share a key by default.
  Production deployments must override both; a warning is logged otherwise.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("sessiongate.config")

# ---------------------------------------------------------------------------
# Named defaults for the fallback chain
# ---------------------------------------------------------------------------

DEV_ACCESS_SECRET = "change-this-access-secret"  # noqa: S105 -- documented dev default
DEV_REFRESH_SECRET = "change-this-refresh-secret"  # noqa: S105 -- documented dev default
DEFAULT_ACCESS_TTL = "15m"
DEFAULT_REFRESH_TTL = "7d"

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'sessiongate_auth.db'}"

# ---------------------------------------------------------------------------
# Duration parsing
# ---------------------------------------------------------------------------

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$")

_UNIT_SECONDS: dict[str, int] = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
}


def parse_duration(value: str) -> timedelta:
    """Parse a token lifetime such as "15m", "7d" or "3600" into a timedelta.

    A bare integer is a number of seconds. Supported units: s, m, h, d, w.
    Raises ValueError for anything else, including zero-length durations --
    a token that expires the moment it is issued is always a config mistake.
    """
    match = _DURATION_RE.match(str(value))
    if match is None:
        raise ValueError(f"Invalid duration {value!r}. Expected e.g. '900', '15m', '12h', '7d'.")
    amount, unit = match.groups()
    seconds = int(amount) * _UNIT_SECONDS[unit]
    if seconds <= 0:
        raise ValueError(f"Duration must be positive, got {value!r}.")
    return timedelta(seconds=seconds)


def _first_set(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value:
            return value
    return None


# ---------------------------------------------------------------------------
# Resolved auth configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuthConfig:
    """Signing secrets and lifetimes for the two token kinds.

    Passed explicitly into SessionManager and the access-token middleware.
    Frozen so a running service cannot have its keys swapped underneath it.
    """

    access_secret: str
    access_ttl: timedelta
    refresh_secret: str
    refresh_ttl: timedelta


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Token signing
    # ------------------------------------------------------------------

    jwt_access_secret: Optional[str] = None
    jwt_secret: Optional[str] = None
    jwt_refresh_secret: Optional[str] = None

    jwt_access_expires_in: Optional[str] = None
    jwt_expires_in: Optional[str] = None
    jwt_refresh_expires_in: Optional[str] = None

    # ------------------------------------------------------------------
    # Password / refresh-token hashing
    # ------------------------------------------------------------------

    # bcrypt cost factor. 12 is the library default; tests drop to 4.
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # HTTP surface
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("jwt_access_expires_in", "jwt_expires_in", "jwt_refresh_expires_in")
    @classmethod
    def validate_duration(cls, value: Optional[str]) -> Optional[str]:
        """Reject malformed lifetimes at startup rather than at first login."""
        if value:
            parse_duration(value)
        return value

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, value: int) -> int:
        # bcrypt.gensalt() accepts 4..31
        if not 4 <= value <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return value

    def auth_config(self) -> AuthConfig:
        """Resolve the fallback chain into an AuthConfig.

        Empty strings count as unset, so `JWT_ACCESS_SECRET=` in a .env file
        falls through to the next entry instead of signing with an empty key.
        """
        access_secret = _first_set(self.jwt_access_secret, self.jwt_secret)
        refresh_secret = _first_set(self.jwt_refresh_secret)
        if access_secret is None:
            logger.warning("JWT_ACCESS_SECRET / JWT_SECRET not set -- using development access secret.")
            access_secret = DEV_ACCESS_SECRET
        if refresh_secret is None:
            logger.warning("JWT_REFRESH_SECRET not set -- using development refresh secret.")
            refresh_secret = DEV_REFRESH_SECRET
        if access_secret == refresh_secret:
            logger.warning("Access and refresh tokens share a signing secret; token type claims still separate them.")

        access_ttl = _first_set(self.jwt_access_expires_in, self.jwt_expires_in) or DEFAULT_ACCESS_TTL
        refresh_ttl = _first_set(self.jwt_refresh_expires_in) or DEFAULT_REFRESH_TTL

        return AuthConfig(
            access_secret=access_secret,
            access_ttl=parse_duration(access_ttl),
            refresh_secret=refresh_secret,
            refresh_ttl=parse_duration(refresh_ttl),
        )


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
