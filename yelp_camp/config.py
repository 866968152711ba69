"""
Application settings for Yelp Camp.

Settings are read from the process environment by pydantic-settings. A local
``.env`` file is honoured everywhere except when ``APP_ENV=production``
(``NODE_ENV`` is read when ``APP_ENV`` is unset), where
only real environment variables count and the insecure development fallbacks
for the secret and the database URL are refused.
"""

from __future__ import annotations

import os
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import AliasChoices, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Package directory (holds templates/ and public/)
PACKAGE_ROOT = Path(__file__).parent

DEFAULT_DB_URL = "sqlite:///yelp_camp.db"
DEV_SECRET = "thisshouldbeabettersecret!"
ENV_FILE = ".env"

# Pipeline stage names, in execution order
PIPELINE_STAGES: tuple[str, ...] = (
    "body",
    "method_override",
    "static",
    "sanitize",
    "session",
    "auth",
    "flash",
)


class ConfigurationError(Exception):
    """Raised when the application configuration is missing or invalid."""


class Settings(BaseSettings):
    """Runtime configuration.

    Field names map to upper-case environment variables, so ``db_url`` is read
    from ``DB_URL`` and ``secret`` from ``SECRET``.
    """

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    app_name: str = "Yelp Camp"
    app_version: str = "0.1.0"
    # NODE_ENV is accepted as a fallback name; APP_ENV wins when both are set
    app_env: Literal["development", "test", "production"] = Field(
        default="development",
        validation_alias=AliasChoices("app_env", "node_env"),
    )
    debug: bool = False
    testing: bool = False
    log_level: str = "INFO"

    db_url: Optional[str] = None
    secret: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)

    # Session cookie and store
    session_cookie_name: str = "campers_yelp_session"
    session_lifetime_days: int = Field(default=7, ge=1)
    session_touch_after: int = Field(
        default=24 * 60 * 60,
        ge=0,
        description="Seconds an unmodified session waits before it is rewritten",
    )
    session_rolling: bool = False
    session_cookie_secure: bool = False
    session_save_uninitialized: bool = False

    # Comma-separated pipeline stage names to disable
    pipeline_skip: str = ""
    public_dir: Optional[str] = None

    # Reverse proxy support
    enable_proxy_fix: bool = False
    proxy_fix_x_for: int = Field(default=1, ge=0)
    proxy_fix_x_proto: int = Field(default=1, ge=0)
    proxy_fix_x_host: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _apply_environment_defaults(self) -> "Settings":
        if self.app_env == "production":
            missing = [
                name
                for name, value in (("SECRET", self.secret), ("DB_URL", self.db_url))
                if not value
            ]
            if missing:
                raise ValueError(
                    f"{', '.join(missing)} must be set when APP_ENV=production"
                )
        if self.secret is None:
            self.secret = DEV_SECRET
        if self.db_url is None:
            self.db_url = DEFAULT_DB_URL

        unknown = self.skipped_stages - set(PIPELINE_STAGES)
        if unknown:
            raise ValueError(f"Unknown pipeline stage(s): {', '.join(sorted(unknown))}")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def session_lifetime(self) -> timedelta:
        return timedelta(days=self.session_lifetime_days)

    @property
    def skipped_stages(self) -> frozenset[str]:
        """Parse PIPELINE_SKIP into a set of stage names.

        Example: "static, flash" -> {"static", "flash"}
        """
        return frozenset(
            name.strip() for name in self.pipeline_skip.split(",") if name.strip()
        )

    @property
    def public_path(self) -> Path:
        if self.public_dir:
            return Path(self.public_dir).resolve()
        return PACKAGE_ROOT / "public"


def _env_file(app_env: Optional[str] = None) -> Optional[str]:
    """Return the .env path to load, or None in production."""
    if app_env is None:
        app_env = os.environ.get("APP_ENV") or os.environ.get("NODE_ENV", "")
    if app_env.lower() == "production":
        return None
    return ENV_FILE


def _build_settings(**overrides: Any) -> Settings:
    try:
        return Settings(  # type: ignore[call-arg]
            _env_file=_env_file(overrides.get("app_env")), **overrides
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings instance.

    Returns:
        Settings loaded from the environment (and ``.env`` outside production).

    Raises:
        ConfigurationError: If validation fails, including a production
            environment without ``SECRET`` or ``DB_URL``.
    """
    return _build_settings()


def get_settings_override(config_override: dict[str, Any]) -> Settings:
    """Build a fresh, uncached settings instance with explicit values.

    Args:
        config_override: Field names mapped to the values that replace
            whatever the environment provides.

    Returns:
        New Settings instance.

    Example:
        >>> settings = get_settings_override({"testing": True, "db_url": "sqlite://"})
    """
    return _build_settings(**config_override)


def clear_settings_cache() -> None:
    """Forget the cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
