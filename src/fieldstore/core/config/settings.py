"""
Centralized settings for fieldstore.

``FieldStoreSettings`` is read from ``FIELDSTORE_*`` environment variables
and an optional ``.env`` file. The backend selector reads it exactly once
per process; changing the environment afterwards has no effect until
``reset_backend_selector()`` is called.

Tags:
    configuration, settings, pydantic, caching, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FieldStoreSettings(BaseSettings):
    """fieldstore configuration.

    All fields can be set via ``FIELDSTORE_*`` environment variables (e.g.
    ``FIELDSTORE_HOSTED_URL=postgresql://db.example.co:5432/postgres``) or
    through a ``.env`` file. Missing hosted settings are not an error: the
    embedded backend is used instead.
    """

    model_config = SettingsConfigDict(
        env_prefix="FIELDSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Backend selection ────────────────────────────────────────
    force_embedded: bool = Field(default=False, description="Use the embedded store even if hosted settings are valid")

    # ── Hosted (PostgreSQL) ──────────────────────────────────────
    hosted_url: str | None = Field(default=None, description="postgresql://host[:port]/database")
    hosted_credential: SecretStr | None = Field(default=None)
    hosted_pool_size: int = Field(default=5, ge=1)
    hosted_connect_timeout: int = Field(default=10, ge=1)

    # ── Embedded (SQLite) ────────────────────────────────────────
    embedded_path: str = Field(default="data/fieldstore.db")
    embedded_busy_timeout: float = Field(default=30.0, gt=0)

    # ── Sequences ────────────────────────────────────────────────
    sequence_table: str = Field(default="sequence_counters")
    sequence_max_attempts: int = Field(default=20, ge=1)
    sequence_backoff_seconds: float = Field(default=0.05, ge=0)
    project_number_prefix: str = Field(default="02")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto", description="json, console or auto")

    @field_validator("hosted_url", "hosted_credential", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def credential_value(self) -> str | None:
        if self.hosted_credential is None:
            return None
        return self.hosted_credential.get_secret_value()

    @property
    def json_logs(self) -> bool | None:
        """``log_format`` as the ``json_format`` argument of ``configure_logging``."""
        if self.log_format == "json":
            return True
        if self.log_format == "console":
            return False
        return None


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, FieldStoreSettings] = {}


def get_settings(*, env_file: str | None = ".env", _force_reload: bool = False) -> FieldStoreSettings:
    """Load, validate, and cache a :class:`FieldStoreSettings` instance."""
    cache_key = env_file or ""
    if not _force_reload and cache_key in _settings_cache:
        return _settings_cache[cache_key]

    settings = FieldStoreSettings(_env_file=env_file)  # type: ignore[call-arg]
    _settings_cache[cache_key] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "FieldStoreSettings",
    "get_settings",
    "clear_settings_cache",
]
