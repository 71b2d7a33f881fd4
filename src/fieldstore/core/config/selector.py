"""
Backend selection.

Decides once per process which backend serves data access, in this order:

1. ``force_embedded`` is set          -> Embedded
2. hosted URL and credential are valid -> Hosted
3. otherwise                           -> Embedded

Hosted settings that are present but invalid are reported once as a
``hosted_config_invalid`` warning and the embedded backend is used. The
credential itself is not verified here; a wrong one surfaces as
``BackendUnavailable`` on first use.

Usage:
    selector = get_backend_selector()
    selector.adapter.get_many("projects")
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from fieldstore.core.adapters import BackendAdapter, BackendConfig, BackendKind, create_adapter
from fieldstore.core.logging import get_logger

from .settings import FieldStoreSettings, get_settings

logger = get_logger(__name__)

HOSTED_SCHEMES = ("postgresql", "postgres")


@dataclass(frozen=True)
class HostedConfigCheck:
    """Result of validating hosted settings."""

    is_valid: bool
    problems: tuple[str, ...] = field(default_factory=tuple)
    is_present: bool = False


def validate_hosted_configuration(url: str | None, credential: str | None) -> HostedConfigCheck:
    """
    Check hosted settings without contacting the server.

    ``is_present`` is True when either value was supplied, so that a
    half-configured deployment can be told apart from an embedded-only one.
    """
    problems: list[str] = []
    if not url:
        problems.append("hosted URL is not set")
    else:
        parts = urlsplit(url)
        if parts.scheme not in HOSTED_SCHEMES:
            problems.append(f"hosted URL must start with postgresql:// or postgres://, got {parts.scheme!r}")
        if not parts.hostname:
            problems.append("hosted URL has no host")
        try:
            parts.port
        except ValueError:
            problems.append("hosted URL port is not a number between 0 and 65535")
    if credential is None or not credential.strip():
        problems.append("hosted credential is not set")

    return HostedConfigCheck(
        is_valid=not problems,
        problems=tuple(problems),
        is_present=bool(url) or bool(credential),
    )


def select_backend(settings: FieldStoreSettings) -> BackendConfig:
    """Turn settings into the frozen backend configuration."""
    embedded = BackendConfig(
        kind=BackendKind.EMBEDDED,
        embedded_path=settings.embedded_path,
        busy_timeout=settings.embedded_busy_timeout,
    )

    if settings.force_embedded:
        logger.info("backend_selected", reason="force_embedded", **embedded.describe())
        return embedded

    check = validate_hosted_configuration(settings.hosted_url, settings.credential_value)
    if check.is_valid:
        hosted = BackendConfig(
            kind=BackendKind.HOSTED,
            hosted_url=settings.hosted_url,
            hosted_credential=settings.credential_value,
            pool_size=settings.hosted_pool_size,
            connect_timeout=settings.hosted_connect_timeout,
        )
        logger.info("backend_selected", reason="hosted_configured", **hosted.describe())
        return hosted

    if check.is_present:
        logger.warning("hosted_config_invalid", problems=list(check.problems), fallback="embedded")
        reason = "hosted_config_invalid"
    else:
        reason = "hosted_not_configured"
    logger.info("backend_selected", reason=reason, **embedded.describe())
    return embedded


class BackendSelector:
    """The process-wide backend decision: configuration plus its adapter."""

    def __init__(self, config: BackendConfig, adapter: BackendAdapter | None = None):
        self._config = config
        self._adapter = adapter or create_adapter(config)

    @classmethod
    def from_settings(cls, settings: FieldStoreSettings) -> BackendSelector:
        return cls(select_backend(settings))

    @property
    def config(self) -> BackendConfig:
        return self._config

    @property
    def adapter(self) -> BackendAdapter:
        return self._adapter

    @property
    def kind(self) -> BackendKind:
        return self._config.kind

    @property
    def is_hosted(self) -> bool:
        return self._config.kind is BackendKind.HOSTED

    @property
    def is_embedded(self) -> bool:
        return self._config.kind is BackendKind.EMBEDDED

    def __repr__(self) -> str:
        return f"BackendSelector({self._config!r})"


_selector: BackendSelector | None = None
_selector_lock = threading.Lock()


def get_backend_selector(settings: FieldStoreSettings | None = None) -> BackendSelector:
    """
    Return the process-wide selector, creating it on first call.

    ``settings`` is only consulted on the first call; later calls return the
    same selector regardless of arguments or environment changes.
    """
    global _selector
    if _selector is None:
        with _selector_lock:
            if _selector is None:
                _selector = BackendSelector.from_settings(settings or get_settings())
    return _selector


def reset_backend_selector() -> None:
    """Forget the process-wide selector (primarily for testing)."""
    global _selector
    with _selector_lock:
        if _selector is not None:
            _selector.adapter.disconnect()
        _selector = None


__all__ = [
    "HOSTED_SCHEMES",
    "HostedConfigCheck",
    "validate_hosted_configuration",
    "select_backend",
    "BackendSelector",
    "get_backend_selector",
    "reset_backend_selector",
]
