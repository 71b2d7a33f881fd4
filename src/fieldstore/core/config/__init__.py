"""Configuration: environment settings and one-time backend selection."""

from .selector import (
    BackendSelector,
    HostedConfigCheck,
    get_backend_selector,
    reset_backend_selector,
    select_backend,
    validate_hosted_configuration,
)
from .settings import FieldStoreSettings, clear_settings_cache, get_settings

__all__ = [
    "FieldStoreSettings",
    "get_settings",
    "clear_settings_cache",
    "HostedConfigCheck",
    "validate_hosted_configuration",
    "select_backend",
    "BackendSelector",
    "get_backend_selector",
    "reset_backend_selector",
]
