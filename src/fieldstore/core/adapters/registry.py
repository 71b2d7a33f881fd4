"""Backend adapter registry and factory.

Consumers never hard-code adapter class names: the registry maps a
``BackendKind`` to an adapter class and ``create_adapter()`` builds an
instance from a ``BackendConfig``.
"""

from __future__ import annotations

from fieldstore.core.errors import ConfigError

from .base import BackendAdapter
from .postgresql import HostedAdapter
from .sqlite import EmbeddedAdapter
from .types import BackendConfig, BackendKind


class AdapterRegistry:
    """
    Registry for backend adapter classes.

    Pre-registered adapters:
    - ``embedded`` — :class:`EmbeddedAdapter`
    - ``hosted`` — :class:`HostedAdapter`
    """

    def __init__(self):
        self._factories: dict[BackendKind, type[BackendAdapter]] = {
            BackendKind.EMBEDDED: EmbeddedAdapter,
            BackendKind.HOSTED: HostedAdapter,
        }

    def register(self, kind: BackendKind, adapter_class: type[BackendAdapter]) -> None:
        """Replace the adapter class for a backend kind (test doubles)."""
        self._factories[kind] = adapter_class

    def create(self, config: BackendConfig) -> BackendAdapter:
        """Create an adapter for ``config.kind``."""
        if config.kind not in self._factories:
            raise ConfigError(f"Unknown backend: {config.kind}")
        return self._factories[config.kind](config=config)


# Global registry
adapter_registry = AdapterRegistry()


def create_adapter(config: BackendConfig) -> BackendAdapter:
    """
    Build the adapter for a backend configuration.

    Usage:
        adapter = create_adapter(BackendConfig(embedded_path="data/app.db"))
    """
    return adapter_registry.create(config)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "create_adapter",
]
