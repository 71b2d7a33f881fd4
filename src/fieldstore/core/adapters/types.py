"""Backend types and configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit, urlunsplit


class BackendKind(str, Enum):
    """Supported backend variants."""

    EMBEDDED = "embedded"  # local SQLite file
    HOSTED = "hosted"  # PostgreSQL service

    @property
    def dialect_name(self) -> str:
        return "postgresql" if self is BackendKind.HOSTED else "sqlite"


@dataclass(frozen=True)
class OrderBy:
    """One ordering term in storage naming."""

    column: str
    descending: bool = False


@dataclass(frozen=True)
class BackendConfig:
    """
    Backend selection result.

    Built once at startup by the backend selector and immutable afterwards.
    Fields not relevant to ``kind`` are ignored by the adapter.
    """

    kind: BackendKind = BackendKind.EMBEDDED

    # Embedded
    embedded_path: str = "data/fieldstore.db"
    busy_timeout: float = 30.0

    # Hosted
    hosted_url: str | None = None
    hosted_credential: str | None = None
    pool_size: int = 5
    connect_timeout: int = 10

    @property
    def is_hosted(self) -> bool:
        return self.kind is BackendKind.HOSTED

    def redacted_url(self) -> str | None:
        """Hosted URL with any embedded password replaced by ``***``."""
        if not self.hosted_url:
            return None
        parts = urlsplit(self.hosted_url)
        if parts.password is None:
            return self.hosted_url
        netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
        return urlunsplit(parts._replace(netloc=netloc))

    def describe(self) -> dict[str, object]:
        """Loggable summary; never contains the credential."""
        if self.is_hosted:
            return {
                "backend": self.kind.value,
                "url": self.redacted_url(),
                "pool_size": self.pool_size,
                "auth_configured": bool(self.hosted_credential),
            }
        return {"backend": self.kind.value, "path": self.embedded_path}

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.describe().items())
        return f"BackendConfig({fields})"


__all__ = [
    "BackendKind",
    "BackendConfig",
    "OrderBy",
]
