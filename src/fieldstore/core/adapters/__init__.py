"""Backend adapters -- one storage contract, two backends.

Manifesto:
    Application code must behave identically whether records live in a
    local SQLite file (Embedded) or a hosted PostgreSQL database (Hosted).
    Each adapter implements the same five storage operations in storage
    naming; nothing above this package knows which driver is in use.

    The hosted adapter is **import-guarded**: psycopg2 is only required when
    the hosted backend is first used. Install the extra::

        pip install fieldstore[hosted]   # psycopg2-binary

Architecture::

    BackendAdapter (base.py)         Abstract base: get_one/get_many/insert/update/delete
        |-- EmbeddedAdapter          stdlib sqlite3 (always available)
        |-- HostedAdapter            psycopg2 (optional)

    statements.py                    Parameterised SQL builders (validated identifiers)
    AdapterRegistry (registry.py)    BackendKind -> adapter class
    BackendConfig (types.py)         Frozen selection result
    BackendKind (types.py)           EMBEDDED / HOSTED

Guardrails:
    ❌ ``conn.execute("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``statements.select(dialect, "t", {"id": user_input})``
    ❌ Letting ``sqlite3.IntegrityError`` or ``psycopg2.Error`` escape
    ✅ Translate to ``ConstraintViolation`` / ``BackendUnavailable`` / ``QueryError``

Tags:
    database, adapters, multi-backend, import-guarded, postgresql, sqlite

Doc-Types:
    package-overview, architecture-map, module-index
"""

from fieldstore.core.dialect import Dialect, get_dialect

from .base import BackendAdapter, StorageRecord
from .postgresql import HostedAdapter
from .registry import AdapterRegistry, adapter_registry, create_adapter
from .sqlite import EmbeddedAdapter
from .types import BackendConfig, BackendKind, OrderBy

__all__ = [
    # Types
    "BackendKind",
    "BackendConfig",
    "OrderBy",
    "StorageRecord",
    # Abstractions
    "Dialect",
    "get_dialect",
    # Base class
    "BackendAdapter",
    # Implementations
    "EmbeddedAdapter",
    "HostedAdapter",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "create_adapter",
]
