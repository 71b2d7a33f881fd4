"""
Shared pytest fixtures and configuration for fieldstore tests.

This module provides:
- Environment isolation (no FIELDSTORE_* variable or cached selector leaks between tests)
- Embedded database fixtures backed by a tmp_path SQLite file
- A DataAccess facade over that file with the tables created

Usage:
    def test_something(access):
        access.create("projects", {"projectNumber": "02-2026-0001", "projectName": "Dam"})
"""

import os
import sys
from pathlib import Path

import pytest
from structlog.testing import capture_logs

# Ensure fieldstore package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fieldstore.core import access as access_module
from fieldstore.core.access import DataAccess
from fieldstore.core.adapters import EmbeddedAdapter
from fieldstore.core.config import clear_settings_cache, reset_backend_selector
from fieldstore.core.schema import create_tables


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on the fixtures they use."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if markers.intersection({"unit", "integration", "slow"}):
            continue
        if "db_path" in getattr(item, "fixturenames", ()):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path):
    """Run every test in an empty directory with no fieldstore settings."""
    for key in list(os.environ):
        if key.startswith("FIELDSTORE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    reset_backend_selector()
    monkeypatch.setattr(access_module, "_access", None)
    yield
    reset_backend_selector()
    clear_settings_cache()


@pytest.fixture(autouse=True)
def log_events():
    """Captured structlog events; nothing is printed during tests."""
    with capture_logs() as events:
        yield events


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "db" / "fieldstore.db")


@pytest.fixture
def embedded_adapter(db_path):
    """EmbeddedAdapter over a fresh file with all tables created."""
    adapter = EmbeddedAdapter(db_path)
    create_tables(adapter)
    yield adapter
    adapter.disconnect()


@pytest.fixture
def access(embedded_adapter) -> DataAccess:
    return DataAccess(embedded_adapter)
