"""Tests for ``fieldstore.core.access`` — the data access facade (embedded backend)."""

from __future__ import annotations

import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from threading import Barrier

import pytest

from fieldstore.core.access import DataAccess, get_data_access, parse_order_by
from fieldstore.core.adapters import BackendKind, EmbeddedAdapter
from fieldstore.core.adapters.types import OrderBy
from fieldstore.core.backoff import LinearBackoff
from fieldstore.core.errors import (
    ConfigurationMissingTable,
    ConstraintViolation,
    CorruptValueError,
    InvalidFilterError,
    InvalidValueError,
    NotFoundError,
    QueryError,
)


def _project(number: str, **extra):
    return {"projectNumber": number, "projectName": f"Project {number}", **extra}


class TestParseOrderBy:
    def test_none(self):
        assert parse_order_by(None) is None

    def test_single_field_translated(self):
        assert parse_order_by("createdAt") == [OrderBy("created_at")]

    def test_directions(self):
        assert parse_order_by(["projectNumber desc", "id ASC"]) == [
            OrderBy("project_number", descending=True),
            OrderBy("id", descending=False),
        ]

    @pytest.mark.parametrize("term", ["", "id sideways", "a b c"])
    def test_invalid_terms(self, term):
        with pytest.raises(InvalidFilterError):
            parse_order_by(term)


class TestReads:
    def test_get_missing_returns_none(self, access):
        assert access.get("projects", {"id": 999}) is None
        assert access.get("projects", {"projectNumber": "02-2099-9999"}) is None

    def test_list_missing_returns_empty(self, access):
        assert access.list("projects", {"tenantId": 1}) == []

    def test_require_missing_raises(self, access):
        with pytest.raises(NotFoundError) as exc_info:
            access.require("projects", {"projectNumber": "nope"})
        assert exc_info.value.context.table == "projects"

    def test_require_found(self, access):
        access.create("projects", _project("a"))
        assert access.require("projects", {"projectNumber": "a"})["projectName"] == "Project a"

    def test_get_translates_filter_keys(self, access):
        access.create("projects", _project("a", tenantId=7))
        record = access.get("projects", {"tenantId": 7})
        assert record["projectNumber"] == "a"
        assert record["tenantId"] == 7

    def test_list_order_and_limit(self, access):
        for number in ("b", "c", "a"):
            access.create("projects", _project(number, tenantId=1))
        records = access.list("projects", {"tenantId": 1}, order_by="projectNumber desc", limit=2)
        assert [r["projectNumber"] for r in records] == ["c", "b"]

    def test_list_without_filter(self, access):
        access.create("projects", _project("a"))
        access.create("projects", _project("b"))
        assert len(access.list("projects")) == 2

    def test_list_reexecutes_each_call(self, access):
        assert access.list("projects") == []
        access.create("projects", _project("a"))
        assert len(access.list("projects")) == 1

    def test_filter_must_be_mapping(self, access):
        with pytest.raises(InvalidFilterError):
            access.get("projects", [("id", 1)])

    def test_invalid_field_name(self, access):
        with pytest.raises(InvalidFilterError):
            access.get("projects", {"project name": "x"})

    def test_null_filter_matches_missing_values(self, access):
        access.create("projects", _project("a"))
        assert access.get("projects", {"tenantId": None})["projectNumber"] == "a"


class TestStructuredValues:
    def test_structured_round_trip(self, access):
        created = access.create("projects", _project("a", soilSpecs={"maxDensity": 118.2}))
        assert created["soilSpecs"] == {"maxDensity": 118.2}
        fetched = access.get("projects", {"id": created["id"]})
        assert fetched["soilSpecs"] == {"maxDensity": 118.2}

    def test_nested_lists_and_records(self, access):
        drawings = [{"fileName": "site.pdf", "pageCount": 3}]
        created = access.create(
            "projects",
            _project("a", customerEmails=["ops@example.com"], drawings=drawings),
        )
        fetched = access.get("projects", {"id": created["id"]})
        assert fetched["customerEmails"] == ["ops@example.com"]
        assert fetched["drawings"] == drawings

    def test_stored_as_json_text(self, access, db_path):
        access.create("projects", _project("a", soilSpecs={"maxDensity": 118.2}))
        conn = sqlite3.connect(db_path)
        try:
            stored = conn.execute("SELECT soil_specs FROM projects").fetchone()[0]
        finally:
            conn.close()
        assert stored == '{"max_density":118.2}'

    def test_unset_structured_value_is_none(self, access):
        assert access.create("projects", _project("a"))["concreteSpecs"] is None

    def test_corrupt_json_raises(self, access, db_path):
        access.create("projects", _project("a"))
        conn = sqlite3.connect(db_path)
        try:
            conn.execute("UPDATE projects SET soil_specs = '{oops' WHERE project_number = 'a'")
            conn.commit()
        finally:
            conn.close()
        with pytest.raises(CorruptValueError) as exc_info:
            access.get("projects", {"projectNumber": "a"})
        assert exc_info.value.table == "projects"
        assert exc_info.value.column == "soil_specs"

    def test_nested_value_for_plain_column_rejected(self, access, embedded_adapter):
        embedded_adapter.execute_ddl("CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT, meta JSON)")
        with pytest.raises(InvalidValueError) as exc_info:
            access.create("notes", {"body": {"a": 1}})
        assert exc_info.value.column == "body"
        assert exc_info.value.table == "notes"
        assert access.list("notes") == []

        note = access.create("notes", {"body": "plain", "meta": {"aB": 1}})
        assert note["meta"] == {"aB": 1}
        with pytest.raises(InvalidValueError):
            access.modify("notes", {"body": ["x"]}, {"id": note["id"]})
        assert access.get("notes", {"id": note["id"]})["body"] == "plain"

    def test_datetime_values_stored_as_iso_text(self, access):
        stamp = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        record = access.create("projects", _project("a", updatedAt=stamp))
        assert record["updatedAt"] == "2026-03-01T12:00:00+00:00"


class TestWrites:
    def test_create_returns_id(self, access):
        created = access.create("projects", _project("a"))
        assert isinstance(created["id"], int)
        assert created["projectNumber"] == "a"

    def test_create_duplicate(self, access):
        access.create("projects", _project("a"))
        with pytest.raises(ConstraintViolation):
            access.create("projects", _project("a"))

    def test_create_requires_mapping(self, access):
        with pytest.raises(TypeError):
            access.create("projects", "projectNumber=a")

    def test_modify(self, access):
        access.create("projects", _project("a", tenantId=1))
        access.create("projects", _project("b", tenantId=1))
        updated = access.modify("projects", {"soilSpecs": {"maxDensity": 120.0}}, {"tenantId": 1})
        assert len(updated) == 2
        assert all(r["soilSpecs"] == {"maxDensity": 120.0} for r in updated)

    def test_modify_no_match(self, access):
        assert access.modify("projects", {"projectSpec": "x"}, {"id": 404}) == []

    def test_modify_requires_filter(self, access):
        with pytest.raises(InvalidFilterError):
            access.modify("projects", {"projectSpec": "x"}, {})

    def test_remove(self, access):
        access.create("projects", _project("a", tenantId=1))
        assert access.remove("projects", {"tenantId": 1}) == 1
        assert access.get("projects", {"tenantId": 1}) is None

    def test_remove_requires_filter(self, access):
        with pytest.raises(InvalidFilterError):
            access.remove("projects", {})

    def test_remove_with_unknown_field_deletes_nothing(self, access):
        for number in ("a", "b", "c"):
            access.create("projects", _project(number))
        with pytest.raises(QueryError, match="not_a_column"):
            access.remove("projects", {"notAColumn": "not_a_column"})
        assert len(access.list("projects")) == 3

    def test_missing_table(self, db_path):
        access = DataAccess(EmbeddedAdapter(db_path))
        with pytest.raises(ConfigurationMissingTable):
            access.create("projects", _project("a"))


class TestProperties:
    def test_backend_flags(self, access):
        assert access.backend_kind is BackendKind.EMBEDDED
        assert access.is_embedded is True
        assert access.is_hosted is False
        assert access.sequences.table == "sequence_counters"


class TestGetDataAccess:
    def test_defaults_to_embedded(self):
        access = get_data_access()
        assert access.is_embedded
        assert access.adapter.path == "data/fieldstore.db"

    def test_cached(self):
        assert get_data_access() is get_data_access()

    def test_concurrent_first_calls_share_one_facade(self):
        barrier = Barrier(16)

        def build(_):
            barrier.wait()
            return get_data_access()

        with ThreadPoolExecutor(max_workers=16) as pool:
            facades = list(pool.map(build, range(16)))
        assert len({id(facade) for facade in facades}) == 1

    def test_uses_settings(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FIELDSTORE_EMBEDDED_PATH", str(tmp_path / "custom.db"))
        monkeypatch.setenv("FIELDSTORE_SEQUENCE_TABLE", "counters")
        monkeypatch.setenv("FIELDSTORE_SEQUENCE_MAX_ATTEMPTS", "7")
        access = get_data_access()
        assert access.adapter.path == str(tmp_path / "custom.db")
        assert access.sequences.table == "counters"
        backoff = access.sequences._backoff
        assert isinstance(backoff, LinearBackoff)
        assert backoff.max_attempts == 7
