"""Tests for ``fieldstore.core.adapters.statements`` and ``fieldstore.core.dialect``."""

from __future__ import annotations

import pytest

from fieldstore.core.adapters import statements
from fieldstore.core.adapters.types import OrderBy
from fieldstore.core.dialect import PostgreSQLDialect, SQLiteDialect, get_dialect, is_valid_identifier
from fieldstore.core.errors import InvalidFilterError

SQLITE = SQLiteDialect()
PG = PostgreSQLDialect()


class TestDialects:
    def test_get_dialect_aliases(self):
        assert get_dialect("sqlite").name == "sqlite"
        assert get_dialect("postgresql").name == "postgresql"
        assert get_dialect("postgres").name == "postgresql"

    def test_unknown_dialect(self):
        with pytest.raises(ValueError):
            get_dialect("oracle")

    def test_placeholders(self):
        assert SQLITE.placeholders(3) == "?, ?, ?"
        assert PG.placeholders(2) == "%s, %s"

    def test_returning_support(self):
        assert PG.supports_returning is True
        assert SQLITE.supports_returning is False

    def test_json_types(self):
        assert "JSON" in SQLITE.json_type().upper()
        assert PG.json_type() == "JSONB"

    @pytest.mark.parametrize("name", ["user_id", "_private", "Projects2"])
    def test_valid_identifiers(self, name):
        assert is_valid_identifier(name)

    @pytest.mark.parametrize("name", ["", "1abc", "user id", 'x"; DROP TABLE projects; --', "a-b", None])
    def test_invalid_identifiers(self, name):
        assert not is_valid_identifier(name)


class TestSelect:
    def test_filter_column_appears_in_sql(self):
        stmt = statements.select(SQLITE, "users", {"user_id": 7})
        assert stmt.sql == 'SELECT * FROM "users" WHERE "user_id" = ?'
        assert stmt.params == (7,)

    def test_multiple_filters_and_null(self):
        stmt = statements.select(PG, "projects", {"tenant_id": 4, "deleted_at": None})
        assert stmt.sql == 'SELECT * FROM "projects" WHERE "tenant_id" = %s AND "deleted_at" IS NULL'
        assert stmt.params == (4,)

    def test_no_filter_selects_everything(self):
        assert statements.select(SQLITE, "projects").sql == 'SELECT * FROM "projects"'

    def test_order_and_limit(self):
        stmt = statements.select(
            SQLITE,
            "projects",
            {"tenant_id": 1},
            order_by=[OrderBy("created_at", descending=True), OrderBy("id")],
            limit=10,
        )
        assert stmt.sql.endswith('ORDER BY "created_at" DESC, "id" ASC LIMIT ?')
        assert stmt.params == (1, 10)

    @pytest.mark.parametrize("limit", [-1, "10", 1.5, True])
    def test_bad_limit(self, limit):
        with pytest.raises(InvalidFilterError, match="Limit"):
            statements.select(SQLITE, "projects", limit=limit)

    def test_invalid_column_rejected(self):
        with pytest.raises(InvalidFilterError, match="Invalid field name"):
            statements.select(SQLITE, "projects", {"id; --": 1})

    def test_invalid_table_rejected(self):
        with pytest.raises(InvalidFilterError, match="Invalid table name"):
            statements.select(SQLITE, "projects p", {})


class TestWrites:
    def test_insert(self):
        stmt = statements.insert(PG, "projects", {"project_name": "Dam", "tenant_id": 2}, returning=True)
        assert stmt.sql == (
            'INSERT INTO "projects" ("project_name", "tenant_id") VALUES (%s, %s) RETURNING *'
        )
        assert stmt.params == ("Dam", 2)

    def test_insert_empty_record_uses_defaults(self):
        assert statements.insert(SQLITE, "things", {}).sql == 'INSERT INTO "things" DEFAULT VALUES'

    def test_update_params_order(self):
        stmt = statements.update(SQLITE, "sequence_counters", {"next_value": 3}, {"next_value": 2, "sequence_name": "p"})
        assert stmt.sql == (
            'UPDATE "sequence_counters" SET "next_value" = ? WHERE "next_value" = ? AND "sequence_name" = ?'
        )
        assert stmt.params == (3, 2, "p")

    def test_update_requires_filter(self):
        with pytest.raises(InvalidFilterError, match="update"):
            statements.update(SQLITE, "projects", {"project_name": "x"}, {})

    def test_update_requires_patch(self):
        with pytest.raises(InvalidFilterError):
            statements.update(SQLITE, "projects", {}, {"id": 1})

    def test_delete_requires_filter(self):
        with pytest.raises(InvalidFilterError, match="delete"):
            statements.delete(PG, "projects", {})

    def test_delete(self):
        stmt = statements.delete(PG, "projects", {"id": 5})
        assert stmt.sql == 'DELETE FROM "projects" WHERE "id" = %s'
        assert stmt.params == (5,)

    def test_select_rowids(self):
        stmt = statements.select_rowids(SQLITE, "projects", [3, 1])
        assert stmt.sql == 'SELECT * FROM "projects" WHERE rowid IN (?, ?) ORDER BY rowid'
        assert stmt.params == (3, 1)
