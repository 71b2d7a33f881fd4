"""Tests for ``fieldstore.core.errors`` — error taxonomy."""

from __future__ import annotations

import pytest

from fieldstore.core.errors import (
    BackendUnavailable,
    ConfigError,
    ConfigurationMissingTable,
    ConstraintViolation,
    CorruptValueError,
    DataAccessError,
    ErrorCategory,
    ErrorContext,
    InvalidFilterError,
    InvalidValueError,
    NotFoundError,
    QueryError,
    SequenceContention,
    categorize_error,
    is_retryable,
)


class TestDefaults:
    @pytest.mark.parametrize(
        "error_cls, category, retryable",
        [
            (NotFoundError, ErrorCategory.NOT_FOUND, False),
            (ConstraintViolation, ErrorCategory.VALIDATION, False),
            (InvalidFilterError, ErrorCategory.VALIDATION, False),
            (InvalidValueError, ErrorCategory.VALIDATION, False),
            (BackendUnavailable, ErrorCategory.DATABASE, True),
            (QueryError, ErrorCategory.DATABASE, False),
            (ConfigError, ErrorCategory.CONFIG, False),
        ],
    )
    def test_category_and_retryable(self, error_cls, category, retryable):
        err = error_cls("boom")
        assert err.category == category
        assert err.retryable is retryable
        assert isinstance(err, DataAccessError)

    def test_override_retryable(self):
        assert QueryError("x", retryable=True).retryable is True


class TestSpecificErrors:
    def test_corrupt_value_carries_location(self):
        err = CorruptValueError("bad", table="projects", column="soil_specs")
        assert err.context.to_dict() == {"table": "projects", "column": "soil_specs"}
        assert err.category == ErrorCategory.DATA

    def test_invalid_value_carries_location(self):
        err = InvalidValueError("nested", table="notes", column="body")
        assert err.context.to_dict() == {"table": "notes", "column": "body"}

    def test_missing_table_message_is_actionable(self):
        err = ConfigurationMissingTable("sequence_counters")
        assert "sequence_counters" in str(err)
        assert "fieldstore db init" in str(err)
        assert err.table == "sequence_counters"
        assert isinstance(err, ConfigError)

    def test_sequence_contention(self):
        err = SequenceContention("project", 2026, attempts=20)
        assert err.retryable is True
        assert err.attempts == 20
        assert "20 attempts" in str(err)
        assert err.to_dict()["context"] == {
            "sequence_name": "project",
            "partition_key": 2026,
            "attempts": 20,
        }


class TestContextAndSerialization:
    def test_with_context_sets_known_fields_and_metadata(self):
        err = QueryError("bad").with_context(table="projects", request_id="r1")
        assert err.context.table == "projects"
        assert err.context.metadata == {"request_id": "r1"}

    def test_cause_is_chained(self):
        cause = RuntimeError("driver")
        err = BackendUnavailable("down", cause=cause)
        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == "driver"

    def test_to_dict_omits_empty_context(self):
        assert "context" not in NotFoundError("nope").to_dict()

    def test_error_context_to_dict_skips_none(self):
        assert ErrorContext(operation="insert").to_dict() == {"operation": "insert"}

    def test_repr(self):
        assert repr(QueryError("bad")) == "QueryError('bad', category=DATABASE)"


class TestUtilities:
    def test_is_retryable(self):
        assert is_retryable(BackendUnavailable("x")) is True
        assert is_retryable(ConstraintViolation("x")) is False
        assert is_retryable(ValueError("x")) is False

    def test_categorize_error(self):
        assert categorize_error(SequenceContention("s", 1, 3)) == ErrorCategory.CONCURRENCY
        assert categorize_error(KeyError("x")) == ErrorCategory.INTERNAL
