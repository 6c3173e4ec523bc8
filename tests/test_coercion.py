"""Tests for the type-coercion retry controller."""

import pytest

from ingestkit.errors import ColumnTypeMismatch, SchemaError
from ingestkit.ingestion.coercion import (
    coercion_step,
    extract_column,
    materialize_with_coercion,
)
from ingestkit.schemas import ColumnType
from ingestkit.table import UniformTable


def _table(text_columns: frozenset[str]) -> UniformTable:
    return UniformTable.from_columns(
        [(name, ColumnType.TEXT, ["x"]) for name in sorted(text_columns)]
    )


def _failing_until(required: set[str]):
    """Materializer that fails on the first required column not yet overridden."""
    calls: list[frozenset[str]] = []

    def materialize(overrides: frozenset[str]) -> UniformTable:
        calls.append(overrides)
        for position, column in enumerate(sorted(required), start=1):
            if column not in overrides:
                raise ColumnTypeMismatch(column, "i64", position, "oops", 7)
        return _table(overrides)

    return materialize, calls


class TestExtractColumn:
    """Tests for naming the offending column of a mismatch."""

    def test_structured_attribute(self) -> None:
        """Test that the column attribute is used first."""
        error = ColumnTypeMismatch("age", "i64", 2, "x", 1)
        assert extract_column(error) == "age"

    def test_precise_pattern(self) -> None:
        """Test the dtype, column and position message pattern."""
        error = ValueError(
            "could not parse `n/a` as dtype `f64` at column 'price' (column number 4)"
        )
        assert extract_column(error) == "price"

    def test_loose_pattern(self) -> None:
        """Test the column-name-only fallback pattern."""
        error = ValueError("invalid value at 'zip'")
        assert extract_column(error) == "zip"

    def test_no_column(self) -> None:
        """Test that unrelated messages name no column."""
        assert extract_column(ValueError("something broke")) is None


class TestCoercionStep:
    """Tests for a single retry step."""

    def test_success(self) -> None:
        """Test that a successful attempt returns the table."""
        step = coercion_step(_table, frozenset())
        assert step.table is not None
        assert not step.is_fatal

    def test_new_column_extends_overrides(self) -> None:
        """Test that a new offending column is added to the overrides."""
        materialize, _ = _failing_until({"a"})
        step = coercion_step(materialize, frozenset())

        assert step.table is None
        assert step.next_overrides == frozenset({"a"})

    def test_repeated_column_is_fatal(self) -> None:
        """Test that a column that is already overridden ends the retries."""

        def materialize(overrides: frozenset[str]) -> UniformTable:
            raise ColumnTypeMismatch("a", "i64", 1, "x", 1)

        step = coercion_step(materialize, frozenset({"a"}))

        assert step.is_fatal
        assert "column 'a'" in (step.error or "")


class TestMaterializeWithCoercion:
    """Tests for the retry loop."""

    def test_no_coercion_needed(self) -> None:
        """Test that a clean table carries no warning."""
        table = materialize_with_coercion(_table)
        assert table.warnings == ()
        assert table.coerced_columns == frozenset()

    def test_coerces_each_offending_column(self) -> None:
        """Test that every violated column ends up coerced and named."""
        materialize, calls = _failing_until({"b", "a"})

        table = materialize_with_coercion(materialize)

        assert table.coerced_columns == frozenset({"a", "b"})
        assert table.warnings == ("CSV dtype inference failed; coerced columns to text: a, b",)
        assert calls == [frozenset(), frozenset({"a"}), frozenset({"a", "b"})]

    def test_preapplied_columns_not_reported(self) -> None:
        """Test that seeded text columns succeed on the first attempt."""
        materialize, calls = _failing_until({"a"})

        table = materialize_with_coercion(materialize, text_columns=frozenset({"a"}))

        assert len(calls) == 1
        assert table.warnings == ()
        assert table.coerced_columns == frozenset()

    def test_unextractable_error_raises_schema_error(self) -> None:
        """Test that a failure without a column name is fatal."""

        def materialize(overrides: frozenset[str]) -> UniformTable:
            raise ColumnTypeMismatch("", "i64", 1, "x", 1)

        with pytest.raises(SchemaError, match="Could not resolve column types"):
            materialize_with_coercion(materialize)

    def test_attempt_bound(self) -> None:
        """Test that the attempt bound raises SchemaError."""
        materialize, _ = _failing_until({"a", "b", "c"})

        with pytest.raises(SchemaError, match=r"Exceeded maximum dtype coercion attempts \(2\)"):
            materialize_with_coercion(materialize, max_attempts=2)
