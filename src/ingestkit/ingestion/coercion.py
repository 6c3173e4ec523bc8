"""
Adaptive type-coercion retry controller.

Type inference from a sample can be contradicted by later rows. The
controller retries materialization, forcing one more offending column to
text per attempt, until the table builds or no new column can be named.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from ingestkit.errors import ColumnTypeMismatch, SchemaError
from ingestkit.table import UniformTable
from ingestkit.utils.logging import get_logger

log = get_logger(__name__)

Materializer = Callable[[frozenset[str]], UniformTable]

# Captures dtype, column name and column number
DTYPE_PATTERN = re.compile(r"as dtype `([^`]+)` at column '([^']+)' \(column number (\d+)\)")
# Column name only
COLUMN_PATTERN = re.compile(r"at (?:column )?'([^']+)'")


@dataclass(frozen=True)
class CoercionStep:
    """
    Outcome of one materialization attempt.

    Exactly one of ``table`` or ``next_overrides`` is set on a
    recoverable outcome; both are None when the failure is fatal.
    """

    table: UniformTable | None = None
    next_overrides: frozenset[str] | None = None
    error: str | None = None

    @property
    def is_fatal(self) -> bool:
        """Whether the attempt failed without a column to coerce."""
        return self.table is None and self.next_overrides is None


def extract_column(error: Exception) -> str | None:
    """
    Name of the column a type-mismatch error refers to.

    Uses the error's ``column`` attribute when present, then the precise
    message pattern, then the loose one.
    """
    column = getattr(error, "column", None)
    if column:
        return str(column)

    message = str(error)
    match = DTYPE_PATTERN.search(message)
    if match:
        return match.group(2)
    match = COLUMN_PATTERN.search(message)
    if match:
        return match.group(1)
    return None


def coercion_step(materialize: Materializer, overrides: frozenset[str]) -> CoercionStep:
    """
    Attempt one materialization with ``overrides`` forced to text.

    Args:
        materialize: Builds the table for a set of text overrides.
        overrides: Columns currently forced to text.

    Returns:
        The table, the next override set, or a fatal outcome.
    """
    try:
        table = materialize(overrides)
    except ColumnTypeMismatch as e:
        column = extract_column(e)
        if column is None or column in overrides:
            return CoercionStep(error=str(e))
        log.info(
            "Coercing column to text",
            column=column,
            dtype=getattr(e, "dtype", None),
            error=str(e),
        )
        return CoercionStep(next_overrides=overrides | {column}, error=str(e))
    return CoercionStep(table=table)


def materialize_with_coercion(
    materialize: Materializer,
    *,
    text_columns: frozenset[str] = frozenset(),
    max_attempts: int = 256,
) -> UniformTable:
    """
    Materialize a table, coercing failing columns to text until it builds.

    Columns given in ``text_columns`` are forced to text from the start
    and are not reported as coerced.

    Args:
        materialize: Builds the table for a set of text overrides.
        text_columns: Columns forced to text before the first attempt.
        max_attempts: Last-resort bound on attempts.

    Returns:
        The table, with ``coerced_columns`` set and a warning naming them
        when any column had to be coerced.

    Raises:
        SchemaError: If no new column can be extracted from a failure, or
            the attempt bound is exceeded.
    """
    overrides = frozenset(text_columns)
    last_error: str | None = None

    for _ in range(max_attempts):
        step = coercion_step(materialize, overrides)

        if step.table is not None:
            coerced = overrides - text_columns
            if not coerced:
                return step.table
            names = sorted(coerced)
            warning = f"CSV dtype inference failed; coerced columns to text: {', '.join(names)}"
            log.warning("Coerced columns to text", columns=names)
            table = UniformTable(
                step.table.frame,
                step.table.column_types,
                step.table.warnings,
                frozenset(coerced),
            )
            return table.with_warning(warning)

        last_error = step.error
        if step.next_overrides is None:
            msg = f"Could not resolve column types: {last_error}"
            raise SchemaError(msg)
        overrides = step.next_overrides

    msg = (
        f"Exceeded maximum dtype coercion attempts ({max_attempts}). "
        f"Last error: {last_error or 'unknown'}"
    )
    raise SchemaError(msg)
