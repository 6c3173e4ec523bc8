"""
Error taxonomy for ingestion failures.

Adapters translate library errors into these types at their boundary.
The scheduler turns any of them into a failed dataset; none of them
aborts the import queue.
"""


class IngestError(Exception):
    """Base class for all ingestion failures of a single dataset."""


class OpenError(IngestError):
    """The source cannot be opened or parsed at all."""


class SchemaError(IngestError):
    """Column type coercion exhausted its retry bound."""


class QueryError(IngestError):
    """A relational read failed (unknown table, malformed query)."""


class FormatError(IngestError):
    """Record input is not an object or array of objects at the expected path."""


class ColumnTypeMismatch(ValueError):
    """
    A cell violates the type inferred for its column.

    Raised during delimited-text materialization and recovered from by the
    coercion retry controller. The message follows the shape
    ``could not parse `<value>` as dtype `<dtype>` at column '<name>'
    (column number <n>)`` so that the controller can also work from the
    text alone.
    """

    def __init__(self, column: str, dtype: str, position: int, value: str, row: int) -> None:
        self.column = column
        self.dtype = dtype
        self.position = position
        self.value = value
        self.row = row
        msg = (
            f"could not parse `{value}` as dtype `{dtype}` at column '{column}' "
            f"(column number {position}) in row {row}"
        )
        super().__init__(msg)


class InvalidTransitionError(ValueError):
    """A dataset status change that the state machine does not allow."""
