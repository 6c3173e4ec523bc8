"""
Type inference and strict materialization for delimited text.

Inference looks at a bounded sample of leading rows only. Materialization
then converts every row and raises ``ColumnTypeMismatch`` at the first
cell that violates the inferred type, which the coercion controller
recovers from.
"""

import re
from collections.abc import Iterable
from typing import Any

import pandas as pd

from ingestkit.errors import ColumnTypeMismatch
from ingestkit.schemas.uniform import ColumnType
from ingestkit.table import UniformTable

INTEGER_PATTERN = re.compile(r"[+-]?\d+")
FLOAT_PATTERN = re.compile(r"[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?")
BOOLEAN_VALUES = {"true": True, "false": False}

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Names used in mismatch messages
DTYPE_NAMES = {
    ColumnType.INTEGER: "i64",
    ColumnType.FLOAT: "f64",
    ColumnType.BOOLEAN: "bool",
    ColumnType.TEXT: "str",
}


def classify_value(value: str) -> ColumnType | None:
    """
    Narrowest type that can hold a raw cell.

    Returns None for empty cells, which carry no type evidence.
    """
    if value == "":
        return None
    if value.lower() in BOOLEAN_VALUES:
        return ColumnType.BOOLEAN
    if INTEGER_PATTERN.fullmatch(value):
        if INT64_MIN <= int(value) <= INT64_MAX:
            return ColumnType.INTEGER
        return ColumnType.FLOAT
    if FLOAT_PATTERN.fullmatch(value):
        return ColumnType.FLOAT
    return ColumnType.TEXT


def infer_column_type(values: Iterable[str]) -> ColumnType:
    """
    Infer a column type from sample cells.

    Integers widen to float when both appear; booleans only survive on
    their own; anything else, or a column without values, is text.
    """
    seen = {t for t in (classify_value(v) for v in values) if t is not None}
    if not seen:
        return ColumnType.TEXT
    if seen == {ColumnType.BOOLEAN}:
        return ColumnType.BOOLEAN
    if seen == {ColumnType.INTEGER}:
        return ColumnType.INTEGER
    if seen <= {ColumnType.INTEGER, ColumnType.FLOAT}:
        return ColumnType.FLOAT
    return ColumnType.TEXT


def infer_schema(frame: pd.DataFrame, sample_rows: int) -> dict[str, ColumnType]:
    """
    Infer column types from the first ``sample_rows`` rows of a raw frame.

    Args:
        frame: Raw cells as strings, empty string for missing values.
        sample_rows: Number of leading rows to inspect.

    Returns:
        Inferred type per column, in column order.
    """
    sample = frame.head(sample_rows)
    return {column: infer_column_type(sample[column]) for column in frame.columns}


def _convert(value: str, column_type: ColumnType) -> Any:
    """Convert a non-empty cell, raising ValueError if it does not fit."""
    if column_type is ColumnType.TEXT:
        return value
    if column_type is ColumnType.INTEGER:
        if not INTEGER_PATTERN.fullmatch(value):
            raise ValueError(value)
        number = int(value)
        if not INT64_MIN <= number <= INT64_MAX:
            raise ValueError(value)
        return number
    if column_type is ColumnType.FLOAT:
        if not FLOAT_PATTERN.fullmatch(value):
            raise ValueError(value)
        return float(value)
    flag = BOOLEAN_VALUES.get(value.lower())
    if flag is None:
        raise ValueError(value)
    return flag


def materialize_column(
    values: Iterable[str],
    column: str,
    column_type: ColumnType,
    position: int,
) -> list[Any]:
    """
    Convert every cell of a column to ``column_type``.

    Empty cells become None.

    Raises:
        ColumnTypeMismatch: At the first cell that does not fit.
    """
    converted: list[Any] = []
    for row, value in enumerate(values, start=1):
        if value == "":
            converted.append(None)
            continue
        try:
            converted.append(_convert(value, column_type))
        except ValueError:
            raise ColumnTypeMismatch(
                column=column,
                dtype=DTYPE_NAMES[column_type],
                position=position,
                value=value,
                row=row,
            ) from None
    return converted


def materialize(
    frame: pd.DataFrame,
    schema: dict[str, ColumnType],
    text_columns: frozenset[str],
) -> UniformTable:
    """
    Build a uniform table from raw cells with the given schema.

    Args:
        frame: Raw cells as strings.
        schema: Inferred type per column.
        text_columns: Columns forced to text regardless of the schema.

    Returns:
        Typed table.

    Raises:
        ColumnTypeMismatch: If a cell violates its column's type.
    """
    columns = []
    for position, column in enumerate(frame.columns, start=1):
        column_type = ColumnType.TEXT if column in text_columns else schema[column]
        values = materialize_column(frame[column], column, column_type, position)
        columns.append((column, column_type, values))
    return UniformTable.from_columns(columns)
