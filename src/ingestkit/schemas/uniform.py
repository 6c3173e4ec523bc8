"""
Pandera schema for uniform tables.

A uniform table has unique, ordered column names and one of four
nullable scalar dtypes per column. The schema is built per table from
its resolved column types.
"""

from enum import Enum

import pandas as pd
import pandera.pandas as pa


class ColumnType(str, Enum):
    """Resolved scalar type of a uniform table column."""

    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TEXT = "text"

    @property
    def dtype(self) -> pd.api.extensions.ExtensionDtype:
        """Nullable pandas dtype used to store columns of this type."""
        return PANDAS_DTYPES[self]


PANDAS_DTYPES: dict[ColumnType, pd.api.extensions.ExtensionDtype] = {
    ColumnType.INTEGER: pd.Int64Dtype(),
    ColumnType.FLOAT: pd.Float64Dtype(),
    ColumnType.BOOLEAN: pd.BooleanDtype(),
    ColumnType.TEXT: pd.StringDtype(),
}


def build_schema(column_types: dict[str, ColumnType], name: str = "UniformTable") -> pa.DataFrameSchema:
    """
    Build a validation schema for a table with the given column types.

    Args:
        column_types: Column name to resolved type, in column order.
        name: Schema name shown in validation errors.

    Returns:
        Strict, ordered schema with nullable columns. Dtypes are checked,
        never coerced, so a column holding plain numpy values fails.
    """
    columns = {
        column: pa.Column(column_type.dtype, nullable=True)
        for column, column_type in column_types.items()
    }
    return pa.DataFrameSchema(
        columns,
        name=name,
        strict=True,
        ordered=True,
        unique_column_names=True,
    )
