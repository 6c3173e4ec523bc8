"""
The uniform table: the single output shape of every source adapter.

Columns are named, unique and ordered; each has one resolved type and
holds nullable values stored in the matching pandas extension dtype.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from ingestkit.schemas.uniform import ColumnType, build_schema

_PYTHON_SCALARS = {
    ColumnType.INTEGER: int,
    ColumnType.FLOAT: float,
    ColumnType.BOOLEAN: bool,
    ColumnType.TEXT: str,
}


@dataclass(frozen=True, eq=False)
class UniformTable:
    """
    Named, typed, row-aligned columns.

    Attributes:
        frame: Column data with nullable extension dtypes.
        column_types: Resolved type per column, in column order.
        warnings: Non-fatal notes produced while building the table.
        coerced_columns: Columns forced to text to recover from inference failures.
    """

    frame: pd.DataFrame
    column_types: dict[str, ColumnType]
    warnings: tuple[str, ...] = ()
    coerced_columns: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_columns(
        cls,
        columns: Sequence[tuple[str, ColumnType, Sequence[Any]]],
        *,
        warnings: tuple[str, ...] = (),
        coerced_columns: frozenset[str] = frozenset(),
    ) -> "UniformTable":
        """
        Build a table from ``(name, type, values)`` triples.

        ``None`` values become nulls. All value sequences must have the
        same length and names must be unique. A table without columns has
        no rows.
        """
        names = [name for name, _, _ in columns]
        if len(set(names)) != len(names):
            msg = f"Column names must be unique: {names}"
            raise ValueError(msg)

        lengths = {len(values) for _, _, values in columns}
        if len(lengths) > 1:
            msg = f"Columns have different lengths: {sorted(lengths)}"
            raise ValueError(msg)

        data = {
            name: pd.array(list(values), dtype=column_type.dtype)
            for name, column_type, values in columns
        }
        frame = pd.DataFrame(data, index=pd.RangeIndex(lengths.pop() if lengths else 0))
        column_types = {name: column_type for name, column_type, _ in columns}
        return cls(frame, column_types, warnings, coerced_columns)

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        column_types: dict[str, ColumnType],
        *,
        warnings: tuple[str, ...] = (),
        coerced_columns: frozenset[str] = frozenset(),
    ) -> "UniformTable":
        """Build a table from a DataFrame, casting each column to its type's dtype."""
        if list(frame.columns) != list(column_types):
            msg = "Column types must list the frame's columns in order"
            raise ValueError(msg)
        cast = frame.astype({name: column_type.dtype for name, column_type in column_types.items()})
        cast = cast.reset_index(drop=True)
        return cls(cast, dict(column_types), warnings, coerced_columns)

    @property
    def row_count(self) -> int:
        """Number of rows."""
        return len(self.frame)

    @property
    def column_count(self) -> int:
        """Number of columns."""
        return len(self.column_types)

    @property
    def column_names(self) -> list[str]:
        """Column names in order."""
        return list(self.column_types)

    def column_type(self, name: str) -> ColumnType:
        """Resolved type of column ``name``."""
        return self.column_types[name]

    def values(self, name: str) -> list[Any]:
        """Values of column ``name`` as Python scalars, nulls as ``None``."""
        return [self._scalar(name, v) for v in self.frame[name].tolist()]

    def row(self, index: int) -> dict[str, Any]:
        """Row ``index`` as a column name to value mapping."""
        return {
            name: self._scalar(name, self.frame[name].iloc[index])
            for name in self.column_types
        }

    def _scalar(self, name: str, value: Any) -> Any:
        if pd.isna(value):
            return None
        return _PYTHON_SCALARS[self.column_types[name]](value)

    def with_warning(self, warning: str) -> "UniformTable":
        """Copy of this table with ``warning`` appended."""
        return UniformTable(
            self.frame,
            self.column_types,
            (*self.warnings, warning),
            self.coerced_columns,
        )

    def validate(self) -> "UniformTable":
        """
        Check the table against its uniform schema.

        Returns:
            This table.

        Raises:
            pandera.errors.SchemaError: If a column has the wrong dtype or
                the column set does not match the resolved types.
            pandera.errors.SchemaErrors: If pandera collects several
                failures at once.
        """
        build_schema(self.column_types).validate(self.frame)
        return self

    def __repr__(self) -> str:
        types = ", ".join(f"{name}: {t.value}" for name, t in self.column_types.items())
        return f"UniformTable(rows={self.row_count}, columns=[{types}])"
