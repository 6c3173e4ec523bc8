"""
Columnar (Parquet) ingestion.

The container's schema is trusted: declared types map straight onto the
uniform column types and no inference is performed.
"""

from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from ingestkit.errors import OpenError
from ingestkit.ingestion.base import SourceAdapter
from ingestkit.normalization.columns import unique_column_names
from ingestkit.schemas.uniform import ColumnType
from ingestkit.sources.descriptor import ColumnarSource
from ingestkit.table import UniformTable
from ingestkit.utils.logging import get_logger

log = get_logger(__name__)


def column_type_for(arrow_type: pa.DataType) -> ColumnType:
    """Uniform column type for a declared Arrow type."""
    if pa.types.is_boolean(arrow_type):
        return ColumnType.BOOLEAN
    if pa.types.is_integer(arrow_type):
        return ColumnType.INTEGER
    if pa.types.is_floating(arrow_type) or pa.types.is_decimal(arrow_type):
        return ColumnType.FLOAT
    return ColumnType.TEXT


def column_values(column: pa.ChunkedArray, column_type: ColumnType) -> list[Any]:
    """Values of an Arrow column as Python scalars of the uniform type."""
    if column_type is ColumnType.FLOAT:
        return [None if v is None else float(v) for v in column.to_pylist()]
    if column_type is not ColumnType.TEXT:
        return column.to_pylist()
    if pa.types.is_string(column.type) or pa.types.is_large_string(column.type):
        return column.to_pylist()
    try:
        return column.cast(pa.string()).to_pylist()
    except (pa.ArrowNotImplementedError, pa.ArrowInvalid):
        return [None if v is None else str(v) for v in column.to_pylist()]


class ColumnarAdapter(SourceAdapter[ColumnarSource]):
    """Adapter for Parquet files."""

    def _read(self, descriptor: ColumnarSource, dataset_name: str) -> UniformTable:
        """Read a Parquet file with its own column types."""
        path = descriptor.path
        if not path.exists():
            msg = f"Parquet file not found: {path}"
            raise OpenError(msg)

        try:
            arrow_table = pq.read_table(path)
        except (pa.ArrowException, OSError) as e:
            msg = f"Failed to read Parquet file '{path}': {e}"
            raise OpenError(msg) from e

        names = unique_column_names(arrow_table.schema.names)
        columns = []
        for name, field, column in zip(names, arrow_table.schema, arrow_table.columns, strict=True):
            column_type = column_type_for(field.type)
            columns.append((name, column_type, column_values(column, column_type)))

        log.debug("Read Parquet file", path=str(path), schema=str(arrow_table.schema))
        return UniformTable.from_columns(columns)
