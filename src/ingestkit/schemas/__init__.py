"""
Schema definitions using Pandera for data validation.

Every table handed out by an adapter is checked against a schema built
from its resolved column types.
"""

from ingestkit.schemas.uniform import PANDAS_DTYPES, ColumnType, build_schema

__all__ = [
    "PANDAS_DTYPES",
    "ColumnType",
    "build_schema",
]
