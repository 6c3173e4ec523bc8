"""
Relational (SQLite) ingestion.

Reads whole tables and resolves each column's type by monotonic
promotion over every cell.
"""

import sqlite3
from contextlib import closing
from pathlib import Path

from ingestkit.errors import OpenError, QueryError
from ingestkit.ingestion.base import SourceAdapter
from ingestkit.ingestion.promotion import promote_column
from ingestkit.normalization.columns import unique_column_names
from ingestkit.sources.descriptor import RelationalSource
from ingestkit.table import UniformTable
from ingestkit.utils.logging import get_logger

log = get_logger(__name__)

LIST_TABLES_QUERY = (
    "SELECT name FROM sqlite_master "
    "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
)


def quote_identifier(name: str) -> str:
    """Quote an SQLite identifier."""
    return '"' + name.replace('"', '""') + '"'


def connect(path: Path) -> sqlite3.Connection:
    """
    Open a database read-only.

    Raises:
        OpenError: If the file is missing or cannot be opened.
    """
    if not path.exists():
        msg = f"Database file not found: {path}"
        raise OpenError(msg)
    try:
        return sqlite3.connect(f"{path.resolve().as_uri()}?mode=ro", uri=True)
    except sqlite3.Error as e:
        msg = f"Failed to open SQLite database '{path}': {e}"
        raise OpenError(msg) from e


def list_tables(path: Path) -> list[str]:
    """
    User tables of a database, sorted by name.

    Raises:
        OpenError: If the database cannot be opened or read.
    """
    with closing(connect(path)) as conn:
        try:
            return [row[0] for row in conn.execute(LIST_TABLES_QUERY)]
        except sqlite3.Error as e:
            msg = f"Failed to list tables of '{path}': {e}"
            raise OpenError(msg) from e


class RelationalAdapter(SourceAdapter[RelationalSource]):
    """Adapter for SQLite databases, one dataset per table."""

    def dataset_names(self, descriptor: RelationalSource) -> list[str]:
        """Selected tables, or every user table."""
        if descriptor.all_tables:
            return list_tables(descriptor.path)
        return list(descriptor.tables)

    def split(self, descriptor: RelationalSource) -> list[RelationalSource]:
        """One single-table descriptor per selected table."""
        return [
            descriptor.model_copy(update={"tables": (name,), "all_tables": False})
            for name in self.dataset_names(descriptor)
        ]

    def default_dataset(self, descriptor: RelationalSource) -> str:
        """The first selected table."""
        names = self.dataset_names(descriptor)
        if not names:
            msg = f"No tables found in {descriptor.path}"
            raise QueryError(msg)
        return names[0]

    def _read(self, descriptor: RelationalSource, dataset_name: str) -> UniformTable:
        """Read a full table and promote its column types."""
        query = f"SELECT * FROM {quote_identifier(dataset_name)}"

        with closing(connect(descriptor.path)) as conn:
            try:
                cursor = conn.execute(query)
                names = [d[0] for d in cursor.description]
                rows = cursor.fetchall()
            except sqlite3.OperationalError as e:
                msg = f"Failed to read table '{dataset_name}': {e}"
                raise QueryError(msg) from e
            except sqlite3.Error as e:
                msg = f"Failed to read SQLite database '{descriptor.path}': {e}"
                raise OpenError(msg) from e

        log.debug("Read table", table=dataset_name, rows=len(rows))

        columns = []
        for idx, name in enumerate(unique_column_names(names)):
            column_type, values = promote_column(row[idx] for row in rows)
            columns.append((name, column_type, values))
        return UniformTable.from_columns(columns)
