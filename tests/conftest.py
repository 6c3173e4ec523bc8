"""Pytest configuration and shared fixtures."""

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import closing
from datetime import date, datetime
from pathlib import Path

import openpyxl
import pyarrow as pa
import pyarrow.parquet as pq
import pytest
import structlog


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Undo logging configuration made by a test (the CLI configures logging)."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def people_csv(tmp_path: Path) -> Path:
    """Create a small well-formed CSV file."""
    path = tmp_path / "people.csv"
    path.write_text(
        "id,name,score,active\n"
        "1,Alice,3.5,true\n"
        "2,Bob,,false\n"
        "3,Carol,4,true\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def late_violation_csv(tmp_path: Path) -> Path:
    """
    Create a CSV whose ``age`` column is integral for 4999 rows.

    Row 5000 holds ``unknown``, so a sample of the leading rows infers an
    integer column that the rest of the file violates.
    """
    path = tmp_path / "ages.csv"
    lines = ["id,age,city"]
    for row in range(1, 5001):
        age = "unknown" if row == 5000 else str(20 + row % 50)
        lines.append(f"{row},{age},Town{row % 7}")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def workbook_path(tmp_path: Path) -> Path:
    """Create an Excel workbook with a duplicate header and an empty sheet."""
    path = tmp_path / "staff.xlsx"
    workbook = openpyxl.Workbook()

    sheet = workbook.active
    sheet.title = "People"
    sheet.append(["Name", "Name", "Age", None, "Joined"])
    sheet.append(["Ann", "Lee", 31, None, datetime(2021, 3, 4, 9, 30)])
    sheet.append(["Ben", "Cho", 27.5, "x", date(2020, 1, 2)])
    sheet.append(["Cy", None, True])

    workbook.create_sheet("Empty")
    workbook.save(path)
    return path


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    """Create a SQLite database with columns covering every promotion rule."""
    path = tmp_path / "shop.db"
    with closing(sqlite3.connect(path)) as conn:
        conn.execute(
            "CREATE TABLE users ("
            "id INTEGER, active INTEGER, level INTEGER, score REAL, "
            "name TEXT, avatar BLOB, note TEXT)"
        )
        conn.executemany(
            "INSERT INTO users VALUES (?, ?, ?, ?, ?, ?, ?)",
            [
                (1, 0, 0, 1, "Ann", b"\x01\xff", None),
                (2, 1, 1, 2.5, "Ben", None, None),
                (3, 1, 2, 3, "Cy", b"\x00", None),
                (4, 0, 1, None, "Dee", None, None),
            ],
        )
        conn.execute("CREATE TABLE orders (order_id INTEGER, total REAL)")
        conn.execute("INSERT INTO orders VALUES (10, 9.99)")
        conn.commit()
    return path


@pytest.fixture
def records_json(tmp_path: Path) -> Path:
    """Create a JSON array of objects with disjoint keys."""
    path = tmp_path / "records.json"
    path.write_text(json.dumps([{"a": 1}, {"b": 2}]), encoding="utf-8")
    return path


@pytest.fixture
def records_ndjson(tmp_path: Path) -> Path:
    """Create an NDJSON file with three records and a blank line."""
    path = tmp_path / "events.ndjson"
    path.write_text(
        '{"id": 1, "kind": "open", "ok": true}\n'
        "\n"
        '{"id": 2, "kind": "close", "meta": {"user": "x"}}\n'
        '{"id": 3, "kind": null, "tags": [1, 2]}\n',
        encoding="utf-8",
    )
    return path


@pytest.fixture
def parquet_path(tmp_path: Path) -> Path:
    """Create a Parquet file with one column of each kind."""
    path = tmp_path / "metrics.parquet"
    table = pa.table(
        {
            "id": pa.array([1, 2, 3], type=pa.int32()),
            "ratio": pa.array([0.5, None, 1.25], type=pa.float64()),
            "flag": pa.array([True, False, None], type=pa.bool_()),
            "label": pa.array(["a", None, "c"], type=pa.string()),
            "day": pa.array([date(2024, 1, 1), date(2024, 1, 2), None], type=pa.date32()),
        }
    )
    pq.write_table(table, path)
    return path
