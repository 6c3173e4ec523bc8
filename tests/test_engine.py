"""Tests for the ingestion engine facade."""

from pathlib import Path

import pytest

from ingestkit.config import EngineConfig, TextDefaults
from ingestkit.engine import IngestionEngine
from ingestkit.errors import InvalidTransitionError
from ingestkit.registry import DatasetStatus
from ingestkit.schemas import ColumnType
from ingestkit.sources import RelationalSource


@pytest.fixture
def engine() -> IngestionEngine:
    """Return an engine with default configuration."""
    return IngestionEngine()


class TestIngestionEngine:
    """End-to-end tests through the engine."""

    def test_mixed_sources(
        self,
        engine: IngestionEngine,
        people_csv: Path,
        workbook_path: Path,
        sqlite_path: Path,
        records_ndjson: Path,
        parquet_path: Path,
    ) -> None:
        """Test importing one source of every kind."""
        ids = []
        for path in (people_csv, workbook_path, sqlite_path, records_ndjson, parquet_path):
            ids.extend(engine.register_path(path))

        progress = engine.run_to_completion()

        assert progress.report is None
        assert progress.done == progress.total == len(ids) == 7
        assert all(engine.status(i) is DatasetStatus.IMPORTED for i in ids)
        assert engine.stats(ids[0]) == (3, 4)

    def test_relational_active_flag(self, engine: IngestionEngine, sqlite_path: Path) -> None:
        """Test that a 0/1 integer column imports as boolean."""
        [dataset_id] = engine.register(RelationalSource(path=sqlite_path, tables=("users",)))

        engine.run_to_completion()

        table = engine.table(dataset_id)
        assert table is not None
        assert table.column_type("active") is ColumnType.BOOLEAN

    def test_warning_is_recorded(self, late_violation_csv: Path) -> None:
        """Test that the coercion warning reaches the dataset."""
        engine = IngestionEngine(EngineConfig(text=TextDefaults(sample_rows=1000)))
        [dataset_id] = engine.register_path(late_violation_csv)

        engine.run_to_completion()

        assert engine.status(dataset_id) is DatasetStatus.IMPORTED
        warning = engine.warning(dataset_id)
        assert warning is not None
        assert "age" in warning

    def test_error_and_reimport(self, engine: IngestionEngine, tmp_path: Path) -> None:
        """Test that a failed dataset can be fixed and imported again."""
        path = tmp_path / "later.csv"
        [dataset_id] = engine.register_path(path)

        progress = engine.run_to_completion()

        assert engine.status(dataset_id) is DatasetStatus.FAILED
        assert "not found" in (engine.error(dataset_id) or "")
        assert progress.report is not None

        path.write_text("a\n1\n", encoding="utf-8")
        engine.reimport(dataset_id)
        progress = engine.scheduler.run_to_completion()

        assert engine.status(dataset_id) is DatasetStatus.IMPORTED
        assert engine.error(dataset_id) is None
        assert progress.report is None

    def test_reimport_requires_finished_dataset(
        self, engine: IngestionEngine, people_csv: Path
    ) -> None:
        """Test that a pending dataset cannot be re-imported."""
        [dataset_id] = engine.register_path(people_csv)
        with pytest.raises(InvalidTransitionError):
            engine.reimport(dataset_id)

    def test_set_alias(self, engine: IngestionEngine, people_csv: Path) -> None:
        """Test that aliases change the display name only."""
        [dataset_id] = engine.register_path(people_csv)

        engine.set_alias(dataset_id, "people")

        _, dataset = engine.registry.find(dataset_id)
        assert dataset.display_name == "people"
        assert dataset.name == "people.csv"

    def test_remove_during_import(
        self, engine: IngestionEngine, people_csv: Path, records_json: Path
    ) -> None:
        """Test that removing a source drops its queued work."""
        engine.register_path(people_csv)
        [record_id] = engine.register_path(records_json)
        engine.enqueue_pending()

        engine.remove(0)
        progress = engine.scheduler.run_to_completion()

        assert [s.name for s in engine.sources] == ["records.json"]
        assert progress.done == progress.total == 1
        assert engine.status(record_id) is DatasetStatus.IMPORTED

    def test_cancel(self, engine: IngestionEngine, people_csv: Path) -> None:
        """Test that cancelling leaves datasets pending."""
        [dataset_id] = engine.register_path(people_csv)
        engine.enqueue_pending()

        assert engine.cancel() == 1
        assert engine.status(dataset_id) is DatasetStatus.PENDING

    def test_removing_last_queued_source_keeps_failure_report(
        self, engine: IngestionEngine, people_csv: Path, tmp_path: Path
    ) -> None:
        """Test that failures are reported when the rest of the queue is removed."""
        [missing_id] = engine.register_path(tmp_path / "missing.csv")
        engine.register_path(people_csv)
        engine.enqueue_pending()
        engine.tick()
        engine.tick()
        assert engine.status(missing_id) is DatasetStatus.FAILED

        engine.remove(1)
        progress = engine.tick()

        assert progress.report is not None
        assert progress.report.startswith("Source 'missing.csv', Dataset 'missing.csv': ")
        assert progress.done == progress.total == 1
        assert not progress.active
        assert engine.tick().report is None

    def test_removal_before_run_to_completion_keeps_failure_report(
        self, engine: IngestionEngine, people_csv: Path, tmp_path: Path
    ) -> None:
        """Test that run_to_completion hands out failures of a truncated run."""
        engine.register_path(tmp_path / "missing.csv")
        engine.register_path(people_csv)
        engine.enqueue_pending()
        engine.tick()
        engine.tick()
        engine.remove(1)

        progress = engine.scheduler.run_to_completion()

        assert progress.report is not None
        assert "missing.csv" in progress.report

    def test_repeated_sheet_selection_imports_once(
        self, engine: IngestionEngine, workbook_path: Path
    ) -> None:
        """Test that naming a worksheet twice leaves nothing pending after a run."""
        dataset_ids = engine.register_path(workbook_path, sheets=("People", "People"))

        progress = engine.run_to_completion()

        assert len(dataset_ids) == 1
        assert progress.done == progress.total == 1
        assert progress.report is None
        assert engine.status(dataset_ids[0]) is DatasetStatus.IMPORTED
        assert engine.registry.pending() == []

    def test_repeated_table_selection_imports_once(
        self, engine: IngestionEngine, sqlite_path: Path
    ) -> None:
        """Test that naming a table twice registers and imports it once."""
        dataset_ids = engine.register(RelationalSource(path=sqlite_path, tables=("users", "users")))

        engine.run_to_completion()

        assert len(engine.sources) == 1
        assert [engine.status(d) for d in dataset_ids] == [DatasetStatus.IMPORTED]
