"""Tests for the tick-driven import scheduler."""

from pathlib import Path

import pytest

from ingestkit.ingestion import ADAPTERS, TextAdapter
from ingestkit.registry import DatasetRegistry, DatasetStatus
from ingestkit.scheduler import ImportQueueEntry, ImportScheduler
from ingestkit.sources import SpreadsheetSource, TextSource
from ingestkit.table import UniformTable


def _write_csvs(directory: Path, count: int) -> list[Path]:
    paths = []
    for idx in range(1, count + 1):
        path = directory / f"part{idx}.csv"
        path.write_text(f"n,label\n{idx},row{idx}\n", encoding="utf-8")
        paths.append(path)
    return paths


@pytest.fixture
def registry() -> DatasetRegistry:
    """Return an empty registry."""
    return DatasetRegistry()


@pytest.fixture
def scheduler(registry: DatasetRegistry) -> ImportScheduler:
    """Return an idle scheduler over the registry."""
    return ImportScheduler(registry)


class TestTick:
    """Tests for the announce and execute phases."""

    def test_idle_tick_is_noop(self, scheduler: ImportScheduler) -> None:
        """Test that ticking an empty queue changes nothing."""
        progress = scheduler.tick()
        assert not progress.active
        assert (progress.done, progress.total) == (0, 0)
        assert progress.report is None

    def test_announce_then_execute(
        self, registry: DatasetRegistry, scheduler: ImportScheduler, people_csv: Path
    ) -> None:
        """Test that an entry is announced one tick before it runs."""
        [dataset_id] = registry.register(TextSource(path=people_csv))
        assert scheduler.enqueue_pending() == 1

        announced = scheduler.tick()
        _, dataset = registry.find(dataset_id)

        assert announced.active
        assert announced.current_label == "Loading people.csv / people.csv (1/1)"
        assert dataset.status is DatasetStatus.PENDING

        finished = scheduler.tick()

        assert not finished.active
        assert (finished.done, finished.total) == (1, 1)
        assert finished.report is None
        assert dataset.status is DatasetStatus.IMPORTED
        assert (dataset.row_count, dataset.column_count) == (3, 4)
        assert registry.table(dataset_id) is not None

    def test_enqueue_skips_queued_entries(
        self, registry: DatasetRegistry, scheduler: ImportScheduler, workbook_path: Path
    ) -> None:
        """Test that pending datasets are queued once."""
        registry.register(SpreadsheetSource(path=workbook_path))

        assert scheduler.enqueue_pending() == 2
        assert scheduler.enqueue_pending() == 0
        assert scheduler.queue == (
            ImportQueueEntry(0, "People"),
            ImportQueueEntry(0, "Empty"),
        )


class TestFailures:
    """Tests for failure isolation and reporting."""

    def test_one_failing_entry(
        self, registry: DatasetRegistry, scheduler: ImportScheduler, tmp_path: Path
    ) -> None:
        """Test that a failing entry does not stop the queue."""
        first, second, third = _write_csvs(tmp_path, 3)
        ids = registry.register(TextSource(path=first, additional_paths=(second, third)))
        second.unlink()

        scheduler.enqueue_pending()
        progress = scheduler.run_to_completion()

        statuses = [registry.find(i)[1].status for i in ids]
        assert statuses == [
            DatasetStatus.IMPORTED,
            DatasetStatus.FAILED,
            DatasetStatus.IMPORTED,
        ]
        assert progress.done == progress.total == 3
        assert progress.report is not None
        assert len(progress.report.splitlines()) == 1
        assert progress.report.startswith("Source 'part1.csv', Dataset 'part2.csv': ")
        assert "Text file not found" in progress.report

        _, failed = registry.find(ids[1])
        assert failed.error_message
        assert "not found" in failed.error_message
        assert registry.sources[0].failed_count == 1

    @pytest.mark.parametrize(("count", "failing"), [(1, 0), (4, 2), (5, 4)])
    def test_n_entries_with_kth_failing(
        self,
        registry: DatasetRegistry,
        scheduler: ImportScheduler,
        tmp_path: Path,
        count: int,
        failing: int,
    ) -> None:
        """Test counts and statuses with one failing entry at any position."""
        paths = _write_csvs(tmp_path, count)
        ids = registry.register(TextSource(path=paths[0], additional_paths=tuple(paths[1:])))
        paths[failing].write_text("a,b\n1,2,3\n", encoding="utf-8")

        scheduler.enqueue_pending()
        progress = scheduler.run_to_completion()

        assert progress.done == progress.total == count
        for idx, dataset_id in enumerate(ids):
            _, dataset = registry.find(dataset_id)
            if idx == failing:
                assert dataset.status is DatasetStatus.FAILED
                assert dataset.error_message
            else:
                assert dataset.status is DatasetStatus.IMPORTED

    def test_unexpected_exception_is_recorded(
        self,
        registry: DatasetRegistry,
        scheduler: ImportScheduler,
        people_csv: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that non-ingestion errors fail the dataset with their type name."""

        class ExplodingAdapter(TextAdapter):
            def _read(self, descriptor: TextSource, dataset_name: str) -> UniformTable:
                msg = "kaboom"
                raise RuntimeError(msg)

        monkeypatch.setitem(ADAPTERS, TextSource, ExplodingAdapter())
        [dataset_id] = registry.register(TextSource(path=people_csv))

        scheduler.enqueue_pending()
        progress = scheduler.run_to_completion()

        assert registry.find(dataset_id)[1].error_message == "RuntimeError: kaboom"
        assert progress.report == "Source 'people.csv', Dataset 'people.csv': RuntimeError: kaboom"

    def test_report_is_handed_out_once(
        self, registry: DatasetRegistry, scheduler: ImportScheduler, tmp_path: Path
    ) -> None:
        """Test that later idle ticks carry no report."""
        registry.register(TextSource(path=tmp_path / "missing.csv"))

        scheduler.enqueue_pending()
        assert scheduler.run_to_completion().report is not None
        assert scheduler.tick().report is None


class TestQueueControl:
    """Tests for cancellation and source removal."""

    def test_cancel_keeps_pending(
        self, registry: DatasetRegistry, scheduler: ImportScheduler, tmp_path: Path
    ) -> None:
        """Test that cancelled entries stay pending and finished ones stay put."""
        paths = _write_csvs(tmp_path, 3)
        ids = registry.register(TextSource(path=paths[0], additional_paths=tuple(paths[1:])))
        scheduler.enqueue_pending()
        scheduler.tick()
        scheduler.tick()

        assert scheduler.cancel() == 2

        statuses = [registry.find(i)[1].status for i in ids]
        assert statuses == [
            DatasetStatus.IMPORTED,
            DatasetStatus.PENDING,
            DatasetStatus.PENDING,
        ]
        progress = scheduler.tick()
        assert not progress.active
        assert (progress.done, progress.total) == (1, 1)

    def test_enqueue_after_cancel_restarts_counters(
        self, registry: DatasetRegistry, scheduler: ImportScheduler, tmp_path: Path
    ) -> None:
        """Test that a new run counts only the newly queued entries."""
        paths = _write_csvs(tmp_path, 2)
        registry.register(TextSource(path=paths[0], additional_paths=(paths[1],)))
        scheduler.enqueue_pending()
        scheduler.cancel()

        assert scheduler.enqueue_pending() == 2
        progress = scheduler.run_to_completion()
        assert (progress.done, progress.total) == (2, 2)

    def test_discard_source_renumbers_entries(
        self,
        registry: DatasetRegistry,
        scheduler: ImportScheduler,
        people_csv: Path,
        workbook_path: Path,
    ) -> None:
        """Test that entries of later sources follow the registry reindexing."""
        registry.register(TextSource(path=people_csv))
        registry.register(SpreadsheetSource(path=workbook_path))
        scheduler.enqueue_pending()

        assert scheduler.discard_source(0) == 1

        assert scheduler.queue == (
            ImportQueueEntry(0, "People"),
            ImportQueueEntry(0, "Empty"),
        )
        assert scheduler.total == 2
