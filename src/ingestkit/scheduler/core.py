"""
Cooperative import scheduler.

The host calls ``tick`` from its own loop (a render frame, a CLI status
spinner). Each queue entry takes two ticks: the first announces it so the
host can show what is about to load, the second runs the adapter. At most
one dataset is processed per tick.
"""

from collections import deque
from dataclasses import dataclass

from ingestkit.errors import IngestError
from ingestkit.ingestion import adapter_for
from ingestkit.registry import DatasetRegistry, DatasetStatus
from ingestkit.utils.logging import get_logger, log_context

log = get_logger(__name__)


@dataclass(frozen=True)
class ImportQueueEntry:
    """One dataset waiting to be imported."""

    source_id: int
    dataset_name: str


@dataclass(frozen=True)
class SchedulerProgress:
    """
    Snapshot of the scheduler after a tick.

    Attributes:
        done: Entries processed in the current run.
        total: Entries queued in the current run.
        current_label: Entry announced as currently loading, if any.
        active: Whether entries remain to be processed.
        report: Newline-joined failure lines, set once when a run finishes
            with failures.
    """

    done: int
    total: int
    current_label: str | None = None
    active: bool = False
    report: str | None = None

    @property
    def fraction(self) -> float:
        """Completed share of the run, 1.0 for an empty run."""
        return self.done / self.total if self.total else 1.0


def failure_line(source_name: str, dataset_name: str, message: str) -> str:
    """Failure report line for one dataset."""
    return f"Source '{source_name}', Dataset '{dataset_name}': {message}"


class ImportScheduler:
    """
    FIFO import queue driven one tick at a time.

    The scheduler mutates the registry it is given and must run on the
    thread that owns that registry.
    """

    def __init__(self, registry: DatasetRegistry) -> None:
        """
        Initialize an idle scheduler.

        Args:
            registry: Registry whose pending datasets are imported.
        """
        self.registry = registry
        self.done = 0
        self.total = 0
        self._queue: deque[ImportQueueEntry] = deque()
        self._failures: list[str] = []
        self._announced: ImportQueueEntry | None = None

    @property
    def active(self) -> bool:
        """Whether entries remain to be processed."""
        return bool(self._queue)

    @property
    def queue(self) -> tuple[ImportQueueEntry, ...]:
        """Entries not yet processed, head first."""
        return tuple(self._queue)

    def enqueue_pending(self) -> int:
        """
        Queue every pending dataset that is not queued yet.

        Counters restart when the scheduler was idle; otherwise new entries
        extend the running total.

        Returns:
            Number of entries added.
        """
        if not self.active:
            self.done = 0
            self.total = 0
            self._failures = []

        queued = set(self._queue)
        added = [
            entry
            for entry in (ImportQueueEntry(*pending) for pending in self.registry.pending())
            if entry not in queued
        ]
        self._queue.extend(added)
        self.total += len(added)

        if added:
            log.info("Queued datasets", added=len(added), total=self.total)
        return len(added)

    def tick(self) -> SchedulerProgress:
        """
        Advance the scheduler by one step.

        Returns:
            Progress after the step. ``report`` is set only on the tick that
            finishes a run with failures, including a run whose remaining
            entries were discarded with their source.
        """
        if not self._queue:
            return self._finish() if self._failures else self.progress()

        head = self._queue[0]
        if self._announced != head:
            self._announced = head
            return self.progress()

        self._execute(head)
        self._queue.popleft()
        self._announced = None
        self.done += 1

        if self._queue:
            return self.progress()
        return self._finish()

    def cancel(self) -> int:
        """
        Discard every queued entry.

        Finished datasets keep their status; discarded ones stay pending.

        Returns:
            Number of entries discarded.
        """
        discarded = len(self._queue)
        self._queue.clear()
        self._announced = None
        self.total = self.done
        if discarded:
            log.info("Cancelled import", discarded=discarded, done=self.done)
        return discarded

    def discard_source(self, source_id: int) -> int:
        """
        Drop the entries of a data source that is about to be removed.

        Entries of later sources are renumbered to match the registry's
        reindexing.

        Returns:
            Number of entries dropped.
        """
        kept: deque[ImportQueueEntry] = deque()
        dropped = 0
        for entry in self._queue:
            if entry.source_id == source_id:
                dropped += 1
            elif entry.source_id > source_id:
                kept.append(ImportQueueEntry(entry.source_id - 1, entry.dataset_name))
            else:
                kept.append(entry)

        announced_kept = self._announced is not None and self._announced.source_id != source_id
        self._queue = kept
        self._announced = kept[0] if announced_kept and kept else None
        self.total -= dropped
        return dropped

    def run_to_completion(self) -> SchedulerProgress:
        """
        Tick until the queue is empty.

        Returns:
            Progress of the final tick, carrying the failure report if any.
        """
        progress = self.progress()
        while self._queue:
            progress = self.tick()
        if self._failures:
            progress = self._finish()
        return progress

    def progress(self) -> SchedulerProgress:
        """Current progress without advancing."""
        return SchedulerProgress(
            done=self.done,
            total=self.total,
            current_label=self._label(self._announced) if self._announced else None,
            active=self.active,
        )

    def _label(self, entry: ImportQueueEntry) -> str:
        source = self.registry.source(entry.source_id)
        return f"Loading {source.name} / {entry.dataset_name} ({self.done + 1}/{self.total})"

    def _finish(self) -> SchedulerProgress:
        report = "\n".join(self._failures) if self._failures else None
        self._failures = []
        log.info("Import finished", done=self.done, total=self.total, failed=report is not None)
        return SchedulerProgress(done=self.done, total=self.total, active=False, report=report)

    def _execute(self, entry: ImportQueueEntry) -> None:
        """Import one dataset and record the outcome in the registry."""
        source = self.registry.source(entry.source_id)
        dataset = self.registry.dataset(entry.source_id, entry.dataset_name)

        if dataset.status is not DatasetStatus.PENDING:
            log.warning(
                "Skipping dataset that is no longer pending",
                source=source.name,
                dataset=dataset.name,
                status=dataset.status.value,
            )
            return

        self.registry.set_status(source.id, dataset.name, DatasetStatus.PROCESSING)
        self.registry.set_error(source.id, dataset.name, None)

        with log_context(source=source.name, dataset=dataset.name):
            try:
                table = adapter_for(source.descriptor).adapt(source.descriptor, dataset.name)
            except IngestError as e:
                message = str(e) or type(e).__name__
                log.error("Import failed", error=message)
            except Exception as e:
                message = f"{type(e).__name__}: {e!s}"
                log.exception("Import failed unexpectedly")
            else:
                self.registry.store_table(dataset.id, table)
                self.registry.set_stats(source.id, dataset.name, table.row_count, table.column_count)
                self.registry.set_warning(
                    source.id, dataset.name, "\n".join(table.warnings) or None
                )
                self.registry.set_status(source.id, dataset.name, DatasetStatus.IMPORTED)
                log.info("Imported dataset", rows=table.row_count, columns=table.column_count)
                return

        self.registry.set_error(source.id, dataset.name, message)
        self.registry.set_status(source.id, dataset.name, DatasetStatus.FAILED)
        self._failures.append(failure_line(source.name, dataset.name, message))
