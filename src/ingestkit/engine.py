"""
The ingestion engine: registry and scheduler behind one facade.

Hosts register descriptors (or bare paths), queue pending datasets and
call ``tick`` from their own loop, or ``run_to_completion`` when they
have none.
"""

from pathlib import Path
from typing import Any

from ingestkit.config.settings import EngineConfig
from ingestkit.registry import DataSource, DatasetRegistry, DatasetStatus
from ingestkit.scheduler import ImportScheduler, SchedulerProgress
from ingestkit.sources import SourceDescriptor, descriptor_for_path
from ingestkit.table import UniformTable
from ingestkit.utils.logging import get_logger

log = get_logger(__name__)


class IngestionEngine:
    """
    Registers sources and imports their datasets cooperatively.

    Not thread-safe: every call must come from the thread that drives
    ``tick``.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        """
        Initialize an engine with an empty registry.

        Args:
            config: Engine configuration; defaults apply if omitted.
        """
        self.config = config or EngineConfig()
        self.registry = DatasetRegistry()
        self.scheduler = ImportScheduler(self.registry)

    @property
    def sources(self) -> tuple[DataSource, ...]:
        """Registered data sources."""
        return self.registry.sources

    def register(self, descriptor: SourceDescriptor) -> list[str]:
        """Register a descriptor; returns the ids of its pending datasets."""
        return self.registry.register(descriptor)

    def register_path(self, path: Path, **options: Any) -> list[str]:
        """
        Register a file, choosing the source kind from its extension.

        Args:
            path: Source file.
            **options: Descriptor options; those not applicable to the
                detected kind are ignored.

        Returns:
            Ids of the created datasets.
        """
        descriptor = descriptor_for_path(Path(path), self.config.text, **options)
        return self.register(descriptor)

    def enqueue_pending(self) -> int:
        """Queue every pending dataset; returns the number queued."""
        return self.scheduler.enqueue_pending()

    def tick(self) -> SchedulerProgress:
        """Advance the import by one step."""
        return self.scheduler.tick()

    def run_to_completion(self) -> SchedulerProgress:
        """Queue pending datasets and import them all."""
        self.enqueue_pending()
        return self.scheduler.run_to_completion()

    def cancel(self) -> int:
        """Discard queued imports; returns the number discarded."""
        return self.scheduler.cancel()

    def status(self, dataset_id: str) -> DatasetStatus:
        """Import status of a dataset."""
        return self.registry.find(dataset_id)[1].status

    def error(self, dataset_id: str) -> str | None:
        """Error message of a failed dataset."""
        return self.registry.find(dataset_id)[1].error_message

    def warning(self, dataset_id: str) -> str | None:
        """Warning recorded by the last successful import of a dataset."""
        return self.registry.find(dataset_id)[1].warning

    def stats(self, dataset_id: str) -> tuple[int, int]:
        """``(row_count, column_count)`` of a dataset."""
        dataset = self.registry.find(dataset_id)[1]
        return dataset.row_count, dataset.column_count

    def table(self, dataset_id: str) -> UniformTable | None:
        """Imported table of a dataset, if it has one."""
        return self.registry.table(dataset_id)

    def set_alias(self, dataset_id: str, alias: str | None) -> None:
        """Set or clear the display alias of a dataset."""
        source, _ = self.registry.find(dataset_id)
        self.registry.set_alias(source.id, dataset_id, alias)

    def reimport(self, dataset_id: str) -> None:
        """
        Return a finished dataset to pending and queue it again.

        Raises:
            InvalidTransitionError: If the dataset has not finished importing.
        """
        self.registry.reset(dataset_id)
        self.enqueue_pending()

    def remove(self, source_id: int) -> DataSource:
        """
        Remove a data source, its datasets and their queued imports.

        Returns:
            The removed source.
        """
        self.registry.source(source_id)
        self.scheduler.discard_source(source_id)
        return self.registry.remove(source_id)
