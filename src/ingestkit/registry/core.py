"""
The dataset registry.

Holds every registered data source and its datasets, enforces the
dataset status state machine and keeps aggregate counts current. It is
owned by the thread driving the scheduler and is never shared.
"""

from ingestkit.errors import InvalidTransitionError
from ingestkit.ingestion import adapter_for
from ingestkit.registry.models import DataSource, Dataset, DatasetStatus, is_legal_transition
from ingestkit.sources.descriptor import SourceDescriptor
from ingestkit.table import UniformTable
from ingestkit.utils.logging import get_logger

log = get_logger(__name__)


class DatasetRegistry:
    """
    Registry of data sources, their datasets and imported tables.

    Data source ids are sequential from 0 and are reassigned after a
    removal; dataset ids are stable UUIDs.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._sources: list[DataSource] = []
        self._tables: dict[str, UniformTable] = {}

    @property
    def sources(self) -> tuple[DataSource, ...]:
        """Registered data sources in id order."""
        return tuple(self._sources)

    def register(self, descriptor: SourceDescriptor) -> list[str]:
        """
        Register a descriptor as one or more pending datasets.

        Relational imports of several tables become one data source per
        table; other descriptors become a single data source with one
        dataset per worksheet or file.

        Args:
            descriptor: Source to register.

        Returns:
            Ids of the created datasets.

        Raises:
            IngestError: If the source must be read to list its datasets
                and cannot be.
        """
        adapter = adapter_for(descriptor)
        dataset_ids: list[str] = []

        for part in adapter.split(descriptor):
            # dataset names are unique within a source
            names = dict.fromkeys(adapter.dataset_names(part))
            datasets = [Dataset(name=name) for name in names]
            source = DataSource(id=len(self._sources), descriptor=part, datasets=datasets)
            self._sources.append(source)
            dataset_ids.extend(d.id for d in datasets)
            log.info(
                "Registered data source",
                source_id=source.id,
                source=source.name,
                variant=source.variant.value,
                datasets=[d.name for d in datasets],
            )

        if not dataset_ids:
            log.warning("Source yielded no datasets", path=descriptor.location)

        return dataset_ids

    def source(self, source_id: int) -> DataSource:
        """
        Data source with id ``source_id``.

        Raises:
            KeyError: If no such source exists.
        """
        if 0 <= source_id < len(self._sources):
            return self._sources[source_id]
        msg = f"Unknown data source id: {source_id}"
        raise KeyError(msg)

    def dataset(self, source_id: int, dataset_name: str) -> Dataset:
        """
        Dataset ``dataset_name`` of source ``source_id``.

        Raises:
            KeyError: If the source or dataset does not exist.
        """
        dataset = self.source(source_id).dataset(dataset_name)
        if dataset is None:
            msg = f"Unknown dataset '{dataset_name}' in data source {source_id}"
            raise KeyError(msg)
        return dataset

    def find(self, dataset_id: str) -> tuple[DataSource, Dataset]:
        """
        Owning source and dataset for a dataset id.

        Raises:
            KeyError: If no dataset has this id.
        """
        for source in self._sources:
            for dataset in source.datasets:
                if dataset.id == dataset_id:
                    return source, dataset
        msg = f"Unknown dataset id: {dataset_id}"
        raise KeyError(msg)

    def datasets(self) -> list[tuple[DataSource, Dataset]]:
        """All datasets with their sources, in registration order."""
        return [(source, dataset) for source in self._sources for dataset in source.datasets]

    def pending(self) -> list[tuple[int, str]]:
        """``(source_id, dataset_name)`` of every pending dataset."""
        return [
            (source.id, dataset.name)
            for source, dataset in self.datasets()
            if dataset.status is DatasetStatus.PENDING
        ]

    def set_status(self, source_id: int, dataset_name: str, status: DatasetStatus) -> None:
        """
        Move a dataset to ``status``.

        Raises:
            InvalidTransitionError: If the state machine forbids the change,
                or a dataset would fail without an error message.
        """
        source = self.source(source_id)
        dataset = self.dataset(source_id, dataset_name)

        if not is_legal_transition(dataset.status, status):
            msg = (
                f"Dataset '{dataset_name}' cannot move from "
                f"{dataset.status.display_name} to {status.display_name}"
            )
            raise InvalidTransitionError(msg)
        if status is DatasetStatus.FAILED and not dataset.error_message:
            msg = f"Dataset '{dataset_name}' cannot fail without an error message"
            raise InvalidTransitionError(msg)

        dataset.status = status
        source.update_counts()

    def set_stats(self, source_id: int, dataset_name: str, row_count: int, column_count: int) -> None:
        """Record the row and column counts of a dataset."""
        source = self.source(source_id)
        dataset = self.dataset(source_id, dataset_name)
        dataset.row_count = row_count
        dataset.column_count = column_count
        source.update_counts()

    def set_error(self, source_id: int, dataset_name: str, error: str | None) -> None:
        """Record or clear a dataset's error message."""
        source = self.source(source_id)
        self.dataset(source_id, dataset_name).error_message = error
        source.update_counts()

    def set_warning(self, source_id: int, dataset_name: str, warning: str | None) -> None:
        """Record or clear a dataset's import warning."""
        source = self.source(source_id)
        self.dataset(source_id, dataset_name).warning = warning
        source.update_counts()

    def set_alias(self, source_id: int, dataset_id: str, alias: str | None) -> None:
        """Set or clear the display alias of a dataset."""
        source = self.source(source_id)
        dataset = next((d for d in source.datasets if d.id == dataset_id), None)
        if dataset is None:
            msg = f"Unknown dataset id {dataset_id} in data source {source_id}"
            raise KeyError(msg)
        if alias is not None:
            alias = alias.strip() or None
        dataset.alias = alias
        source.update_counts()

    def store_table(self, dataset_id: str, table: UniformTable) -> None:
        """Keep the imported table of a dataset."""
        self.find(dataset_id)
        self._tables[dataset_id] = table

    def table(self, dataset_id: str) -> UniformTable | None:
        """Imported table of a dataset, if it has one."""
        return self._tables.get(dataset_id)

    def reset(self, dataset_id: str) -> None:
        """
        Start a fresh import cycle for a finished dataset.

        The dataset returns to pending and loses its error, warning and
        stored table.

        Raises:
            InvalidTransitionError: If the dataset is not in a terminal state.
        """
        source, dataset = self.find(dataset_id)
        self.set_status(source.id, dataset.name, DatasetStatus.PENDING)
        dataset.error_message = None
        dataset.warning = None
        self._tables.pop(dataset_id, None)
        source.update_counts()

    def remove(self, source_id: int) -> DataSource:
        """
        Remove a data source with its datasets and tables.

        Remaining sources are renumbered sequentially from 0.

        Returns:
            The removed source.
        """
        source = self.source(source_id)
        del self._sources[source_id]
        for dataset in source.datasets:
            self._tables.pop(dataset.id, None)
        for idx, remaining in enumerate(self._sources):
            remaining.id = idx
        log.info("Removed data source", source_id=source_id, source=source.name)
        return source
