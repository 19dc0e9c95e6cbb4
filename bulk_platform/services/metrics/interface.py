from __future__ import annotations

from abc import ABC, abstractmethod


class MetricsInterface(ABC):
    """Counters, gauges and histograms for bulk jobs.

    Metric names used across the package:
        bulk_status_polls_total      one per status round trip (tags: kind)
        bulk_status_poll_failures_total
        bulk_operations_finished_total (tags: kind, status)
        bulk_rows_read_total / bulk_rows_written_total / bulk_rows_skipped_total
        bulk_files_transferred_total (tags: direction)
    """

    @abstractmethod
    def counter(self, name: str, value: float = 1, tags: dict[str, str] | None = None) -> None:
        ...

    @abstractmethod
    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None: ...

    @abstractmethod
    def histogram(self, name: str, value: float, tags: dict[str, str] | None = None) -> None: ...
