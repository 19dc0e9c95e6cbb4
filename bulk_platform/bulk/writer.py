"""Writing bulk files: header row, ``Format Version`` row, then entity rows."""

from __future__ import annotations

import csv
from collections.abc import Iterable
from typing import TextIO

from bulk_platform.bulk.columns import CSV_HEADERS
from bulk_platform.bulk.entities.base import BulkEntity, FormatVersion
from bulk_platform.bulk.file_type import BulkFileType
from bulk_platform.bulk.mappings import CURRENT_FORMAT_VERSION, SUPPORTED_FORMAT_VERSIONS
from bulk_platform.bulk.record import Record
from bulk_platform.errors import MappingError
from bulk_platform.services.metrics.interface import MetricsInterface
from bulk_platform.services.metrics.noop_metrics import NoopMetrics


class BulkFileWriter:
    """Writes entities to *stream* in canonical column order.

    With ``exclude_readonly_data`` every read-only column (modified times,
    editorial status, ...) is left empty, which is what an upload expects.
    """

    def __init__(
        self,
        stream: TextIO,
        file_type: BulkFileType = BulkFileType.CSV,
        exclude_readonly_data: bool = False,
        version: str = CURRENT_FORMAT_VERSION,
        metrics: MetricsInterface | None = None,
    ) -> None:
        if version not in SUPPORTED_FORMAT_VERSIONS:
            raise ValueError(f"Unsupported format version: {version!r}")
        self._stream = stream
        self._csv = csv.writer(stream, delimiter=file_type.delimiter, lineterminator="\r\n")
        self._metrics = metrics or NoopMetrics()
        self.exclude_readonly_data = exclude_readonly_data
        self.version = version
        self.rows_written = 0
        self._closed = False
        self._csv.writerow(CSV_HEADERS)
        self._write_record(FormatVersion(version).to_record())

    def _write_record(self, record: Record) -> None:
        unknown = [c for c in record if c not in CSV_HEADERS]
        if unknown:
            raise MappingError(f"Record has columns outside the file header: {', '.join(unknown)}")
        self._csv.writerow(record.project(CSV_HEADERS))

    def write_record(self, record: Record) -> None:
        if self._closed:
            raise ValueError("Writer is closed")
        self._write_record(record)
        self.rows_written += 1
        self._metrics.counter("bulk_rows_written_total")

    def write_entity(self, entity: BulkEntity) -> None:
        """Append one entity. Multi-record entities may expand to several rows."""
        records = entity.to_records(self.exclude_readonly_data, self.version)
        for record in records:
            self.write_record(record)

    def write_entities(self, entities: Iterable[BulkEntity]) -> int:
        count = 0
        for entity in entities:
            self.write_entity(entity)
            count += 1
        return count

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._stream.close()

    def __enter__(self) -> BulkFileWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
