"""Reading bulk files.

Two layers:

* ``BulkStreamReader`` turns physical rows into row-level objects: single
  entities, or ``SubEntityRow`` for rows of a multi-record entity. It keeps a
  one-row look-ahead so callers can ``try_read`` a row only when it matches.
* ``BulkFileReader`` groups consecutive ``SubEntityRow`` objects with the same
  group key into one container and yields complete entities.

Example::

    with fs.open(path, "r", encoding="utf-8-sig") as stream:
        with BulkFileReader(stream, log=log) as reader:
            for entity in reader:
                ...
"""

from __future__ import annotations

import csv
from collections.abc import Callable, Iterator
from typing import Any, TextIO

from bulk_platform.bulk.columns import TYPE
from bulk_platform.bulk.entities.base import (
    FORMAT_VERSION_TYPE,
    BulkEntity,
    BulkMultiRecordEntity,
    BulkSingleRecordEntity,
    FormatVersion,
    SubEntityRow,
)
from bulk_platform.bulk.entities.catalog import entity_class_for
from bulk_platform.bulk.file_type import BulkFileType
from bulk_platform.bulk.mappings import CURRENT_FORMAT_VERSION, SUPPORTED_FORMAT_VERSIONS
from bulk_platform.bulk.record import Record
from bulk_platform.errors import MalformedFileError, MappingError
from bulk_platform.services.logger.interface import LoggingInterface
from bulk_platform.services.metrics.interface import MetricsInterface
from bulk_platform.services.metrics.noop_metrics import NoopMetrics

RowObject = BulkEntity | SubEntityRow

_EMPTY = object()


class BulkStreamReader:
    def __init__(
        self,
        stream: TextIO,
        log: LoggingInterface,
        file_type: BulkFileType = BulkFileType.CSV,
        metrics: MetricsInterface | None = None,
    ) -> None:
        self._stream = stream
        self._rows = csv.reader(stream, delimiter=file_type.delimiter, strict=True)
        self._log = log
        self._metrics = metrics or NoopMetrics()
        self._header: list[str] | None = None
        self._next: Any = _EMPTY
        self.version = CURRENT_FORMAT_VERSION
        self.row_number = 0
        # Raw record of the row most recently read, kept for error attribution.
        self.last_record: Record | None = None

    @property
    def header(self) -> list[str] | None:
        return self._header

    def _physical_row(self) -> list[str] | None:
        try:
            row = next(self._rows)
        except StopIteration:
            return None
        except csv.Error as exc:
            raise MalformedFileError(str(exc), self._rows.line_num) from exc
        self.row_number = self._rows.line_num
        return row

    def _read_header(self) -> None:
        while True:
            row = self._physical_row()
            if row is None:
                self._header = []
                return
            if row:
                break
        if row[0] != TYPE:
            raise MalformedFileError(f"First header column must be '{TYPE}', got {row[0]!r}", self.row_number)
        if len(set(row)) != len(row):
            raise MalformedFileError("Header contains duplicate column names", self.row_number)
        self._header = row

    def _next_record(self) -> Record | None:
        self.last_record = None
        if self._header is None:
            self._read_header()
        assert self._header is not None
        while True:
            row = self._physical_row()
            if row is None:
                return None
            if not row:
                continue
            self.last_record = Record(zip(self._header, row))
            if len(row) != len(self._header):
                raise MalformedFileError(
                    f"Expected {len(self._header)} columns, found {len(row)}", self.row_number
                )
            return self.last_record

    def _materialize(self) -> RowObject | None:
        while True:
            record = self._next_record()
            if record is None:
                return None
            record_type = record.record_type
            if record_type == FORMAT_VERSION_TYPE:
                version = FormatVersion.from_record(record).value
                if version not in SUPPORTED_FORMAT_VERSIONS:
                    raise MalformedFileError(
                        f"Unsupported format version {version!r} "
                        f"(supported: {', '.join(SUPPORTED_FORMAT_VERSIONS)})",
                        self.row_number,
                    )
                self.version = version
                continue
            cls = entity_class_for(record_type)
            if cls is None:
                self._metrics.counter("bulk_rows_skipped_total")
                self._log.warn("Skipping row with unknown type", record_type=record_type, row=self.row_number)
                continue
            self._metrics.counter("bulk_rows_read_total")
            try:
                if issubclass(cls, BulkMultiRecordEntity):
                    return cls.row_from_record(record, self.version)
                assert issubclass(cls, BulkSingleRecordEntity)
                return cls.from_record(record, self.version)
            except MappingError as exc:
                raise exc.with_row(self.row_number)

    def peek(self) -> RowObject | None:
        if self._next is _EMPTY:
            self._next = self._materialize()
        return self._next

    def read(self) -> RowObject | None:
        """Next row object, or None at end of file."""
        obj = self.peek()
        self._next = _EMPTY
        return obj

    def try_read(self, predicate: Callable[[RowObject], bool]) -> RowObject | None:
        """Consume and return the next row object only if *predicate* accepts it."""
        obj = self.peek()
        if obj is None or not predicate(obj):
            return None
        self._next = _EMPTY
        return obj

    def close(self) -> None:
        self._stream.close()


class BulkFileReader:
    """Entity-level iterator over a bulk file. Closes the stream at exhaustion."""

    def __init__(
        self,
        stream: TextIO,
        log: LoggingInterface,
        file_type: BulkFileType = BulkFileType.CSV,
        metrics: MetricsInterface | None = None,
    ) -> None:
        self._reader = BulkStreamReader(stream, log, file_type, metrics)
        self._next: Any = _EMPTY
        self._closed = False
        # Raised by the row that would start the next group; surfaced on the next read.
        self._deferred: MappingError | None = None

    @property
    def version(self) -> str:
        return self._reader.version

    def _read_entity(self) -> BulkEntity | None:
        if self._deferred is not None:
            error, self._deferred = self._deferred, None
            raise error
        obj = self._reader.read()
        if obj is None:
            return None
        if not isinstance(obj, SubEntityRow):
            return obj
        first_row = self._reader.row_number
        key = obj.group_key
        container = obj.container
        subs = [] if obj.sub_entity is None else [obj.sub_entity]
        while True:
            try:
                row = self._reader.try_read(
                    lambda o: isinstance(o, SubEntityRow) and o.group_key == key
                )
            except MappingError as exc:
                if self._belongs_to_group(type(container), key, exc):
                    raise
                self._deferred = exc
                break
            if row is None:
                break
            assert isinstance(row, SubEntityRow)
            container.merge_row(row)
            if row.sub_entity is not None:
                subs.append(row.sub_entity)
        try:
            container.attach_sub_entities(subs)
        except MappingError as exc:
            raise exc.with_row(first_row)
        return container

    def _belongs_to_group(
        self, cls: type[BulkMultiRecordEntity], key: tuple[Any, ...], error: MappingError
    ) -> bool:
        """Whether the row that just failed to map is part of the group being read.

        A same-type row that is malformed, or whose identifier columns do not
        map, counts as part of the group.
        """
        record = self._reader.last_record
        if record is None or record.record_type != cls.record_type:
            return False
        if isinstance(error, MalformedFileError):
            return True
        raw_key = cls.group_key_from_record(record, self._reader.version)
        return raw_key is None or raw_key == key

    def peek(self) -> BulkEntity | None:
        if self._closed:
            return None
        if self._next is _EMPTY:
            self._next = self._read_entity()
        return self._next

    def read(self) -> BulkEntity | None:
        if self._closed:
            return None
        entity = self.peek()
        self._next = _EMPTY
        if entity is None:
            self.close()
        return entity

    def try_read(self, predicate: Callable[[BulkEntity], bool]) -> BulkEntity | None:
        """Consume the next entity only if *predicate* accepts it."""
        if self._closed:
            return None
        entity = self.peek()
        if entity is None or not predicate(entity):
            return None
        self._next = _EMPTY
        return entity

    def __iter__(self) -> Iterator[BulkEntity]:
        return self

    def __next__(self) -> BulkEntity:
        entity = self.read()
        if entity is None:
            raise StopIteration
        return entity

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._reader.close()

    def __enter__(self) -> BulkFileReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
