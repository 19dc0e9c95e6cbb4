"""Declarative, bidirectional field mappings between entities and records.

A ``FieldMapping`` binds one column (or a per-instance column selector) to a
serializer and a deserializer. Mappings are grouped into ordered tables, one
per entity-type level, and every entity class declares the explicit chain of
tables it is made of (base first). ``to_record`` and ``from_record`` walk that
chain; there is no per-class serialization code.

Example::

    ACCOUNT_TABLE: MappingTable = (
        field_mapping(ID, "id", to_bulk_int, parse_int),
        field_mapping(SYNC_TIME, "sync_time", to_bulk_datetime, parse_datetime,
                      readonly=True),
    )
    record = to_record(account, (ACCOUNT_TABLE,))
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from bulk_platform.bulk.record import Record
from bulk_platform.errors import FormatError, MappingError

T = TypeVar("T")

CURRENT_FORMAT_VERSION = "4.0"
SUPPORTED_FORMAT_VERSIONS = ("3.0", "4.0")


class _Omit:
    _instance: _Omit | None = None

    def __new__(cls) -> _Omit:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "OMIT"


OMIT = _Omit()
"""Returned by a serializer to leave its column out of the record."""


def version_key(version: str) -> tuple[int, ...]:
    try:
        return tuple(int(part) for part in version.split("."))
    except ValueError:
        raise ValueError(f"Invalid format version: {version!r}") from None


@dataclass(frozen=True)
class FieldMapping(Generic[T]):
    """One column of one entity-type level.

    ``column`` is either a fixed column name or a pure function of the entity
    instance returning the column name.
    """

    column: str | Callable[[T], str]
    to_value: Callable[[T], str | _Omit]
    from_value: Callable[[str, T], None]
    required: bool = True
    readonly: bool = False
    since: str | None = None

    @property
    def is_dynamic(self) -> bool:
        return callable(self.column)

    def column_for(self, entity: T) -> str:
        if callable(self.column):
            name = self.column(entity)
            if not name:
                raise MappingError(
                    f"Dynamic column name resolved to {name!r} for {type(entity).__name__}"
                )
            return name
        return self.column

    def applies_to(self, version: str) -> bool:
        return self.since is None or version_key(version) >= version_key(self.since)


MappingTable = tuple[FieldMapping[Any], ...]


def field_mapping(
    column: str | Callable[[Any], str],
    attr: str,
    to_bulk: Callable[[Any], str],
    parse: Callable[[str], Any],
    *,
    required: bool = True,
    readonly: bool = False,
    since: str | None = None,
) -> FieldMapping[Any]:
    """Mapping for a column that holds exactly one attribute of the entity."""

    def to_value(entity: Any) -> str:
        return to_bulk(getattr(entity, attr))

    def from_value(text: str, entity: Any) -> None:
        setattr(entity, attr, parse(text))

    return FieldMapping(
        column=column,
        to_value=to_value,
        from_value=from_value,
        required=required,
        readonly=readonly,
        since=since,
    )


def compose_tables(*tables: MappingTable) -> tuple[MappingTable, ...]:
    """Build a base -> derived table chain.

    No two levels may claim the same static column; reads apply levels in any
    order, so overlapping columns would make the result order-dependent.
    """
    seen: dict[str, int] = {}
    for level, table in enumerate(tables):
        for mapping in table:
            if mapping.is_dynamic:
                continue
            column = mapping.column
            if column in seen and seen[column] != level:
                raise ValueError(
                    f"Column '{column}' is claimed by mapping levels {seen[column]} and {level}"
                )
            seen[column] = level
    return tuple(tables)


class RecordBuilder:
    """Accumulates columns from one or more (entity, tables) pairs into a Record."""

    def __init__(
        self,
        version: str = CURRENT_FORMAT_VERSION,
        exclude_readonly_data: bool = False,
    ) -> None:
        self.version = version
        self.exclude_readonly_data = exclude_readonly_data
        self._values: dict[str, str] = {}

    def apply(self, entity: Any, tables: Iterable[MappingTable]) -> RecordBuilder:
        for table in tables:
            for mapping in table:
                if not mapping.applies_to(self.version):
                    continue
                if mapping.readonly and self.exclude_readonly_data:
                    continue
                try:
                    value = mapping.to_value(entity)
                except (ValueError, TypeError) as exc:
                    raise FormatError(mapping.column_for(entity), None, str(exc)) from exc
                if value is OMIT:
                    continue
                column = mapping.column_for(entity)
                if column in self._values:
                    raise MappingError(
                        f"Column '{column}' written twice for {type(entity).__name__}"
                    )
                self._values[column] = value
        return self

    def fill(self, column: str, value: str) -> RecordBuilder:
        """Set *column* unless a non-empty value is already present."""
        if not self._values.get(column):
            self._values[column] = value
        return self

    def build(self) -> Record:
        return Record(self._values)


def to_record(
    entity: Any,
    tables: Iterable[MappingTable],
    exclude_readonly_data: bool = False,
    version: str = CURRENT_FORMAT_VERSION,
) -> Record:
    """Serialize *entity* through every level of *tables*, base first."""
    return RecordBuilder(version, exclude_readonly_data).apply(entity, tables).build()


def from_record(
    record: Record,
    entity: T,
    tables: Iterable[MappingTable],
    version: str = CURRENT_FORMAT_VERSION,
) -> T:
    """Populate *entity* from *record* through every level of *tables*.

    Raises ``MappingError`` when a required column is absent and
    ``FormatError`` when a present value cannot be parsed.
    """
    for table in tables:
        for mapping in table:
            if not mapping.applies_to(version):
                continue
            column = mapping.column_for(entity)
            if column not in record:
                if mapping.required:
                    raise MappingError(
                        f"Column '{column}' required by {type(entity).__name__} not found"
                    )
                continue
            raw = record[column]
            try:
                mapping.from_value(raw, entity)
            except MappingError:
                raise
            except (ValueError, TypeError) as exc:
                raise FormatError(column, raw, str(exc)) from exc
    return entity


def has_values(record: Record, tables: Iterable[MappingTable], entity: Any) -> bool:
    """True when any column of *tables* is present and non-empty in *record*."""
    for table in tables:
        for mapping in table:
            if record.get(mapping.column_for(entity), "") != "":
                return True
    return False
