"""Entity model shared by every bulk record type.

Two shapes exist:

* ``BulkSingleRecordEntity`` -- one row is one entity.
* ``BulkMultiRecordEntity`` -- a container whose sub-entities (bids) are spread
  over consecutive rows sharing the same ``Type`` and parent id. A container
  with no sub-entities is written as a single identifier row so that an upload
  can replace the remote set with nothing.

Serialization is entirely table driven: each class lists the mapping tables it
is built from in ``mapping_tables`` (single) or ``container_tables`` +
``sub_entity_tables`` (multi).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from bulk_platform.bulk.columns import (
    AD_GROUP,
    CAMPAIGN,
    ERROR,
    ERROR_NUMBER,
    NAME,
    PARENT_ID,
    STATUS,
    TYPE,
)
from bulk_platform.bulk.formats import (
    parse_enum,
    parse_int,
    parse_str,
    to_bulk_enum,
    to_bulk_int,
    to_bulk_str,
)
from bulk_platform.bulk.mappings import (
    CURRENT_FORMAT_VERSION,
    OMIT,
    FieldMapping,
    MappingTable,
    RecordBuilder,
    field_mapping,
    from_record,
    has_values,
)
from bulk_platform.bulk.record import Record
from bulk_platform.errors import MappingError

FORMAT_VERSION_TYPE = "Format Version"


class EntityStatus(str, Enum):
    ACTIVE = "Active"
    PAUSED = "Paused"
    DELETED = "Deleted"


def parse_status(text: str) -> EntityStatus | None:
    return parse_enum(EntityStatus, text)


@dataclass
class RowError:
    """An error the remote service attached to a row of a result file."""

    message: str
    number: int | None = None


@dataclass
class FormatVersion:
    """The ``Format Version`` row that follows the header of every bulk file."""

    value: str = CURRENT_FORMAT_VERSION

    record_type: ClassVar[str] = FORMAT_VERSION_TYPE

    def to_record(self) -> Record:
        return Record({TYPE: FORMAT_VERSION_TYPE, NAME: self.value})

    @classmethod
    def from_record(cls, record: Record) -> FormatVersion:
        return cls(value=record.get(NAME, "") or CURRENT_FORMAT_VERSION)


# ── Shared mapping tables ────────────────────────────────────────────────────


def _ignore(text: str, entity: Any) -> None:
    return None


def _read_error(text: str, entity: BulkEntity) -> None:
    if text:
        entity.errors.append(RowError(message=text))


def _read_error_number(text: str, entity: BulkEntity) -> None:
    number = parse_int(text)
    if number is None:
        return
    if entity.errors and entity.errors[-1].number is None:
        entity.errors[-1].number = number
    else:
        entity.errors.append(RowError(message="", number=number))


TYPE_TABLE: MappingTable = (
    FieldMapping(TYPE, lambda e: e.record_type, _ignore),
)

# Errors only ever come back from the service; they are never written.
ERROR_TABLE: MappingTable = (
    FieldMapping(ERROR, lambda e: OMIT, _read_error, required=False, readonly=True),
    FieldMapping(ERROR_NUMBER, lambda e: OMIT, _read_error_number, required=False, readonly=True),
)

CAMPAIGN_TARGET_IDENTIFIER_TABLE: MappingTable = (
    field_mapping(STATUS, "status", to_bulk_enum, parse_status),
    field_mapping(PARENT_ID, "entity_id", to_bulk_int, parse_int),
    field_mapping(CAMPAIGN, "entity_name", to_bulk_str, parse_str),
)

AD_GROUP_TARGET_IDENTIFIER_TABLE: MappingTable = (
    field_mapping(STATUS, "status", to_bulk_enum, parse_status),
    field_mapping(PARENT_ID, "entity_id", to_bulk_int, parse_int),
    field_mapping(CAMPAIGN, "parent_entity_name", to_bulk_str, parse_str),
    field_mapping(AD_GROUP, "entity_name", to_bulk_str, parse_str),
)


# ── Entities ─────────────────────────────────────────────────────────────────


@dataclass
class BulkEntity:
    errors: list[RowError] = field(default_factory=list, compare=False, repr=False)

    record_type: ClassVar[str] = ""

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_records(
        self,
        exclude_readonly_data: bool = False,
        version: str = CURRENT_FORMAT_VERSION,
    ) -> list[Record]:
        raise NotImplementedError


@dataclass
class BulkSingleRecordEntity(BulkEntity):
    mapping_tables: ClassVar[tuple[MappingTable, ...]] = ()

    def to_records(
        self,
        exclude_readonly_data: bool = False,
        version: str = CURRENT_FORMAT_VERSION,
    ) -> list[Record]:
        builder = RecordBuilder(version, exclude_readonly_data)
        return [builder.apply(self, self.mapping_tables).build()]

    @classmethod
    def from_record(cls, record: Record, version: str = CURRENT_FORMAT_VERSION) -> BulkSingleRecordEntity:
        return from_record(record, cls(), cls.mapping_tables, version)


@dataclass
class SubEntityRow:
    """One physical row of a multi-record entity before grouping.

    ``container`` carries the identifier fields read from the row and
    ``sub_entity`` is ``None`` for an identifier-only row.
    """

    container: BulkMultiRecordEntity
    sub_entity: Any | None = None

    @property
    def group_key(self) -> tuple[Any, ...]:
        return self.container.group_key


@dataclass
class BulkMultiRecordEntity(BulkEntity):
    status: EntityStatus | None = None
    entity_id: int | None = None
    entity_name: str | None = None
    parent_entity_name: str | None = None

    container_tables: ClassVar[tuple[MappingTable, ...]] = ()
    sub_entity_tables: ClassVar[tuple[MappingTable, ...]] = ()
    sub_entity_class: ClassVar[type] = object

    @property
    def group_key(self) -> tuple[Any, ...]:
        if self.entity_id is not None:
            return (self.record_type, self.entity_id)
        return (self.record_type, self.parent_entity_name, self.entity_name)

    def sub_entities(self) -> list[Any]:
        raise NotImplementedError

    def attach_sub_entities(self, sub_entities: list[Any]) -> None:
        raise NotImplementedError

    def validate(self) -> None:
        """Hook for containers with structural constraints."""

    def to_records(
        self,
        exclude_readonly_data: bool = False,
        version: str = CURRENT_FORMAT_VERSION,
    ) -> list[Record]:
        self.validate()
        subs = self.sub_entities()
        if not subs or self.status is EntityStatus.DELETED:
            builder = RecordBuilder(version, exclude_readonly_data)
            builder.apply(self, self.container_tables)
            builder.fill(STATUS, EntityStatus.DELETED.value)
            return [builder.build()]
        return [
            RecordBuilder(version, exclude_readonly_data)
            .apply(self, self.container_tables)
            .apply(sub, self.sub_entity_tables)
            .build()
            for sub in subs
        ]

    @classmethod
    def group_key_from_record(cls, record: Record, version: str = CURRENT_FORMAT_VERSION) -> tuple[Any, ...] | None:
        """Group key from the identifier columns alone, or None when those do not map."""
        try:
            return from_record(record, cls(), cls.container_tables, version).group_key
        except MappingError:
            return None

    @classmethod
    def row_from_record(cls, record: Record, version: str = CURRENT_FORMAT_VERSION) -> SubEntityRow:
        container = from_record(record, cls(), cls.container_tables, version)
        sub = cls.sub_entity_class()
        if not has_values(record, cls.sub_entity_tables, sub):
            return SubEntityRow(container)
        return SubEntityRow(container, from_record(record, sub, cls.sub_entity_tables, version))

    def merge_row(self, row: SubEntityRow) -> None:
        """Fold the row-level errors of a later row of the same group into this one."""
        self.errors.extend(row.container.errors)


@dataclass
class BulkTargetWithBids(BulkMultiRecordEntity):
    """Multi-record container whose sub-entities are kept as one ordered list."""

    bids: list[Any] = field(default_factory=list)

    def sub_entities(self) -> list[Any]:
        return list(self.bids)

    def attach_sub_entities(self, sub_entities: list[Any]) -> None:
        self.bids.extend(sub_entities)
