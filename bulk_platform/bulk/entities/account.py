from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar

from bulk_platform.bulk.columns import ID, PARENT_ID, SYNC_TIME
from bulk_platform.bulk.entities.base import ERROR_TABLE, TYPE_TABLE, BulkSingleRecordEntity
from bulk_platform.bulk.formats import parse_datetime, parse_int, to_bulk_datetime, to_bulk_int
from bulk_platform.bulk.mappings import MappingTable, compose_tables, field_mapping

ACCOUNT_TABLE: MappingTable = (
    field_mapping(ID, "id", to_bulk_int, parse_int),
    field_mapping(PARENT_ID, "customer_id", to_bulk_int, parse_int),
    field_mapping(SYNC_TIME, "sync_time", to_bulk_datetime, parse_datetime, readonly=True),
)


@dataclass
class BulkAccount(BulkSingleRecordEntity):
    """The account a download was scoped to. Only ever appears in result files.

    ``sync_time`` is the service timestamp to pass as ``last_sync_time`` on
    the next incremental download.
    """

    id: int | None = None
    customer_id: int | None = None
    sync_time: datetime | None = None

    record_type: ClassVar[str] = "Account"
    mapping_tables: ClassVar[tuple[MappingTable, ...]] = compose_tables(
        TYPE_TABLE, ACCOUNT_TABLE, ERROR_TABLE
    )
