from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import partial
from typing import ClassVar

from bulk_platform.bulk.columns import (
    BUDGET,
    BUDGET_TYPE,
    CAMPAIGN,
    CLIENT_ID,
    ID,
    MODIFIED_TIME,
    PARENT_ID,
    STATUS,
    TIME_ZONE,
    TRACKING_TEMPLATE,
)
from bulk_platform.bulk.entities.base import (
    ERROR_TABLE,
    TYPE_TABLE,
    BulkSingleRecordEntity,
    EntityStatus,
    parse_status,
)
from bulk_platform.bulk.formats import (
    parse_datetime,
    parse_enum,
    parse_float,
    parse_int,
    parse_str,
    to_bulk_datetime,
    to_bulk_enum,
    to_bulk_float,
    to_bulk_int,
    to_bulk_str,
)
from bulk_platform.bulk.mappings import MappingTable, compose_tables, field_mapping


class BudgetType(str, Enum):
    DAILY_BUDGET_STANDARD = "DailyBudgetStandard"
    DAILY_BUDGET_ACCELERATED = "DailyBudgetAccelerated"


CAMPAIGN_TABLE: MappingTable = (
    field_mapping(STATUS, "status", to_bulk_enum, parse_status),
    field_mapping(ID, "id", to_bulk_int, parse_int),
    field_mapping(PARENT_ID, "account_id", to_bulk_int, parse_int),
    field_mapping(CAMPAIGN, "name", to_bulk_str, parse_str),
    field_mapping(CLIENT_ID, "client_id", to_bulk_str, parse_str),
    field_mapping(MODIFIED_TIME, "modified_time", to_bulk_datetime, parse_datetime, readonly=True),
    field_mapping(TIME_ZONE, "time_zone", to_bulk_str, parse_str),
    field_mapping(BUDGET, "budget", to_bulk_float, parse_float),
    field_mapping(BUDGET_TYPE, "budget_type", to_bulk_enum, partial(parse_enum, BudgetType)),
    field_mapping(TRACKING_TEMPLATE, "tracking_template", to_bulk_str, parse_str, since="4.0"),
)


@dataclass
class BulkCampaign(BulkSingleRecordEntity):
    status: EntityStatus | None = None
    id: int | None = None
    account_id: int | None = None
    name: str | None = None
    client_id: str | None = None
    modified_time: datetime | None = None
    time_zone: str | None = None
    budget: float | None = None
    budget_type: BudgetType | None = None
    tracking_template: str | None = None

    record_type: ClassVar[str] = "Campaign"
    mapping_tables: ClassVar[tuple[MappingTable, ...]] = compose_tables(
        TYPE_TABLE, CAMPAIGN_TABLE, ERROR_TABLE
    )
