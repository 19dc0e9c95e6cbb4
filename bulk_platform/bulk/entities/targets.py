"""Multi-record targets whose bids form a single ordered list."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import ClassVar

from bulk_platform.bulk.columns import (
    BID_ADJUSTMENT,
    DAY,
    FROM_HOUR,
    FROM_MINUTE,
    LATITUDE,
    LONGITUDE,
    NAME,
    OS_NAMES,
    RADIUS,
    TARGET,
    TO_HOUR,
    TO_MINUTE,
    UNIT,
)
from bulk_platform.bulk.entities.base import (
    AD_GROUP_TARGET_IDENTIFIER_TABLE,
    CAMPAIGN_TARGET_IDENTIFIER_TABLE,
    ERROR_TABLE,
    TYPE_TABLE,
    BulkTargetWithBids,
)
from bulk_platform.bulk.formats import (
    parse_enum,
    parse_float,
    parse_int,
    parse_list,
    parse_str,
    to_bulk_enum,
    to_bulk_float,
    to_bulk_int,
    to_bulk_list,
    to_bulk_str,
)
from bulk_platform.bulk.mappings import MappingTable, compose_tables, field_mapping


class Day(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class GenderType(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    UNKNOWN = "Unknown"


class DistanceUnit(str, Enum):
    MILES = "Miles"
    KILOMETERS = "Kilometers"


BID_ADJUSTMENT_MAPPING = field_mapping(BID_ADJUSTMENT, "bid_adjustment", to_bulk_int, parse_int)


# ── Day and time ─────────────────────────────────────────────────────────────


@dataclass
class DayTimeTargetBid:
    day: Day | None = None
    from_hour: int | None = None
    from_minute: int | None = None
    to_hour: int | None = None
    to_minute: int | None = None
    bid_adjustment: int | None = None


DAY_TIME_BID_TABLE: MappingTable = (
    field_mapping(DAY, "day", to_bulk_enum, partial(parse_enum, Day)),
    field_mapping(FROM_HOUR, "from_hour", to_bulk_int, parse_int),
    field_mapping(FROM_MINUTE, "from_minute", to_bulk_int, parse_int),
    field_mapping(TO_HOUR, "to_hour", to_bulk_int, parse_int),
    field_mapping(TO_MINUTE, "to_minute", to_bulk_int, parse_int),
    BID_ADJUSTMENT_MAPPING,
)


@dataclass
class BulkCampaignDayTimeTarget(BulkTargetWithBids):
    record_type: ClassVar[str] = "Campaign DayTime Target"
    sub_entity_class: ClassVar[type] = DayTimeTargetBid
    container_tables: ClassVar[tuple[MappingTable, ...]] = compose_tables(
        TYPE_TABLE, CAMPAIGN_TARGET_IDENTIFIER_TABLE, ERROR_TABLE
    )
    sub_entity_tables: ClassVar[tuple[MappingTable, ...]] = (DAY_TIME_BID_TABLE,)


# ── Device and operating system ──────────────────────────────────────────────


@dataclass
class DeviceOsTargetBid:
    device_name: str | None = None
    os_names: list[str] | None = None
    bid_adjustment: int | None = None


DEVICE_OS_BID_TABLE: MappingTable = (
    field_mapping(TARGET, "device_name", to_bulk_str, parse_str),
    field_mapping(OS_NAMES, "os_names", to_bulk_list, parse_list),
    BID_ADJUSTMENT_MAPPING,
)


@dataclass
class BulkCampaignDeviceOsTarget(BulkTargetWithBids):
    record_type: ClassVar[str] = "Campaign DeviceOS Target"
    sub_entity_class: ClassVar[type] = DeviceOsTargetBid
    container_tables: ClassVar[tuple[MappingTable, ...]] = compose_tables(
        TYPE_TABLE, CAMPAIGN_TARGET_IDENTIFIER_TABLE, ERROR_TABLE
    )
    sub_entity_tables: ClassVar[tuple[MappingTable, ...]] = (DEVICE_OS_BID_TABLE,)


# ── Gender ───────────────────────────────────────────────────────────────────


@dataclass
class GenderTargetBid:
    gender: GenderType | None = None
    bid_adjustment: int | None = None


GENDER_BID_TABLE: MappingTable = (
    field_mapping(TARGET, "gender", to_bulk_enum, partial(parse_enum, GenderType)),
    BID_ADJUSTMENT_MAPPING,
)


@dataclass
class BulkAdGroupGenderTarget(BulkTargetWithBids):
    record_type: ClassVar[str] = "Ad Group Gender Target"
    sub_entity_class: ClassVar[type] = GenderTargetBid
    container_tables: ClassVar[tuple[MappingTable, ...]] = compose_tables(
        TYPE_TABLE, AD_GROUP_TARGET_IDENTIFIER_TABLE, ERROR_TABLE
    )
    sub_entity_tables: ClassVar[tuple[MappingTable, ...]] = (GENDER_BID_TABLE,)


# ── Radius ───────────────────────────────────────────────────────────────────


@dataclass
class RadiusTargetBid:
    name: str | None = None
    radius: int | None = None
    unit: DistanceUnit | None = None
    latitude: float | None = None
    longitude: float | None = None
    bid_adjustment: int | None = None


RADIUS_BID_TABLE: MappingTable = (
    field_mapping(NAME, "name", to_bulk_str, parse_str),
    field_mapping(RADIUS, "radius", to_bulk_int, parse_int),
    field_mapping(UNIT, "unit", to_bulk_enum, partial(parse_enum, DistanceUnit)),
    field_mapping(LATITUDE, "latitude", to_bulk_float, parse_float),
    field_mapping(LONGITUDE, "longitude", to_bulk_float, parse_float),
    BID_ADJUSTMENT_MAPPING,
)


@dataclass
class BulkCampaignRadiusTarget(BulkTargetWithBids):
    record_type: ClassVar[str] = "Campaign Radius Target"
    sub_entity_class: ClassVar[type] = RadiusTargetBid
    container_tables: ClassVar[tuple[MappingTable, ...]] = compose_tables(
        TYPE_TABLE, CAMPAIGN_TARGET_IDENTIFIER_TABLE, ERROR_TABLE
    )
    sub_entity_tables: ClassVar[tuple[MappingTable, ...]] = (RADIUS_BID_TABLE,)
