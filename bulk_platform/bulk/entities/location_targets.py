"""Location and negative-location targets.

One target holds up to five named bid collections (city, metro area, state,
country, postal code). In the file they are flattened into rows that carry a
``Location Type`` discriminator; reading groups the rows back by discriminator
into the matching collection.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, ClassVar, NamedTuple

from bulk_platform.bulk.columns import BID_ADJUSTMENT, LOCATION, LOCATION_TYPE, PHYSICAL_INTENT
from bulk_platform.bulk.entities.base import (
    CAMPAIGN_TARGET_IDENTIFIER_TABLE,
    ERROR_TABLE,
    TYPE_TABLE,
    BulkMultiRecordEntity,
    EntityStatus,
)
from bulk_platform.bulk.formats import (
    parse_enum,
    parse_int,
    parse_str,
    to_bulk_enum,
    to_bulk_int,
    to_bulk_str,
)
from bulk_platform.bulk.mappings import MappingTable, compose_tables, field_mapping
from bulk_platform.errors import MappingError


class LocationType(str, Enum):
    CITY = "City"
    METRO_AREA = "MetroArea"
    STATE = "State"
    COUNTRY = "Country"
    POSTAL_CODE = "PostalCode"


class IntentOption(str, Enum):
    PEOPLE_IN = "PeopleIn"
    PEOPLE_SEARCHING_FOR_OR_VIEWING_PAGES = "PeopleSearchingForOrViewingPages"
    PEOPLE_IN_OR_SEARCHING_FOR_OR_VIEWING_PAGES = "PeopleInOrSearchingForOrViewingPages"


class SubTargetKind(NamedTuple):
    location_type: LocationType
    attr: str


LOCATION_KINDS: tuple[SubTargetKind, ...] = (
    SubTargetKind(LocationType.CITY, "city"),
    SubTargetKind(LocationType.METRO_AREA, "metro_area"),
    SubTargetKind(LocationType.STATE, "state"),
    SubTargetKind(LocationType.COUNTRY, "country"),
    SubTargetKind(LocationType.POSTAL_CODE, "postal_code"),
)


# ── Union helpers ────────────────────────────────────────────────────────────


def reconstruct_union(
    container: Any,
    rows: list[Any],
    kinds: tuple[SubTargetKind, ...],
    make_bid: Callable[[Any], Any],
) -> None:
    """Group flattened *rows* by ``location_type`` into the named collections."""
    grouped: dict[Any, list[Any]] = {}
    for row in rows:
        grouped.setdefault(row.location_type, []).append(row)

    known = {kind.location_type for kind in kinds}
    unknown = [t for t in grouped if t not in known]
    if unknown:
        raise MappingError(f"Unsupported location type(s): {', '.join(repr(t) for t in unknown)}")

    for kind in kinds:
        group = grouped.get(kind.location_type)
        if group is None:
            continue
        if getattr(container, kind.attr) is not None:
            raise MappingError(f"Location sub-target '{kind.attr}' populated twice")
        setattr(container, kind.attr, [make_bid(row) for row in group])


def flatten_union(
    container: Any,
    kinds: tuple[SubTargetKind, ...],
    make_row: Callable[[LocationType, Any], Any],
) -> list[Any]:
    rows: list[Any] = []
    for kind in kinds:
        bids = getattr(container, kind.attr)
        if bids is None:
            continue
        rows.extend(make_row(kind.location_type, bid) for bid in bids)
    return rows


def validate_union(container: Any, kinds: tuple[SubTargetKind, ...]) -> None:
    if container.status is EntityStatus.DELETED:
        return
    populated = [kind for kind in kinds if getattr(container, kind.attr) is not None]
    if not populated:
        raise MappingError(
            f"{type(container).__name__}: at least one location sub-target must not be None"
        )
    for kind in populated:
        if not getattr(container, kind.attr):
            raise MappingError(
                f"{type(container).__name__}: location sub-target '{kind.attr}' has no bids"
            )


# ── Location target ──────────────────────────────────────────────────────────


@dataclass
class LocationBid:
    location: str | None = None
    bid_adjustment: int | None = None


@dataclass
class LocationTargetRow:
    location_type: LocationType | None = None
    location: str | None = None
    bid_adjustment: int | None = None


LOCATION_TARGET_TABLE: MappingTable = (
    field_mapping(PHYSICAL_INTENT, "intent_option", to_bulk_enum, partial(parse_enum, IntentOption)),
)

LOCATION_ROW_TABLE: MappingTable = (
    field_mapping(LOCATION_TYPE, "location_type", to_bulk_enum, partial(parse_enum, LocationType)),
    field_mapping(LOCATION, "location", to_bulk_str, parse_str),
    field_mapping(BID_ADJUSTMENT, "bid_adjustment", to_bulk_int, parse_int),
)


@dataclass
class BulkCampaignLocationTarget(BulkMultiRecordEntity):
    intent_option: IntentOption | None = None
    city: list[LocationBid] | None = None
    metro_area: list[LocationBid] | None = None
    state: list[LocationBid] | None = None
    country: list[LocationBid] | None = None
    postal_code: list[LocationBid] | None = None

    record_type: ClassVar[str] = "Campaign Location Target"
    sub_entity_class: ClassVar[type] = LocationTargetRow
    container_tables: ClassVar[tuple[MappingTable, ...]] = compose_tables(
        TYPE_TABLE, CAMPAIGN_TARGET_IDENTIFIER_TABLE, LOCATION_TARGET_TABLE, ERROR_TABLE
    )
    sub_entity_tables: ClassVar[tuple[MappingTable, ...]] = (LOCATION_ROW_TABLE,)

    def sub_entities(self) -> list[LocationTargetRow]:
        return flatten_union(
            self,
            LOCATION_KINDS,
            lambda location_type, bid: LocationTargetRow(location_type, bid.location, bid.bid_adjustment),
        )

    def attach_sub_entities(self, sub_entities: list[LocationTargetRow]) -> None:
        reconstruct_union(
            self,
            sub_entities,
            LOCATION_KINDS,
            lambda row: LocationBid(row.location, row.bid_adjustment),
        )
        if sub_entities:
            self.validate()

    def validate(self) -> None:
        validate_union(self, LOCATION_KINDS)


# ── Negative location target ─────────────────────────────────────────────────


@dataclass
class NegativeLocationBid:
    location: str | None = None


@dataclass
class NegativeLocationTargetRow:
    location_type: LocationType | None = None
    location: str | None = None


NEGATIVE_LOCATION_ROW_TABLE: MappingTable = (
    field_mapping(LOCATION_TYPE, "location_type", to_bulk_enum, partial(parse_enum, LocationType)),
    field_mapping(LOCATION, "location", to_bulk_str, parse_str),
)


@dataclass
class BulkCampaignNegativeLocationTarget(BulkMultiRecordEntity):
    city: list[NegativeLocationBid] | None = None
    metro_area: list[NegativeLocationBid] | None = None
    state: list[NegativeLocationBid] | None = None
    country: list[NegativeLocationBid] | None = None
    postal_code: list[NegativeLocationBid] | None = None

    record_type: ClassVar[str] = "Campaign Negative Location Target"
    sub_entity_class: ClassVar[type] = NegativeLocationTargetRow
    container_tables: ClassVar[tuple[MappingTable, ...]] = compose_tables(
        TYPE_TABLE, CAMPAIGN_TARGET_IDENTIFIER_TABLE, ERROR_TABLE
    )
    sub_entity_tables: ClassVar[tuple[MappingTable, ...]] = (NEGATIVE_LOCATION_ROW_TABLE,)

    def sub_entities(self) -> list[NegativeLocationTargetRow]:
        return flatten_union(
            self,
            LOCATION_KINDS,
            lambda location_type, bid: NegativeLocationTargetRow(location_type, bid.location),
        )

    def attach_sub_entities(self, sub_entities: list[NegativeLocationTargetRow]) -> None:
        reconstruct_union(
            self,
            sub_entities,
            LOCATION_KINDS,
            lambda row: NegativeLocationBid(row.location),
        )
        if sub_entities:
            self.validate()

    def validate(self) -> None:
        validate_union(self, LOCATION_KINDS)
