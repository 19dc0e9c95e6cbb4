"""Negative keywords attached directly to a campaign or an ad group.

Both record types share one mapping table. The column that carries the owning
entity's name differs per class ("Campaign" vs "Ad Group"), so it is resolved
from the instance at read/write time instead of being fixed in the table.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import ClassVar

from bulk_platform.bulk.columns import AD_GROUP, CAMPAIGN, ID, KEYWORD, MATCH_TYPE, PARENT_ID, STATUS
from bulk_platform.bulk.entities.base import (
    ERROR_TABLE,
    TYPE_TABLE,
    BulkSingleRecordEntity,
    EntityStatus,
    parse_status,
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


class MatchType(str, Enum):
    EXACT = "Exact"
    PHRASE = "Phrase"
    BROAD = "Broad"


def _entity_column(keyword: BulkEntityNegativeKeyword) -> str:
    return keyword.entity_column_name


ENTITY_NEGATIVE_KEYWORD_TABLE: MappingTable = (
    field_mapping(STATUS, "status", to_bulk_enum, parse_status),
    field_mapping(ID, "id", to_bulk_int, parse_int),
    field_mapping(PARENT_ID, "entity_id", to_bulk_int, parse_int),
    field_mapping(_entity_column, "entity_name", to_bulk_str, parse_str),
    field_mapping(KEYWORD, "text", to_bulk_str, parse_str),
    field_mapping(MATCH_TYPE, "match_type", to_bulk_enum, partial(parse_enum, MatchType)),
)

AD_GROUP_PARENT_TABLE: MappingTable = (
    field_mapping(CAMPAIGN, "parent_entity_name", to_bulk_str, parse_str),
)


@dataclass
class BulkEntityNegativeKeyword(BulkSingleRecordEntity):
    status: EntityStatus | None = None
    id: int | None = None
    entity_id: int | None = None
    entity_name: str | None = None
    text: str | None = None
    match_type: MatchType | None = None

    entity_column_name: ClassVar[str] = ""


@dataclass
class BulkCampaignNegativeKeyword(BulkEntityNegativeKeyword):
    record_type: ClassVar[str] = "Campaign Negative Keyword"
    entity_column_name: ClassVar[str] = CAMPAIGN
    mapping_tables: ClassVar[tuple[MappingTable, ...]] = compose_tables(
        TYPE_TABLE, ENTITY_NEGATIVE_KEYWORD_TABLE, ERROR_TABLE
    )


@dataclass
class BulkAdGroupNegativeKeyword(BulkEntityNegativeKeyword):
    parent_entity_name: str | None = None

    record_type: ClassVar[str] = "Ad Group Negative Keyword"
    entity_column_name: ClassVar[str] = AD_GROUP
    mapping_tables: ClassVar[tuple[MappingTable, ...]] = compose_tables(
        TYPE_TABLE, ENTITY_NEGATIVE_KEYWORD_TABLE, AD_GROUP_PARENT_TABLE, ERROR_TABLE
    )
