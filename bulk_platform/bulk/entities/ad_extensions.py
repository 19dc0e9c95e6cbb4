"""Associations between a campaign and a shared ad extension."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from bulk_platform.bulk.columns import CAMPAIGN, EDITORIAL_STATUS, ID, PARENT_ID, STATUS
from bulk_platform.bulk.entities.base import (
    ERROR_TABLE,
    TYPE_TABLE,
    BulkSingleRecordEntity,
    EntityStatus,
    parse_status,
)
from bulk_platform.bulk.formats import parse_int, parse_str, to_bulk_enum, to_bulk_int, to_bulk_str
from bulk_platform.bulk.mappings import MappingTable, compose_tables, field_mapping

AD_EXTENSION_ASSOCIATION_TABLE: MappingTable = (
    field_mapping(STATUS, "status", to_bulk_enum, parse_status),
    field_mapping(ID, "ad_extension_id", to_bulk_int, parse_int),
    field_mapping(PARENT_ID, "campaign_id", to_bulk_int, parse_int),
    field_mapping(CAMPAIGN, "campaign_name", to_bulk_str, parse_str),
    field_mapping(EDITORIAL_STATUS, "editorial_status", to_bulk_str, parse_str, readonly=True),
)


@dataclass
class BulkCampaignAdExtensionAssociation(BulkSingleRecordEntity):
    status: EntityStatus | None = None
    ad_extension_id: int | None = None
    campaign_id: int | None = None
    campaign_name: str | None = None
    editorial_status: str | None = None

    mapping_tables: ClassVar[tuple[MappingTable, ...]] = compose_tables(
        TYPE_TABLE, AD_EXTENSION_ASSOCIATION_TABLE, ERROR_TABLE
    )


@dataclass
class BulkCampaignAppAdExtension(BulkCampaignAdExtensionAssociation):
    record_type: ClassVar[str] = "Campaign App Ad Extension"


@dataclass
class BulkCampaignImageAdExtension(BulkCampaignAdExtensionAssociation):
    record_type: ClassVar[str] = "Campaign Image Ad Extension"
