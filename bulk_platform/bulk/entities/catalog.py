"""Maps the ``Type`` discriminator of a row to the entity class that owns it."""

from __future__ import annotations

from bulk_platform.bulk.entities.account import BulkAccount
from bulk_platform.bulk.entities.ad_extensions import (
    BulkCampaignAppAdExtension,
    BulkCampaignImageAdExtension,
)
from bulk_platform.bulk.entities.base import BulkEntity
from bulk_platform.bulk.entities.campaign import BulkCampaign
from bulk_platform.bulk.entities.location_targets import (
    BulkCampaignLocationTarget,
    BulkCampaignNegativeLocationTarget,
)
from bulk_platform.bulk.entities.negative_keywords import (
    BulkAdGroupNegativeKeyword,
    BulkCampaignNegativeKeyword,
)
from bulk_platform.bulk.entities.targets import (
    BulkAdGroupGenderTarget,
    BulkCampaignDayTimeTarget,
    BulkCampaignDeviceOsTarget,
    BulkCampaignRadiusTarget,
)

ENTITY_CLASSES: tuple[type[BulkEntity], ...] = (
    BulkAccount,
    BulkCampaign,
    BulkCampaignAppAdExtension,
    BulkCampaignImageAdExtension,
    BulkCampaignNegativeKeyword,
    BulkAdGroupNegativeKeyword,
    BulkCampaignDayTimeTarget,
    BulkCampaignDeviceOsTarget,
    BulkAdGroupGenderTarget,
    BulkCampaignLocationTarget,
    BulkCampaignNegativeLocationTarget,
    BulkCampaignRadiusTarget,
)

RECORD_TYPES: dict[str, type[BulkEntity]] = {cls.record_type: cls for cls in ENTITY_CLASSES}


def entity_class_for(record_type: str | None) -> type[BulkEntity] | None:
    if not record_type:
        return None
    return RECORD_TYPES.get(record_type)
