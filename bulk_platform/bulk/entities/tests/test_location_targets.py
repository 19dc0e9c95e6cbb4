from __future__ import annotations

import pytest

from bulk_platform.bulk.entities.base import EntityStatus
from bulk_platform.bulk.entities.location_targets import (
    LOCATION_KINDS,
    BulkCampaignLocationTarget,
    BulkCampaignNegativeLocationTarget,
    IntentOption,
    LocationBid,
    LocationTargetRow,
    LocationType,
    NegativeLocationBid,
    NegativeLocationTargetRow,
    reconstruct_union,
)
from bulk_platform.errors import MappingError


def _target(**collections) -> BulkCampaignLocationTarget:
    return BulkCampaignLocationTarget(
        status=EntityStatus.ACTIVE,
        entity_id=11,
        entity_name="Spring Sale",
        intent_option=IntentOption.PEOPLE_IN,
        **collections,
    )


# ── Flattening ────────────────────────────────────────────────────────────────

def test_collections_flatten_in_kind_order():
    target = _target(
        state=[LocationBid("WA", 10)],
        city=[LocationBid("Seattle", 20), LocationBid("Tacoma", 5)],
    )
    records = target.to_records()
    assert [(r["Location Type"], r["Location"]) for r in records] == [
        ("City", "Seattle"),
        ("City", "Tacoma"),
        ("State", "WA"),
    ]
    assert all(r["Physical Intent"] == "PeopleIn" for r in records)


def test_roundtrip_rebuilds_collections():
    target = _target(city=[LocationBid("Seattle", 20)], country=[LocationBid("US", 0)])
    rows = [BulkCampaignLocationTarget.row_from_record(r) for r in target.to_records()]
    container = rows[0].container
    container.attach_sub_entities([row.sub_entity for row in rows])
    assert container == target
    assert container.metro_area is None


# ── Validation ────────────────────────────────────────────────────────────────

def test_all_collections_none_is_rejected():
    with pytest.raises(MappingError, match="at least one location sub-target must not be None"):
        _target().to_records()


def test_empty_collection_is_rejected():
    with pytest.raises(MappingError, match="'city' has no bids"):
        _target(city=[]).to_records()


def test_deleted_target_skips_validation_and_writes_one_row():
    target = _target()
    target.status = EntityStatus.DELETED
    (record,) = target.to_records()
    assert record["Status"] == "Deleted"
    assert "Location Type" not in record


# ── Reconstruction ────────────────────────────────────────────────────────────

def test_unknown_location_type_is_rejected():
    container = BulkCampaignLocationTarget()
    rows = [LocationTargetRow("Galaxy", "Andromeda", 1)]
    with pytest.raises(MappingError, match="Unsupported location type"):
        reconstruct_union(container, rows, LOCATION_KINDS, lambda r: LocationBid(r.location))


def test_collection_populated_twice_is_rejected():
    container = BulkCampaignLocationTarget(city=[LocationBid("Seattle", 1)])
    rows = [LocationTargetRow(LocationType.CITY, "Tacoma", 1)]
    with pytest.raises(MappingError, match="populated twice"):
        container.attach_sub_entities(rows)


def test_attach_without_rows_leaves_target_unvalidated():
    container = BulkCampaignLocationTarget(status=EntityStatus.DELETED)
    container.attach_sub_entities([])
    assert container.city is None


# ── Negative locations ────────────────────────────────────────────────────────

def test_negative_location_target_has_no_bid_column():
    target = BulkCampaignNegativeLocationTarget(
        entity_id=11, entity_name="Spring Sale", metro_area=[NegativeLocationBid("Seattle-Tacoma")]
    )
    (record,) = target.to_records()
    assert record["Location Type"] == "MetroArea"
    assert "Bid Adjustment" not in record
    row = BulkCampaignNegativeLocationTarget.row_from_record(record)
    assert row.sub_entity == NegativeLocationTargetRow(LocationType.METRO_AREA, "Seattle-Tacoma")
