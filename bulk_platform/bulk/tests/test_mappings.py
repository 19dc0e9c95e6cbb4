from __future__ import annotations

from dataclasses import dataclass

import pytest

from bulk_platform.bulk.formats import parse_int, parse_str, to_bulk_int, to_bulk_str
from bulk_platform.bulk.mappings import (
    OMIT,
    FieldMapping,
    RecordBuilder,
    compose_tables,
    field_mapping,
    from_record,
    has_values,
    to_record,
    version_key,
)
from bulk_platform.bulk.record import Record
from bulk_platform.errors import FormatError, MappingError


@dataclass
class Widget:
    id: int | None = None
    name: str | None = None
    note: str | None = None
    owner: str | None = None
    owner_column: str = "Owner"


BASE = (
    field_mapping("Id", "id", to_bulk_int, parse_int),
    field_mapping("Name", "name", to_bulk_str, parse_str),
)
DERIVED = (
    field_mapping("Note", "note", to_bulk_str, parse_str, required=False, readonly=True),
)
VERSIONED = (
    field_mapping("Note", "note", to_bulk_str, parse_str, since="4.0"),
)
DYNAMIC = (
    field_mapping(lambda w: w.owner_column, "owner", to_bulk_str, parse_str),
)


# ── Record ────────────────────────────────────────────────────────────────────

def test_record_keeps_column_order_and_tells_absent_from_empty():
    record = Record([("Type", "Campaign"), ("Name", "")])
    assert list(record) == ["Type", "Name"]
    assert "Name" in record and record["Name"] == ""
    assert "Id" not in record
    assert record.record_type == "Campaign"
    assert record.project(["Id", "Type"]) == ["", "Campaign"]


def test_record_rejects_duplicate_columns():
    with pytest.raises(ValueError, match="Duplicate"):
        Record([("Id", "1"), ("Id", "2")])


# ── Writing ───────────────────────────────────────────────────────────────────

def test_to_record_walks_levels_base_first():
    record = to_record(Widget(id=5, name="w", note="n"), (BASE, DERIVED))
    assert list(record.items()) == [("Id", "5"), ("Name", "w"), ("Note", "n")]


def test_readonly_columns_excluded_on_request():
    record = to_record(Widget(id=5, note="n"), (BASE, DERIVED), exclude_readonly_data=True)
    assert "Note" not in record


def test_omit_leaves_column_out():
    table = (FieldMapping("Secret", lambda w: OMIT, lambda text, w: None),)
    assert "Secret" not in to_record(Widget(), (table,))


def test_since_gates_column_by_version():
    assert "Note" not in to_record(Widget(note="n"), (VERSIONED,), version="3.0")
    assert to_record(Widget(note="n"), (VERSIONED,), version="4.0")["Note"] == "n"


def test_dynamic_column_resolved_per_instance():
    widget = Widget(owner="me", owner_column="Ad Group")
    record = to_record(widget, (DYNAMIC,))
    assert record == {"Ad Group": "me"}

    parsed = from_record(Record({"Ad Group": "you"}), Widget(owner_column="Ad Group"), (DYNAMIC,))
    assert parsed.owner == "you"


def test_dynamic_column_must_not_be_empty():
    with pytest.raises(MappingError, match="Dynamic column"):
        to_record(Widget(owner_column=""), (DYNAMIC,))


def test_column_written_twice_is_an_error():
    with pytest.raises(MappingError, match="written twice"):
        RecordBuilder().apply(Widget(), (BASE,)).apply(Widget(), (BASE,))


def test_unwritable_value_raises_format_error_naming_column():
    with pytest.raises(FormatError) as exc_info:
        to_record(Widget(id=1, name=""), (BASE,))
    assert exc_info.value.column == "Name"
    assert "indistinguishable from None" in str(exc_info.value)


def test_fill_only_sets_empty_columns():
    builder = RecordBuilder().apply(Widget(name="kept"), (BASE,))
    builder.fill("Name", "ignored").fill("Status", "Deleted")
    record = builder.build()
    assert record["Name"] == "kept"
    assert record["Status"] == "Deleted"


# ── Reading ───────────────────────────────────────────────────────────────────

def test_from_record_populates_entity():
    widget = from_record(Record({"Id": "7", "Name": "x", "Note": "y"}), Widget(), (BASE, DERIVED))
    assert widget == Widget(id=7, name="x", note="y")


def test_missing_required_column_raises():
    with pytest.raises(MappingError, match="'Name' required by Widget"):
        from_record(Record({"Id": "7"}), Widget(), (BASE,))


def test_missing_optional_column_is_skipped():
    widget = from_record(Record({"Id": "7", "Name": "x"}), Widget(note="keep"), (BASE, DERIVED))
    assert widget.note == "keep"


def test_bad_value_raises_format_error_naming_column():
    with pytest.raises(FormatError) as exc_info:
        from_record(Record({"Id": "seven", "Name": "x"}), Widget(), (BASE,))
    assert exc_info.value.column == "Id"
    assert exc_info.value.value == "seven"


def test_versioned_column_not_required_in_older_files():
    widget = from_record(Record({}), Widget(), (VERSIONED,), version="3.0")
    assert widget.note is None


def test_has_values_ignores_empty_columns():
    assert not has_values(Record({"Id": "", "Name": ""}), (BASE,), Widget())
    assert has_values(Record({"Id": "", "Name": "x"}), (BASE,), Widget())


# ── Composition ───────────────────────────────────────────────────────────────

def test_compose_rejects_column_claimed_by_two_levels():
    with pytest.raises(ValueError, match="'Note'"):
        compose_tables(DERIVED, VERSIONED)


def test_version_key_orders_numerically():
    assert version_key("10.0") > version_key("4.0")
    with pytest.raises(ValueError):
        version_key("four")
