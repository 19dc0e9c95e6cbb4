"""Canonical string forms for bulk file values.

Each ``to_bulk_*`` function is the exact inverse of its ``parse_*`` partner for
every value of the field's domain. ``None`` is written as the empty string and
an empty string is read back as ``None``, so values that would also serialize
to the empty string (``""``, ``[]``, ``[""]``) are outside the domain, as are
naive datetimes. Serializers reject those and parsers reject malformed text,
both with ``ValueError``; the mapping engine turns that into a ``FormatError``
naming the column.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import TypeVar

E = TypeVar("E", bound=Enum)

_INT_RE = re.compile(r"[+-]?[0-9]+\Z")
_DATETIME_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,6}))?Z\Z"
)
# Older result files carry the service's US-style timestamp.
_LEGACY_DATETIME_FORMAT = "%m/%d/%Y %H:%M:%S"

LIST_SEPARATOR = ";"


def to_bulk_str(value: str | None) -> str:
    if value == "":
        raise ValueError("empty string is indistinguishable from None; use None")
    return "" if value is None else value


def parse_str(text: str) -> str | None:
    return text if text != "" else None


def to_bulk_int(value: int | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected int, got {type(value).__name__}")
    return str(value)


def parse_int(text: str) -> int | None:
    if text == "":
        return None
    if not _INT_RE.match(text):
        raise ValueError("not a base-10 integer")
    return int(text)


def to_bulk_float(value: float | None) -> str:
    if value is None:
        return ""
    return repr(float(value))


def parse_float(text: str) -> float | None:
    if text == "":
        return None
    return float(text)


def to_bulk_bool(value: bool | None) -> str:
    if value is None:
        return ""
    return "true" if value else "false"


def parse_bool(text: str) -> bool | None:
    if text == "":
        return None
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError("expected 'true' or 'false'")


def to_bulk_datetime(value: datetime | None) -> str:
    """UTC ISO form with microseconds, e.g. ``2026-01-15T10:00:00.000000Z``.

    Naive datetimes are rejected since they read back timezone-aware.
    """
    if value is None:
        return ""
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("naive datetime; attach a timezone")
    value = value.astimezone(timezone.utc)
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f".{value.microsecond:06d}Z"
    )


def parse_datetime(text: str) -> datetime | None:
    if text == "":
        return None
    match = _DATETIME_RE.match(text)
    if match:
        year, month, day, hour, minute, second, fraction = match.groups()
        micro = int((fraction or "0").ljust(6, "0"))
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second),
            micro, tzinfo=timezone.utc,
        )
    parsed = datetime.strptime(text, _LEGACY_DATETIME_FORMAT)
    return parsed.replace(tzinfo=timezone.utc)


def to_bulk_enum(value: Enum | None) -> str:
    return "" if value is None else str(value.value)


def parse_enum(enum_cls: type[E], text: str) -> E | None:
    if text == "":
        return None
    try:
        return enum_cls(text)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise ValueError(f"expected one of {allowed}") from None


def to_bulk_list(values: list[str] | None) -> str:
    if values is None:
        return ""
    if not values or values == [""]:
        raise ValueError(f"list {values!r} is indistinguishable from None; use None")
    for v in values:
        if LIST_SEPARATOR in v:
            raise ValueError(f"List item {v!r} contains the separator {LIST_SEPARATOR!r}")
    return LIST_SEPARATOR.join(values)


def parse_list(text: str) -> list[str] | None:
    if text == "":
        return None
    return text.split(LIST_SEPARATOR)
