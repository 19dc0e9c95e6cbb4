"""Immutable physical row: ordered column name -> string value."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from bulk_platform.bulk.columns import TYPE


class Record(Mapping[str, str]):
    """One physical row of a bulk file.

    Column order is preserved. A column that is absent is different from a
    column that is present with an empty value: ``"Name" in record`` tells the
    two apart, ``record["Name"]`` raises ``KeyError`` only for the former.
    """

    __slots__ = ("_values",)

    def __init__(self, items: Mapping[str, str] | Iterable[tuple[str, str]] = ()) -> None:
        pairs = items.items() if isinstance(items, Mapping) else items
        values: dict[str, str] = {}
        for column, value in pairs:
            if column in values:
                raise ValueError(f"Duplicate column in record: {column!r}")
            values[column] = value
        self._values = values

    def __getitem__(self, column: str) -> str:
        return self._values[column]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Record):
            return list(self._values.items()) == list(other._values.items())
        if isinstance(other, Mapping):
            return dict(self._values) == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._values.items()))

    def __repr__(self) -> str:
        return f"Record({self._values!r})"

    @property
    def record_type(self) -> str | None:
        """Value of the ``Type`` discriminator column, if present."""
        return self._values.get(TYPE)

    def project(self, columns: Iterable[str]) -> list[str]:
        """Values for *columns* in order, empty string for absent columns."""
        return [self._values.get(c, "") for c in columns]
