"""Error taxonomy shared by the mapping engine, operations and service managers.

Every failure surfaced to a caller is a ``BulkError`` subclass carrying enough
context (row/column, or job status + itemized remote errors) to act on it
without inspecting internals.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bulk_platform.operations.status import BulkOperationStatus, OperationError


class BulkError(Exception):
    """Root of all bulk_platform errors."""


class ValidationError(BulkError, ValueError):
    """Caller input is missing or malformed. Raised before any remote call."""


class MappingError(BulkError):
    """A row cannot be converted to or from an entity."""

    def __init__(self, message: str, row_number: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.row_number = row_number

    def with_row(self, row_number: int) -> MappingError:
        """Annotate the error with the physical row it occurred on."""
        if self.row_number is None:
            self.row_number = row_number
        return self

    def __str__(self) -> str:
        if self.row_number is None:
            return self.message
        return f"row {self.row_number}: {self.message}"


class MalformedFileError(MappingError):
    """The bulk file itself is structurally broken (column count, quoting)."""


class FormatError(MappingError):
    """A present column value could not be parsed into the field's type."""

    def __init__(
        self,
        column: str,
        value: str | None,
        reason: str = "",
        row_number: int | None = None,
    ) -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Invalid value {value!r} for column '{column}'{detail}", row_number
        )
        self.column = column
        self.value = value


class RemoteFaultError(BulkError):
    """The remote service rejected a request. Never retried by the core."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details or {}


class TransportError(BulkError):
    """The remote service could not be reached (connection, timeout)."""


class ArchiveError(BulkError):
    """An archive does not hold exactly one payload entry."""


class OperationStateError(BulkError):
    """An operation was used after disposal or in an invalid state."""


class OperationInProgressError(OperationStateError):
    """A result was requested before the operation reached a terminal status."""


class OperationCancelledError(BulkError):
    """Client-side tracking was cancelled. The remote job keeps running."""

    def __init__(self, request_id: str, polls: int) -> None:
        super().__init__(f"Tracking of operation {request_id} cancelled after {polls} poll(s)")
        self.request_id = request_id
        self.polls = polls


class OperationFailedError(BulkError):
    """A tracked job ended in ``Failed``, ``Expired`` or ``Aborted``."""

    def __init__(self, request_id: str, status: BulkOperationStatus) -> None:
        codes = ", ".join(str(e.code) for e in status.errors) or "none"
        super().__init__(
            f"Operation {request_id} ended with status {status.status.value} "
            f"(errors: {codes})"
        )
        self.request_id = request_id
        self.status = status

    @property
    def errors(self) -> list[OperationError]:
        return list(self.status.errors)
