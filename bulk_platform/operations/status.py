"""Job status shared by download, upload and report operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OperationStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    COMPLETED_WITH_ERRORS = "CompletedWithErrors"
    FAILED = "Failed"
    EXPIRED = "Expired"
    ABORTED = "Aborted"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    @property
    def is_success(self) -> bool:
        return self in _SUCCESS


_TERMINAL = frozenset({
    OperationStatus.COMPLETED,
    OperationStatus.COMPLETED_WITH_ERRORS,
    OperationStatus.FAILED,
    OperationStatus.EXPIRED,
    OperationStatus.ABORTED,
})
_SUCCESS = frozenset({OperationStatus.COMPLETED, OperationStatus.COMPLETED_WITH_ERRORS})


@dataclass(frozen=True)
class OperationError:
    """One itemized error the service reported for a job."""

    code: int | None
    message: str
    error_code: str | None = None
    details: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> OperationError:
        code = data.get("code")
        return cls(
            code=int(code) if code is not None else None,
            message=data.get("message", ""),
            error_code=data.get("error_code"),
            details=data.get("details"),
        )


@dataclass(frozen=True)
class JobStatusResponse:
    """A status round trip as the remote service reported it, before translation."""

    status: str
    percent_complete: int = 0
    result_file_url: str | None = None
    errors: tuple[OperationError, ...] = ()
    tracking_id: str | None = None


@dataclass(frozen=True)
class BulkOperationStatus:
    status: OperationStatus
    percent_complete: int = 0
    result_file_url: str | None = None
    errors: tuple[OperationError, ...] = field(default_factory=tuple)
    tracking_id: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_success(self) -> bool:
        return self.status.is_success
