"""Remote bulk and reporting service calls, plus the request/response types they use.

Implementations map connection failures to ``TransportError`` and service
rejections to ``RemoteFaultError``; they never retry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from bulk_platform.bulk.file_type import BulkFileType
from bulk_platform.bulk.formats import to_bulk_datetime
from bulk_platform.bulk.mappings import CURRENT_FORMAT_VERSION
from bulk_platform.errors import ValidationError
from bulk_platform.operations.status import JobStatusResponse


class DataScope(str, Enum):
    ENTITY_DATA = "EntityData"
    ENTITY_PERFORMANCE_DATA = "EntityPerformanceData"


class DownloadEntity(str, Enum):
    CAMPAIGNS = "Campaigns"
    CAMPAIGN_TARGETS = "CampaignTargets"
    AD_GROUP_TARGETS = "AdGroupTargets"
    CAMPAIGN_NEGATIVE_KEYWORDS = "CampaignNegativeKeywords"
    AD_GROUP_NEGATIVE_KEYWORDS = "AdGroupNegativeKeywords"
    AD_EXTENSIONS = "AdExtensions"


class ResponseMode(str, Enum):
    ERRORS_ONLY = "ErrorsOnly"
    ERRORS_AND_RESULTS = "ErrorsAndResults"


@dataclass
class AuthorizationData:
    customer_id: int | None = None
    account_id: int | None = None
    developer_token: str | None = None
    auth_token: str | None = None

    def validate(self) -> None:
        missing = [
            name
            for name in ("customer_id", "account_id", "developer_token", "auth_token")
            if getattr(self, name) in (None, "")
        ]
        if missing:
            raise ValidationError(f"Authorization data is incomplete: missing {', '.join(missing)}")

    def headers(self) -> dict[str, str]:
        return {
            "DeveloperToken": str(self.developer_token),
            "CustomerId": str(self.customer_id),
            "CustomerAccountId": str(self.account_id),
            "Authorization": f"Bearer {self.auth_token}",
        }


@dataclass
class DownloadRequest:
    """Either account scoped (``campaign_ids is None``) or campaign scoped."""

    account_id: int
    entities: tuple[DownloadEntity, ...]
    file_type: BulkFileType = BulkFileType.CSV
    data_scope: DataScope = DataScope.ENTITY_DATA
    format_version: str = CURRENT_FORMAT_VERSION
    campaign_ids: tuple[int, ...] | None = None
    last_sync_time: datetime | None = None

    @property
    def is_account_scoped(self) -> bool:
        return self.campaign_ids is None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "entities": [e.value for e in self.entities],
            "file_type": self.file_type.value,
            "data_scope": self.data_scope.value,
            "format_version": self.format_version,
            "last_sync_time": to_bulk_datetime(self.last_sync_time) or None,
        }
        if self.is_account_scoped:
            body["account_ids"] = [self.account_id]
        else:
            body["campaigns"] = [
                {"campaign_id": cid, "parent_account_id": self.account_id}
                for cid in self.campaign_ids or ()
            ]
        return body


@dataclass
class ReportRequest:
    report_type: str
    columns: list[str]
    account_ids: list[int] = field(default_factory=list)
    format: str = "Csv"
    report_name: str | None = None
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "report_type": self.report_type,
            "report_name": self.report_name,
            "format": self.format,
            "columns": list(self.columns),
            "account_ids": list(self.account_ids),
            "parameters": dict(self.parameters),
        }


@dataclass(frozen=True)
class SubmittedJob:
    request_id: str
    tracking_id: str | None = None


@dataclass(frozen=True)
class UploadUrl:
    request_id: str
    upload_url: str
    tracking_id: str | None = None


class BulkApiInterface(ABC):
    @abstractmethod
    async def submit_download(self, auth: AuthorizationData, request: DownloadRequest) -> SubmittedJob: ...

    @abstractmethod
    async def get_download_status(self, auth: AuthorizationData, request_id: str) -> JobStatusResponse: ...

    @abstractmethod
    async def get_upload_url(self, auth: AuthorizationData, response_mode: ResponseMode) -> UploadUrl: ...

    @abstractmethod
    async def get_upload_status(self, auth: AuthorizationData, request_id: str) -> JobStatusResponse: ...

    @abstractmethod
    async def submit_report(self, auth: AuthorizationData, request: ReportRequest) -> SubmittedJob: ...

    @abstractmethod
    async def get_report_status(self, auth: AuthorizationData, request_id: str) -> JobStatusResponse: ...
