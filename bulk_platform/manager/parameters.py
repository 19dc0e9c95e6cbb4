"""Caller-facing parameter objects for the service managers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from bulk_platform.bulk.entities.base import BulkEntity
from bulk_platform.bulk.file_type import BulkFileType
from bulk_platform.services.bulk_api.interface import (
    DataScope,
    DownloadEntity,
    ReportRequest,
    ResponseMode,
)


@dataclass
class SubmitDownloadParameters:
    """What to download.

    Leave ``campaign_ids`` as None to download the whole account. Set
    ``last_sync_time`` (the ``Sync Time`` of a previous account row) for an
    incremental download.
    """

    entities: Sequence[DownloadEntity] = ()
    file_type: BulkFileType = BulkFileType.CSV
    data_scope: DataScope = DataScope.ENTITY_DATA
    campaign_ids: Sequence[int] | None = None
    last_sync_time: datetime | None = None


@dataclass
class DownloadParameters:
    submit_download_parameters: SubmitDownloadParameters | None = field(
        default_factory=SubmitDownloadParameters
    )
    result_file_directory: str | None = None
    result_file_name: str | None = None
    overwrite_result_file: bool = False


@dataclass
class SubmitUploadParameters:
    upload_file_path: str | None = None
    response_mode: ResponseMode = ResponseMode.ERRORS_AND_RESULTS
    rename_upload_file_to_match_request_id: bool = False
    compress_upload_file: bool = True


@dataclass
class FileUploadParameters:
    submit_upload_parameters: SubmitUploadParameters | None = field(
        default_factory=SubmitUploadParameters
    )
    result_file_directory: str | None = None
    result_file_name: str | None = None
    overwrite_result_file: bool = False


@dataclass
class EntityUploadParameters:
    entities: Iterable[BulkEntity] | None = None
    response_mode: ResponseMode = ResponseMode.ERRORS_AND_RESULTS
    result_file_directory: str | None = None
    result_file_name: str | None = None
    overwrite_result_file: bool = False


@dataclass
class ReportingDownloadParameters:
    report_request: ReportRequest | None = None
    result_file_directory: str | None = None
    result_file_name: str | None = None
    overwrite_result_file: bool = False
