"""High-level bulk download and upload.

``download_file``/``upload_file`` run the whole protocol (submit, track,
download and decompress the result) and return the local result path.
``download_entities``/``upload_entities`` additionally read the result file
back into entities. ``submit_*`` and ``resume_*`` return the operation handle
for callers that want to track it themselves.

All local validation happens before the first remote call. Temporary files
this manager creates in the working directory are deleted whether the
upload succeeds or fails; a file the caller passed in is never deleted.
"""

from __future__ import annotations

import asyncio
import posixpath
import uuid

from bulk_platform.bulk.file_type import BulkFileType
from bulk_platform.bulk.reader import BulkFileReader
from bulk_platform.bulk.writer import BulkFileWriter
from bulk_platform.errors import ValidationError
from bulk_platform.manager.base import ServiceManagerBase
from bulk_platform.manager.parameters import (
    DownloadParameters,
    EntityUploadParameters,
    FileUploadParameters,
    SubmitDownloadParameters,
    SubmitUploadParameters,
)
from bulk_platform.operations.operation import (
    BulkDownloadOperation,
    BulkOperation,
    BulkUploadOperation,
    ProgressCallback,
)
from bulk_platform.services.bulk_api.interface import DownloadRequest


class BulkServiceManager(ServiceManagerBase):
    # ── Validation ───────────────────────────────────────────────────────────

    def _validate_submit_download(self, parameters: SubmitDownloadParameters | None) -> SubmitDownloadParameters:
        self._require(parameters, "Submit download parameters")
        assert parameters is not None
        if not parameters.entities:
            raise ValidationError("At least one download entity must be specified")
        if parameters.campaign_ids is not None and not parameters.campaign_ids:
            raise ValidationError("campaign_ids must be None (whole account) or non-empty")
        if parameters.last_sync_time is not None and parameters.last_sync_time.utcoffset() is None:
            raise ValidationError("last_sync_time must be timezone-aware")
        return parameters

    def _validate_download(self, parameters: DownloadParameters | None) -> SubmitDownloadParameters:
        self._require(parameters, "Download parameters")
        assert parameters is not None
        return self._validate_submit_download(parameters.submit_download_parameters)

    def _validate_submit_upload(self, parameters: SubmitUploadParameters | None) -> SubmitUploadParameters:
        self._require(parameters, "Submit upload parameters")
        assert parameters is not None
        if not parameters.upload_file_path:
            raise ValidationError("Upload file path must not be None")
        return parameters

    def _validate_file_upload(self, parameters: FileUploadParameters | None) -> SubmitUploadParameters:
        self._require(parameters, "File upload parameters")
        assert parameters is not None
        return self._validate_submit_upload(parameters.submit_upload_parameters)

    def _validate_entity_upload(self, parameters: EntityUploadParameters | None) -> None:
        self._require(parameters, "Entity upload parameters")
        assert parameters is not None
        if parameters.entities is None:
            raise ValidationError("Entities must not be None")

    # ── Downloads ────────────────────────────────────────────────────────────

    async def submit_download(self, parameters: SubmitDownloadParameters) -> BulkDownloadOperation:
        submit = self._validate_submit_download(parameters)
        self._validate_authorization()
        return await self._submit_download(submit)

    async def _submit_download(self, parameters: SubmitDownloadParameters) -> BulkDownloadOperation:
        account_id = self.authorization.account_id
        assert account_id is not None
        request = DownloadRequest(
            account_id=account_id,
            entities=tuple(parameters.entities),
            file_type=parameters.file_type,
            data_scope=parameters.data_scope,
            campaign_ids=None if parameters.campaign_ids is None else tuple(parameters.campaign_ids),
            last_sync_time=parameters.last_sync_time,
        )
        job = await self._api.submit_download(self.authorization, request)
        self._log.info(
            "Submitted bulk download",
            request_id=job.request_id,
            scope="account" if request.is_account_scoped else "campaigns",
        )
        return self._operation(BulkDownloadOperation, job.request_id, job.tracking_id)

    async def download_file(
        self,
        parameters: DownloadParameters,
        progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        submit = self._validate_download(parameters)
        self._validate_authorization()
        async with await self._submit_download(submit) as operation:
            return await self._track_and_download(
                operation,
                progress,
                cancel_event,
                parameters.result_file_directory,
                parameters.result_file_name,
                parameters.overwrite_result_file,
            )

    async def download_entities(
        self,
        parameters: DownloadParameters,
        progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> BulkFileReader:
        """Download and return a reader over the result file's entities."""
        submit = self._validate_download(parameters)
        path = await self.download_file(parameters, progress, cancel_event)
        return self.open_reader(path, submit.file_type)

    def resume_download_operation(self, request_id: str, tracking_id: str | None = None) -> BulkDownloadOperation:
        """Handle for a download submitted earlier, e.g. after cancelled tracking."""
        if not request_id:
            raise ValidationError("request_id must not be empty")
        self._validate_authorization()
        return self._operation(BulkDownloadOperation, request_id, tracking_id)

    # ── Uploads ──────────────────────────────────────────────────────────────

    async def submit_upload(self, parameters: SubmitUploadParameters) -> BulkUploadOperation:
        submit = self._validate_submit_upload(parameters)
        self._validate_authorization()
        return await self._submit_upload(submit)

    async def _submit_upload(
        self,
        parameters: SubmitUploadParameters,
        artifacts: list[str] | None = None,
    ) -> BulkUploadOperation:
        """Reserve an upload URL and send the file.

        *artifacts* lists temporary files owned by the caller; a rename of one
        of them is recorded there so the caller deletes the renamed file.
        """
        upload = await self._api.get_upload_url(self.authorization, parameters.response_mode)
        path = parameters.upload_file_path
        assert path is not None

        if parameters.rename_upload_file_to_match_request_id:
            renamed = posixpath.join(posixpath.dirname(path), f"upload_{upload.request_id}.csv")
            self._fs.rename_file(path, renamed)
            if artifacts is not None and path in artifacts:
                artifacts[artifacts.index(path)] = renamed
            path = renamed

        compressed: str | None = None
        if parameters.compress_upload_file and posixpath.splitext(path)[1].lower() != ".zip":
            self._create_working_directory()
            stem = posixpath.splitext(posixpath.basename(path))[0]
            compressed = posixpath.join(self.working_directory, f"{stem}_{uuid.uuid4()}.zip")
            self._archive.compress_file(path, compressed)
            path = compressed

        try:
            await self._transfer.upload_file(upload.upload_url, path, self.authorization.headers())
        finally:
            if compressed is not None:
                self._fs.delete_file(compressed)
        self._metrics.counter("bulk_files_transferred_total", tags={"direction": "upload"})
        self._log.info("Uploaded bulk file", request_id=upload.request_id)
        return self._operation(BulkUploadOperation, upload.request_id, upload.tracking_id)

    async def upload_file(
        self,
        parameters: FileUploadParameters,
        progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        submit = self._validate_file_upload(parameters)
        self._validate_authorization()
        return await self._upload_file(parameters, submit, progress, cancel_event)

    async def _upload_file(
        self,
        parameters: FileUploadParameters,
        submit: SubmitUploadParameters,
        progress: ProgressCallback | None,
        cancel_event: asyncio.Event | None,
        artifacts: list[str] | None = None,
    ) -> str:
        async with await self._submit_upload(submit, artifacts) as operation:
            return await self._track_and_download(
                operation,
                progress,
                cancel_event,
                parameters.result_file_directory,
                parameters.result_file_name,
                parameters.overwrite_result_file,
            )

    async def upload_entities(
        self,
        parameters: EntityUploadParameters,
        progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> BulkFileReader:
        """Write the entities to a temporary bulk file, upload it, and read back the result."""
        self._validate_entity_upload(parameters)
        self._validate_authorization()

        temp_path = self._write_upload_file(parameters)
        artifacts = [temp_path]
        file_parameters = FileUploadParameters(
            submit_upload_parameters=SubmitUploadParameters(
                upload_file_path=temp_path,
                response_mode=parameters.response_mode,
                rename_upload_file_to_match_request_id=True,
                compress_upload_file=True,
            ),
            result_file_directory=parameters.result_file_directory,
            result_file_name=parameters.result_file_name,
            overwrite_result_file=parameters.overwrite_result_file,
        )
        try:
            assert file_parameters.submit_upload_parameters is not None
            result = await self._upload_file(
                file_parameters,
                file_parameters.submit_upload_parameters,
                progress,
                cancel_event,
                artifacts,
            )
        finally:
            for artifact in artifacts:
                self._fs.delete_file(artifact)
        return self.open_reader(result, BulkFileType.CSV)

    def resume_upload_operation(self, request_id: str, tracking_id: str | None = None) -> BulkUploadOperation:
        if not request_id:
            raise ValidationError("request_id must not be empty")
        self._validate_authorization()
        return self._operation(BulkUploadOperation, request_id, tracking_id)

    # ── Working directory ────────────────────────────────────────────────────

    def cleanup_temp_files(self) -> int:
        """Delete every file in the working directory. Returns how many were removed."""
        removed = 0
        for path in self._fs.list_files(self.working_directory):
            if self._fs.delete_file(path):
                removed += 1
        self._log.info("Cleaned up working directory", directory=self.working_directory, files=removed)
        return removed

    # ── Internals ────────────────────────────────────────────────────────────

    def _write_upload_file(self, parameters: EntityUploadParameters) -> str:
        assert parameters.entities is not None
        self._create_working_directory()
        path = posixpath.join(self.working_directory, f"{uuid.uuid4()}.csv")
        try:
            with BulkFileWriter(
                self._fs.open(path, "w"),
                exclude_readonly_data=True,
                metrics=self._metrics,
            ) as writer:
                count = writer.write_entities(parameters.entities)
        except BaseException:
            self._fs.delete_file(path)
            raise
        self._log.debug("Wrote upload file", path=path, entities=count, rows=writer.rows_written)
        return path

    async def _track_and_download(
        self,
        operation: BulkOperation,
        progress: ProgressCallback | None,
        cancel_event: asyncio.Event | None,
        directory: str | None,
        file_name: str | None,
        overwrite: bool,
    ) -> str:
        await operation.track(progress, cancel_event)
        return await self.download_result(operation, directory, file_name, overwrite)

    def open_reader(self, path: str, file_type: BulkFileType) -> BulkFileReader:
        stream = self._fs.open(path, "r", encoding="utf-8-sig")
        return BulkFileReader(stream, self._log, file_type, self._metrics)
