"""Client-side handle for one remote bulk job.

Lifecycle::

    submitted --track()/get_status()--> polling --terminal status--> finished
        finished --download_result_file()--> result on disk
        any state --close()--> disposed (no further calls allowed)

``track`` polls until the job reaches a terminal status. A cancel event only
stops the client from polling; the remote job keeps running and can be
picked up again with the manager's ``resume_*`` methods.
"""

from __future__ import annotations

import asyncio
import contextlib
import posixpath
from collections.abc import Callable
from typing import ClassVar

from bulk_platform.errors import (
    OperationCancelledError,
    OperationFailedError,
    OperationInProgressError,
    OperationStateError,
    TransportError,
)
from bulk_platform.operations.status import BulkOperationStatus
from bulk_platform.operations.status_provider import (
    DownloadStatusProvider,
    ReportStatusProvider,
    StatusProvider,
    UploadStatusProvider,
)
from bulk_platform.services.archive.interface import ArchiveInterface
from bulk_platform.services.bulk_api.interface import AuthorizationData, BulkApiInterface
from bulk_platform.services.filesystem.interface import FileSystemInterface
from bulk_platform.services.logger.interface import LoggingInterface
from bulk_platform.services.metrics.interface import MetricsInterface
from bulk_platform.services.metrics.noop_metrics import NoopMetrics
from bulk_platform.services.transfer.interface import FileTransferInterface

ProgressCallback = Callable[[BulkOperationStatus], None]

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_STATUS_RETRY_LIMIT = 4


class BulkOperation:
    provider: ClassVar[StatusProvider]

    def __init__(
        self,
        request_id: str,
        auth: AuthorizationData,
        api: BulkApiInterface,
        transfer: FileTransferInterface,
        archive: ArchiveInterface,
        fs: FileSystemInterface,
        log: LoggingInterface,
        metrics: MetricsInterface | None = None,
        tracking_id: str | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        status_retry_limit: int = DEFAULT_STATUS_RETRY_LIMIT,
    ) -> None:
        if not request_id:
            raise OperationStateError("An operation needs a request id")
        if poll_interval < 0:
            raise ValueError("poll_interval must not be negative")
        if status_retry_limit < 0:
            raise ValueError("status_retry_limit must not be negative")
        self.request_id = request_id
        self.tracking_id = tracking_id
        self.poll_interval = poll_interval
        self.status_retry_limit = status_retry_limit
        self._auth = auth
        self._api = api
        self._transfer = transfer
        self._archive = archive
        self._fs = fs
        self._log = log
        self._metrics = metrics or NoopMetrics()
        self._status: BulkOperationStatus | None = None
        self._final_status: BulkOperationStatus | None = None
        self._closed = False

    def __repr__(self) -> str:
        state = self._status.status.value if self._status else "Unknown"
        return f"{type(self).__name__}(request_id={self.request_id!r}, status={state})"

    @property
    def kind(self) -> str:
        return self.provider.kind

    @property
    def status(self) -> BulkOperationStatus | None:
        """Last status seen, without a round trip."""
        return self._status

    @property
    def closed(self) -> bool:
        return self._closed

    # ── Status ───────────────────────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self._closed:
            raise OperationStateError(f"Operation {self.request_id} has been closed")

    async def _poll(self) -> BulkOperationStatus:
        status = await self.provider.get_status(self._api, self._auth, self.request_id)
        self._metrics.counter("bulk_status_polls_total", tags={"kind": self.kind})
        self._log.debug(
            "Polled operation status",
            request_id=self.request_id,
            kind=self.kind,
            status=status.status.value,
            percent_complete=status.percent_complete,
        )
        self._status = status
        if status.tracking_id:
            self.tracking_id = status.tracking_id
        if status.is_terminal and self._final_status is None:
            self._final_status = status
            self._metrics.counter(
                "bulk_operations_finished_total",
                tags={"kind": self.kind, "status": status.status.value},
            )
        return status

    async def get_status(self) -> BulkOperationStatus:
        """One status round trip. Returns the cached result once terminal."""
        self._ensure_open()
        if self._final_status is not None:
            return self._final_status
        return await self._poll()

    def _check_final(self, status: BulkOperationStatus) -> BulkOperationStatus:
        if not status.is_success:
            self._log.error(
                "Operation did not complete",
                request_id=self.request_id,
                status=status.status.value,
                errors=len(status.errors),
            )
            raise OperationFailedError(self.request_id, status)
        return status

    async def track(
        self,
        progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> BulkOperationStatus:
        """Poll until terminal.

        Returns the final status for ``Completed`` and ``CompletedWithErrors``.
        Raises OperationFailedError for ``Failed``, ``Expired`` and ``Aborted``,
        and OperationCancelledError when *cancel_event* is set before a poll.
        Transport failures are retried up to ``status_retry_limit`` times in a
        row; service faults propagate immediately.
        """
        self._ensure_open()
        if self._final_status is not None:
            return self._check_final(self._final_status)

        polls = 0
        failures = 0
        while True:
            if cancel_event is not None and cancel_event.is_set():
                self._log.info("Stopped tracking operation", request_id=self.request_id, polls=polls)
                raise OperationCancelledError(self.request_id, polls)
            try:
                status = await self._poll()
            except TransportError as exc:
                failures += 1
                self._metrics.counter("bulk_status_poll_failures_total", tags={"kind": self.kind})
                if failures > self.status_retry_limit:
                    raise
                self._log.warn(
                    "Status poll failed, retrying",
                    request_id=self.request_id,
                    attempt=failures,
                    error=str(exc),
                )
            else:
                failures = 0
                polls += 1
                if progress is not None:
                    progress(status)
                if status.is_terminal:
                    self._log.info(
                        "Operation finished",
                        request_id=self.request_id,
                        status=status.status.value,
                        polls=polls,
                    )
                    return self._check_final(status)
            await self._wait(cancel_event)

    async def _wait(self, cancel_event: asyncio.Event | None) -> None:
        if cancel_event is None:
            await asyncio.sleep(self.poll_interval)
            return
        sleeper = asyncio.ensure_future(asyncio.sleep(self.poll_interval))
        canceller = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, canceller}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, canceller):
                if not task.done():
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task

    # ── Result file ──────────────────────────────────────────────────────────

    async def download_result_file(
        self,
        directory: str,
        file_name: str | None = None,
        decompress: bool = True,
        overwrite: bool = False,
    ) -> str:
        """Fetch the result file of a finished job into *directory*.

        With *decompress* the archive's single entry is extracted (renamed to
        *file_name* when given) and the archive is deleted. Returns the local
        path.
        """
        self._ensure_open()
        status = self._final_status
        if status is None:
            raise OperationInProgressError(
                f"Operation {self.request_id} has not finished; call track() first"
            )
        self._check_final(status)
        if not status.result_file_url:
            raise OperationStateError(f"Operation {self.request_id} has no result file")

        stem = posixpath.splitext(file_name)[0] if file_name else self.request_id
        archive_path = posixpath.join(directory, f"{stem}.zip")
        if not decompress and file_name:
            archive_path = posixpath.join(directory, file_name)

        final_path = archive_path if not decompress else (
            posixpath.join(directory, file_name) if file_name else None
        )
        if final_path is not None and self._fs.exists(final_path) and not overwrite:
            raise FileExistsError(f"File already exists: {final_path}")

        self._fs.create_directory_if_absent(directory)
        try:
            await self._transfer.download_file(status.result_file_url, archive_path)
        except BaseException:
            self._fs.delete_file(archive_path)
            raise
        self._metrics.counter("bulk_files_transferred_total", tags={"direction": "download"})

        if not decompress:
            self._log.info("Downloaded result file", request_id=self.request_id, path=archive_path)
            return archive_path

        try:
            path = self._archive.extract_single(archive_path, directory, file_name, overwrite)
        finally:
            self._fs.delete_file(archive_path)
        self._log.info("Downloaded result file", request_id=self.request_id, path=path)
        return path

    # ── Disposal ─────────────────────────────────────────────────────────────

    def close(self) -> None:
        self._closed = True

    async def __aenter__(self) -> BulkOperation:
        self._ensure_open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class BulkDownloadOperation(BulkOperation):
    provider = DownloadStatusProvider()


class BulkUploadOperation(BulkOperation):
    provider = UploadStatusProvider()


class ReportingDownloadOperation(BulkOperation):
    provider = ReportStatusProvider()
