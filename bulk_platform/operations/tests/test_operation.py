"""Tests for BulkOperation tracking and result download against MemoryBulkApi."""

from __future__ import annotations

import asyncio

import pytest

from bulk_platform.errors import (
    OperationCancelledError,
    OperationFailedError,
    OperationInProgressError,
    OperationStateError,
    RemoteFaultError,
    TransportError,
)
from bulk_platform.operations.operation import (
    BulkDownloadOperation,
    BulkUploadOperation,
    ReportingDownloadOperation,
)
from bulk_platform.operations.status import JobStatusResponse, OperationError, OperationStatus

RESULT_URL = "https://results.example/download-1.zip"
PAYLOAD = "Type,Name\r\nFormat Version,4.0\r\n"


def _operation(cls, request_id, auth, api, transfer, archive, fs, log, metrics, **kwargs):
    kwargs.setdefault("poll_interval", 0)
    return cls(request_id, auth, api, transfer, archive, fs, log, metrics=metrics, **kwargs)


@pytest.fixture
def make_op(auth, api, transfer, archive, fs, log, metrics):
    def factory(request_id: str, cls=BulkDownloadOperation, **kwargs):
        return _operation(cls, request_id, auth, api, transfer, archive, fs, log, metrics, **kwargs)
    return factory


def _completed(url: str | None = RESULT_URL) -> JobStatusResponse:
    return JobStatusResponse("Completed", 100, result_file_url=url)


# ── Tracking ──────────────────────────────────────────────────────────────────

async def test_track_returns_after_terminal_status(api, make_op):
    api.add_job(
        "download-1", "download",
        JobStatusResponse("Pending"),
        JobStatusResponse("InProgress", 40),
        _completed(),
    )
    seen: list[tuple[OperationStatus, int]] = []
    op = make_op("download-1")

    status = await op.track(lambda s: seen.append((s.status, s.percent_complete)))

    assert status.status is OperationStatus.COMPLETED
    assert api.polls("download-1") == 3
    assert seen == [
        (OperationStatus.PENDING, 0),
        (OperationStatus.IN_PROGRESS, 40),
        (OperationStatus.COMPLETED, 100),
    ]


async def test_failed_job_raises_with_itemized_errors(api, make_op, transfer):
    errors = (
        OperationError(3201, "Invalid account", "InvalidAccountId"),
        OperationError(3202, "Quota exceeded"),
    )
    api.add_job("download-1", "download", JobStatusResponse("Pending"), JobStatusResponse("Failed", errors=errors))
    op = make_op("download-1")

    with pytest.raises(OperationFailedError) as exc_info:
        await op.track()

    assert exc_info.value.errors == list(errors)
    assert exc_info.value.status.status is OperationStatus.FAILED
    with pytest.raises(OperationFailedError):
        await op.download_result_file("/out")
    assert transfer.downloads == []


async def test_completed_with_errors_is_a_success(api, make_op):
    errors = (OperationError(4101, "Bid too high"),)
    api.add_job("upload-1", "upload", JobStatusResponse("CompletedWithErrors", 100, RESULT_URL, errors))
    status = await make_op("upload-1", BulkUploadOperation).track()
    assert status.status is OperationStatus.COMPLETED_WITH_ERRORS
    assert status.errors == errors


@pytest.mark.parametrize("remote", ["Expired", "Aborted"])
async def test_other_terminal_failures_raise(api, make_op, remote):
    api.add_job("download-1", "download", JobStatusResponse(remote))
    with pytest.raises(OperationFailedError):
        await make_op("download-1").track()


async def test_report_vocabulary(api, make_op):
    api.add_job("report-1", "report", JobStatusResponse("Pending"), JobStatusResponse("Success", 0, RESULT_URL))
    status = await make_op("report-1", ReportingDownloadOperation).track()
    assert status.status is OperationStatus.COMPLETED
    assert status.percent_complete == 100


async def test_upload_pre_processing_statuses_count_as_pending(api, make_op):
    api.add_job(
        "upload-1", "upload",
        JobStatusResponse("PendingFileUpload"),
        JobStatusResponse("FileUploaded"),
        _completed(),
    )
    seen: list[OperationStatus] = []
    await make_op("upload-1", BulkUploadOperation).track(lambda s: seen.append(s.status))
    assert seen == [OperationStatus.PENDING, OperationStatus.PENDING, OperationStatus.COMPLETED]


async def test_unknown_remote_status_is_a_fault(api, make_op):
    api.add_job("download-1", "download", JobStatusResponse("Teleporting"))
    with pytest.raises(RemoteFaultError, match="Teleporting"):
        await make_op("download-1").track()


async def test_tracking_id_is_picked_up_from_status(api, make_op):
    api.add_job("download-1", "download", JobStatusResponse("Completed", 100, RESULT_URL, tracking_id="trk-9"))
    op = make_op("download-1")
    await op.track()
    assert op.tracking_id == "trk-9"


# ── Retries ───────────────────────────────────────────────────────────────────

async def test_transport_errors_are_retried_within_limit(api, make_op, log, metrics):
    api.add_job("download-1", "download", _completed())
    api.status_errors = [TransportError("reset"), TransportError("timeout")]
    status = await make_op("download-1", status_retry_limit=2).track()
    assert status.is_success
    assert len(log.at_level("WARN")) == 2
    assert metrics.counters["bulk_status_poll_failures_total"] == 2


async def test_transport_errors_beyond_limit_propagate(api, make_op):
    api.add_job("download-1", "download", _completed())
    api.status_errors = [TransportError(str(i)) for i in range(3)]
    with pytest.raises(TransportError, match="2"):
        await make_op("download-1", status_retry_limit=2).track()


async def test_successful_poll_resets_retry_count(api, make_op):
    api.add_job(
        "download-1", "download",
        JobStatusResponse("InProgress"),
        JobStatusResponse("InProgress"),
        _completed(),
    )
    errors = [TransportError("a"), None, TransportError("b"), None]
    real_status = api.get_download_status

    async def flaky(auth, request_id):
        error = errors.pop(0) if errors else None
        if error is not None:
            raise error
        return await real_status(auth, request_id)

    api.get_download_status = flaky
    status = await make_op("download-1", status_retry_limit=1).track()
    assert status.is_success


async def test_remote_fault_is_not_retried(api, make_op):
    api.add_job("download-1", "download", _completed())
    api.status_errors = [RemoteFaultError("denied", status_code=403)]
    with pytest.raises(RemoteFaultError):
        await make_op("download-1", status_retry_limit=5).track()
    assert api.polls("download-1") == 0


# ── Cancellation ──────────────────────────────────────────────────────────────

async def test_cancel_before_first_poll(api, make_op):
    api.add_job("download-1", "download", JobStatusResponse("InProgress"))
    cancel = asyncio.Event()
    cancel.set()
    with pytest.raises(OperationCancelledError) as exc_info:
        await make_op("download-1").track(cancel_event=cancel)
    assert exc_info.value.polls == 0
    assert api.polls("download-1") == 0


async def test_cancel_interrupts_the_wait(api, make_op):
    api.add_job("download-1", "download", JobStatusResponse("InProgress"))
    cancel = asyncio.Event()
    op = make_op("download-1", poll_interval=3600)

    task = asyncio.create_task(op.track(cancel_event=cancel))
    await asyncio.sleep(0.01)
    cancel.set()
    with pytest.raises(OperationCancelledError) as exc_info:
        await asyncio.wait_for(task, timeout=5)
    assert exc_info.value.polls == 1
    assert exc_info.value.request_id == "download-1"


async def test_tracking_can_resume_after_cancel(api, make_op):
    api.add_job("download-1", "download", JobStatusResponse("InProgress"), _completed())
    cancel = asyncio.Event()
    op = make_op("download-1")
    cancel.set()
    with pytest.raises(OperationCancelledError):
        await op.track(cancel_event=cancel)
    status = await op.track()
    assert status.is_success


# ── Status caching ────────────────────────────────────────────────────────────

async def test_get_status_is_cached_once_terminal(api, make_op):
    api.add_job("download-1", "download", JobStatusResponse("InProgress", 10), _completed())
    op = make_op("download-1")
    first = await op.get_status()
    assert first.status is OperationStatus.IN_PROGRESS
    final = await op.get_status()
    again = await op.get_status()
    assert final is again
    assert api.polls("download-1") == 2
    assert op.status is final


async def test_track_after_terminal_does_not_poll(api, make_op):
    api.add_job("download-1", "download", _completed())
    op = make_op("download-1")
    await op.track()
    await op.track()
    assert api.polls("download-1") == 1


# ── Result file ───────────────────────────────────────────────────────────────

async def test_download_extracts_single_payload_and_removes_archive(api, make_op, transfer, fs, make_zip):
    api.add_job("download-1", "download", _completed())
    transfer.remote_files[RESULT_URL] = make_zip("result.csv", PAYLOAD)
    op = make_op("download-1")
    await op.track()

    path = await op.download_result_file("/out")

    assert path == "/out/result.csv"
    assert fs.read_bytes(path).decode() == PAYLOAD
    assert fs.list_files("/out") == ["/out/result.csv"]


async def test_download_renames_payload(api, make_op, transfer, fs, make_zip):
    api.add_job("download-1", "download", _completed())
    transfer.remote_files[RESULT_URL] = make_zip("result.csv", PAYLOAD)
    op = make_op("download-1")
    await op.track()
    path = await op.download_result_file("/out", "accounts.csv")
    assert path == "/out/accounts.csv"
    assert fs.list_files("/out") == ["/out/accounts.csv"]


async def test_download_without_decompress_keeps_archive(api, make_op, transfer, fs, make_zip):
    api.add_job("download-1", "download", _completed())
    transfer.remote_files[RESULT_URL] = make_zip("result.csv", PAYLOAD)
    op = make_op("download-1")
    await op.track()
    path = await op.download_result_file("/out", decompress=False)
    assert path == "/out/download-1.zip"
    assert fs.read_bytes(path) == transfer.remote_files[RESULT_URL]


async def test_existing_result_file_needs_overwrite(api, make_op, transfer, fs, make_zip):
    api.add_job("download-1", "download", _completed())
    transfer.remote_files[RESULT_URL] = make_zip("result.csv", PAYLOAD)
    fs.write_bytes("/out/accounts.csv", b"old")
    op = make_op("download-1")
    await op.track()

    with pytest.raises(FileExistsError):
        await op.download_result_file("/out", "accounts.csv")
    assert transfer.downloads == []

    path = await op.download_result_file("/out", "accounts.csv", overwrite=True)
    assert fs.read_bytes(path).decode() == PAYLOAD


async def test_archive_with_two_entries_is_rejected_and_cleaned_up(api, make_op, transfer, fs):
    import io
    import zipfile

    from bulk_platform.errors import ArchiveError

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("a.csv", "a")
        zf.writestr("b.csv", "b")
    api.add_job("download-1", "download", _completed())
    transfer.remote_files[RESULT_URL] = buf.getvalue()
    op = make_op("download-1")
    await op.track()
    with pytest.raises(ArchiveError, match="exactly one"):
        await op.download_result_file("/out")
    assert fs.list_files("/out") == []


@pytest.mark.parametrize("decompress", [True, False])
async def test_interrupted_transfer_leaves_no_partial_file(api, make_op, transfer, fs, decompress):
    api.add_job("download-1", "download", _completed())
    transfer.remote_files[RESULT_URL] = b"PK\x03\x04partial"
    transfer.download_error = TransportError("connection reset")
    op = make_op("download-1")
    await op.track()
    with pytest.raises(TransportError, match="connection reset"):
        await op.download_result_file("/out", decompress=decompress)
    assert fs.list_files("/out") == []


async def test_download_before_finish_is_rejected(api, make_op):
    api.add_job("download-1", "download", JobStatusResponse("InProgress"))
    op = make_op("download-1")
    await op.get_status()
    with pytest.raises(OperationInProgressError):
        await op.download_result_file("/out")


async def test_completed_without_result_url(api, make_op):
    api.add_job("download-1", "download", _completed(url=None))
    op = make_op("download-1")
    await op.track()
    with pytest.raises(OperationStateError, match="no result file"):
        await op.download_result_file("/out")


# ── Disposal ──────────────────────────────────────────────────────────────────

async def test_closed_operation_rejects_calls(api, make_op):
    api.add_job("download-1", "download", _completed())
    async with make_op("download-1") as op:
        await op.track()
    assert op.closed
    with pytest.raises(OperationStateError, match="closed"):
        await op.get_status()
    with pytest.raises(OperationStateError):
        await op.download_result_file("/out")


def test_operation_needs_request_id(make_op):
    with pytest.raises(OperationStateError):
        make_op("")


def test_negative_poll_interval_rejected(make_op):
    with pytest.raises(ValueError):
        make_op("download-1", poll_interval=-1)
