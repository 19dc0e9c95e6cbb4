from __future__ import annotations

import asyncio
import signal
from abc import ABC, abstractmethod

from bulk_platform.errors import BulkError, OperationCancelledError, OperationFailedError
from bulk_platform.operations.status import BulkOperationStatus
from bulk_platform.services.logger.interface import LoggingInterface

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


class AsyncModule(ABC):
    """Base class for job modules with a standard async lifecycle.

    The CLI runner drives ``run()`` with ``asyncio.run()``.
    """

    async def initialize(self) -> None:
        """Async setup. Override as needed."""

    async def validate(self) -> None:
        """Async precondition checks. Override as needed."""

    @abstractmethod
    async def execute(self) -> int:
        """Async module logic. Must return an exit code."""
        ...

    async def teardown(self) -> None:
        """Async cleanup. Override as needed."""

    async def run(self) -> int:
        """Execute the full async module lifecycle."""
        try:
            await self.initialize()
            await self.validate()
            return await self.execute()
        finally:
            await self.teardown()


class TrackingJobModule(AsyncModule):
    """A job that tracks a remote operation until it finishes.

    SIGINT/SIGTERM set ``cancel_event`` so tracking stops between polls
    instead of killing the process mid-transfer.
    """

    log: LoggingInterface
    _SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self) -> None:
        self.cancel_event = asyncio.Event()
        self._installed: list[signal.Signals] = []

    async def initialize(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._SIGNALS:
            try:
                loop.add_signal_handler(sig, self.cancel_event.set)
            except (NotImplementedError, RuntimeError):
                # No signal support on this loop (e.g. Windows, non-main thread).
                continue
            self._installed.append(sig)

    async def teardown(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._installed:
            loop.remove_signal_handler(sig)
        self._installed.clear()

    # ── Shared job plumbing ──────────────────────────────────────────────────

    def report_progress(self, status: BulkOperationStatus) -> None:
        self.log.info(
            "Operation progress",
            status=status.status.value,
            percent_complete=status.percent_complete,
        )

    def exit_code_for(self, exc: BulkError) -> int:
        """Log an operation-level failure and map it to the process exit code."""
        if isinstance(exc, OperationCancelledError):
            self.log.warn(
                "Tracking cancelled; the remote job keeps running",
                request_id=exc.request_id,
                polls=exc.polls,
            )
            return EXIT_CANCELLED
        if isinstance(exc, OperationFailedError):
            for error in exc.errors:
                self.log.error(
                    "Remote job error",
                    request_id=exc.request_id,
                    code=error.code,
                    error_code=error.error_code,
                    message=error.message,
                )
        self.log.error("Job failed", error=str(exc))
        return EXIT_FAILED
