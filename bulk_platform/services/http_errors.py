"""HTTP status classification shared by the aiohttp-backed services."""

from __future__ import annotations

from typing import Any

from bulk_platform.errors import BulkError, RemoteFaultError, TransportError

# Gateway-level statuses mean the request never reached the service.
TRANSIENT_STATUSES = frozenset({502, 503, 504})


def error_for_status(status: int, url: str, details: dict[str, Any] | None = None) -> BulkError:
    if status in TRANSIENT_STATUSES:
        return TransportError(f"HTTP {status} from {url}")
    message = (details or {}).get("message") or f"HTTP {status} from {url}"
    return RemoteFaultError(message, status_code=status, details=details)
