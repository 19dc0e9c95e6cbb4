"""Typed settings for the service managers, read from secrets/environment.

| Key                         | Default                    |
|-----------------------------|----------------------------|
| BULK_CUSTOMER_ID            | (required for remote calls)|
| BULK_ACCOUNT_ID             | (required for remote calls)|
| BULK_DEVELOPER_TOKEN        | (required for remote calls)|
| BULK_AUTH_TOKEN             | (required for remote calls)|
| BULK_POLL_INTERVAL_SECONDS  | 5                          |
| BULK_STATUS_RETRY_LIMIT     | 4                          |
| BULK_WORKING_DIRECTORY      | <tmp>/BulkPlatform         |

Credentials are not checked here; ``AuthorizationData.validate`` rejects
incomplete data before the first remote call.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field

from bulk_platform.errors import ValidationError
from bulk_platform.operations.operation import DEFAULT_POLL_INTERVAL, DEFAULT_STATUS_RETRY_LIMIT
from bulk_platform.services.bulk_api.interface import AuthorizationData
from bulk_platform.services.secrets.interface import SecretsInterface


def default_working_directory() -> str:
    return os.path.join(tempfile.gettempdir(), "BulkPlatform")


def _parse_number(secrets: SecretsInterface, key: str, default: float, cast: type) -> float:
    raw = secrets.get(key)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValidationError(f"{key} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValidationError(f"{key} must not be negative, got {raw!r}")
    return value


def _parse_id(secrets: SecretsInterface, key: str) -> int | None:
    raw = secrets.get(key)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{key} must be an integer id, got {raw!r}") from None


@dataclass
class BulkSettings:
    authorization: AuthorizationData = field(default_factory=AuthorizationData)
    poll_interval: float = DEFAULT_POLL_INTERVAL
    status_retry_limit: int = DEFAULT_STATUS_RETRY_LIMIT
    working_directory: str = field(default_factory=default_working_directory)

    @classmethod
    def from_secrets(cls, secrets: SecretsInterface) -> BulkSettings:
        return cls(
            authorization=AuthorizationData(
                customer_id=_parse_id(secrets, "BULK_CUSTOMER_ID"),
                account_id=_parse_id(secrets, "BULK_ACCOUNT_ID"),
                developer_token=secrets.get("BULK_DEVELOPER_TOKEN"),
                auth_token=secrets.get("BULK_AUTH_TOKEN"),
            ),
            poll_interval=float(
                _parse_number(secrets, "BULK_POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL, float)
            ),
            status_retry_limit=int(
                _parse_number(secrets, "BULK_STATUS_RETRY_LIMIT", DEFAULT_STATUS_RETRY_LIMIT, int)
            ),
            working_directory=secrets.get_or_default(
                "BULK_WORKING_DIRECTORY", default_working_directory()
            ),
        )
