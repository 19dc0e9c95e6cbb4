from __future__ import annotations

import os

from bulk_platform.services.secrets.interface import SecretsInterface


class EnvSecrets(SecretsInterface):
    """Process environment, layered under explicit overrides (``--env``, env files)."""

    def __init__(self, overrides: dict[str, str] | None = None) -> None:
        self._env = dict(os.environ)
        if overrides:
            self._env.update(overrides)

    def get(self, key: str) -> str | None:
        value = self._env.get(key)
        return value if value != "" else None

    def get_or_default(self, key: str, default: str) -> str:
        value = self.get(key)
        return default if value is None else value

    def require(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(f"Required secret '{key}' is not set")
        return value
