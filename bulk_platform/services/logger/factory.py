from __future__ import annotations

from bulk_platform.services.logger.interface import LoggingInterface
from bulk_platform.services.logger.memory_logger import MemoryLogger
from bulk_platform.services.logger.pretty_logger import PrettyLogger

LOG_IMPLEMENTATIONS: dict[str, type[LoggingInterface]] = {
    "pretty": PrettyLogger,
    "memory": MemoryLogger,
}


class LoggerFactory:
    """Creates one logger per implementation name and hands out the same instance after."""

    def __init__(self, default_impl: str = "pretty") -> None:
        self._check(default_impl)
        self._default_impl = default_impl
        self._instances: dict[str, LoggingInterface] = {}

    @staticmethod
    def _check(name: str) -> None:
        if name not in LOG_IMPLEMENTATIONS:
            raise ValueError(
                f"Unknown logger implementation: '{name}' "
                f"(available: {', '.join(LOG_IMPLEMENTATIONS)})"
            )

    def create(self, impl_name: str | None = None) -> LoggingInterface:
        name = impl_name or self._default_impl
        if name not in self._instances:
            self._check(name)
            self._instances[name] = LOG_IMPLEMENTATIONS[name]()
        return self._instances[name]
