from abc import ABC, abstractmethod
from typing import Any


class LoggingInterface(ABC):
    """Structured logging. Context is passed as keyword arguments
    (request_id, row, path, ...) and rendered by the implementation."""

    @abstractmethod
    def info(self, msg: str, **ctx: Any) -> None: ...

    @abstractmethod
    def warn(self, msg: str, **ctx: Any) -> None: ...

    @abstractmethod
    def error(self, msg: str, **ctx: Any) -> None: ...

    @abstractmethod
    def debug(self, msg: str, **ctx: Any) -> None: ...
