from abc import ABC, abstractmethod


class SecretsInterface(ABC):
    """Access to credentials (developer token, auth token) and settings values."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value for *key*, or None when unset."""
        ...

    @abstractmethod
    def get_or_default(self, key: str, default: str) -> str: ...

    @abstractmethod
    def require(self, key: str) -> str:
        """Return the value for *key*, raising KeyError when unset."""
        ...
