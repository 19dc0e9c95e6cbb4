from typing import Any


class ModuleConfig:
    """Parsed job-module arguments (``--entities``, ``--result-dir``, ...) with typed access."""

    def __init__(self, args: dict[str, Any]) -> None:
        self._args = args

    def get(self, key: str, default: Any = None) -> Any:
        return self._args.get(key, default)

    def get_list(self, key: str, default: list[str] | None = None) -> list[str]:
        """Comma-separated argument as a list; a list value is returned as is."""
        value = self._args.get(key)
        if value is None or value == "":
            return list(default or [])
        if isinstance(value, list):
            return [str(v) for v in value]
        return [part.strip() for part in str(value).split(",") if part.strip()]

    def __contains__(self, key: str) -> bool:
        return key in self._args

    def __repr__(self) -> str:
        return f"ModuleConfig({self._args})"
