"""Credential files for ``--env-file``.

``--env-file local`` reads ``.env/local.env`` under the project root, while
a value ending in ``.env`` (or containing a path separator) is read as-is.
Each line is ``KEY=VALUE``, optionally prefixed with ``export``. Values may
be quoted and may reference keys defined earlier in the same file as
``${KEY}``, e.g. ``BULK_API_BASE_URL=${BULK_HOST}/v1``.
"""

import re
from pathlib import Path

# Project root: two levels up from bulk_platform/config/
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

_LINE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$")
_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def resolve_env_path(env_name: str, project_root: Path | None = None) -> Path:
    if env_name.endswith(".env") or "/" in env_name:
        return Path(env_name)
    return (project_root or _PROJECT_ROOT) / ".env" / f"{env_name}.env"


def load_env_file(env_name: str = "local", project_root: Path | None = None) -> dict[str, str]:
    """Load an env file as a dict. A missing file yields an empty dict.

    Raises ValueError naming the file and line for a malformed entry or a
    reference to an undefined key.
    """
    path = resolve_env_path(env_name, project_root)
    if not path.is_file():
        return {}
    return parse_env_text(path.read_text(encoding="utf-8"), source=str(path))


def parse_env_text(text: str, source: str = "<env>") -> dict[str, str]:
    values: dict[str, str] = {}
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        match = _LINE.match(line)
        if match is None:
            raise ValueError(f"{source}:{number}: expected KEY=VALUE, got {raw.strip()!r}")
        key, value = match.group(1), match.group(2).strip()
        quote = value[0] if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'") else ""
        if quote:
            value = value[1:-1]
        # Single-quoted values are literal
        if quote != "'":
            value = _expand(value, values, source, number)
        values[key] = value
    return values


def _expand(value: str, known: dict[str, str], source: str, number: int) -> str:
    def substitute(match: re.Match) -> str:
        name = match.group(1)
        if name not in known:
            raise ValueError(f"{source}:{number}: ${{{name}}} is not defined earlier in the file")
        return known[name]

    return _REFERENCE.sub(substitute, value)
