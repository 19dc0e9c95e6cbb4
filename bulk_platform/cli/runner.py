"""Command line entry point.

    python -m bulk_platform run <module> [global flags] [module args]
    python -m bulk_platform list

Module arguments are described by each module's ``module.json``. Global
flags pick service implementations from the registry and feed environment
overrides (``--env`` JSON, ``--env-file``) into the secrets provider that
``BulkSettings`` reads credentials from.
"""

from __future__ import annotations

import asyncio
import importlib
import json
import sys
from pathlib import Path
from typing import Any, NamedTuple

from bulk_platform.config.container import Container
from bulk_platform.config.context import ModuleConfig
from bulk_platform.config.env_loader import load_env_file
from bulk_platform.config.settings import BulkSettings
from bulk_platform.manager.bulk_service_manager import BulkServiceManager
from bulk_platform.manager.reporting_service_manager import ReportingServiceManager
from bulk_platform.modules.base import AsyncModule
from bulk_platform.services.logger.factory import LOG_IMPLEMENTATIONS, LoggerFactory
from bulk_platform.services.logger.interface import LoggingInterface
from bulk_platform.services.registry import implementation_names, resolve_implementation, resolve_interface_type
from bulk_platform.services.secrets.env_secrets import EnvSecrets
from bulk_platform.services.secrets.interface import SecretsInterface

MODULES_DIR = Path(__file__).resolve().parent.parent / "modules"

USAGE = "Usage: python -m bulk_platform run <module_name> [flags] [module args] | python -m bulk_platform list"


class GlobalFlag(NamedTuple):
    name: str
    default: str
    help: str


# Built in this order: archive and transfer are constructed from fs.
_GLOBAL_FLAGS: tuple[GlobalFlag, ...] = (
    GlobalFlag("log", "pretty", "Log output"),
    GlobalFlag("metrics", "noop", "Metrics backend"),
    GlobalFlag("fs", "local", "File system"),
    GlobalFlag("archive", "zip", "Archive format"),
    GlobalFlag("transfer", "aiohttp", "Result/upload file transfer"),
    GlobalFlag("api", "rest", "Bulk service client"),
)
_FLAG_DEFAULTS = {flag.name: flag.default for flag in _GLOBAL_FLAGS}
_ENV_FLAGS = ("env", "env-file")

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off")


# ── Module descriptors ────────────────────────────────────────────────────────

def load_module_descriptor(module_name: str) -> dict[str, Any]:
    module_json = MODULES_DIR / module_name / "module.json"
    if not module_json.exists():
        raise FileNotFoundError(f"module '{module_name}' not found at {module_json}")
    with open(module_json, encoding="utf-8") as f:
        return json.load(f)


def list_modules() -> list[dict[str, Any]]:
    return [
        load_module_descriptor(path.parent.name)
        for path in sorted(MODULES_DIR.glob("*/module.json"))
    ]


def _split_flag(token: str) -> tuple[str, str | None]:
    """``--name=value`` -> (name, value); ``--name`` -> (name, None)."""
    name, sep, value = token[2:].partition("=")
    return name, value if sep else None


def parse_module_args(descriptor: dict[str, Any], raw_args: list[str]) -> dict[str, Any]:
    """Parse CLI args against the module.json arg definitions.

    Every problem (unknown names, missing required args, uncastable values,
    values outside ``choices``) is collected into a single ValueError.
    """
    arg_defs: list[dict[str, Any]] = descriptor.get("args", [])
    given: dict[str, str] = {}
    errors: list[str] = []

    i = 0
    while i < len(raw_args):
        token = raw_args[i]
        i += 1
        if not token.startswith("--"):
            errors.append(f"Unexpected value: {token!r}")
            continue
        name, value = _split_flag(token)
        if value is None:
            if i < len(raw_args) and not raw_args[i].startswith("--"):
                value = raw_args[i]
                i += 1
            else:
                value = "true"
        given[name] = value

    known = {arg_def["name"] for arg_def in arg_defs}
    errors.extend(f"Unknown argument: --{name}" for name in given if name not in known)
    result: dict[str, Any] = {}

    for arg_def in arg_defs:
        name = arg_def["name"]
        if name in given:
            try:
                result[name] = _cast_value(given[name], arg_def.get("type", "string"))
            except ValueError:
                errors.append(f"Invalid {arg_def.get('type', 'string')} for --{name}: {given[name]!r}")
                continue
        elif "default" in arg_def:
            result[name] = arg_def["default"]
        elif arg_def.get("required", False):
            errors.append(f"Missing required argument: --{name}")

        choices = arg_def.get("choices")
        if name in result and choices and result[name] not in choices:
            errors.append(
                f"Invalid value for --{name}: '{result[name]}' "
                f"(choices: {', '.join(str(c) for c in choices)})"
            )

    if errors:
        raise ValueError("; ".join(errors))
    return result


def _cast_value(value: str, type_name: str) -> Any:
    match type_name:
        case "integer":
            return int(value)
        case "float":
            return float(value)
        case "boolean":
            lowered = value.lower()
            if lowered in _TRUE:
                return True
            if lowered in _FALSE:
                return False
            raise ValueError(value)
        case _:
            return value


# ── Global flags ──────────────────────────────────────────────────────────────

def _parse_env_overrides(raw: str) -> dict[str, str]:
    """Parse the ``--env`` JSON object; keys and values must both be strings."""
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("--env value must be a JSON object")
    for k, v in data.items():
        if not isinstance(k, str) or not isinstance(v, str):
            raise ValueError("--env JSON must have string keys and string values")
    return data


def _extract_global_flags(
    remaining: list[str],
) -> tuple[dict[str, str], dict[str, str], list[str]]:
    """Split global flags from module args.

    Returns (impl_flags, env_overrides, filtered_module_args). impl_flags only
    holds the flags given on the command line; defaults are applied when the
    container is built. ``--env`` may repeat and later values win; values
    from ``--env-file`` lose to any ``--env``.
    """
    impl_flags: dict[str, str] = {}
    env_overrides: dict[str, str] = {}
    env_file: str | None = None
    filtered_args: list[str] = []

    i = 0
    while i < len(remaining):
        token = remaining[i]
        name, value = _split_flag(token) if token.startswith("--") else ("", None)
        if name not in _FLAG_DEFAULTS and name not in _ENV_FLAGS:
            filtered_args.append(token)
            i += 1
            continue
        if value is None:
            if i + 1 >= len(remaining):
                raise ValueError(f"--{name} needs a value")
            value = remaining[i + 1]
            i += 1
        i += 1

        if name == "env":
            env_overrides.update(_parse_env_overrides(value))
        elif name == "env-file":
            env_file = value
        else:
            impl_flags[name] = value

    if env_file:
        merged = load_env_file(env_file)
        merged.update(env_overrides)
        env_overrides = merged

    # The logger factory reads LOG_IMPL
    if "log" in impl_flags and "LOG_IMPL" not in env_overrides:
        env_overrides["LOG_IMPL"] = impl_flags["log"]

    return impl_flags, env_overrides, filtered_args


def _flag_choices(name: str) -> list[str]:
    return list(LOG_IMPLEMENTATIONS) if name == "log" else implementation_names(name)


# ── Help ──────────────────────────────────────────────────────────────────────

def print_module_help(descriptor: dict[str, Any]) -> None:
    version = descriptor.get("version", "")
    version_suffix = f" v{version}" if version else ""
    print(f"\n  {descriptor['display_name']}{version_suffix}")
    print(f"  {descriptor['description']}\n")

    args = descriptor.get("args", [])
    if args:
        print("  Module arguments:")
        for arg in args:
            required = " (required)" if arg.get("required") else ""
            default = f" [default: {arg['default']}]" if "default" in arg else ""
            choices = f" (choices: {', '.join(str(c) for c in arg['choices'])})" if arg.get("choices") else ""
            print(f"    --{arg['name']:20s} {arg['description']}{required}{default}{choices}")
        print()

    print("  Global flags:")
    for flag in _GLOBAL_FLAGS:
        choices = ", ".join(_flag_choices(flag.name))
        print(f"    --{flag.name:20s} {flag.help}: {choices} [default: {flag.default}]")
    print(f"    --{'env':20s} JSON object of environment overrides")
    print(f"    --{'env-file':20s} Environment file: a name under .env/ or a path to a .env file")
    print()


def print_module_list() -> None:
    print("\n  Available modules:")
    for descriptor in list_modules():
        print(f"    {descriptor['name']:20s} {descriptor['description']}")
    print()


# ── Container and entry points ────────────────────────────────────────────────

def _build_container(
    impl_flags: dict[str, str],
    env_overrides: dict[str, str],
    module_args: dict[str, Any],
) -> Container:
    """Build the DI container: secrets, logging, flagged services, settings, managers."""
    container = Container()
    container.register_instance(Container, container)

    secrets = EnvSecrets(overrides=env_overrides)
    container.register_instance(SecretsInterface, secrets)
    container.register_instance(ModuleConfig, ModuleConfig(module_args))

    # --log wins over LOG_IMPL
    log_impl = impl_flags.get("log") or env_overrides.get("LOG_IMPL") or _FLAG_DEFAULTS["log"]
    logger_factory = LoggerFactory(default_impl=log_impl)
    container.register_instance(LoggerFactory, logger_factory)
    container.register_instance(LoggingInterface, logger_factory.create())

    for flag in _GLOBAL_FLAGS:
        if flag.name == "log":
            continue
        impl_cls = resolve_implementation(flag.name, impl_flags.get(flag.name, flag.default))
        container.register_instance(resolve_interface_type(flag.name), container.resolve(impl_cls))

    container.register_instance(BulkSettings, BulkSettings.from_secrets(secrets))
    container.register_instance(BulkServiceManager, container.resolve(BulkServiceManager))
    container.register_instance(ReportingServiceManager, container.resolve(ReportingServiceManager))
    return container


def _module_class(module_name: str) -> type[AsyncModule]:
    dotted = f"bulk_platform.modules.{module_name}.main"
    mod = importlib.import_module(dotted)
    if not hasattr(mod, "module_class"):
        raise AttributeError(f"Module '{dotted}' must define a 'module_class' attribute")
    return mod.module_class


def run_module(argv: list[str]) -> tuple[int, AsyncModule | None]:
    """Testable entry point: parses args, builds container, runs module, returns (exit_code, module)."""
    if argv[:1] == ["list"]:
        print_module_list()
        return (0, None)
    if len(argv) < 2 or argv[0] != "run":
        raise ValueError(USAGE)

    module_name = argv[1]
    remaining = argv[2:]
    descriptor = load_module_descriptor(module_name)

    if "--help" in remaining or "-h" in remaining:
        print_module_help(descriptor)
        return (0, None)

    impl_flags, env_overrides, filtered_args = _extract_global_flags(remaining)
    module_args = parse_module_args(descriptor, filtered_args)
    container = _build_container(impl_flags, env_overrides, module_args)

    module_instance = container.resolve(_module_class(module_name))
    exit_code = asyncio.run(module_instance.run())
    return (exit_code, module_instance)


def run_cli(argv: list[str] | None = None) -> None:
    args = argv if argv is not None else sys.argv[1:]
    try:
        exit_code, _ = run_module(args)
    except (ValueError, KeyError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)
