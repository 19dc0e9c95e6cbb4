"""Service slots selectable from the command line.

Each slot pairs the interface registered in the container with the
implementations a ``--<flag> <name>`` can pick. Classes are named by dotted
path and imported on first use, so aiohttp and prometheus_client are only
loaded when an implementation needing them is chosen.
"""

import importlib
from typing import Any, NamedTuple


class ServiceSlot(NamedTuple):
    interface: str
    implementations: dict[str, str]


_PKG = "bulk_platform.services"

SERVICES: dict[str, ServiceSlot] = {
    "fs": ServiceSlot(
        f"{_PKG}.filesystem.interface.FileSystemInterface",
        {
            "memory": f"{_PKG}.filesystem.memory_filesystem.MemoryFileSystem",
            "local": f"{_PKG}.filesystem.local_filesystem.LocalFileSystem",
        },
    ),
    "metrics": ServiceSlot(
        f"{_PKG}.metrics.interface.MetricsInterface",
        {
            "noop": f"{_PKG}.metrics.noop_metrics.NoopMetrics",
            "memory": f"{_PKG}.metrics.memory_metrics.MemoryMetrics",
            "prometheus": f"{_PKG}.metrics.prometheus_metrics.PrometheusMetrics",
        },
    ),
    "secrets": ServiceSlot(
        f"{_PKG}.secrets.interface.SecretsInterface",
        {"env": f"{_PKG}.secrets.env_secrets.EnvSecrets"},
    ),
    "archive": ServiceSlot(
        f"{_PKG}.archive.interface.ArchiveInterface",
        {"zip": f"{_PKG}.archive.zip_archive.ZipArchive"},
    ),
    "transfer": ServiceSlot(
        f"{_PKG}.transfer.interface.FileTransferInterface",
        {
            "memory": f"{_PKG}.transfer.memory_transfer.MemoryFileTransfer",
            "aiohttp": f"{_PKG}.transfer.aiohttp_transfer.AiohttpFileTransfer",
        },
    ),
    "api": ServiceSlot(
        f"{_PKG}.bulk_api.interface.BulkApiInterface",
        {
            "memory": f"{_PKG}.bulk_api.memory_api.MemoryBulkApi",
            "rest": f"{_PKG}.bulk_api.rest_api.RestBulkApi",
        },
    ),
}


def resolve_class(dotted_path: str) -> type[Any]:
    """Import and return a class from a dotted module.ClassName path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    return getattr(importlib.import_module(module_path), class_name)


def _slot(flag_name: str) -> ServiceSlot:
    slot = SERVICES.get(flag_name)
    if slot is None:
        raise ValueError(f"Unknown interface flag: --{flag_name}")
    return slot


def implementation_names(flag_name: str) -> list[str]:
    return list(_slot(flag_name).implementations)


def resolve_implementation(flag_name: str, impl_name: str) -> type[Any]:
    impls = _slot(flag_name).implementations
    if impl_name not in impls:
        raise ValueError(
            f"Unknown implementation '{impl_name}' for --{flag_name} "
            f"(available: {', '.join(impls)})"
        )
    return resolve_class(impls[impl_name])


def resolve_interface_type(flag_name: str) -> type[Any]:
    return resolve_class(_slot(flag_name).interface)
