"""Tests for the CLI runner: argument parsing, global flags and container wiring."""

from __future__ import annotations

import json

import pytest

from bulk_platform.cli import runner
from bulk_platform.cli.runner import (
    _build_container,
    _extract_global_flags,
    _parse_env_overrides,
    list_modules,
    load_module_descriptor,
    parse_module_args,
    run_cli,
    run_module,
)
from bulk_platform.config.context import ModuleConfig
from bulk_platform.config.settings import BulkSettings
from bulk_platform.manager.bulk_service_manager import BulkServiceManager
from bulk_platform.manager.reporting_service_manager import ReportingServiceManager
from bulk_platform.services.archive.interface import ArchiveInterface
from bulk_platform.services.archive.zip_archive import ZipArchive
from bulk_platform.services.bulk_api.interface import BulkApiInterface
from bulk_platform.services.bulk_api.memory_api import MemoryBulkApi
from bulk_platform.services.bulk_api.rest_api import RestBulkApi
from bulk_platform.services.filesystem.interface import FileSystemInterface
from bulk_platform.services.filesystem.memory_filesystem import MemoryFileSystem
from bulk_platform.services.logger.interface import LoggingInterface
from bulk_platform.services.logger.memory_logger import MemoryLogger
from bulk_platform.services.metrics.interface import MetricsInterface
from bulk_platform.services.metrics.noop_metrics import NoopMetrics
from bulk_platform.services.transfer.interface import FileTransferInterface
from bulk_platform.services.transfer.memory_transfer import MemoryFileTransfer

DESCRIPTOR = {
    "name": "demo",
    "args": [
        {"name": "count", "type": "integer", "default": 1},
        {"name": "ratio", "type": "float"},
        {"name": "dry-run", "type": "boolean", "default": False},
        {"name": "mode", "type": "string", "default": "fast", "choices": ["fast", "slow"]},
        {"name": "target", "type": "string", "required": True},
    ],
}


# ── Module args ───────────────────────────────────────────────────────────────

def test_parse_casts_and_defaults():
    parsed = parse_module_args(DESCRIPTOR, ["--target", "x", "--count", "3", "--ratio", "0.5", "--dry-run"])
    assert parsed == {"count": 3, "ratio": 0.5, "dry-run": True, "mode": "fast", "target": "x"}


def test_parse_collects_every_error():
    with pytest.raises(ValueError) as exc_info:
        parse_module_args(DESCRIPTOR, ["--mode", "warp", "--colour", "red"])
    message = str(exc_info.value)
    assert "Unknown argument: --colour" in message
    assert "Missing required argument: --target" in message
    assert "Invalid value for --mode: 'warp' (choices: fast, slow)" in message


def test_parse_accepts_equals_syntax_and_explicit_booleans():
    parsed = parse_module_args(DESCRIPTOR, ["--target=a=b", "--dry-run", "off", "--mode=slow"])
    assert parsed["target"] == "a=b"
    assert parsed["dry-run"] is False
    assert parsed["mode"] == "slow"


def test_parse_reports_uncastable_values():
    with pytest.raises(ValueError) as exc_info:
        parse_module_args(DESCRIPTOR, ["--target", "x", "--count", "many", "--dry-run", "maybe"])
    message = str(exc_info.value)
    assert "Invalid integer for --count: 'many'" in message
    assert "Invalid boolean for --dry-run: 'maybe'" in message


def test_parse_rejects_stray_values():
    with pytest.raises(ValueError, match="Unexpected value: 'extra'"):
        parse_module_args(DESCRIPTOR, ["extra", "--target", "x"])


def test_descriptors_ship_with_the_package():
    for name in ("bulk_download", "bulk_upload", "report_download"):
        assert load_module_descriptor(name)["name"] == name


def test_list_modules_finds_every_descriptor():
    assert [d["name"] for d in list_modules()] == ["bulk_download", "bulk_upload", "report_download"]


def test_unknown_module():
    with pytest.raises(FileNotFoundError, match="module 'nope' not found"):
        load_module_descriptor("nope")


# ── Global flags ──────────────────────────────────────────────────────────────

def test_global_flags_are_split_from_module_args():
    impl_flags, env, rest = _extract_global_flags(
        ["--fs", "memory", "--entities", "Campaigns", "--log", "memory", "--env", '{"A": "1"}', "--overwrite"]
    )
    assert impl_flags == {"fs": "memory", "log": "memory"}
    assert env == {"A": "1", "LOG_IMPL": "memory"}
    assert rest == ["--entities", "Campaigns", "--overwrite"]


def test_env_file_is_lower_priority_than_env(monkeypatch):
    monkeypatch.setattr(runner, "load_env_file", lambda name: {"A": "file", "B": "file"})
    _, env, _ = _extract_global_flags(["--env-file", "local", "--env", '{"A": "flag"}'])
    assert env == {"A": "flag", "B": "file"}


def test_global_flags_accept_equals_syntax_and_repeated_env():
    impl_flags, env, rest = _extract_global_flags(
        ["--api=memory", "--env", '{"A": "1", "B": "1"}', "--env={\"B\": \"2\"}", "--request-id", "x"]
    )
    assert impl_flags == {"api": "memory"}
    assert env == {"A": "1", "B": "2"}
    assert rest == ["--request-id", "x"]


def test_global_flag_without_value():
    with pytest.raises(ValueError, match="--fs needs a value"):
        _extract_global_flags(["--fs"])


@pytest.mark.parametrize("raw", ['["a"]', '{"A": 1}'])
def test_env_overrides_must_be_string_map(raw):
    with pytest.raises(ValueError):
        _parse_env_overrides(raw)


# ── Container ─────────────────────────────────────────────────────────────────

def test_container_wires_memory_implementations():
    container = _build_container(
        {"fs": "memory", "api": "memory", "transfer": "memory", "log": "memory"},
        {"BULK_ACCOUNT_ID": "200", "BULK_WORKING_DIRECTORY": "/work"},
        {"entities": "Campaigns"},
    )
    fs = container.get(FileSystemInterface)
    assert isinstance(fs, MemoryFileSystem)
    assert isinstance(container.get(BulkApiInterface), MemoryBulkApi)
    assert isinstance(container.get(FileTransferInterface), MemoryFileTransfer)
    assert isinstance(container.get(ArchiveInterface), ZipArchive)
    assert isinstance(container.get(MetricsInterface), NoopMetrics)
    assert isinstance(container.get(LoggingInterface), MemoryLogger)
    assert container.get(ModuleConfig).get("entities") == "Campaigns"
    assert container.get(BulkSettings).authorization.account_id == 200

    manager = container.get(BulkServiceManager)
    assert manager._fs is fs
    assert manager.working_directory == "/work"
    assert container.get(ReportingServiceManager).working_directory == "/work/Reporting"


def test_default_flags_use_rest_api():
    container = _build_container({"fs": "memory"}, {"BULK_API_BASE_URL": "https://bulk.example.com/v1"}, {})
    assert isinstance(container.get(BulkApiInterface), RestBulkApi)


def test_unknown_implementation_is_rejected():
    with pytest.raises(ValueError, match="Unknown implementation 'ftp' for --transfer"):
        _build_container({"transfer": "ftp"}, {}, {})


# ── Entry points ──────────────────────────────────────────────────────────────

def test_help_prints_module_args(capsys):
    assert run_module(["run", "bulk_upload", "--help"]) == (0, None)
    out = capsys.readouterr().out
    assert "Bulk Upload v1.0.0" in out
    assert "--fail-on-errors" in out
    assert "Bulk service client: memory, rest [default: rest]" in out
    assert "Log output: pretty, memory [default: pretty]" in out


def test_list_prints_modules(capsys):
    assert run_module(["list"]) == (0, None)
    out = capsys.readouterr().out
    assert "bulk_upload" in out
    assert "report_download" in out


def test_usage_error():
    with pytest.raises(ValueError, match="Usage"):
        run_module(["download"])


def test_run_module_returns_exit_code_and_module():
    env = json.dumps({"BULK_WORKING_DIRECTORY": "/work"})
    exit_code, module = run_module(
        ["run", "bulk_download", "--fs", "memory", "--api", "memory", "--transfer", "memory",
         "--log", "memory", "--env", env]
    )
    assert exit_code == 1
    log = module.logger.create()
    assert log.at_level("ERROR")[-1].msg == "Job failed"
    assert "Authorization data is incomplete" in log.at_level("ERROR")[-1].ctx["error"]


def test_run_cli_exits_with_error_for_bad_args(capsys):
    with pytest.raises(SystemExit) as exc_info:
        run_cli(["run", "bulk_download", "--fs", "memory", "--file-type", "Xml"])
    assert exc_info.value.code == 1
    assert "Invalid value for --file-type" in capsys.readouterr().err
