"""Tests for the CLI commands and their exit codes."""

import os
import subprocess
import sys
from dataclasses import replace
from pathlib import Path

import pytest
from rich.console import Console

from ru_mapping_sync.cli import sync as sync_cli
from ru_mapping_sync.cli.__main__ import main
from ru_mapping_sync.cli.readback import lookup_main, queries_main
from ru_mapping_sync.exceptions import SourceQueryError
from ru_mapping_sync.orchestration.sync_job import RuMappingSyncJob

SRC_DIR = Path(__file__).resolve().parents[2] / "src"


@pytest.fixture
def sync_env(monkeypatch, source_db, sql_dir, replica_path):
    monkeypatch.setenv("VENDOR", "samsung")
    monkeypatch.setenv("MOBILE_GEN", "LTE")
    monkeypatch.setenv("TIBERO_URL", f"sqlite:///{source_db}")
    monkeypatch.setenv("TIBERO_USER", "reader")
    monkeypatch.setenv("TIBERO_PASSWORD", "secret")
    monkeypatch.setenv("SQLITE_PATH", str(replica_path))
    monkeypatch.setenv("SQL_DIR", str(sql_dir))


@pytest.fixture
def captured_jobs(monkeypatch):
    """Run the real job, dropping credentials SQLite URLs cannot carry."""
    configs = []

    def job_factory(config):
        configs.append(config)
        local = replace(config, source=replace(config.source, user=None, password=None))
        return RuMappingSyncJob(local)

    monkeypatch.setattr(sync_cli, "RuMappingSyncJob", job_factory)
    return configs


def recording_console():
    return Console(record=True, width=200)


@pytest.mark.integration
class TestSyncCommand:
    def test_success_exit_code(self, sync_env, captured_jobs, replica_path, replica_rows):
        assert main(["sync"]) == sync_cli.EXIT_OK

        assert len(replica_rows(replica_path)) == 3
        config = captured_jobs[0]
        assert config.source.user == "reader"
        assert config.source.password == "secret"

    def test_overrides_take_precedence(self, sync_env, captured_jobs, tmp_path):
        other = tmp_path / "other.db"

        assert main(
            ["sync", "--technology", "5G", "--sqlite-path", str(other), "--batch-size", "2"]
        ) == sync_cli.EXIT_OK

        config = captured_jobs[0]
        assert config.technology == "5G"
        assert config.destination.sqlite_path == other
        assert config.destination.batch_size == 2
        assert other.exists()

    def test_missing_environment_is_config_error(self, captured_jobs):
        assert main(["sync"]) == sync_cli.EXIT_CONFIG_ERROR
        assert captured_jobs == []

    def test_unsupported_vendor_is_config_error(self, sync_env, captured_jobs, replica_path):
        assert main(["sync", "--vendor", "acme"]) == sync_cli.EXIT_CONFIG_ERROR
        assert not replica_path.exists()

    def test_sync_failure_exit_code(self, sync_env, monkeypatch):
        class FailingJob:
            def __init__(self, config):
                pass

            def run(self):
                raise SourceQueryError("connection refused")

        monkeypatch.setattr(sync_cli, "RuMappingSyncJob", FailingJob)

        assert main(["sync"]) == sync_cli.EXIT_FAILURE

    def test_unexpected_error_exit_code(self, sync_env, monkeypatch):
        class BrokenJob:
            def __init__(self, config):
                pass

            def run(self):
                raise KeyError("boom")

        monkeypatch.setattr(sync_cli, "RuMappingSyncJob", BrokenJob)

        assert main(["sync"]) == sync_cli.EXIT_FAILURE


@pytest.mark.integration
class TestReadbackCommands:
    def test_queries_lists_pairs(self, sql_dir):
        console = recording_console()

        assert queries_main(["--sql-dir", str(sql_dir)], console=console) == 0

        output = console.export_text()
        assert "SAMSUNG" in output
        assert "NR" in output

    def test_queries_empty_directory(self, tmp_path):
        assert queries_main(["--sql-dir", str(tmp_path)], console=recording_console()) == 1

    def test_lookup_after_sync(self, sync_env, captured_jobs, replica_path):
        assert main(["sync"]) == 0
        console = recording_console()

        assert lookup_main(["--ru-param", "P1"], console=console) == 0

        output = console.export_text()
        assert "R1" in output
        assert "R2" in output
        assert "2 rows" in output

    def test_lookup_unknown_param(self, sync_env, captured_jobs):
        assert main(["sync"]) == 0

        assert lookup_main(["--ru-param", "NOPE"], console=recording_console()) == 1

    def test_lookup_missing_replica(self, tmp_path):
        argv = ["--ru-param", "P1", "--sqlite-path", str(tmp_path / "missing.db")]

        assert lookup_main(argv, console=recording_console()) == 1

    def test_lookup_without_sqlite_path(self):
        assert lookup_main(["--ru-param", "P1"], console=recording_console()) == 2


@pytest.mark.integration
class TestInvalidSettings:
    def test_invalid_value_is_config_error(self, sync_env, captured_jobs, monkeypatch):
        monkeypatch.setenv("RU_SYNC_BATCH_SIZE", "abc")

        assert main(["sync"]) == sync_cli.EXIT_CONFIG_ERROR
        assert captured_jobs == []

    def test_lookup_with_invalid_value(self, sync_env, monkeypatch):
        monkeypatch.setenv("LOG_RETENTION_DAYS", "x")

        assert lookup_main(["--ru-param", "P1"], console=recording_console()) == 2

    def test_module_entry_point_exits_with_config_error(self, sync_env, monkeypatch, tmp_path):
        monkeypatch.setenv("RU_SYNC_BATCH_SIZE", "abc")
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            filter(None, [str(SRC_DIR), env.get("PYTHONPATH")])
        )

        result = subprocess.run(
            [sys.executable, "-m", "ru_mapping_sync.cli", "sync"],
            cwd=tmp_path,
            env=env,
            capture_output=True,
            text=True,
            timeout=60,
        )

        assert result.returncode == sync_cli.EXIT_CONFIG_ERROR
        assert "Traceback" not in result.stderr
        assert "sync.configuration_error" in result.stdout
