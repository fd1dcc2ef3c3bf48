"""Tests for the command-line front end."""

import asyncio
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from keto_tracker.cli.main import app
from keto_tracker.infrastructure.local_store import keys
from keto_tracker.infrastructure.local_store.store import JsonFileLocalStore, get_json
from keto_tracker.utils.parameters import LocalStoreConfig

runner = CliRunner()


@pytest.fixture
def config_path(tmp_path: Path) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "local_store": {"path": str(tmp_path / "store")},
                "remote": {"backend": "memory"},
                "logging": {"console": False, "file": None},
            }
        ),
        encoding="utf-8",
    )
    return str(path)


def _stored(tmp_path: Path, key: str):
    store = JsonFileLocalStore(LocalStoreConfig(path=str(tmp_path / "store")))
    return asyncio.run(get_json(store, key))


def test_enabling_cloud_sync_on_memory_backend_is_refused(config_path: str, tmp_path: Path) -> None:
    """Test the sync flag is never persisted for a backend lost at exit."""
    result = runner.invoke(
        app, ["cloud-sync", "--enable", "--config-path", config_path, "--user-id", "u1"]
    )

    if result.exit_code != 1:
        raise AssertionError(f"Expected exit code 1, got {result.exit_code}")
    if _stored(tmp_path, keys.USE_CLOUD_SYNC) is True:
        raise AssertionError("Cloud sync flag must not be set")


def test_migrate_on_memory_backend_leaves_marker_unset(config_path: str, tmp_path: Path) -> None:
    """Test a manual migration cannot mark data as moved to a throwaway cloud."""
    logged = runner.invoke(
        app,
        ["log", "--glucose", "4.5", "--ketones", "1.5", "--date", "2024-01-15",
         "--config-path", config_path],
    )
    result = runner.invoke(app, ["migrate", "--config-path", config_path, "--user-id", "u1"])

    if logged.exit_code != 0:
        raise AssertionError(f"Log failed: {logged.output}")
    if result.exit_code != 1:
        raise AssertionError(f"Expected exit code 1, got {result.exit_code}")
    if _stored(tmp_path, keys.migration_marker("u1")) is not None:
        raise AssertionError("Migration marker must not be written")


def test_disabling_cloud_sync_is_allowed(config_path: str, tmp_path: Path) -> None:
    """Test turning sync off works on any backend."""
    result = runner.invoke(app, ["cloud-sync", "--disable", "--config-path", config_path])

    if result.exit_code != 0:
        raise AssertionError(f"Expected success, got {result.exit_code}: {result.output}")
    if _stored(tmp_path, keys.USE_CLOUD_SYNC) is not False:
        raise AssertionError("Cloud sync flag should be stored as off")


def test_log_prints_ratio(config_path: str) -> None:
    """Test logging a reading saves it locally and prints its ratio."""
    result = runner.invoke(
        app,
        ["log", "--glucose", "4.5", "--ketones", "1.5", "--date", "2024-01-15",
         "--config-path", config_path],
    )

    if result.exit_code != 0:
        raise AssertionError(f"Expected success, got {result.exit_code}: {result.output}")
    if "ratio 3.0 (Excellent)" not in result.stdout:
        raise AssertionError(f"Unexpected output {result.stdout!r}")
