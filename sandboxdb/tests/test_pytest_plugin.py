"""Tests for the pytest plugin's sandbox preparation."""

from pathlib import Path

import pytest

from sandboxdb.adapters.storage.native import TemporaryStorage
from sandboxdb.config import HarnessSettings
from sandboxdb.pytest_plugin import SANDBOX_FAILURE_EXIT_CODE, prepare_sandbox


@pytest.fixture
def default_settings(monkeypatch: pytest.MonkeyPatch) -> HarnessSettings:
    monkeypatch.delenv("SANDBOXDB_SANDBOX_ROOT", raising=False)
    monkeypatch.delenv("SANDBOXDB_SANDBOX_NAME", raising=False)
    return HarnessSettings(_env_file=None)  # type: ignore[call-arg]


# ============================================================================
# Sandbox root
# ============================================================================


def test_default_root_is_under_base_temp(default_settings: HarnessSettings, tmp_path: Path) -> None:
    sandbox = prepare_sandbox(default_settings, tmp_path)

    assert Path(sandbox.root) == (tmp_path / "database-test").resolve()
    assert sandbox.initialized is True


def test_explicit_root_wins(tmp_path: Path) -> None:
    settings = HarnessSettings(sandbox_root=tmp_path / "explicit")

    sandbox = prepare_sandbox(settings, tmp_path / "base")

    assert Path(sandbox.root) == (tmp_path / "explicit").resolve()


def test_sessions_with_separate_base_temps_do_not_wipe_each_other(
    default_settings: HarnessSettings, tmp_path: Path
) -> None:
    """Test that a second session's wipe leaves the first session's files alone."""
    first = prepare_sandbox(default_settings, tmp_path / "gw0")
    directory = first.directory_for("test_worker")
    with directory.get_stream("client.db", "wb") as stream:
        stream.write(b"live")

    second = prepare_sandbox(default_settings, tmp_path / "gw1")

    assert first.root != second.root
    assert directory.exists("client.db")


def test_session_sandbox_lives_under_pytest_base_temp(
    storage_sandbox: TemporaryStorage, tmp_path_factory: pytest.TempPathFactory
) -> None:
    base_temp = tmp_path_factory.getbasetemp().resolve()

    assert Path(storage_sandbox.root).is_relative_to(base_temp)


# ============================================================================
# Fatal sandbox failure
# ============================================================================


def test_unpreparable_sandbox_exits_the_session(tmp_path: Path) -> None:
    """Test that a sandbox which cannot be created aborts pytest."""
    blocker = tmp_path / "file"
    blocker.write_bytes(b"not a directory")
    settings = HarnessSettings(sandbox_root=blocker / "sandbox")

    with pytest.raises(pytest.exit.Exception, match="Cannot prepare isolated test storage") as excinfo:
        prepare_sandbox(settings, tmp_path)

    assert excinfo.value.returncode == SANDBOX_FAILURE_EXIT_CODE
