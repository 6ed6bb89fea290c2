"""Pytest configuration and fixtures for CPR recorder tests."""

from pathlib import Path

import pytest

from tests.helpers.clock import ManualClock


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that do not require external dependencies"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests combining multiple components"
    )
    config.addinivalue_line("markers", "cli: Tests that drive the click interface")


# =============================================================================
# Database Test Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_database_state():
    """Reset global database state before and after each test."""
    from cpr_recorder.database.session import cleanup_database

    cleanup_database()
    yield
    cleanup_database()


@pytest.fixture
def temp_db(tmp_path: Path) -> Path:
    """Path for a fresh SQLite database inside the test's temp directory."""
    return tmp_path / "test_cpr_recorder.db"


@pytest.fixture
def store(temp_db):
    """KeyValueStore backed by the temporary database."""
    from cpr_recorder.storage import KeyValueStore

    return KeyValueStore(str(temp_db))


# =============================================================================
# Time and Recorder Fixtures
# =============================================================================


@pytest.fixture
def clock() -> ManualClock:
    """Manual clock starting at a fixed instant."""
    return ManualClock()


@pytest.fixture
def recorder_factory(store, clock):
    """Factory opening a Recorder on the temporary database with the manual clock."""
    from cpr_recorder.recorder import Recorder

    def _open():
        return Recorder.open(store, clock=clock)

    return _open


@pytest.fixture
def recorder(recorder_factory):
    """Recorder on an empty temporary database."""
    return recorder_factory()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch) -> Path:
    """Point the configuration file at the temp directory."""
    config_path = tmp_path / "config" / "config.toml"
    monkeypatch.setattr("cpr_recorder.config.get_config_path", lambda: config_path)
    return config_path
