"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import date
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from reps.config import get_settings  # noqa: E402
from reps.core.models import Task  # noqa: E402

# Fixed reference day used across tests (a Wednesday)
TODAY = date(2024, 1, 10)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_task():
    """Factory for tasks with sensible defaults; keyword overrides win."""
    counter = {"n": 0}

    def _make(**overrides) -> Task:
        counter["n"] += 1
        fields = {
            "id": f"task-{counter['n']:03d}",
            "title": f"Task {counter['n']}",
            "topic": "coding",
            "next_review": TODAY,
            "created_at": TODAY,
        }
        fields.update(overrides)
        return Task(**fields)

    return _make


@pytest.fixture
def reps_home(tmp_path, monkeypatch):
    """Point settings at a temporary data directory in local mode."""
    monkeypatch.setenv("REPS_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("REPS_API_KEY", raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()
