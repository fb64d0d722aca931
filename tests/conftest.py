"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import logging

import pytest

from relaychat.config import clear_settings_cache
from relaychat.conversations import ConversationStore
from relaychat.storage import MemoryStorage

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


# ============================================================================
# Environment Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """
    Point settings at a temporary storage file and ignore any project .env.

    The settings cache is cleared before and after each test so environment
    changes made with monkeypatch take effect.
    """
    monkeypatch.setenv("RELAYCHAT_ENV_SOURCE", "environment")
    monkeypatch.setenv("STORAGE_PATH", str(tmp_path / "storage.json"))
    for name in ("WEBHOOK_URL", "DEBUG", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """
    Configure logging for tests.

    Sets up log capture and configures log levels.
    This fixture runs automatically for all tests.
    """
    caplog.set_level(logging.DEBUG)
    caplog.set_level(logging.DEBUG, logger="relaychat")
    yield


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def storage():
    """Empty in-memory key-value storage."""
    return MemoryStorage()


@pytest.fixture
def store(storage):
    """Loaded conversation store backed by in-memory storage."""
    conversation_store = ConversationStore(storage)
    conversation_store.load()
    return conversation_store
