"""Pytest configuration and shared fixtures."""

import pytest

from ipwatch.config import open_config_store
from ipwatch.store import DocumentStore


@pytest.fixture(autouse=True)
def reset_logging_state():
    """Reset logging state before each test."""
    from ipwatch.logging import reset_logging

    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def config_path(tmp_path):
    """Location of a config file that does not exist yet."""
    return tmp_path / "ipwatch" / "config.json"


@pytest.fixture
def config_store(config_path) -> DocumentStore:
    """Config store backed by a temp file."""
    return open_config_store(config_path)
