"""Shared fixtures for tfstream tests."""

import pytest

from tfstream.utils.config import reset_config
from tfstream.utils.logging import reset_logging


@pytest.fixture(autouse=True)
def isolated_logging():
    """Undo logging set up by opening record files."""
    yield
    reset_logging()
    reset_config()
