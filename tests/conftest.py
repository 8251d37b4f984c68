"""
Shared pytest setup.

Puts src/ on the import path and keeps the global Logger detached between
tests so file logging from one test never leaks into another.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bubble_layout.utils.logger import Logger, MemoryStrategy


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    Logger.set_log_storage_strategy(None)
    Logger.is_logging_enabled = True


@pytest.fixture
def memory_log():
    """Route Logger output into a MemoryStrategy for the test."""
    strategy = MemoryStrategy()
    Logger.set_log_storage_strategy(strategy)
    return strategy
