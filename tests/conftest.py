"""
Pytest configuration and shared fixtures for aggregator tests.

Key Fixtures:
    - config: Minimal configuration with the test collectors enabled
    - memory_storage: Fresh in-memory storage backend
    - file_storage: File storage rooted in a temporary directory
    - project_dir: Empty project directory to point collectors at
"""

import pytest
from loguru import logger

from perf_aggregator.core.config import Configuration
from perf_aggregator.storage.file_storage import FileMetricsStorage
from perf_aggregator.storage.memory_storage import InMemoryMetricsStorage


@pytest.fixture
def config():
    """Configuration enabling the ids used by test collectors."""
    return Configuration(
        project_name="test-project",
        enabled_collectors=["build", "tests", "profiler", "system"],
    )


@pytest.fixture
def memory_storage():
    return InMemoryMetricsStorage()


@pytest.fixture
def file_storage(tmp_path):
    return FileMetricsStorage(base_path=tmp_path / "storage")


@pytest.fixture
def project_dir(tmp_path):
    path = tmp_path / "project"
    path.mkdir()
    return path


def pytest_configure(config):
    """Configure pytest settings."""
    # Set up logging for tests
    logger.remove()  # Remove default logger
    logger.add(
        "tests.log",
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name}:{function}:{line} | {message}",
        rotation="10 MB"
    )

    # Also log to console during tests
    logger.add(
        lambda msg: print(msg, end=""),
        level="INFO",
        format="{time:HH:mm:ss} | {level} | {message}"
    )


def pytest_sessionstart(session):
    """Called after the Session object has been created."""
    logger.info("Starting performance aggregator test session")


def pytest_sessionfinish(session, exitstatus):
    """Called after whole test run finished."""
    logger.info(f"Performance aggregator test session finished with status: {exitstatus}")
