"""Shared test fixtures for log_queue tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from log_queue import DurableQueueStore, RecordingErrorReporter

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


QUEUE_NAME = "test_log_queue"


@pytest.fixture
def queue_dir(tmp_path: Path) -> Path:
    """Directory holding the queue file for one test.

    Returns:
        Path: Not yet existing directory under pytest's tmp_path
    """
    return tmp_path / "queue"


@pytest.fixture
def error_reporter() -> RecordingErrorReporter:
    """Create an error reporter that records every report.

    Returns:
        RecordingErrorReporter: Reporter instance
    """
    return RecordingErrorReporter()


@pytest.fixture
def queue_store(
    queue_dir: Path, error_reporter: RecordingErrorReporter
) -> Generator[DurableQueueStore, None, None]:
    """Create DurableQueueStore in the test queue directory.

    Yields:
        DurableQueueStore: Open store instance

    Note:
        Closes the store after test completion.
    """
    store = DurableQueueStore(queue_dir, QUEUE_NAME, error_reporter=error_reporter)
    assert store.usable, error_reporter.reports

    yield store

    store.close()
