"""Error taxonomy and the error-reporting capability used by the queue store.

The store never lets a storage failure escape to its caller. Every failure is
wrapped in one of the exceptions below, handed to an ``ErrorReporter`` together
with an ``ErrorCode``, and the operation returns its failure sentinel.
"""

import logging
from enum import IntEnum
from typing import Protocol, override, runtime_checkable

logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    """Severity codes passed to the error reporter.

    Values match the codes used by host logging frameworks for appender errors.
    """

    GENERIC_FAILURE = 0
    WRITE_FAILURE = 1
    READ_FAILURE = 2


class LogQueueError(Exception):
    """Base class for all log queue errors."""


class InitializationError(LogQueueError):
    """Storage file or schema could not be opened or created."""


class WriteError(LogQueueError):
    """An enqueue or acknowledge could not be persisted."""


class ReadError(LogQueueError):
    """The queue could not be read."""


@runtime_checkable
class ErrorReporter(Protocol):
    """Sink for failures the store has already handled."""

    def report(self, message: str, cause: BaseException, code: int) -> None: ...


class LoggingErrorReporter:
    """ErrorReporter that forwards failures to stdlib logging.

    Read failures are logged as warnings since the caller simply sees an
    empty queue and retries; everything else is logged as an error.

    The target logger should not route back into a QueueHandler on the same
    store. QueueHandler drops such re-entrant records, so the report would
    never reach the queue.
    """

    def __init__(self, logger_name: str | None = None):
        self.logger: logging.Logger = (
            logging.getLogger(logger_name) if logger_name else logger
        )

    def report(self, message: str, cause: BaseException, code: int) -> None:
        level = logging.WARNING if code == ErrorCode.READ_FAILURE else logging.ERROR
        self.logger.log(
            level,
            f"{message} (code={int(code)}): {cause}",
            exc_info=(type(cause), cause, cause.__traceback__),
        )


class RecordingErrorReporter:
    """ErrorReporter that keeps every report in memory.

    Useful in tests and for callers that want to inspect the side channel
    after a sentinel return value.
    """

    def __init__(self):
        self.reports: list[tuple[str, BaseException, int]] = []

    def report(self, message: str, cause: BaseException, code: int) -> None:
        self.reports.append((message, cause, code))

    @property
    def last(self) -> tuple[str, BaseException, int] | None:
        return self.reports[-1] if self.reports else None

    def clear(self) -> None:
        self.reports.clear()

    @override
    def __repr__(self) -> str:
        return f"<RecordingErrorReporter(reports={len(self.reports)})>"
