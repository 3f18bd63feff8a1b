"""Durable, disk-backed FIFO queue for buffering log records."""

# Public API - Pydantic models
from .schemas import Entry

# Public API - Service implementations
from .config import Config
from .errors import (
    ErrorCode,
    ErrorReporter,
    InitializationError,
    LoggingErrorReporter,
    LogQueueError,
    ReadError,
    RecordingErrorReporter,
    WriteError,
)
from .handler import QueueHandler
from .mqtt import MQTTPublisher, NoOpPublisher, get_publisher
from .queue_store import DurableQueueStore
from .shipper import QueueShipper

__all__ = [
    # Configuration
    "Config",
    # Services
    "DurableQueueStore",
    "QueueHandler",
    "QueueShipper",
    "MQTTPublisher",
    "NoOpPublisher",
    "get_publisher",
    # Errors
    "ErrorCode",
    "ErrorReporter",
    "LoggingErrorReporter",
    "RecordingErrorReporter",
    "LogQueueError",
    "InitializationError",
    "WriteError",
    "ReadError",
    # Pydantic Models
    "Entry",
]
