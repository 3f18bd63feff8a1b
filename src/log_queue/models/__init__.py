"""Queue storage models."""

from .queue import build_queue_table, validate_queue_name

__all__ = ["build_queue_table", "validate_queue_name"]
