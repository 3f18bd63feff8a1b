"""Configuration for the durable log queue.

Usage:
    from log_queue.config import Config

    # Access config values
    queue_dir = Config.QUEUE_DIR
    poll_interval = Config.SHIPPER_POLL_INTERVAL
"""

import os
import tempfile


class Config:
    """Centralized configuration for the log queue, its handler and shipper.

    All configuration values are class variables that can be accessed directly.
    Values are loaded from environment variables with sensible defaults.
    Constructor arguments of the store, handler and shipper take precedence.

    Example:
        from log_queue.config import Config

        print(Config.QUEUE_DIR)
        print(Config.MQTT_TOPIC)
    """

    # ========================================================================
    # Helper methods (static)
    # ========================================================================

    @staticmethod
    def _get_value(key: str, default: str) -> str:
        """Get configuration value from environment with optional default."""
        return os.getenv(key, default)

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer configuration value."""
        return int(os.getenv(key, str(default)))

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        """Get float configuration value."""
        return float(os.getenv(key, str(default)))

    @staticmethod
    def _get_bool(key: str, default: bool = False) -> bool:
        """Get boolean configuration value."""
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    # ========================================================================
    # Queue Storage Configuration
    # ========================================================================

    QUEUE_DIR: str = _get_value(
        "LOG_QUEUE_DIR", os.path.join(tempfile.gettempdir(), "log_queue")
    )
    QUEUE_NAME: str = _get_value("LOG_QUEUE_NAME", "log_queue")

    # SQLite pragmas applied to every queue connection
    SQLITE_JOURNAL_MODE: str = _get_value("LOG_QUEUE_JOURNAL_MODE", "WAL")
    SQLITE_SYNCHRONOUS: str = _get_value("LOG_QUEUE_SYNCHRONOUS", "FULL")
    SQLITE_BUSY_TIMEOUT_MS: int = _get_int("LOG_QUEUE_BUSY_TIMEOUT_MS", 5000)
    SQLITE_ECHO: bool = _get_bool("LOG_QUEUE_SQL_ECHO", False)

    LOG_LEVEL: str = _get_value("LOG_LEVEL", "INFO")

    # ========================================================================
    # Shipper Configuration
    # ========================================================================

    SHIPPER_POLL_INTERVAL: float = _get_float("LOG_QUEUE_POLL_INTERVAL", 1.0)

    # ========================================================================
    # MQTT Configuration (Shipper)
    # ========================================================================

    BROADCAST_TYPE: str = _get_value("BROADCAST_TYPE", "mqtt")
    MQTT_BROKER: str = _get_value("MQTT_BROKER", "localhost")
    MQTT_PORT: int = _get_int("MQTT_PORT", 1883)
    MQTT_TOPIC: str = _get_value("MQTT_TOPIC", "logs/records")
