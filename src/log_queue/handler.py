"""logging.Handler that feeds log records into a durable queue."""

import logging
import threading
from typing import override

from .errors import WriteError
from .queue_store import DurableQueueStore

# Records from this package are never queued, otherwise a failing store
# would enqueue its own error reports.
_OWN_LOGGER_PREFIX = __name__.split(".")[0]


class QueueHandler(logging.Handler):
    """Producer side of the queue.

    Each record is formatted with the handler's formatter and enqueued as text.
    A record that could not be formatted or persisted goes to ``handleError``;
    the logging call itself never raises. The store is owned by the caller and
    is not closed with the handler.

    A record logged while this handler is already emitting on the same thread
    (for example by an error reporter attached to an application logger that
    also routes into this handler) is dropped instead of re-entering the store.

    Example:
        store = DurableQueueStore(Config.QUEUE_DIR, "app_logs")
        logging.getLogger().addHandler(QueueHandler(store))
    """

    def __init__(self, store: DurableQueueStore, level: int = logging.NOTSET):
        super().__init__(level=level)
        self.store: DurableQueueStore = store
        self._local: threading.local = threading.local()

    @override
    def emit(self, record: logging.LogRecord) -> None:
        if record.name == _OWN_LOGGER_PREFIX or record.name.startswith(f"{_OWN_LOGGER_PREFIX}."):
            return
        if getattr(self._local, "emitting", False):
            return

        self._local.emitting = True
        try:
            message = self.format(record)
            if not self.store.enqueue(message):
                raise WriteError(f"Log record from '{record.name}' was not persisted")
        except Exception:
            self.handleError(record)
        finally:
            self._local.emitting = False
