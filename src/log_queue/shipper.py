"""Consumer side of the queue: ships pending entries to a publisher.

The shipper runs a pull loop on a daemon thread:

1. peek the oldest pending entry
2. publish it as JSON
3. acknowledge it only after the publisher confirmed delivery

An empty queue, a failed read and a failed publish all lead to the same thing:
wait ``poll_interval`` seconds and try again. The cadence is fixed. A crash
between publish and acknowledge re-delivers the entry on restart.
"""

import logging
import threading

from .config import Config
from .mqtt import Publisher
from .queue_store import DurableQueueStore

logger = logging.getLogger(__name__)


class QueueShipper:
    """Single consumer for a DurableQueueStore.

    Only one shipper may consume a given store. Entries are never claimed, so
    a second consumer would deliver the same entries again.

    Example:
        publisher = get_publisher(Config.BROADCAST_TYPE, Config.MQTT_BROKER,
                                  Config.MQTT_PORT, Config.MQTT_TOPIC)
        shipper = QueueShipper(store, publisher)
        shipper.start()
        ...
        shipper.stop()
    """

    def __init__(
        self,
        store: DurableQueueStore,
        publisher: Publisher,
        poll_interval: float | None = None,
    ):
        """Initialize the shipper.

        Args:
            store: Queue to consume
            publisher: Transport receiving each entry's JSON payload
            poll_interval: Seconds to wait when nothing was shipped. If None, uses
                SHIPPER_POLL_INTERVAL from config.
        """
        self.store: DurableQueueStore = store
        self.publisher: Publisher = publisher
        self.poll_interval: float = (
            poll_interval if poll_interval is not None else Config.SHIPPER_POLL_INTERVAL
        )

        self._stop_event: threading.Event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def ship_once(self) -> bool:
        """Deliver the oldest pending entry.

        Returns:
            True if an entry was published and acknowledged, False otherwise
        """
        entry = self.store.peek_oldest()
        if entry is None:
            return False

        if not self.publisher.publish(entry.model_dump_json()):
            logger.warning(f"Failed to ship log entry {entry.id}, will retry")
            return False

        if not self.store.acknowledge(entry.id):
            logger.warning(f"Shipped log entry {entry.id} but could not acknowledge it")
            return False

        return True

    def start(self) -> None:
        """Start the shipping loop on a daemon thread.

        Does nothing while a loop thread is alive. That includes a loop that was
        asked to stop but has not finished yet, so two loops never consume the
        store at the same time.
        """
        if self.running:
            if self._stop_event.is_set():
                logger.warning(
                    f"Shipper for log queue '{self.store.queue_name}' is still stopping, not restarting"
                )
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name=f"log-queue-shipper-{self.store.queue_name}", daemon=True
        )
        self._thread.start()
        logger.info(f"Shipper started for log queue '{self.store.queue_name}'")

    def stop(self, timeout: float | None = None) -> None:
        """Signal the loop to stop and wait for the thread to finish.

        If the thread is still busy after ``timeout`` seconds, it exits after
        its current iteration and ``running`` stays True until then.
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning(
                    f"Shipper for log queue '{self.store.queue_name}' did not stop within {timeout}s"
                )
                return
            self._thread = None
        logger.info(f"Shipper stopped for log queue '{self.store.queue_name}'")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                shipped = self.ship_once()
            except Exception:
                logger.exception("Unexpected error in log queue shipper")
                shipped = False

            if not shipped:
                _ = self._stop_event.wait(self.poll_interval)
