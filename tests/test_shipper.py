"""Tests for QueueShipper."""

from __future__ import annotations

import json
import threading
import time
from unittest.mock import MagicMock

from log_queue import DurableQueueStore, NoOpPublisher, QueueShipper


def _wait_for(condition, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return False


def _recording_publisher(result: bool = True) -> MagicMock:
    publisher = MagicMock()
    publisher.publish.return_value = result
    return publisher


# ============================================================================
# ship_once Tests
# ============================================================================


def test_ship_once_empty_queue(queue_store: DurableQueueStore) -> None:
    """Test that nothing is published when the queue is empty."""
    publisher = _recording_publisher()
    shipper = QueueShipper(queue_store, publisher, poll_interval=0.01)

    assert shipper.ship_once() is False
    publisher.publish.assert_not_called()


def test_ship_once_publishes_and_acknowledges(queue_store: DurableQueueStore) -> None:
    """Test that a delivered entry is removed from the queue."""
    _ = queue_store.enqueue("shipped")
    entry = queue_store.peek_oldest()
    assert entry is not None
    publisher = _recording_publisher()
    shipper = QueueShipper(queue_store, publisher, poll_interval=0.01)

    assert shipper.ship_once() is True

    payload = json.loads(publisher.publish.call_args.args[0])
    assert payload == {"id": entry.id, "message": "shipped", "time": entry.time}
    assert queue_store.count() == 0


def test_ship_once_keeps_entry_on_publish_failure(queue_store: DurableQueueStore) -> None:
    """Test that a failed delivery leaves the entry pending for the next attempt."""
    _ = queue_store.enqueue("retry me")
    publisher = _recording_publisher(result=False)
    shipper = QueueShipper(queue_store, publisher, poll_interval=0.01)

    assert shipper.ship_once() is False
    assert shipper.ship_once() is False

    assert publisher.publish.call_count == 2
    entry = queue_store.peek_oldest()
    assert entry is not None
    assert entry.message == "retry me"


def test_ship_once_delivers_at_least_once(queue_store: DurableQueueStore) -> None:
    """Test that an entry whose acknowledge failed is delivered again."""
    _ = queue_store.enqueue("twice")
    publisher = _recording_publisher()
    shipper = QueueShipper(queue_store, publisher, poll_interval=0.01)

    real_acknowledge = queue_store.acknowledge
    queue_store.acknowledge = MagicMock(return_value=False)
    assert shipper.ship_once() is False

    queue_store.acknowledge = real_acknowledge
    assert shipper.ship_once() is True

    assert publisher.publish.call_count == 2
    first, second = (json.loads(call.args[0]) for call in publisher.publish.call_args_list)
    assert first == second


def test_ship_once_in_fifo_order(queue_store: DurableQueueStore) -> None:
    """Test that entries are shipped oldest first."""
    for message in ("a", "b", "c"):
        _ = queue_store.enqueue(message)
    publisher = _recording_publisher()
    shipper = QueueShipper(queue_store, publisher, poll_interval=0.01)

    while shipper.ship_once():
        pass

    shipped = [json.loads(call.args[0])["message"] for call in publisher.publish.call_args_list]
    assert shipped == ["a", "b", "c"]


def test_default_poll_interval(queue_store: DurableQueueStore) -> None:
    """Test that the poll interval falls back to config."""
    from log_queue import Config

    shipper = QueueShipper(queue_store, NoOpPublisher())

    assert shipper.poll_interval == Config.SHIPPER_POLL_INTERVAL


# ============================================================================
# Background Loop Tests
# ============================================================================


def test_start_drains_queue(queue_store: DurableQueueStore) -> None:
    """Test that the background loop ships everything, including late arrivals."""
    for i in range(5):
        _ = queue_store.enqueue(f"early {i}")
    publisher = _recording_publisher()
    shipper = QueueShipper(queue_store, publisher, poll_interval=0.01)

    shipper.start()
    try:
        assert shipper.running is True
        assert _wait_for(lambda: queue_store.count() == 0)

        _ = queue_store.enqueue("late")
        assert _wait_for(lambda: publisher.publish.call_count == 6)
    finally:
        shipper.stop(timeout=5)

    assert shipper.running is False
    assert queue_store.count() == 0


def test_start_is_idempotent(queue_store: DurableQueueStore) -> None:
    """Test that starting twice keeps a single loop thread."""
    shipper = QueueShipper(queue_store, NoOpPublisher(), poll_interval=0.01)

    shipper.start()
    thread = shipper._thread
    shipper.start()
    try:
        assert shipper._thread is thread
    finally:
        shipper.stop(timeout=5)


def test_loop_survives_publisher_exception(queue_store: DurableQueueStore) -> None:
    """Test that an unexpected publisher error does not kill the loop."""
    _ = queue_store.enqueue("eventually")
    publisher = MagicMock()
    publisher.publish.side_effect = [RuntimeError("boom"), True]
    shipper = QueueShipper(queue_store, publisher, poll_interval=0.01)

    shipper.start()
    try:
        assert _wait_for(lambda: queue_store.count() == 0)
    finally:
        shipper.stop(timeout=5)

    assert publisher.publish.call_count == 2


def test_start_after_timed_out_stop_keeps_single_loop(queue_store: DurableQueueStore) -> None:
    """Test that a loop still finishing a publish is never joined by a second loop."""
    _ = queue_store.enqueue("slow")
    release = threading.Event()
    publisher = MagicMock()
    publisher.publish.side_effect = lambda payload: release.wait(5)
    shipper = QueueShipper(queue_store, publisher, poll_interval=0.01)

    shipper.start()
    thread = shipper._thread
    try:
        assert _wait_for(lambda: publisher.publish.call_count == 1)

        shipper.stop(timeout=0.05)
        assert shipper.running is True

        shipper.start()
        assert shipper._thread is thread
    finally:
        release.set()
        shipper.stop(timeout=5)

    assert shipper.running is False
    assert publisher.publish.call_count == 1
    assert queue_store.count() == 0

    shipper.start()
    try:
        assert shipper.running is True
        assert shipper._thread is not thread
    finally:
        shipper.stop(timeout=5)


def test_stop_without_start(queue_store: DurableQueueStore) -> None:
    """Test that stopping an idle shipper is harmless."""
    shipper = QueueShipper(queue_store, NoOpPublisher())

    shipper.stop()

    assert shipper.running is False
