"""MQTT publisher used by the shipper to deliver queued log records."""
import logging
from typing import Optional, Protocol

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    """Transport the shipper hands each dequeued entry to."""

    def connect(self) -> bool: ...
    def disconnect(self) -> None: ...
    def publish(self, payload: str) -> bool: ...


class MQTTPublisher:
    """MQTT publisher delivering log records to a collector topic."""

    def __init__(self, broker: str, port: int, topic: str, qos: int = 1):
        self.broker = broker
        self.port = port
        self.topic = topic
        self.qos = qos
        self.client: Optional[mqtt.Client] = None
        self.connected = False

    def connect(self) -> bool:
        try:
            self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION1)
            self.client.on_connect = self._on_connect
            self.client.on_disconnect = self._on_disconnect
            self.client.connect(self.broker, self.port, keepalive=60)
            self.client.loop_start()
            self.connected = True
            return True
        except Exception as e:
            logger.warning(f"Failed to connect to MQTT broker: {e}")
            return False

    def disconnect(self):
        if self.client:
            self.client.loop_stop()
            self.client.disconnect()
            self.connected = False

    def publish(self, payload: str) -> bool:
        """Publish one record and wait until the broker has it (QoS 1 PUBACK)."""
        if not self.connected or not self.client:
            return False
        try:
            info = self.client.publish(self.topic, payload, qos=self.qos)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                return False
            info.wait_for_publish(timeout=10)
            return info.is_published()
        except Exception as e:
            logger.error(f"Error publishing log record: {e}")
            return False

    def _on_connect(self, client, userdata, flags, rc):
        self.connected = (rc == 0)

    def _on_disconnect(self, client, userdata, rc):
        self.connected = False


class NoOpPublisher:
    """No-operation publisher for testing or when MQTT disabled."""
    def connect(self) -> bool:
        return True
    def disconnect(self):
        pass
    def publish(self, payload: str) -> bool:
        return True


def get_publisher(broadcast_type: str, broker: str, port: int, topic: str) -> Publisher:
    """Create and connect a publisher for the given broadcast type."""
    if broadcast_type == "mqtt":
        publisher = MQTTPublisher(broker, port, topic)
    else:
        publisher = NoOpPublisher()
    _ = publisher.connect()
    return publisher
