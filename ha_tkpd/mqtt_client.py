"""Small MQTT session built on top of paho-mqtt.

Why this exists:
- paho-mqtt is callback-based and runs its own network thread.
- A one-shot publisher needs a clear "everything was written" point before the
  process exits, otherwise retained messages still sitting in paho's outbound
  queue are lost.

Design:
- `MqttSession` connects, starts paho's network loop and one worker thread
  (`MQTTEventLoop`) that drains connect/publish/disconnect notifications.
- `publish()` hands a message to paho and returns; it does not wait for PUBACK.
- `close()` requests a disconnect and joins the worker. paho only reports the
  disconnect after the DISCONNECT packet is written, and it writes packets in
  order, so every earlier publish has left the socket by then.

Connection errors that happen before `close()` (broker refused us, connection
dropped) are logged and tolerated; paho reconnects and resends queued QoS 1
messages on its own.
"""

from __future__ import annotations

import enum
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any

import paho.mqtt.client as mqtt

from .config import BrokerSettings
from .errors import PublishError, WorkerJoinError

logger = logging.getLogger(__name__)

PUBLISH_QOS = 1


class EventKind(enum.Enum):
    CONNECT = "connect"
    PUBLISH = "publish"
    DISCONNECT = "disconnect"


@dataclass(frozen=True)
class BusEvent:
    kind: EventKind
    reason_code: Any = None
    mid: int | None = None


class MqttSession:
    """One exclusive broker connection for the lifetime of a run."""

    def __init__(self, settings: BrokerSettings) -> None:
        self.settings = settings

        self._client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=settings.client_id,
            clean_session=True,
        )
        self._client.on_connect = self._on_connect
        self._client.on_publish = self._on_publish
        self._client.on_disconnect = self._on_disconnect

        # Filled by paho callbacks (network thread), drained by the worker.
        self._events: "queue.Queue[BusEvent]" = queue.Queue()
        self._disconnect_requested = threading.Event()
        self._worker = threading.Thread(target=self._run_worker, name="MQTTEventLoop", daemon=True)
        self._worker_error: BaseException | None = None

        self._started = False

    def start(self) -> None:
        """Connect and start the network loop + event worker."""
        if self._started:
            return
        creds = self.settings.credentials
        if creds is not None:
            logger.info("Using provided MQTT credentials")
            self._client.username_pw_set(creds.username, creds.password)

        logger.info("Connecting to MQTT broker %s:%d", self.settings.host, self.settings.port)
        try:
            self._client.connect(
                self.settings.host, self.settings.port, keepalive=self.settings.keepalive
            )
        except OSError as e:
            raise PublishError(
                f"Unable to connect to MQTT broker {self.settings.host}:{self.settings.port} - {e}"
            ) from e

        self._worker.start()
        self._client.loop_start()
        self._started = True

    def publish(self, topic: str, payload: str, *, retain: bool) -> None:
        info = self._client.publish(topic, payload=payload, qos=PUBLISH_QOS, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(f"Unable to publish to {topic} - {mqtt.error_string(info.rc)}")
        logger.debug("Queued %s (mid=%s, retain=%s)", topic, info.mid, retain)

    def close(self) -> None:
        """Disconnect and block until the event worker has seen the disconnect."""
        if not self._started:
            return
        self._disconnect_requested.set()
        rc = self._client.disconnect()
        if rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(f"Unable to disconnect from MQTT - {mqtt.error_string(rc)}")

        self._worker.join()
        self._client.loop_stop()
        self._started = False

        if self._worker_error is not None:
            raise WorkerJoinError(
                "MQTT event loop exited abnormally. Messages might not be fully published!"
            ) from self._worker_error

    # -------------------- event worker --------------------

    def _run_worker(self) -> None:
        try:
            while True:
                event = self._events.get()
                try:
                    if self._handle_event(event):
                        return
                finally:
                    self._events.task_done()
        except Exception as e:
            logger.exception("MQTT event worker crashed")
            self._worker_error = e

    def _handle_event(self, event: BusEvent) -> bool:
        """Log one notification. Returns True once the session is finished."""
        if event.kind is EventKind.DISCONNECT:
            if self._disconnect_requested.is_set():
                logger.debug("Disconnected from MQTT broker (%s)", event.reason_code)
                return True
            logger.error("Connection to MQTT broker lost - %s", event.reason_code)
            return False

        if event.kind is EventKind.CONNECT:
            if event.reason_code.is_failure:
                logger.error("MQTT broker refused connection - %s", event.reason_code)
            else:
                logger.debug("Connected to MQTT broker")
            return False

        logger.debug("Broker acknowledged mid=%s (%s)", event.mid, event.reason_code)
        return False

    # -------------------- paho callbacks (network thread) --------------------

    def _on_connect(self, client: mqtt.Client, userdata: Any, flags: Any, reason_code: Any, properties: Any) -> None:
        self._events.put(BusEvent(EventKind.CONNECT, reason_code=reason_code))

    def _on_publish(self, client: mqtt.Client, userdata: Any, mid: int, reason_code: Any, properties: Any) -> None:
        self._events.put(BusEvent(EventKind.PUBLISH, reason_code=reason_code, mid=mid))

    def _on_disconnect(self, client: mqtt.Client, userdata: Any, flags: Any, reason_code: Any, properties: Any) -> None:
        self._events.put(BusEvent(EventKind.DISCONNECT, reason_code=reason_code))


def open_session(settings: BrokerSettings) -> MqttSession:
    session = MqttSession(settings)
    session.start()
    return session
