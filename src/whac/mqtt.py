"""
MQTT transport for the session server.

Topics (all under `<namespace>/<device_id>/`):
    commands     in   single-byte player commands (also `<namespace>/all/commands`)
    state        out  server status, retained so late subscribers see it
    game_events  out  session_start / score / session_end
    audio        out  audio cues for remote speakers
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Literal

from paho.mqtt.client import Client, ConnectFlags, DisconnectFlags, MQTTMessage
from paho.mqtt.enums import CallbackAPIVersion, MQTTErrorCode

from .misc import time_now_ms

if TYPE_CHECKING:
    from collections.abc import Callable
    from logging import Logger

    from paho.mqtt.properties import Properties
    from paho.mqtt.reasoncodes import ReasonCode

    from .types import CommonPayload, DevStatus, StatusPayload

    type Topic = Literal["state", "game_events", "audio"]
    type CommandCallback = Callable[[bytes], None]


class MqttClient:
    """paho-mqtt client for one session server, identified by `device_id`."""

    KEEPALIVE: ClassVar = 30
    QOS: ClassVar = 2

    broker: str
    port: int
    device_id: str
    namespace: str
    on_command: CommandCallback

    _log: Logger
    _client: Client

    def __init__(
        self,
        *,
        broker: str,
        port: int,
        device_id: str,
        namespace: str,
        on_command: CommandCallback,
        last_will: DevStatus,
    ) -> None:
        self.broker = broker
        self.port = port
        self.device_id = device_id
        self.namespace = namespace
        self.on_command = on_command

        self._log = logging.getLogger("MqttClient")
        self._client = Client(
            client_id=f"session-{device_id}",
            callback_api_version=CallbackAPIVersion.VERSION2,
        )
        self._client.on_message = self._on_message
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.reconnect_delay_set(min_delay=1, max_delay=30)

        will = json.dumps(self._status_payload(last_will))
        self._client.will_set(self._topic("state"), payload=will, qos=MqttClient.QOS, retain=True)
        self._log.debug("Last will set to [bright_yellow]%s[/]", last_will)

    @property
    def command_topics(self) -> tuple[str, str]:
        """Topics this server takes commands from (own & broadcast)."""
        return self._topic("commands"), f"{self.namespace}/all/commands"

    def connect(self) -> bool:
        """Connect & start the network thread (blocking; run off the event loop).

        Returns:
            True on success
        """

        self._log.debug("Connecting to MQTT broker [bright_magenta]%s:%d[/]", self.broker, self.port)
        try:
            rc = self._client.connect(self.broker, self.port, keepalive=MqttClient.KEEPALIVE)
        except OSError as e:
            self._log.critical("MQTT connect to %s:%d failed: %s", self.broker, self.port, e)
            return False

        if rc != MQTTErrorCode.MQTT_ERR_SUCCESS:
            self._log.critical("MQTT connect failed with rc=%s", rc)
            return False

        if (rc := self._client.loop_start()) != MQTTErrorCode.MQTT_ERR_SUCCESS:
            self._log.critical("MQTT network thread failed to start (rc=%s)", rc)
            return False

        self._log.info("Connected to [bright_magenta]%s:%d[/] as %s", self.broker, self.port, self.device_id)
        return True

    def disconnect(self) -> None:
        if (rc := self._client.disconnect()) != MQTTErrorCode.MQTT_ERR_SUCCESS:
            self._log.error("MQTT disconnect failed with rc=%s", rc)
            return

        if (rc := self._client.loop_stop()) != MQTTErrorCode.MQTT_ERR_SUCCESS:
            self._log.error("MQTT network thread failed to stop (rc=%s)", rc)
            return

        self._log.info("Disconnected from [bright_magenta]%s:%d[/]", self.broker, self.port)

    def publish_state(self, status: DevStatus) -> None:
        """Publish (retained) server status."""
        self._pub("state", self._status_payload(status), retain=True)

    def publish_event(self, event: dict[str, Any], *, topic: Topic = "game_events") -> None:
        """Publish a session event or audio cue.

        Args:
            event: Event payload (`device_id` & `ts` are added)

        Keyword Args:
            topic: Sub-topic under `<namespace>/<device_id>/`
        """
        self._pub(topic, event | self._common_payload())

    ################################################# Utility Methods ##################################################

    def _topic(self, sub: str) -> str:
        return f"{self.namespace}/{self.device_id}/{sub}"

    def _common_payload(self) -> CommonPayload:
        return {"device_id": self.device_id, "ts": time_now_ms()}

    def _status_payload(self, status: DevStatus) -> StatusPayload:
        return {**self._common_payload(), "status": status}

    def _pub(self, sub: Topic, pload: dict[str, Any] | StatusPayload, *, retain: bool = False) -> None:
        topic = self._topic(sub)
        self._log.debug("[bright_white on grey30][Session -> MQTT][/] %s: %s", topic, pload)
        res = self._client.publish(topic, json.dumps(pload), qos=MqttClient.QOS, retain=retain)

        if res.rc != MQTTErrorCode.MQTT_ERR_SUCCESS:
            self._log.error("MQTT publish to %s failed with rc=%s", topic, res.rc)

    ############################################### Paho MQTT Callbacks ################################################

    def _on_connect(
        self,
        client: Client,
        userdata: Any,  # noqa: ANN401
        connect_flags: ConnectFlags,
        reason_code: ReasonCode,
        properties: Properties | None = None,
    ) -> None:
        """Subscribe to command topics (again after every reconnect)."""

        if reason_code.is_failure:
            self._log.warning("MQTT connect refused (rc=%s)", reason_code)
            return

        for topic in self.command_topics:
            res, _ = client.subscribe(topic, qos=MqttClient.QOS)
            if res != MQTTErrorCode.MQTT_ERR_SUCCESS:
                self._log.error("MQTT subscribe to %s failed with rc=%s", topic, res)
                continue
            self._log.info("Subscribed to [bright_green]%s[/]", topic)

        _ = userdata, connect_flags, properties

    def _on_disconnect(
        self,
        client: Client,
        userdata: Any,  # noqa: ANN401
        disconnect_flags: DisconnectFlags,
        reason_code: ReasonCode,
        properties: Properties | None = None,
    ) -> None:
        if reason_code.is_failure:
            self._log.warning("MQTT disconnected unexpectedly (rc=%s), will reconnect", reason_code)

        _ = client, userdata, disconnect_flags, properties

    def _on_message(self, client: Client, userdata: Any, message: MQTTMessage) -> None:  # noqa: ANN401
        """Hand a command payload to `on_command` (runs on paho's network thread)."""

        try:
            self.on_command(message.payload)
        except Exception:
            self._log.exception("Error handling command on %s", message.topic)
        _ = client, userdata
