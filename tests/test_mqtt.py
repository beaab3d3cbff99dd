import json
from types import SimpleNamespace

from paho.mqtt.enums import MQTTErrorCode

from whac.mqtt import MqttClient


class FakePaho:
    """Records what MqttClient asks of the paho client."""

    def __init__(self):
        self.subscribed = []
        self.published = []
        self.retained = []

    def subscribe(self, topic, qos=0):
        self.subscribed.append(topic)
        return MQTTErrorCode.MQTT_ERR_SUCCESS, 1

    def publish(self, topic, payload, qos=0, retain=False):
        self.published.append((topic, json.loads(payload)))
        self.retained.append(retain)
        return SimpleNamespace(rc=MQTTErrorCode.MQTT_ERR_SUCCESS)


def make_client(on_command=None):
    received = []
    client = MqttClient(
        broker="localhost",
        port=1883,
        device_id="board-1",
        namespace="whac",
        on_command=on_command or received.append,
        last_will="offline",
    )
    client._client = FakePaho()
    return client, received


def test_connect_subscribes_to_device_and_broadcast_commands():
    client, _ = make_client()
    fake = client._client

    client._on_connect(fake, None, None, SimpleNamespace(is_failure=False))

    assert fake.subscribed == ["whac/board-1/commands", "whac/all/commands"]


def test_failed_connect_subscribes_to_nothing():
    client, _ = make_client()
    fake = client._client

    client._on_connect(fake, None, None, SimpleNamespace(is_failure=True))

    assert fake.subscribed == []


def test_publish_event_goes_to_sub_topic_with_common_fields():
    client, _ = make_client()

    client.publish_event({"event_type": "tap_hit"}, topic="audio")
    client.publish_event({"event_type": "session_start"})

    (topic1, pload1), (topic2, _) = client._client.published
    assert topic1 == "whac/board-1/audio"
    assert topic2 == "whac/board-1/game_events"
    assert pload1["event_type"] == "tap_hit"
    assert pload1["device_id"] == "board-1"
    assert isinstance(pload1["ts"], int)


def test_state_is_published_retained():
    client, _ = make_client()
    client.publish_state("online")
    client.publish_event({"event_type": "score"})

    topic, pload = client._client.published[0]
    assert topic == "whac/board-1/state"
    assert pload["status"] == "online"
    assert client._client.retained == [True, False]


def test_command_topics():
    client, _ = make_client()
    assert client.command_topics == ("whac/board-1/commands", "whac/all/commands")


def test_messages_are_forwarded_to_callback():
    client, received = make_client()

    client._on_message(client._client, None, SimpleNamespace(payload=b"S", topic="whac/board-1/commands"))

    assert received == [b"S"]


def test_failing_callback_is_swallowed(caplog):
    def explode(byte):
        raise RuntimeError("bad board")

    client, _ = make_client(on_command=explode)
    client._on_message(client._client, None, SimpleNamespace(payload=b"R", topic="whac/all/commands"))

    assert "whac/all/commands" in caplog.text
