import pytest

from svckit.mq_core import (
    HEADER_REMAINING_RETRIES,
    DeclareConfig,
    DeliveryMode,
    Exchange,
    PublishConfig,
    Queue,
    publish,
)


class FakeChannel:
    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def _record(self, name, kwargs):
        self.calls.append((name, kwargs))
        if self.fail_on == name:
            raise RuntimeError("boom")

    def basic_publish(self, **kwargs):
        self._record("basic_publish", kwargs)

    def queue_declare(self, **kwargs):
        self._record("queue_declare", kwargs)

    def exchange_declare(self, **kwargs):
        self._record("exchange_declare", kwargs)

    def queue_bind(self, **kwargs):
        self._record("queue_bind", kwargs)


class FakeClient:
    def __init__(self, channel, healthy=True):
        self.channel = channel
        self.healthy = healthy

    def health_check(self):
        if not self.healthy:
            raise ConnectionError("connection is closed")


def test_publish_defaults_to_persistent_text():
    channel = FakeChannel()
    publish(channel, "ex", "key", b"body")
    name, kwargs = channel.calls[0]
    assert name == "basic_publish"
    assert kwargs["exchange"] == "ex"
    assert kwargs["routing_key"] == "key"
    assert kwargs["body"] == b"body"
    assert kwargs["mandatory"] is False
    props = kwargs["properties"]
    assert props.delivery_mode == 2
    assert props.content_type == "text/plain"
    assert props.headers == {}


def test_publish_transient_and_retries_header():
    channel = FakeChannel()
    publish(channel, "", "q", b"x", PublishConfig(max_retries=3, delivery_mode=DeliveryMode.TRANSIENT))
    props = channel.calls[0][1]["properties"]
    assert props.delivery_mode == 1
    assert props.headers == {HEADER_REMAINING_RETRIES: 3}


def test_publish_explicit_persistent():
    channel = FakeChannel()
    publish(channel, "", "q", b"x", PublishConfig(delivery_mode=DeliveryMode.PERSISTENT))
    assert channel.calls[0][1]["properties"].delivery_mode == 2


def test_queue_publish_goes_to_default_exchange():
    channel = FakeChannel()
    queue = Queue("jobs", FakeClient(channel))
    queue.publish(b"hello")
    kwargs = channel.calls[0][1]
    assert kwargs["exchange"] == ""
    assert kwargs["routing_key"] == "jobs"
    assert kwargs["body"] == b"hello"


def test_queue_publish_with_config_sets_header():
    channel = FakeChannel()
    queue = Queue("jobs", FakeClient(channel))
    queue.publish_with_config(b"hello", PublishConfig(max_retries=0))
    kwargs = channel.calls[0][1]
    assert kwargs["routing_key"] == "jobs"
    assert kwargs["properties"].headers == {HEADER_REMAINING_RETRIES: 0}


def test_queue_declare_is_durable():
    channel = FakeChannel()
    Queue("jobs", FakeClient(channel)).declare()
    name, kwargs = channel.calls[0]
    assert name == "queue_declare"
    assert kwargs == {
        "queue": "jobs",
        "durable": True,
        "auto_delete": False,
        "exclusive": False,
        "arguments": None,
    }


def test_queue_declare_with_config_passes_arguments():
    channel = FakeChannel()
    args = {"x-message-ttl": 1000}
    Queue("jobs", FakeClient(channel)).declare_with_config(
        DeclareConfig(auto_delete=True, exclusive=True, args=args)
    )
    kwargs = channel.calls[0][1]
    assert kwargs["durable"] is False
    assert kwargs["auto_delete"] is True
    assert kwargs["exclusive"] is True
    assert kwargs["arguments"] == args


def test_exchange_declare_uses_kind_and_is_durable():
    channel = FakeChannel()
    Exchange("events", FakeClient(channel)).declare("fanout")
    name, kwargs = channel.calls[0]
    assert name == "exchange_declare"
    assert kwargs["exchange"] == "events"
    assert kwargs["exchange_type"] == "fanout"
    assert kwargs["durable"] is True
    assert kwargs["auto_delete"] is False


def test_exchange_bind_uses_empty_key():
    channel = FakeChannel()
    client = FakeClient(channel)
    exchange = Exchange("events", client)
    queues = [Queue("a", client), Queue("b", client)]
    result = exchange.bind(queues)
    assert result is None
    assert [q.name for q in queues] == ["a", "b"]
    assert [c[0] for c in channel.calls] == ["queue_bind", "queue_bind"]
    assert [c[1] for c in channel.calls] == [
        {"queue": "a", "exchange": "events", "routing_key": ""},
        {"queue": "b", "exchange": "events", "routing_key": ""},
    ]


def test_exchange_bind_with_key():
    channel = FakeChannel()
    client = FakeClient(channel)
    queue = Queue("a", client)
    result = Exchange("events", client).bind_with_key([queue], "rk")
    assert result is None
    assert queue.name == "a"
    assert channel.calls[0][1] == {"queue": "a", "exchange": "events", "routing_key": "rk"}


def test_exchange_bind_stops_at_first_failure():
    channel = FakeChannel(fail_on="queue_bind")
    client = FakeClient(channel)
    with pytest.raises(RuntimeError):
        Exchange("events", client).bind([Queue("a", client), Queue("b", client)])
    assert len(channel.calls) == 1


def test_exchange_publish_and_publish_with_key():
    channel = FakeChannel()
    exchange = Exchange("events", FakeClient(channel))
    exchange.publish(b"one")
    exchange.publish_with_key(b"two", "rk")
    assert [(c[1]["exchange"], c[1]["routing_key"], c[1]["body"]) for c in channel.calls] == [
        ("events", "", b"one"),
        ("events", "rk", b"two"),
    ]


def test_health_check_wraps_client_error():
    client = FakeClient(FakeChannel(), healthy=False)
    with pytest.raises(ConnectionError, match="client health check: connection is closed"):
        Queue("jobs", client).health_check()
    with pytest.raises(ConnectionError, match="client health check"):
        Exchange("events", client).health_check()