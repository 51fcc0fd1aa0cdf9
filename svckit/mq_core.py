"""Queues, exchanges and message publishing over AMQP."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import pika

HEADER_REMAINING_RETRIES = "x-remaining-retries"
CONTENT_TYPE = "text/plain"


class DeliveryMode(enum.IntEnum):
    """AMQP delivery mode of a published message."""

    TRANSIENT = 1
    PERSISTENT = 2


@dataclass
class DeclareConfig:
    """Flags used when declaring a queue."""

    durable: bool = False
    auto_delete: bool = False
    exclusive: bool = False
    no_wait: bool = False
    args: dict[str, Any] | None = None


@dataclass
class PublishConfig:
    """Per-message publishing settings.

    ``max_retries`` overrides the consumer's retry budget for this message;
    any ``delivery_mode`` other than TRANSIENT publishes persistently.
    """

    max_retries: int | None = None
    delivery_mode: DeliveryMode | None = None


def publish(
    channel: Any,
    exchange: str,
    key: str,
    body: bytes,
    config: PublishConfig | None = None,
) -> None:
    """Publish ``body`` to ``exchange`` with routing ``key``."""
    config = config or PublishConfig()
    headers: dict[str, Any] = {}
    if config.max_retries is not None:
        headers[HEADER_REMAINING_RETRIES] = config.max_retries
    mode = (
        DeliveryMode.TRANSIENT
        if config.delivery_mode == DeliveryMode.TRANSIENT
        else DeliveryMode.PERSISTENT
    )
    properties = pika.BasicProperties(
        delivery_mode=int(mode),
        content_type=CONTENT_TYPE,
        headers=headers,
    )
    channel.basic_publish(
        exchange=exchange,
        routing_key=key,
        body=body,
        properties=properties,
        mandatory=False,
    )


def _check_client(client: Any) -> None:
    try:
        client.health_check()
    except Exception as err:
        raise ConnectionError(f"client health check: {err}") from err


class Queue:
    """A named queue reached through a client's management channel."""

    def __init__(self, name: str, client: Any) -> None:
        self.name = name
        self.client = client

    def declare(self) -> None:
        """Declare the queue as durable."""
        self.declare_with_config(DeclareConfig(durable=True))

    def declare_with_config(self, config: DeclareConfig) -> None:
        """Declare the queue with the given flags."""
        # Blocking channels always wait for the broker's reply, so no_wait is not sent.
        self.client.channel.queue_declare(
            queue=self.name,
            durable=config.durable,
            auto_delete=config.auto_delete,
            exclusive=config.exclusive,
            arguments=config.args,
        )

    def publish(self, body: bytes) -> None:
        """Publish ``body`` straight to this queue."""
        publish(self.client.channel, "", self.name, body)

    def publish_with_config(self, body: bytes, config: PublishConfig) -> None:
        """Publish ``body`` straight to this queue with ``config``."""
        publish(self.client.channel, "", self.name, body, config)

    def health_check(self) -> None:
        """Raise ConnectionError when the client's connection is down."""
        _check_client(self.client)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class Exchange:
    """A named exchange reached through a client's management channel."""

    def __init__(self, name: str, client: Any) -> None:
        self.name = name
        self.client = client

    def declare(self, kind: str) -> None:
        """Declare the exchange as durable with the given type."""
        self.client.channel.exchange_declare(
            exchange=self.name,
            exchange_type=kind,
            durable=True,
            auto_delete=False,
            internal=False,
        )

    def bind(self, queues: Iterable[Queue]) -> None:
        """Bind each queue to the exchange with an empty routing key."""
        self.bind_with_key(queues, "")

    def bind_with_key(self, queues: Iterable[Queue], key: str) -> None:
        """Bind each queue to the exchange with routing ``key``; stop at the first failure."""
        for queue in queues:
            self.client.channel.queue_bind(
                queue=queue.name, exchange=self.name, routing_key=key
            )

    def publish(self, body: bytes) -> None:
        """Publish ``body`` with an empty routing key."""
        publish(self.client.channel, self.name, "", body)

    def publish_with_key(self, body: bytes, key: str) -> None:
        """Publish ``body`` with routing ``key``."""
        publish(self.client.channel, self.name, key, body)

    def health_check(self) -> None:
        """Raise ConnectionError when the client's connection is down."""
        _check_client(self.client)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"