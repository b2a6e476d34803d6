"""Wires the tolerant consumer to the change event stream."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..ports.message_bus import MessageBusPort
from .config import SubjectPatterns

if TYPE_CHECKING:
    from ..application.consumer import TolerantEventConsumer


async def bind_event_consumer(
    bus: MessageBusPort,
    consumer: TolerantEventConsumer,
    durable: str = "analytics",
    subject: str | None = None,
) -> None:
    """Feed every change event payload to ``consumer.on_message``.

    The consumer never raises, so every delivery is acknowledged and a
    malformed payload is not redelivered forever.
    """

    async def handle(data: bytes) -> None:
        await consumer.on_message(data)

    await bus.subscribe(subject or SubjectPatterns.change_event(), handle, durable=durable)
