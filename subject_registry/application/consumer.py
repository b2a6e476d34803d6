"""Tolerant change event consumer.

Decodes raw stream payloads into ``ChangeEvent`` objects and hands them to a
downstream handler. A payload that cannot be decoded is logged and skipped:
losing one event is acceptable, stopping the stream is not.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, Awaitable, Callable
from typing import TYPE_CHECKING

from ..domain.exceptions import DecodeError
from ..domain.models import ChangeEvent
from ..infrastructure.in_memory_metrics import InMemoryMetrics

if TYPE_CHECKING:
    from ..ports.logger import LoggerPort
    from ..ports.metrics import MetricsPort

ChangeEventDecoder = Callable[[bytes], ChangeEvent]
ChangeEventHandler = Callable[[ChangeEvent], Awaitable[None]]

_PREVIEW_BYTES = 16


async def _discard(event: ChangeEvent) -> None:
    return None


class TolerantEventConsumer:
    """Decode-or-skip consumer for the change event stream.

    ``on_message`` never raises: decode failures and handler failures are
    both contained at this boundary so the receive loop keeps running.
    """

    def __init__(
        self,
        decoder: ChangeEventDecoder,
        handler: ChangeEventHandler | None = None,
        logger: LoggerPort | None = None,
        metrics: MetricsPort | None = None,
    ):
        """Initialize the consumer.

        Args:
            decoder: Turns a raw payload into a ChangeEvent, raising DecodeError
            handler: Downstream processing for decoded events (default: discard)
            logger: Optional logger for skipped messages
            metrics: Optional metrics port (default: in-memory)
        """
        self._decode = decoder
        self._handler = handler or _discard
        self._logger = logger
        self._metrics = metrics or InMemoryMetrics()

    async def on_message(self, data: bytes) -> ChangeEvent | None:
        """Process one payload.

        Returns:
            The decoded event, or None when the payload was skipped.
        """
        try:
            event = self._decode(data)
        except DecodeError as e:
            self._metrics.increment("events.decode_failed")
            if self._logger:
                self._logger.error(
                    f"Skipping undecodable change event: {e.message}",
                    operation="consume",
                    payload_size=len(data),
                    payload_preview=bytes(data[:_PREVIEW_BYTES]).hex(),
                )
            return None

        try:
            await self._handler(event)
        except Exception as e:
            # Handler faults must not stop the loop either
            self._metrics.increment("events.handler_failed")
            if self._logger:
                self._logger.exception(
                    f"Handler failed for change event of subject {event.subject_id}",
                    exc_info=e,
                    operation="consume",
                    subject_id=event.subject_id,
                )
            return None

        self._metrics.increment("events.consumed")
        if self._logger:
            self._logger.debug(
                f"Consumed {event.event_type} for subject {event.subject_id}",
                operation="consume",
                subject_id=event.subject_id,
            )
        return event

    async def run(self, messages: AsyncIterable[bytes]) -> int:
        """Drain an async iterable of payloads.

        Returns:
            Number of payloads that were decoded and handled.
        """
        handled = 0
        async for data in messages:
            if await self.on_message(data) is not None:
                handled += 1
        return handled
