"""In-process change event publisher."""

from collections.abc import Awaitable, Callable

from ..domain.exceptions import PublishError, SerializationError
from ..domain.models import ChangeEvent
from ..ports.event_publisher import ChangeEventPublisherPort
from .serialization import encode_change_event

PayloadSink = Callable[[bytes], Awaitable[object]]


class InMemoryChangeEventPublisher(ChangeEventPublisherPort):
    """Keeps encoded payloads in order and forwards them to an optional sink.

    Wiring ``sink`` to ``TolerantEventConsumer.on_message`` gives a
    single-process stream that still goes through the wire encoding.
    """

    def __init__(self, sink: PayloadSink | None = None):
        self._sink = sink
        self.payloads: list[bytes] = []

    async def publish(self, event: ChangeEvent) -> None:
        try:
            payload = encode_change_event(event)
        except SerializationError as e:
            raise PublishError(e.message, subject_id=event.subject_id) from e

        self.payloads.append(payload)
        if self._sink is None:
            return
        try:
            await self._sink(payload)
        except Exception as e:
            raise PublishError(
                f"Sink rejected change event: {e}", subject_id=event.subject_id
            ) from e
