"""Change event publisher over a NATS JetStream stream."""

from ..domain.exceptions import PublishError, SerializationError
from ..domain.models import ChangeEvent
from ..ports.event_publisher import ChangeEventPublisherPort
from ..ports.message_bus import MessageBusPort
from .config import SubjectPatterns
from .serialization import encode_change_event


class NATSChangeEventPublisher(ChangeEventPublisherPort):
    """Encodes change events with MessagePack and publishes them to the stream."""

    def __init__(self, bus: MessageBusPort, timeout: float | None = None):
        """Initialize the publisher.

        Args:
            bus: Connected message bus
            timeout: Optional broker acknowledgement timeout in seconds
        """
        self._bus = bus
        self._timeout = timeout

    async def publish(self, event: ChangeEvent) -> None:
        try:
            payload = encode_change_event(event)
        except SerializationError as e:
            raise PublishError(e.message, subject_id=event.subject_id) from e

        subject = SubjectPatterns.change_event(event.event_type)
        try:
            await self._bus.publish(subject, payload, timeout=self._timeout)
        except Exception as e:
            raise PublishError(
                f"Failed to publish {event.event_type} to {subject}: {e}",
                subject_id=event.subject_id,
            ) from e
