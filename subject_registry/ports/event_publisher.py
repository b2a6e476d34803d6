"""Change event publisher port."""

from abc import ABC, abstractmethod

from ..domain.models import ChangeEvent


class ChangeEventPublisherPort(ABC):
    """Abstract emitter of change notifications to a durable stream.

    ``publish`` returns once the broker has accepted the message; it does
    not wait for downstream consumption.
    """

    @abstractmethod
    async def publish(self, event: ChangeEvent) -> None:
        """Publish a change event.

        Raises:
            PublishError: The broker rejected the message or was unreachable.
        """
        ...
