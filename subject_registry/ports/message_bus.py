"""Message bus interface - Port definition for messaging infrastructure."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

MessageHandler = Callable[[bytes], Awaitable[None]]
RequestHandler = Callable[[bytes], Awaitable[bytes]]


class MessageBusPort(ABC):
    """Abstract interface for the byte-level transport under the adapters."""

    @abstractmethod
    async def connect(self, servers: list[str] | None = None) -> None:
        """Connect to message bus servers."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from message bus."""
        ...

    @abstractmethod
    async def is_connected(self) -> bool:
        """Check if connected to message bus."""
        ...

    @abstractmethod
    async def publish(self, subject: str, data: bytes, timeout: float | None = None) -> None:
        """Publish to a durable stream, waiting for the broker acknowledgement."""
        ...

    @abstractmethod
    async def request(self, subject: str, data: bytes, timeout: float) -> bytes:
        """Send a request and wait for a single reply.

        Raises:
            TimeoutError: No reply arrived within ``timeout`` seconds.
        """
        ...

    @abstractmethod
    async def subscribe(
        self, subject: str, handler: MessageHandler, durable: str | None = None
    ) -> None:
        """Deliver every stream message on ``subject`` to ``handler``."""
        ...

    @abstractmethod
    async def register_responder(
        self, subject: str, handler: RequestHandler, queue: str | None = None
    ) -> None:
        """Answer requests on ``subject`` with the handler's return value."""
        ...
