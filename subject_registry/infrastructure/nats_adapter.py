"""NATS adapter - Concrete implementation of MessageBusPort."""

from __future__ import annotations

import nats
from nats.aio.client import Client as NATSClient
from nats.aio.msg import Msg
from nats.js import JetStreamContext
from nats.js.errors import NotFoundError

from ..ports.logger import LoggerPort
from ..ports.message_bus import MessageBusPort, MessageHandler, RequestHandler
from ..ports.metrics import MetricsPort
from .config import LogContext, NATSConnectionConfig, SubjectPatterns
from .in_memory_metrics import InMemoryMetrics


class NATSNotConnectedError(RuntimeError):
    """Raised when a bus operation is attempted before ``connect``."""


class NATSAdapter(MessageBusPort):
    """NATS implementation of the message bus port.

    Change events travel over a JetStream stream; provisioning uses core
    NATS request/reply.
    """

    def __init__(
        self,
        config: NATSConnectionConfig | None = None,
        metrics: MetricsPort | None = None,
        logger: LoggerPort | None = None,
    ):
        """Initialize NATS adapter with configuration.

        Args:
            config: Connection configuration. If not provided, uses defaults.
            metrics: Optional metrics port. If not provided, uses in-memory metrics.
            logger: Optional logger.
        """
        self._config = config or NATSConnectionConfig()
        self._nc: NATSClient | None = None
        self._js: JetStreamContext | None = None
        self._metrics = metrics or InMemoryMetrics()
        self._logger = logger

    @property
    def jetstream(self) -> JetStreamContext:
        """JetStream context of the live connection."""
        if self._js is None:
            raise NATSNotConnectedError("JetStream not initialized")
        return self._js

    async def connect(self, servers: list[str] | None = None) -> None:
        """Connect to NATS and make sure the change event stream exists.

        Args:
            servers: Optional override for server URLs. If not provided, uses config.
        """
        params = self._config.to_connection_params()
        if servers:
            params["servers"] = servers

        self._nc = await nats.connect(**params)
        if self._config.enable_jetstream:
            self._js = self._nc.jetstream()
            await self._ensure_stream()

        self._metrics.gauge("nats.connected", 1)
        if self._logger:
            log_ctx = LogContext(operation="connect", component="NATSAdapter")
            self._logger.info(f"Connected to NATS at {params['servers']}", **log_ctx.to_dict())

    async def disconnect(self) -> None:
        """Drain and close the connection."""
        if self._nc is not None and self._nc.is_connected:
            await self._nc.close()
        self._nc = None
        self._js = None
        self._metrics.gauge("nats.connected", 0)

    async def is_connected(self) -> bool:
        return self._nc is not None and self._nc.is_connected

    def _connection(self) -> NATSClient:
        if self._nc is None or not self._nc.is_connected:
            raise NATSNotConnectedError("Not connected to NATS")
        return self._nc

    async def _ensure_stream(self) -> None:
        """Create the change event stream on first use."""
        js = self.jetstream
        try:
            await js.stream_info(self._config.stream_name)
        except NotFoundError:
            await js.add_stream(
                name=self._config.stream_name,
                subjects=[SubjectPatterns.change_events_wildcard()],
                max_msgs=self._config.stream_max_msgs,
            )

    async def publish(self, subject: str, data: bytes, timeout: float | None = None) -> None:
        """Publish to JetStream and wait for the stream's acknowledgement."""
        js = self.jetstream
        with self._metrics.timer(f"nats.publish.{subject}"):
            if timeout is None:
                await js.publish(subject, data)
            else:
                await js.publish(subject, data, timeout=timeout)
        self._metrics.increment(f"nats.published.{subject}")

    async def request(self, subject: str, data: bytes, timeout: float) -> bytes:
        """Send a core NATS request and return the reply payload."""
        nc = self._connection()
        with self._metrics.timer(f"nats.request.{subject}"):
            try:
                reply = await nc.request(subject, data, timeout=timeout)
            except TimeoutError:
                self._metrics.increment(f"nats.request.{subject}.timeout")
                raise
        return bytes(reply.data)

    async def subscribe(
        self, subject: str, handler: MessageHandler, durable: str | None = None
    ) -> None:
        """Attach a durable JetStream consumer.

        Messages are acknowledged once the handler returns and negatively
        acknowledged if it raises, so the broker redelivers them.
        """
        js = self.jetstream

        async def wrapper(msg: Msg) -> None:
            try:
                await handler(msg.data)
            except Exception as e:
                self._metrics.increment("nats.handler_errors")
                if self._logger:
                    self._logger.exception(
                        f"Stream handler failed on {subject}",
                        exc_info=e,
                        **LogContext(operation="subscribe", component="NATSAdapter").to_dict(),
                    )
                await msg.nak()
                return
            await msg.ack()

        await js.subscribe(subject, durable=durable, cb=wrapper, manual_ack=True)

    async def register_responder(
        self, subject: str, handler: RequestHandler, queue: str | None = None
    ) -> None:
        """Serve requests on ``subject`` within an optional queue group."""
        nc = self._connection()

        async def wrapper(msg: Msg) -> None:
            try:
                reply = await handler(msg.data)
            except Exception as e:
                # No reply is sent; the requester runs into its timeout
                self._metrics.increment("nats.handler_errors")
                if self._logger:
                    self._logger.exception(
                        f"Request handler failed on {subject}",
                        exc_info=e,
                        **LogContext(operation="respond", component="NATSAdapter").to_dict(),
                    )
                return
            await msg.respond(reply)

        await nc.subscribe(subject, queue=queue or "", cb=wrapper)
