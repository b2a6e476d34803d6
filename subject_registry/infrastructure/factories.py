"""Settings and explicit wiring of the registry's components.

Nothing here is instantiated implicitly: callers build a ``RegistrySettings``
and ask ``DefaultRegistryFactory`` for the pieces they need.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from ..application.lifecycle import LifecycleConfig
from .config import AuthConfig, NATSConnectionConfig
from .in_memory_metrics import InMemoryMetrics
from .simple_logger import SimpleLogger

if TYPE_CHECKING:
    from ..application.auth import AuthService
    from ..application.consumer import ChangeEventHandler, TolerantEventConsumer
    from ..application.lifecycle import SubjectLifecycleOrchestrator
    from ..ports.account_provisioning import AccountProvisioningPort
    from ..ports.auth import UserDirectoryPort
    from ..ports.event_publisher import ChangeEventPublisherPort
    from ..ports.logger import LoggerPort
    from ..ports.metrics import MetricsPort
    from ..ports.subject_store import SubjectStore
    from .in_memory_publisher import PayloadSink
    from .nats_adapter import NATSAdapter


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class RegistrySettings(BaseModel):
    """Process-wide settings assembled from the environment."""

    model_config = ConfigDict(extra="forbid")

    nats: NATSConnectionConfig = Field(default_factory=NATSConnectionConfig)
    lifecycle: LifecycleConfig = Field(default_factory=LifecycleConfig)
    auth: AuthConfig | None = Field(default=None)
    log_level: int = Field(default=logging.INFO)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> RegistrySettings:
        """Build settings from environment variables.

        Recognized: NATS_URL (comma separated), PROVISIONING_TIMEOUT,
        PUBLISH_TIMEOUT, COMPENSATE_ON_PROVISIONING_FAILURE, JWT_SECRET_KEY,
        JWT_EXPIRE_MINUTES, LOG_LEVEL.
        """
        env = os.environ if environ is None else environ

        nats_url = env.get("NATS_URL")
        nats = (
            NATSConnectionConfig(servers=[s.strip() for s in nats_url.split(",") if s.strip()])
            if nats_url
            else NATSConnectionConfig()
        )

        defaults = LifecycleConfig()
        lifecycle = LifecycleConfig(
            provisioning_timeout=float(
                env.get("PROVISIONING_TIMEOUT", defaults.provisioning_timeout)
            ),
            publish_timeout=float(env.get("PUBLISH_TIMEOUT", defaults.publish_timeout)),
            compensate_on_provisioning_failure=_env_bool(
                env.get("COMPENSATE_ON_PROVISIONING_FAILURE"),
                defaults.compensate_on_provisioning_failure,
            ),
        )

        auth = None
        if env.get("JWT_SECRET_KEY"):
            auth = AuthConfig(
                secret_key=SecretStr(env["JWT_SECRET_KEY"]),
                access_token_expire_minutes=int(env.get("JWT_EXPIRE_MINUTES", "60")),
            )

        level = logging.getLevelName(env.get("LOG_LEVEL", "INFO").upper())
        return cls(
            nats=nats,
            lifecycle=lifecycle,
            auth=auth,
            log_level=level if isinstance(level, int) else logging.INFO,
        )


class DefaultRegistryFactory:
    """Builds registry components from settings.

    Shared collaborators (logger, metrics) are created once per factory so
    every component built by it reports into the same sinks.
    """

    def __init__(
        self,
        settings: RegistrySettings | None = None,
        logger: LoggerPort | None = None,
        metrics: MetricsPort | None = None,
    ):
        self.settings = settings or RegistrySettings()
        self.logger = logger or SimpleLogger(level=self.settings.log_level)
        self.metrics = metrics or InMemoryMetrics()

    async def create_nats_adapter(self) -> NATSAdapter:
        """Create and connect a NATS adapter."""
        from .nats_adapter import NATSAdapter

        adapter = NATSAdapter(config=self.settings.nats, metrics=self.metrics, logger=self.logger)
        await adapter.connect()
        return adapter

    def create_orchestrator(
        self,
        store: SubjectStore,
        provisioning: AccountProvisioningPort,
        publisher: ChangeEventPublisherPort,
    ) -> SubjectLifecycleOrchestrator:
        """Wire an orchestrator from explicit collaborators."""
        from ..application.lifecycle import SubjectLifecycleOrchestrator

        return SubjectLifecycleOrchestrator(
            store=store,
            provisioning=provisioning,
            publisher=publisher,
            config=self.settings.lifecycle,
            logger=self.logger,
            metrics=self.metrics,
        )

    async def create_nats_orchestrator(self, adapter: NATSAdapter) -> SubjectLifecycleOrchestrator:
        """Orchestrator backed by NATS KV, NATS request/reply and JetStream."""
        from .nats_event_publisher import NATSChangeEventPublisher
        from .nats_kv_store import NATSKVSubjectStore
        from .nats_provisioning import NATSAccountProvisioningClient

        store = await NATSKVSubjectStore.connect(adapter, logger=self.logger)
        provisioning = NATSAccountProvisioningClient(
            adapter, timeout=self.settings.lifecycle.provisioning_timeout
        )
        publisher = NATSChangeEventPublisher(
            adapter, timeout=self.settings.lifecycle.publish_timeout
        )
        return self.create_orchestrator(store, provisioning, publisher)

    def create_in_memory_orchestrator(
        self, sink: PayloadSink | None = None
    ) -> SubjectLifecycleOrchestrator:
        """Single-process orchestrator with an in-memory store and local billing.

        Change events are encoded and handed to ``sink`` instead of a broker.
        """
        from ..application.billing import BillingAccountService
        from .in_memory_publisher import InMemoryChangeEventPublisher
        from .in_memory_store import InMemorySubjectStore
        from .nats_provisioning import LocalAccountProvisioningClient

        return self.create_orchestrator(
            InMemorySubjectStore(),
            LocalAccountProvisioningClient(BillingAccountService(logger=self.logger)),
            InMemoryChangeEventPublisher(sink=sink),
        )

    def create_consumer(self, handler: ChangeEventHandler | None = None) -> TolerantEventConsumer:
        """Tolerant consumer decoding msgpack change events."""
        from ..application.consumer import TolerantEventConsumer
        from .serialization import decode_change_event

        return TolerantEventConsumer(
            decoder=decode_change_event,
            handler=handler,
            logger=self.logger,
            metrics=self.metrics,
        )

    def create_auth_service(self, users: UserDirectoryPort) -> AuthService:
        """Authentication service with bcrypt hashing and signed JWTs.

        Raises:
            ValueError: No signing key is configured.
        """
        from ..application.auth import AuthService
        from .security import BcryptPasswordHasher, JoseTokenIssuer

        if self.settings.auth is None:
            raise ValueError("Authentication requires JWT_SECRET_KEY to be configured")
        return AuthService(
            users=users,
            passwords=BcryptPasswordHasher(),
            tokens=JoseTokenIssuer(self.settings.auth),
            logger=self.logger,
        )
