"""Billing account provisioning over NATS request/reply.

The client side sends one request per call and never retries; the server
side answers requests with a ``BillingAccountService``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..domain.enums import AccountStatus
from ..domain.exceptions import ProvisioningError, SerializationError
from ..domain.models import ProvisionedAccount
from ..ports.account_provisioning import AccountProvisioningPort
from ..ports.message_bus import MessageBusPort
from .config import SubjectPatterns
from .serialization import deserialize_from_msgpack, serialize_to_msgpack

if TYPE_CHECKING:
    from ..application.billing import BillingAccountService
    from ..ports.logger import LoggerPort


class BillingRequest(BaseModel):
    """Wire request for opening a billing account."""

    model_config = ConfigDict(extra="forbid")

    subject_id: str
    name: str
    email: str


class BillingResponse(BaseModel):
    """Wire reply carrying either an account or an error."""

    model_config = ConfigDict(extra="ignore")

    success: bool = Field(default=True)
    account_id: str | None = Field(default=None)
    status: AccountStatus | None = Field(default=None)
    error: str | None = Field(default=None)

    @model_validator(mode="after")
    def validate_consistency(self) -> BillingResponse:
        """Successful replies carry an account, failed ones an error."""
        if self.success and (self.account_id is None or self.status is None):
            raise ValueError("Successful billing reply requires account_id and status")
        if not self.success and self.error is None:
            raise ValueError("Error message required when success is False")
        return self

    def to_account(self) -> ProvisionedAccount:
        if self.account_id is None or self.status is None:
            raise ValueError(f"Billing reply carries no account: {self.error}")
        return ProvisionedAccount(account_id=self.account_id, status=self.status)


class NATSAccountProvisioningClient(AccountProvisioningPort):
    """Requests billing accounts from the billing service over NATS."""

    def __init__(self, bus: MessageBusPort, timeout: float = 5.0, subject: str | None = None):
        """Initialize the client.

        Args:
            bus: Connected message bus
            timeout: Request timeout in seconds
            subject: Request subject (default: rpc.billing.create_account)
        """
        self._bus = bus
        self._timeout = timeout
        self._subject = subject or SubjectPatterns.provisioning()

    async def create_account(self, subject_id: str, name: str, email: str) -> ProvisionedAccount:
        request = BillingRequest(subject_id=subject_id, name=name, email=email)
        try:
            reply = await self._bus.request(
                self._subject, serialize_to_msgpack(request), timeout=self._timeout
            )
        except TimeoutError as e:
            raise ProvisioningError(
                f"Billing service did not answer within {self._timeout}s",
                subject_id=subject_id,
                timed_out=True,
            ) from e
        except Exception as e:
            raise ProvisioningError(
                f"Billing request failed: {e}", subject_id=subject_id
            ) from e

        try:
            response = deserialize_from_msgpack(reply, BillingResponse)
        except SerializationError as e:
            raise ProvisioningError(
                f"Unreadable billing reply: {e.message}", subject_id=subject_id
            ) from e

        if not response.success:
            raise ProvisioningError(
                f"Billing service rejected the request: {response.error}", subject_id=subject_id
            )
        return response.to_account()


class LocalAccountProvisioningClient(AccountProvisioningPort):
    """In-process provisioning against a BillingAccountService."""

    def __init__(self, service: BillingAccountService):
        self._service = service

    async def create_account(self, subject_id: str, name: str, email: str) -> ProvisionedAccount:
        try:
            return await self._service.create_account(subject_id, name, email)
        except ProvisioningError:
            raise
        except Exception as e:
            raise ProvisioningError(
                f"Billing service failed: {e}", subject_id=subject_id
            ) from e


async def bind_billing_responder(
    bus: MessageBusPort,
    service: BillingAccountService,
    logger: LoggerPort | None = None,
    subject: str | None = None,
) -> None:
    """Serve provisioning requests from ``service`` on the bus."""

    async def handle(data: bytes) -> bytes:
        try:
            request = deserialize_from_msgpack(data, BillingRequest)
            account = await service.create_account(request.subject_id, request.name, request.email)
            response = BillingResponse(account_id=account.account_id, status=account.status)
        except (SerializationError, ProvisioningError) as e:
            if logger:
                logger.warning(f"Billing request rejected: {e.message}", operation="create_account")
            response = BillingResponse(success=False, error=e.message)
        except Exception as e:
            if logger:
                logger.exception(
                    "Billing request failed", exc_info=e, operation="create_account"
                )
            response = BillingResponse(success=False, error=f"Internal billing error: {e}")
        return serialize_to_msgpack(response)

    await bus.register_responder(subject or SubjectPatterns.provisioning(), handle, queue="billing")
