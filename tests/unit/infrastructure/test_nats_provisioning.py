"""Tests for billing provisioning over request/reply."""

from unittest.mock import AsyncMock, MagicMock

import msgpack
import pytest
import pytest_asyncio

from subject_registry.application.billing import BillingAccountService
from subject_registry.domain.enums import AccountStatus
from subject_registry.domain.exceptions import ProvisioningError
from subject_registry.infrastructure.nats_provisioning import (
    BillingRequest,
    BillingResponse,
    LocalAccountProvisioningClient,
    NATSAccountProvisioningClient,
    bind_billing_responder,
)
from subject_registry.infrastructure.serialization import (
    deserialize_from_msgpack,
    serialize_to_msgpack,
)


def reply(**fields) -> bytes:
    return msgpack.packb(fields, use_bin_type=True)


class TestBillingResponse:
    def test_success_requires_account(self):
        with pytest.raises(ValueError):
            BillingResponse(success=True)

    def test_failure_requires_error(self):
        with pytest.raises(ValueError):
            BillingResponse(success=False)

    def test_failed_reply_has_no_account(self):
        with pytest.raises(ValueError, match="ledger closed"):
            BillingResponse(success=False, error="ledger closed").to_account()


class TestNATSAccountProvisioningClient:
    @pytest.mark.asyncio
    async def test_request_and_reply(self, mock_message_bus):
        mock_message_bus.request.return_value = reply(
            success=True, account_id="acct-1", status="ACTIVE"
        )
        client = NATSAccountProvisioningClient(mock_message_bus, timeout=3.0)

        account = await client.create_account("s-1", "John Doe", "john@example.com")

        assert account.account_id == "acct-1"
        assert account.status == AccountStatus.ACTIVE
        subject, payload = mock_message_bus.request.call_args.args
        assert subject == "rpc.billing.create_account"
        assert deserialize_from_msgpack(payload, BillingRequest) == BillingRequest(
            subject_id="s-1", name="John Doe", email="john@example.com"
        )
        assert mock_message_bus.request.call_args.kwargs["timeout"] == 3.0

    @pytest.mark.asyncio
    async def test_timeout(self, mock_message_bus):
        mock_message_bus.request.side_effect = TimeoutError()
        client = NATSAccountProvisioningClient(mock_message_bus)

        with pytest.raises(ProvisioningError) as exc_info:
            await client.create_account("s-1", "John Doe", "john@example.com")

        assert exc_info.value.timed_out
        assert exc_info.value.subject_id == "s-1"
        mock_message_bus.request.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_transport_error(self, mock_message_bus):
        mock_message_bus.request.side_effect = ConnectionError("no responders")
        client = NATSAccountProvisioningClient(mock_message_bus)

        with pytest.raises(ProvisioningError) as exc_info:
            await client.create_account("s-1", "J", "j@x.io")

        assert not exc_info.value.timed_out

    @pytest.mark.asyncio
    async def test_rejected_request(self, mock_message_bus):
        mock_message_bus.request.return_value = reply(success=False, error="blocked")
        client = NATSAccountProvisioningClient(mock_message_bus)

        with pytest.raises(ProvisioningError, match="blocked"):
            await client.create_account("s-1", "J", "j@x.io")

    @pytest.mark.asyncio
    async def test_unreadable_reply(self, mock_message_bus):
        mock_message_bus.request.return_value = b"\x01\x02"
        client = NATSAccountProvisioningClient(mock_message_bus)

        with pytest.raises(ProvisioningError, match="Unreadable"):
            await client.create_account("s-1", "J", "j@x.io")


class TestLocalAccountProvisioningClient:
    @pytest.mark.asyncio
    async def test_delegates_to_service(self):
        client = LocalAccountProvisioningClient(BillingAccountService())

        account = await client.create_account("s-1", "John Doe", "john@example.com")

        assert account.account_id == "s-1"

    @pytest.mark.asyncio
    async def test_unexpected_service_error_becomes_provisioning_error(self):
        service = MagicMock()
        service.create_account = AsyncMock(side_effect=ConnectionError("ledger down"))
        client = LocalAccountProvisioningClient(service)

        with pytest.raises(ProvisioningError) as exc_info:
            await client.create_account("s-1", "John Doe", "john@example.com")

        assert exc_info.value.subject_id == "s-1"
        assert not exc_info.value.timed_out


class TestBillingResponder:
    @pytest_asyncio.fixture
    async def handler(self, mock_message_bus, mock_logger):
        await bind_billing_responder(mock_message_bus, BillingAccountService(), logger=mock_logger)
        args = mock_message_bus.register_responder.call_args
        assert args.args[0] == "rpc.billing.create_account"
        assert args.kwargs["queue"] == "billing"
        return args.args[1]

    @pytest.mark.asyncio
    async def test_answers_with_account(self, handler):
        request = BillingRequest(subject_id="s-1", name="John Doe", email="john@example.com")

        response = deserialize_from_msgpack(
            await handler(serialize_to_msgpack(request)), BillingResponse
        )

        assert response.success
        assert response.account_id == "s-1"
        assert response.status == AccountStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_answers_error_for_invalid_request(self, handler, mock_logger):
        response = deserialize_from_msgpack(await handler(b"\x01\x02"), BillingResponse)

        assert not response.success
        assert response.error
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_answers_error_for_blank_name(self, handler):
        request = BillingRequest(subject_id="s-1", name=" ", email="john@example.com")

        response = deserialize_from_msgpack(
            await handler(serialize_to_msgpack(request)), BillingResponse
        )

        assert not response.success

    @pytest.mark.asyncio
    async def test_client_and_responder_agree(self, handler):
        async def request(subject, data, timeout):
            return await handler(data)

        bus = AsyncMock()
        bus.request = AsyncMock(side_effect=request)

        account = await NATSAccountProvisioningClient(bus).create_account(
            "s-7", "Jane Roe", "jane@example.com"
        )

        assert account.account_id == "s-7"
        assert account.status == AccountStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_answers_error_for_unexpected_service_failure(
        self, mock_message_bus, mock_logger
    ):
        service = MagicMock()
        service.create_account = AsyncMock(side_effect=RuntimeError("ledger down"))
        await bind_billing_responder(mock_message_bus, service, logger=mock_logger)
        handle = mock_message_bus.register_responder.call_args.args[1]
        request = BillingRequest(subject_id="s-1", name="John Doe", email="john@example.com")

        response = deserialize_from_msgpack(
            await handle(serialize_to_msgpack(request)), BillingResponse
        )

        assert not response.success
        assert "ledger down" in response.error
        mock_logger.exception.assert_called_once()
