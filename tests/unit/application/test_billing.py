"""Tests for BillingAccountService."""

import pytest

from subject_registry.application.billing import BillingAccountService
from subject_registry.domain.enums import AccountStatus
from subject_registry.domain.exceptions import ProvisioningError


class TestBillingAccountService:
    @pytest.mark.asyncio
    async def test_account_keyed_by_subject_id(self):
        service = BillingAccountService()

        account = await service.create_account("s-1", "John Doe", "john@example.com")

        assert account.account_id == "s-1"
        assert account.status == AccountStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_logs_account_opening(self, mock_logger):
        service = BillingAccountService(logger=mock_logger)

        await service.create_account("s-1", "John Doe", "john@example.com")

        mock_logger.info.assert_called_once()
        assert mock_logger.info.call_args.kwargs["subject_id"] == "s-1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("subject_id,name", [("", "John"), ("  ", "John"), ("s-1", " ")])
    async def test_blank_fields_rejected(self, subject_id, name):
        with pytest.raises(ProvisioningError):
            await BillingAccountService().create_account(subject_id, name, "john@example.com")
