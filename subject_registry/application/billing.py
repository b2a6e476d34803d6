"""Billing account service answering provisioning requests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..domain.enums import AccountStatus
from ..domain.exceptions import ProvisioningError
from ..domain.models import ProvisionedAccount

if TYPE_CHECKING:
    from ..ports.logger import LoggerPort


class BillingAccountService:
    """Opens billing accounts for newly registered subjects.

    Accounts are keyed by subject identifier and come back ``ACTIVE``.
    """

    def __init__(self, logger: LoggerPort | None = None):
        self._logger = logger

    async def create_account(self, subject_id: str, name: str, email: str) -> ProvisionedAccount:
        """Open an account for a subject."""
        if not subject_id.strip():
            raise ProvisioningError("Billing request is missing the subject id")
        if not name.strip():
            raise ProvisioningError(
                "Billing request is missing the account holder name", subject_id=subject_id
            )

        if self._logger:
            self._logger.info(
                f"Opening billing account for subject {subject_id}",
                operation="create_account",
                subject_id=subject_id,
                email=email,
            )
        return ProvisionedAccount(account_id=subject_id, status=AccountStatus.ACTIVE)
