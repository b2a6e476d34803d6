"""Account provisioning port - remote billing account creation."""

from abc import ABC, abstractmethod

from ..domain.models import ProvisionedAccount


class AccountProvisioningPort(ABC):
    """Abstract client for the external billing system.

    The remote call is not idempotent: invoking it twice for one subject
    may open two accounts. Callers invoke it at most once per successful
    local create and never retry it.
    """

    @abstractmethod
    async def create_account(self, subject_id: str, name: str, email: str) -> ProvisionedAccount:
        """Open a billing account for a subject.

        Raises:
            ProvisioningError: Transport failure, timeout or remote rejection.
        """
        ...
