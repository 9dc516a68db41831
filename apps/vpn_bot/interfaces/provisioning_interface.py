from abc import ABC, abstractmethod
from typing import List

from ..models.api_models import AccountRecord, AccountResult


class IProvisioningClient(ABC):
    @abstractmethod
    async def create_account(self, password: str, days: int) -> AccountResult:
        """Creates a timed account. Not idempotent: every call creates an account."""
        pass

    @abstractmethod
    async def delete_account(self, password: str) -> None:
        """Deletes the account identified by its password."""
        pass

    @abstractmethod
    async def list_accounts(self) -> List[AccountRecord]:
        """Lists all accounts known to the backend."""
        pass
