from abc import ABC, abstractmethod
from typing import Optional

from ..models.api_models import ChargeResult, StatusResult


class IPaymentGateway(ABC):
    @abstractmethod
    async def initiate_charge(self, order_id: str, amount: int) -> ChargeResult:
        """Creates a payment for the order and returns the code to show the payer."""
        pass

    @abstractmethod
    async def query_status(self, order_id: str, amount: Optional[int] = None) -> StatusResult:
        """Returns the current status of the order's payment."""
        pass
