# vpn_bot/services/payment_gateway_service.py - QRIS payment gateway client
import logging
from typing import Dict, Optional

import aiohttp

from config.services_config import PaymentConfig
from exceptions import ExternalAPIError, MalformedResponseError

from ..interfaces.payment_gateway_interface import IPaymentGateway
from ..models.api_models import ChargeResponse, ChargeResult, PaymentStatus, StatusResponse, StatusResult
from .api_client_service import APIClientService

logger = logging.getLogger(__name__)


class PaymentGatewayService(APIClientService, IPaymentGateway):
    """Client for the payment provider's create-transaction and status RPCs."""

    service_name = "payment"

    def __init__(self, http_session: aiohttp.ClientSession, config: PaymentConfig):
        super().__init__(http_session, config.base_url, config.request_timeout)
        self.config = config

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def initiate_charge(self, order_id: str, amount: int) -> ChargeResult:
        body = {
            "project": self.config.project,
            "order_id": order_id,
            "amount": amount,
        }
        if self.config.api_key:
            body["api_key"] = self.config.api_key

        logger.info(f"[PAYMENT] Creating {self.config.method} transaction {order_id} for {amount}")
        payload = await self._request("POST", f"/transactioncreate/{self.config.method}", json_body=body)
        response = self._parse(ChargeResponse, payload)

        if response.payment is None:
            error = response.error or response.message
            if error:
                raise ExternalAPIError(self.service_name, error)
            raise MalformedResponseError(self.service_name, "response has no 'payment' object")

        if response.payment.qris_image:
            code, is_image = response.payment.qris_image, True
        elif response.payment.payment_number:
            code, is_image = response.payment.payment_number, False
        else:
            raise MalformedResponseError(self.service_name, "payment has neither 'qris_image' nor 'payment_number'")

        return ChargeResult(
            order_id=order_id,
            amount=amount,
            payment_code=code,
            is_image=is_image,
            expires_at=response.payment.expired_at,
        )

    async def query_status(self, order_id: str, amount: Optional[int] = None) -> StatusResult:
        params = {"project": self.config.project, "order_id": order_id}
        if amount is not None:
            params["amount"] = amount
        if self.config.api_key:
            params["api_key"] = self.config.api_key

        payload = await self._request("GET", "/transactiondetail", params=params)
        response = self._parse(StatusResponse, payload)

        if response.transaction is not None:
            raw_status = response.transaction.status
        elif response.status is not None:
            raw_status = response.status
        else:
            error = response.error or response.message
            if error:
                raise ExternalAPIError(self.service_name, error)
            raise MalformedResponseError(self.service_name, "response carries no status")

        status = PaymentStatus.from_raw(raw_status)
        logger.debug(f"[PAYMENT] Order {order_id} status {raw_status!r} -> {status.value}")
        return StatusResult(order_id=order_id, status=status, raw_status=raw_status)
