# vpn_bot/services/provisioning_service.py - Account provisioning API client
import logging
from typing import Dict, List

import aiohttp
from pydantic import ValidationError

from config.services_config import ProvisioningConfig
from exceptions import ExternalAPIError, MalformedResponseError
from utils.retry import retry_api_call

from ..interfaces.provisioning_interface import IProvisioningClient
from ..models.api_models import AccountRecord, AccountResult, CreatedAccountData, ProvisioningResponse
from .api_client_service import APIClientService

logger = logging.getLogger(__name__)


class ProvisioningService(APIClientService, IProvisioningClient):
    """Client for the VPN backend's user management API."""

    service_name = "provisioning"

    def __init__(self, http_session: aiohttp.ClientSession, config: ProvisioningConfig):
        super().__init__(http_session, config.api_url, config.request_timeout)
        self.config = config

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["X-API-Key"] = self.config.api_key
        return headers

    async def _call(self, method: str, endpoint: str, **kwargs) -> ProvisioningResponse:
        payload = await self._request(method, endpoint, **kwargs)
        response = self._parse(ProvisioningResponse, payload)
        if not response.success:
            raise ExternalAPIError(self.service_name, response.message or "unknown error")
        return response

    # Not retried: a repeated call would create a second account
    async def create_account(self, password: str, days: int) -> AccountResult:
        logger.info(f"Creating account for {days} days")
        response = await self._call("POST", "/user/create", json_body={"password": password, "days": days})
        data = self._parse(CreatedAccountData, response.data)
        return AccountResult(password=password, expired_at=data.expired)

    @retry_api_call
    async def delete_account(self, password: str) -> None:
        await self._call("POST", "/user/delete", json_body={"password": password})

    @retry_api_call
    async def list_accounts(self) -> List[AccountRecord]:
        response = await self._call("GET", "/users")
        if response.data is None:
            return []
        if not isinstance(response.data, list):
            raise MalformedResponseError(self.service_name, "'data' is not a list")
        try:
            return [AccountRecord.model_validate(item) for item in response.data]
        except ValidationError as e:
            raise MalformedResponseError(self.service_name, str(e))
