# vpn_bot/services/api_client_service.py - Shared JSON-over-HTTP plumbing
import asyncio
import json
import logging
from typing import Any, Dict, Optional, Type, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError

from exceptions import MalformedResponseError, TransientNetworkError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class APIClientService:
    """Base for services talking to a JSON HTTP API over a shared aiohttp session.

    Connection problems, timeouts and 5xx answers become
    ``TransientNetworkError``; a body that is not JSON becomes
    ``MalformedResponseError``. 4xx bodies are returned so the caller can read
    the backend's own error message.
    """

    service_name = "api"

    def __init__(self, http_session: aiohttp.ClientSession, base_url: str, request_timeout: int = 15):
        self.http_session = http_session
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout

    def _headers(self) -> Dict[str, str]:
        return {}

    async def _request(self, method: str, endpoint: str, params: Optional[Dict[str, Any]] = None,
                       json_body: Optional[Dict[str, Any]] = None) -> Any:
        """Performs a request and returns the decoded JSON body."""
        if self.http_session is None:
            raise RuntimeError("HTTP session not initialized")

        url = f"{self.base_url}{endpoint}"
        timeout = aiohttp.ClientTimeout(total=self.request_timeout, connect=5)
        try:
            async with self.http_session.request(
                method, url, params=params, json=json_body, headers=self._headers(), timeout=timeout
            ) as response:
                text = await response.text()
                if response.status >= 500:
                    logger.error(f"{self.service_name} {endpoint} returned status {response.status}: {text[:200]}")
                    raise TransientNetworkError(self.service_name, f"HTTP {response.status}")
                if response.status >= 400:
                    logger.warning(f"{self.service_name} {endpoint} returned status {response.status}: {text[:200]}")
        except asyncio.TimeoutError:
            logger.error(f"Timeout error calling {self.service_name} {endpoint}")
            raise TransientNetworkError(self.service_name, "request timed out")
        except aiohttp.ClientError as e:
            logger.error(f"Failed to call {self.service_name} {endpoint}: {e}")
            raise TransientNetworkError(self.service_name, str(e))

        try:
            return json.loads(text)
        except ValueError:
            raise MalformedResponseError(self.service_name, f"body is not JSON: {text[:200]!r}")

    def _parse(self, model: Type[M], payload: Any) -> M:
        """Validates a decoded body against ``model``."""
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise MalformedResponseError(self.service_name, str(e))
