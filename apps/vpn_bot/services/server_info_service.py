# vpn_bot/services/server_info_service.py - Server location and uptime
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

import aiohttp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IpInfo:
    city: str
    isp: str


UNKNOWN_IP_INFO = IpInfo(city="Unknown", isp="Unknown")


class ServerInfoService:
    """Looks up where the VPN server is hosted; the answer is cached once known."""

    def __init__(self, http_session: aiohttp.ClientSession, url: str = "https://ipinfo.io/json"):
        self.http_session = http_session
        self.url = url
        self.started_at = time.time()
        self._ip_info: Optional[IpInfo] = None

    async def get_ip_info(self) -> IpInfo:
        if self._ip_info is not None:
            return self._ip_info
        try:
            timeout = aiohttp.ClientTimeout(total=5)
            async with self.http_session.get(self.url, timeout=timeout) as response:
                if response.status != 200:
                    logger.warning(f"IP info lookup returned status {response.status}")
                    return UNKNOWN_IP_INFO
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"IP info lookup failed: {e}")
            return UNKNOWN_IP_INFO

        if not isinstance(data, dict):
            return UNKNOWN_IP_INFO
        self._ip_info = IpInfo(
            city=data.get("city") or "Unknown",
            isp=data.get("org") or data.get("isp") or "Unknown",
        )
        return self._ip_info

    def uptime_seconds(self) -> int:
        return int(time.time() - self.started_at)
