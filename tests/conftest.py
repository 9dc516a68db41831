import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from config.services_config import (
    BotConfig,
    MaintenanceConfig,
    PaymentConfig,
    PollingConfig,
    ProvisioningConfig,
    ServiceConfig,
    TrialConfig,
)
from apps.vpn_bot.services.server_info_service import IpInfo

ADMIN_ID = 999


class AsyncContextManagerMock:
    """A mock that can be used as an async context manager"""
    def __init__(self, return_value=None, enter_exception=None):
        self.return_value = return_value
        self.enter_exception = enter_exception

    async def __aenter__(self):
        if self.enter_exception is not None:
            raise self.enter_exception
        return self.return_value

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


def make_response(status=200, body=None, text=None):
    """Create a mocked aiohttp response with a JSON (or raw text) body"""
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text if text is not None else json.dumps(body))
    response.json = AsyncMock(return_value=body)
    return response


def make_http_session(*responses):
    """Create a mocked aiohttp session whose request()/get() yield ``responses`` in order"""
    session = MagicMock()
    context_managers = [
        r if isinstance(r, AsyncContextManagerMock) else AsyncContextManagerMock(r) for r in responses
    ]
    session.request = MagicMock(side_effect=context_managers)
    session.get = MagicMock(side_effect=list(context_managers))
    return session


class FakeTransport:
    """Chat transport that records everything sent"""

    def __init__(self):
        self.send_text = AsyncMock(return_value=1)
        self.send_photo = AsyncMock(return_value=2)
        self.send_document = AsyncMock(return_value=3)
        self.download_document = AsyncMock(return_value=b"")

    def texts_to(self, chat_id):
        return [c.args[1] for c in self.send_text.call_args_list if c.args[0] == chat_id]

    def all_texts(self):
        return [c.args[1] for c in self.send_text.call_args_list]


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def server_info():
    info = MagicMock()
    info.get_ip_info = AsyncMock(return_value=IpInfo(city="Jakarta", isp="AS123 Example Net"))
    info.uptime_seconds = MagicMock(return_value=3725)
    return info


@pytest.fixture
def service_config(tmp_path):
    """Configuration with fast polling and files under tmp_path"""
    return ServiceConfig(
        bot=BotConfig(bot_token="123:abc", admin_id=ADMIN_ID),
        payment=PaymentConfig(project="zivpn", price_per_day=1000, min_purchase_days=7),
        provisioning=ProvisioningConfig(api_key="secret"),
        trial=TrialConfig(days=1, ledger_file=str(tmp_path / "trial_users.db")),
        polling=PollingConfig(interval=0, max_attempts=5),
        maintenance=MaintenanceConfig(backup_dir=str(tmp_path / "backups")),
    )
