import logging

import pytest
from unittest.mock import MagicMock

from logging_config import setup_logging
from apps.vpn_bot.di_container import DIContainer
from apps.vpn_bot.services.conversation_service import ConversationService
from apps.vpn_bot.services.telegram_service import TelegramChatTransport


class TestDIContainer:
    @pytest.mark.asyncio
    async def test_initialize_wires_services(self, service_config, tmp_path):
        (tmp_path / "trial_users.db").write_text("5\n6\n")
        container = DIContainer(service_config)

        await container.initialize(MagicMock())
        try:
            assert isinstance(container.conversation_service, ConversationService)
            assert isinstance(container.get_service("transport"), TelegramChatTransport)
            assert container.trial_ledger.has_redeemed(5)
            assert container.conversation_service.poller is container.payment_poller
            assert container.get_singleton("http_session") is not None
        finally:
            await container.shutdown()

        assert container.get_singleton("http_session") is None

    @pytest.mark.asyncio
    async def test_custom_transport(self, service_config, transport):
        container = DIContainer(service_config)
        await container.initialize(MagicMock(), transport=transport)
        try:
            assert container.conversation_service.transport is transport
        finally:
            await container.shutdown()


def test_setup_logging_quiets_httpx():
    setup_logging("DEBUG")
    assert logging.getLogger("httpx").level == logging.WARNING
