import asyncio
import aiohttp
import logging
from typing import Optional

from telegram import Bot

from config.services_config import ServiceConfig
from .translations import get_message

from .interfaces.chat_transport_interface import IChatTransport
from .interfaces.payment_gateway_interface import IPaymentGateway
from .interfaces.provisioning_interface import IProvisioningClient

from .services.conversation_service import ConversationService
from .services.maintenance_service import MaintenanceService
from .services.payment_gateway_service import PaymentGatewayService
from .services.payment_poller import PaymentPoller
from .services.provisioning_service import ProvisioningService
from .services.scheduler_service import SchedulerService
from .services.server_info_service import ServerInfoService
from .services.session_store import SessionStore
from .services.telegram_service import TelegramChatTransport
from .services.trial_ledger import TrialLedger

logger = logging.getLogger(__name__)


class DIContainer:
    """Dependency Injection Container for the VPN bot services."""

    def __init__(self, config: ServiceConfig):
        self.config = config
        self._services = {}
        self._singletons = {}

        self._singletons['http_session'] = None
        self._singletons['session_store'] = SessionStore()
        self._singletons['trial_ledger'] = TrialLedger(config.trial.ledger_file)
        self._singletons['send_semaphore'] = asyncio.Semaphore(5)
        self._singletons['get_message'] = get_message

    async def initialize(self, bot: Bot, transport: Optional[IChatTransport] = None):
        """Initialize the container and services.

        Loads the trial ledger before anything can read it, so this must run
        before the application starts accepting updates.
        """
        logger.info("Initializing DI Container")

        self._singletons['trial_ledger'].load()
        await self._initialize_http_session()
        http_session = self._singletons['http_session']
        lang = self.config.bot.language

        self._services['transport'] = transport or TelegramChatTransport(bot, self._singletons['send_semaphore'])
        self._services['payment_gateway'] = PaymentGatewayService(http_session, self.config.payment)
        self._services['provisioning'] = ProvisioningService(http_session, self.config.provisioning)
        self._services['server_info'] = ServerInfoService(http_session, self.config.ip_info_url)
        self._services['poller'] = PaymentPoller(
            payment_gateway=self._services['payment_gateway'],
            provisioning=self._services['provisioning'],
            session_store=self._singletons['session_store'],
            transport=self._services['transport'],
            server_info=self._services['server_info'],
            polling_config=self.config.polling,
            lang=lang,
            get_message=self._singletons['get_message'],
        )
        self._services['maintenance'] = MaintenanceService(
            provisioning=self._services['provisioning'],
            transport=self._services['transport'],
            config=self.config.maintenance,
            admin_id=self.config.bot.admin_id,
            lang=lang,
            get_message=self._singletons['get_message'],
        )
        self._services['conversation'] = ConversationService(
            session_store=self._singletons['session_store'],
            trial_ledger=self._singletons['trial_ledger'],
            payment_gateway=self._services['payment_gateway'],
            provisioning=self._services['provisioning'],
            poller=self._services['poller'],
            maintenance=self._services['maintenance'],
            transport=self._services['transport'],
            server_info=self._services['server_info'],
            config=self.config,
            get_message=self._singletons['get_message'],
        )
        self._services['scheduler'] = SchedulerService(maintenance_service=self._services['maintenance'])

        logger.info("DI Container initialized")

    async def _initialize_http_session(self):
        """Initialize HTTP session."""
        if self._singletons['http_session'] is None:
            connector = aiohttp.TCPConnector(limit=100, limit_per_host=30, keepalive_timeout=30, enable_cleanup_closed=True)
            timeout = aiohttp.ClientTimeout(total=30, connect=5)
            self._singletons['http_session'] = aiohttp.ClientSession(
                connector=connector, timeout=timeout, headers={"User-Agent": "ZiVPNBot/1.0"}
            )
            logger.info("HTTP session initialized")

    async def shutdown(self, application=None):
        """Shutdown the container and clean up resources."""
        logger.info("Shutting down DI Container")

        poller = self._services.get('poller')
        if poller is not None:
            await poller.shutdown()

        if self._singletons['http_session']:
            try:
                await self._singletons['http_session'].close()
                self._singletons['http_session'] = None
                logger.info("HTTP session closed")
            except Exception as e:
                logger.error(f"Error closing HTTP session: {e}")

        logger.info("DI Container shut down")

    def get_service(self, service_name: str):
        """Get a service instance."""
        return self._services.get(service_name)

    def get_singleton(self, key: str):
        """Get a singleton value."""
        return self._singletons.get(key)

    # Convenience methods
    @property
    def conversation_service(self) -> ConversationService:
        return self._services['conversation']

    @property
    def scheduler_service(self) -> SchedulerService:
        return self._services['scheduler']

    @property
    def payment_poller(self) -> PaymentPoller:
        return self._services['poller']

    @property
    def payment_gateway(self) -> IPaymentGateway:
        return self._services['payment_gateway']

    @property
    def provisioning(self) -> IProvisioningClient:
        return self._services['provisioning']

    @property
    def session_store(self) -> SessionStore:
        return self._singletons['session_store']

    @property
    def trial_ledger(self) -> TrialLedger:
        return self._singletons['trial_ledger']
