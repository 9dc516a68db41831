# vpn_bot/services/payment_poller.py - Background settlement polling, one task per order
import asyncio
import logging
from typing import Callable, Dict, List, Set

from config.services_config import PollingConfig
from exceptions import ExternalAPIError, TransientNetworkError

from ..interfaces.chat_transport_interface import IChatTransport
from ..interfaces.payment_gateway_interface import IPaymentGateway
from ..interfaces.provisioning_interface import IProvisioningClient
from ..models.api_models import PaymentStatus
from ..models.session import PendingOrder
from ..translations import get_message as default_get_message
from ..utils.formatting_utils import format_account_message
from .server_info_service import ServerInfoService
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class PaymentPoller:
    """Registry of polling tasks keyed by order id.

    Each task polls the gateway every ``interval`` seconds for at most
    ``max_attempts`` queries. On settlement it creates the account exactly
    once, reports the outcome and clears the payer's session. The order is
    captured by value when the task is spawned so later turns of the same user
    cannot change what gets provisioned.
    """

    def __init__(self, payment_gateway: IPaymentGateway, provisioning: IProvisioningClient,
                 session_store: SessionStore, transport: IChatTransport, server_info: ServerInfoService,
                 polling_config: PollingConfig, lang: str = "en", get_message: Callable = default_get_message):
        self.payment_gateway = payment_gateway
        self.provisioning = provisioning
        self.session_store = session_store
        self.transport = transport
        self.server_info = server_info
        self.polling_config = polling_config
        self.lang = lang
        self.get_message = get_message
        self._tasks: Dict[str, asyncio.Task] = {}
        self._orders: Dict[str, PendingOrder] = {}
        self._provisioning: Set[str] = set()

    def spawn(self, order: PendingOrder) -> bool:
        """Starts polling ``order``; False if a task for its id is already running."""
        existing = self._tasks.get(order.order_id)
        if existing is not None and not existing.done():
            logger.error(f"[POLL] Refusing second polling task for order {order.order_id}")
            return False
        task = asyncio.create_task(self._run(order), name=f"poll-{order.order_id}")
        self._tasks[order.order_id] = task
        self._orders[order.order_id] = order
        logger.info(f"[POLL] Started polling order {order.order_id} for user {order.user_id}")
        return True

    async def cancel(self, order_id: str) -> bool:
        """Stops polling an order without provisioning and tells the payer.

        Returns False for unknown orders and for orders that already settled
        and are being provisioned; those always run to completion.
        """
        task = self._tasks.get(order_id)
        order = self._orders.get(order_id)
        if task is None or task.done() or order is None:
            return False
        if order_id in self._provisioning:
            logger.warning(f"[POLL] Order {order_id} is already being provisioned, not cancelling")
            return False
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        # A task cancelled before its first step never reaches its own cleanup
        self._forget(order_id)
        self.session_store.clear_state(order.user_id)
        await self.transport.send_text(order.chat_id, self.get_message("order_cancelled", self.lang, order_id=order_id))
        logger.info(f"[POLL] Order {order_id} cancelled")
        return True

    def is_provisioning(self, order_id: str) -> bool:
        return order_id in self._provisioning

    def pending_orders(self) -> List[PendingOrder]:
        return [order for order_id, order in self._orders.items() if not self._tasks[order_id].done()]

    def active_count(self) -> int:
        return len(self.pending_orders())

    async def shutdown(self) -> None:
        """Cancels every running task and waits for them; in-flight orders are abandoned."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        if tasks:
            logger.warning(f"[POLL] Abandoning {len(tasks)} pending orders on shutdown: {list(self._orders)}")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._orders.clear()
        self._provisioning.clear()

    async def wait(self, order_id: str) -> None:
        """Waits for an order's task to finish."""
        task = self._tasks.get(order_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def _run(self, order: PendingOrder) -> None:
        try:
            await self._poll(order)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[POLL] Unexpected error while polling order {order.order_id}: {e}", exc_info=True)
            self.session_store.clear_state(order.user_id)
            await self.transport.send_text(order.chat_id, self.get_message("internal_error", self.lang))
        finally:
            self._forget(order.order_id)

    def _forget(self, order_id: str) -> None:
        self._tasks.pop(order_id, None)
        self._orders.pop(order_id, None)
        self._provisioning.discard(order_id)

    async def _poll(self, order: PendingOrder) -> None:
        for attempt in range(1, self.polling_config.max_attempts + 1):
            try:
                result = await self.payment_gateway.query_status(order.order_id, amount=order.amount)
            except TransientNetworkError as e:
                logger.warning(f"[POLL] Order {order.order_id} attempt {attempt}: {e.message}")
            except ExternalAPIError as e:
                logger.warning(f"[POLL] Order {order.order_id} attempt {attempt}: {e.message}")
            else:
                if result.status == PaymentStatus.SETTLED:
                    logger.info(f"[POLL] Order {order.order_id} settled on attempt {attempt}")
                    self._provisioning.add(order.order_id)
                    await self._provision(order)
                    return
                if result.status == PaymentStatus.FAILED:
                    logger.info(f"[POLL] Order {order.order_id} ended with status {result.raw_status!r}")
                    self.session_store.clear_state(order.user_id)
                    await self.transport.send_text(
                        order.chat_id,
                        self.get_message("payment_failed", self.lang, order_id=order.order_id, status=result.raw_status),
                    )
                    return

            if attempt < self.polling_config.max_attempts:
                await asyncio.sleep(self.polling_config.interval)

        logger.info(f"[POLL] Order {order.order_id} timed out after {self.polling_config.max_attempts} attempts")
        self.session_store.clear_state(order.user_id)
        await self.transport.send_text(order.chat_id, self.get_message("payment_timeout", self.lang))

    async def _provision(self, order: PendingOrder) -> None:
        """Creates the paid account once; the session is cleared whatever happens."""
        try:
            account = await self.provisioning.create_account(order.password, order.days)
        except ExternalAPIError as e:
            logger.error(f"[POLL] Provisioning failed for paid order {order.order_id}: {e.message}")
            text = self.get_message(
                "provisioning_failed_after_payment", self.lang, error=e.api_message, order_id=order.order_id
            )
        except TransientNetworkError as e:
            logger.error(f"[POLL] Provisioning unreachable for paid order {order.order_id}: {e.message}")
            text = self.get_message(
                "provisioning_failed_after_payment", self.lang, error=e.error, order_id=order.order_id
            )
        else:
            ip_info = await self.server_info.get_ip_info()
            text = format_account_message(account, ip_info, self.lang)
            logger.info(f"[POLL] Account created for order {order.order_id}, expires {account.expired_at}")
        finally:
            self.session_store.clear_state(order.user_id)
        await self.transport.send_text(order.chat_id, text)
