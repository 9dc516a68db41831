# vpn_bot/services/conversation_service.py - Per-user conversation state machine
import logging
import time
from typing import Awaitable, Callable, Dict, Union

from config.services_config import ServiceConfig
from exceptions import DuplicateRedemptionError, ExternalAPIError, TransientNetworkError, UserInputError

from ..interfaces.chat_transport_interface import IChatTransport
from ..interfaces.payment_gateway_interface import IPaymentGateway
from ..interfaces.provisioning_interface import IProvisioningClient
from ..models.events import ButtonClick, DocumentUpload, InboundEvent, TextMessage
from ..models.session import ConversationState, FlowKind, PendingOrder
from ..translations import get_message as default_get_message
from ..utils.formatting_utils import deadline_minutes, format_account_message, format_duration, format_list
from ..utils.keyboard_utils import (
    BUTTON_ADMIN_BACKUP,
    BUTTON_ADMIN_RESTORE,
    BUTTON_INFO,
    BUTTON_PAID,
    BUTTON_TRIAL,
    get_main_menu_buttons,
)
from .maintenance_service import MaintenanceService
from .payment_poller import PaymentPoller
from .server_info_service import ServerInfoService
from .session_store import SessionStore
from .trial_ledger import TrialLedger

logger = logging.getLogger(__name__)

# Turn that is either a text message or a button press
Turn = Union[TextMessage, ButtonClick]
Handler = Callable[..., Awaitable[None]]

ADMIN_COMMANDS = frozenset({"restore", "backup", "cancelorder", "orders"})
# Commands that still act as commands while a form field is expected
FLOW_COMMANDS = frozenset({"start", "menu", "panel", "trial", "create", "cancel"})
FORM_STATES = frozenset({ConversationState.AWAITING_PASSWORD, ConversationState.AWAITING_DAYS})


class ConversationService:
    """Interprets inbound chat events against each user's session.

    Buttons are dispatched whatever the current state. While a form field is
    expected, any text other than a flow command is that field, even if it
    starts with a slash. ``process_event`` never raises: failures end up as a
    message to the user who caused them.
    """

    def __init__(self, session_store: SessionStore, trial_ledger: TrialLedger, payment_gateway: IPaymentGateway,
                 provisioning: IProvisioningClient, poller: PaymentPoller, maintenance: MaintenanceService,
                 transport: IChatTransport, server_info: ServerInfoService, config: ServiceConfig,
                 get_message: Callable = default_get_message):
        self.session_store = session_store
        self.trial_ledger = trial_ledger
        self.payment_gateway = payment_gateway
        self.provisioning = provisioning
        self.poller = poller
        self.maintenance = maintenance
        self.transport = transport
        self.server_info = server_info
        self.config = config
        self.get_message = get_message
        self.lang = config.bot.language
        self.admin_id = config.bot.admin_id

        self._state_handlers: Dict[ConversationState, Handler] = {
            ConversationState.AWAITING_PASSWORD: self._on_password,
            ConversationState.AWAITING_DAYS: self._on_days,
            ConversationState.AWAITING_PAYMENT: self._on_payment_text,
            ConversationState.AWAITING_RESTORE_FILE: self._on_restore_text,
        }
        unhandled = set(ConversationState) - {ConversationState.IDLE} - set(self._state_handlers)
        if unhandled:
            raise RuntimeError(f"No text handler for states: {sorted(s.value for s in unhandled)}")

        self._commands: Dict[str, Handler] = {
            "start": self._show_menu,
            "menu": self._show_menu,
            "panel": self._show_menu,
            "trial": self._begin_trial,
            "create": self._begin_paid,
            "info": self._show_info,
            "cancel": self._cancel,
            "restore": self._begin_restore,
            "backup": self._run_backup,
            "cancelorder": self._cancel_order,
            "orders": self._list_orders,
        }
        self._buttons: Dict[str, Handler] = {
            BUTTON_TRIAL: self._begin_trial,
            BUTTON_PAID: self._begin_paid,
            BUTTON_INFO: self._show_info,
            BUTTON_ADMIN_BACKUP: self._run_backup,
            BUTTON_ADMIN_RESTORE: self._begin_restore,
        }

    def is_admin(self, user_id: int) -> bool:
        return bool(self.admin_id) and user_id == self.admin_id

    async def process_event(self, event: InboundEvent) -> None:
        """Single entry point for one inbound chat event."""
        try:
            if isinstance(event, ButtonClick):
                await self._on_button(event)
            elif isinstance(event, DocumentUpload):
                await self._on_document(event)
            elif event.is_command:
                await self._on_command(event)
            else:
                await self._on_text(event)
        except Exception as e:
            logger.error(f"Error processing {type(event).__name__} from user {event.user_id}: {e}", exc_info=True)
            await self._reply(event, "internal_error")

    async def _reply(self, event: InboundEvent, key: str, **kwargs) -> None:
        await self.transport.send_text(event.chat_id, self.get_message(key, self.lang, **kwargs))

    # Dispatch

    async def _on_command(self, event: TextMessage) -> None:
        if event.command not in FLOW_COMMANDS:
            state, _ = self.session_store.get_state(event.user_id)
            if state in FORM_STATES:
                await self._state_handlers[state](event)
                return
        handler = self._commands.get(event.command)
        if handler is None:
            await self._reply(event, "unknown_command")
            return
        if event.command in ADMIN_COMMANDS and not self.is_admin(event.user_id):
            await self._reply(event, "admin_only")
            return
        await handler(event)

    async def _on_button(self, event: ButtonClick) -> None:
        handler = self._buttons.get(event.data)
        if handler is None:
            await self._reply(event, "unknown_option")
            return
        if event.data in (BUTTON_ADMIN_BACKUP, BUTTON_ADMIN_RESTORE) and not self.is_admin(event.user_id):
            await self._reply(event, "admin_only")
            return
        await handler(event)

    async def _on_text(self, event: TextMessage) -> None:
        state, found = self.session_store.get_state(event.user_id)
        if not found:
            await self._reply(event, "use_start")
            return
        await self._state_handlers[state](event)

    # Menu and info

    async def _show_menu(self, event: Turn) -> None:
        buttons = get_main_menu_buttons(self.lang, self.is_admin(event.user_id), self.config.trial.days)
        await self.transport.send_text(event.chat_id, self.get_message("welcome", self.lang), buttons=buttons)

    async def _show_info(self, event: Turn) -> None:
        ip_info = await self.server_info.get_ip_info()
        text = self.get_message(
            "system_info", self.lang,
            uptime=format_duration(self.server_info.uptime_seconds()),
            city=ip_info.city,
            isp=ip_info.isp,
            price=self.config.payment.price_per_day,
            min_days=self.config.payment.min_purchase_days,
        )
        if self.is_admin(event.user_id):
            text += "\n\n" + self.get_message(
                "system_info_admin", self.lang,
                sessions=self.session_store.active_count(),
                orders=self.poller.active_count(),
                trials=self.trial_ledger.count(),
            )
        await self.transport.send_text(event.chat_id, text)

    async def _refuse_pending_payment(self, event: Turn) -> None:
        order_id = self.session_store.get_form(event.user_id).get("order_id", "")
        await self._reply(event, "payment_pending", order_id=order_id)

    async def _cancel(self, event: TextMessage) -> None:
        state, found = self.session_store.get_state(event.user_id)
        if not found:
            await self._reply(event, "nothing_to_cancel")
            return
        if state == ConversationState.AWAITING_PAYMENT:
            await self._refuse_pending_payment(event)
            return
        self.session_store.clear_state(event.user_id)
        await self._reply(event, "cancelled")

    # Trial flow

    async def _begin_trial(self, event: Turn) -> None:
        if self.is_admin(event.user_id):
            await self._reply(event, "admin_no_trial")
            return
        if not self.session_store.start_flow(event.user_id, ConversationState.AWAITING_PASSWORD, FlowKind.TRIAL):
            await self._refuse_pending_payment(event)
            return
        if self.trial_ledger.has_redeemed(event.user_id):
            self.session_store.clear_state(event.user_id)
            await self._reply(event, "trial_already_used")
            return
        await self._reply(event, "trial_enter_password")

    async def _complete_trial(self, event: TextMessage, password: str) -> None:
        user_id = event.user_id
        # Taking the session makes a concurrent second password turn a no-op
        if self.session_store.take(user_id, ConversationState.AWAITING_PASSWORD, FlowKind.TRIAL) is None:
            return
        try:
            self._reserve_trial(user_id)
        except DuplicateRedemptionError as e:
            logger.info(f"[TRIAL] {e.message}")
            await self._reply(event, "trial_already_used")
            return

        try:
            account = await self.provisioning.create_account(password, self.config.trial.days)
        except ExternalAPIError as e:
            self.trial_ledger.release(user_id)
            logger.warning(f"[TRIAL] Provisioning refused trial of user {user_id}: {e.api_message}")
            await self._reply(event, "provisioning_failed", error=e.api_message)
            return
        except TransientNetworkError as e:
            self.trial_ledger.release(user_id)
            logger.warning(f"[TRIAL] {e.message}")
            await self._reply(event, "provisioning_unreachable")
            return
        except BaseException:
            self.trial_ledger.release(user_id)
            raise

        self.trial_ledger.mark_redeemed(user_id)
        ip_info = await self.server_info.get_ip_info()
        await self.transport.send_text(
            event.chat_id, format_account_message(account, ip_info, self.lang, trial=True)
        )

    def _reserve_trial(self, user_id: int) -> None:
        if not self.trial_ledger.reserve(user_id):
            raise DuplicateRedemptionError(user_id)

    # Paid flow

    async def _begin_paid(self, event: Turn) -> None:
        if self.is_admin(event.user_id):
            await self._reply(event, "admin_use_menu")
            return
        if not self.session_store.start_flow(event.user_id, ConversationState.AWAITING_PASSWORD, FlowKind.PAID):
            await self._refuse_pending_payment(event)
            return
        await self._reply(event, "paid_enter_password", min_days=self.config.payment.min_purchase_days)

    async def _on_password(self, event: TextMessage) -> None:
        password = event.text
        if not password.strip():
            await self._reply(event, "empty_password")
            return

        session = self.session_store.get_session(event.user_id)
        if session is None:
            return
        if session.flow == FlowKind.TRIAL:
            await self._complete_trial(event, password)
            return
        if self.session_store.advance(
            event.user_id, ConversationState.AWAITING_PASSWORD, ConversationState.AWAITING_DAYS, password=password
        ):
            await self._reply(event, "enter_days", min_days=self.config.payment.min_purchase_days)

    def parse_days(self, text: str) -> int:
        """Parses the day count; raises UserInputError if it is not an integer >= the minimum."""
        minimum = self.config.payment.min_purchase_days
        value = text.strip()
        if not (value.isascii() and value.isdigit()):
            raise UserInputError("days", text, "not an integer")
        days = int(value)
        if days < minimum:
            raise UserInputError("days", text, f"below the minimum of {minimum}")
        return days

    def new_order_id(self, user_id: int) -> str:
        return f"{self.config.bot.order_prefix}_{int(time.time() * 1000)}_{user_id}"

    async def _on_days(self, event: TextMessage) -> None:
        try:
            days = self.parse_days(event.text)
        except UserInputError as e:
            logger.debug(f"User {event.user_id}: {e.message}")
            await self._reply(event, "invalid_days", min_days=self.config.payment.min_purchase_days)
            return
        await self._start_payment(event, days)

    async def _start_payment(self, event: TextMessage, days: int) -> None:
        user_id = event.user_id
        amount = days * self.config.payment.price_per_day
        order_id = self.new_order_id(user_id)
        if not self.session_store.advance(
            user_id, ConversationState.AWAITING_DAYS, ConversationState.AWAITING_PAYMENT,
            days=str(days), order_id=order_id,
        ):
            return
        # The form cannot change any more once the session awaits payment
        password = self.session_store.get_form(user_id).get("password", "")

        spawned = False
        try:
            try:
                charge = await self.payment_gateway.initiate_charge(order_id, amount)
            except (TransientNetworkError, ExternalAPIError) as e:
                logger.error(f"[PAYMENT] Initiating order {order_id} failed: {e.message}")
            else:
                minutes = deadline_minutes(self.config.polling.deadline_seconds)
                if charge.is_image:
                    caption = self.get_message(
                        "payment_caption", self.lang, amount=amount, days=days, order_id=order_id, minutes=minutes
                    )
                    await self.transport.send_photo(event.chat_id, charge.payment_code, caption=caption)
                else:
                    await self._reply(
                        event, "payment_code_text",
                        amount=amount, days=days, code=charge.payment_code, order_id=order_id, minutes=minutes,
                    )

                order = PendingOrder(
                    order_id=order_id, user_id=user_id, chat_id=event.chat_id,
                    amount=amount, password=password, days=days,
                )
                spawned = self.poller.spawn(order)
        finally:
            # A session awaiting payment must always have a polling task behind it
            if not spawned:
                self.session_store.clear_state(user_id)

        if not spawned:
            await self._reply(event, "payment_init_failed")

    async def _on_payment_text(self, event: TextMessage) -> None:
        await self._refuse_pending_payment(event)

    # Restore flow (administrator)

    async def _begin_restore(self, event: Turn) -> None:
        if not self.session_store.start_flow(event.user_id, ConversationState.AWAITING_RESTORE_FILE, FlowKind.RESTORE):
            await self._refuse_pending_payment(event)
            return
        await self._reply(event, "restore_prompt")

    async def _on_restore_text(self, event: TextMessage) -> None:
        await self._reply(event, "restore_send_file")

    async def _on_document(self, event: DocumentUpload) -> None:
        state, _ = self.session_store.get_state(event.user_id)
        if not self.is_admin(event.user_id) or state != ConversationState.AWAITING_RESTORE_FILE:
            await self._reply(event, "restore_rejected")
            return

        try:
            payload = await self.transport.download_document(event.file_ref)
        except TransientNetworkError as e:
            logger.warning(f"[MAINTENANCE] {e.message}")
            await self._reply(event, "restore_download_failed")
            return

        try:
            result = await self.maintenance.restore_from_snapshot(payload)
        except UserInputError as e:
            await self._reply(event, "restore_invalid", error=e.error)
            return

        self.session_store.clear_state(event.user_id)
        await self._reply(event, "restore_done", restored=result.restored, skipped=result.skipped, failed=result.failed)

    # Other administrator commands

    async def _run_backup(self, event: Turn) -> None:
        await self.maintenance.run_backup_cycle()

    async def _cancel_order(self, event: TextMessage) -> None:
        if not event.args:
            await self._reply(event, "cancelorder_usage")
            return
        order_id = event.args[0]
        if await self.poller.cancel(order_id):
            await self._reply(event, "order_cancelled_admin", order_id=order_id)
        elif self.poller.is_provisioning(order_id):
            await self._reply(event, "order_settling", order_id=order_id)
        else:
            await self._reply(event, "order_not_found", order_id=order_id)

    async def _list_orders(self, event: TextMessage) -> None:
        orders = self.poller.pending_orders()
        if not orders:
            await self._reply(event, "no_orders")
            return
        lines = [f"{order.order_id} ({order.days}d, Rp {order.amount})" for order in orders]
        await self._reply(event, "orders_list", orders=format_list(lines))
