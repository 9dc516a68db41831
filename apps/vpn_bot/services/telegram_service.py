# vpn_bot/services/telegram_service.py - Telegram implementation of the chat transport
import asyncio
import html
import logging
from typing import Optional

from telegram import Bot
from telegram.error import Forbidden, NetworkError, RetryAfter, TelegramError

from exceptions import TransientNetworkError
from utils.retry import retry_transport_call

from ..interfaces.chat_transport_interface import Buttons, IChatTransport
from ..utils.keyboard_utils import build_inline_keyboard

logger = logging.getLogger(__name__)

# Limits concurrent outgoing requests to Telegram
SEND_SEMAPHORE_SIZE = 5


class TelegramChatTransport(IChatTransport):
    """Sends messages through the bot API.

    Delivery failures are logged and reported as ``None``: a user who blocked
    the bot must not break the flow that is talking to them.
    """

    def __init__(self, bot: Bot, send_semaphore: Optional[asyncio.Semaphore] = None):
        self.bot = bot
        self.send_semaphore = send_semaphore or asyncio.Semaphore(SEND_SEMAPHORE_SIZE)

    async def send_text(self, chat_id: int, text: str, parse_mode: Optional[str] = "HTML",
                        buttons: Optional[Buttons] = None) -> Optional[int]:
        try:
            async with self.send_semaphore:
                message = await self.bot.send_message(
                    chat_id=chat_id,
                    text=text,
                    parse_mode=parse_mode,
                    reply_markup=build_inline_keyboard(buttons),
                    disable_web_page_preview=True,
                )
            return message.message_id
        except RetryAfter as e:
            logger.warning(f"Flood control for chat {chat_id}, retry after {e.retry_after}s; message dropped")
        except Forbidden:
            logger.warning(f"Bot is blocked by chat {chat_id}")
        except TelegramError as e:
            logger.error(f"Failed to send message to {chat_id}: {e}")
        return None

    async def send_photo(self, chat_id: int, photo, caption: str = "",
                         parse_mode: Optional[str] = "HTML") -> Optional[int]:
        try:
            async with self.send_semaphore:
                message = await self.bot.send_photo(chat_id=chat_id, photo=photo, caption=caption, parse_mode=parse_mode)
            return message.message_id
        except Forbidden:
            logger.warning(f"Bot is blocked by chat {chat_id}")
        except TelegramError as e:
            logger.error(f"Failed to send photo to {chat_id}: {e}")
            # The payment code must reach the payer; fall back to a link
            if isinstance(photo, str):
                link = html.escape(photo) if parse_mode == "HTML" else photo
                return await self.send_text(chat_id, f"{caption}\n\n{link}", parse_mode=parse_mode)
        return None

    async def send_document(self, chat_id: int, path: str, caption: str = "") -> Optional[int]:
        try:
            async with self.send_semaphore:
                with open(path, "rb") as f:
                    message = await self.bot.send_document(chat_id=chat_id, document=f, caption=caption)
            return message.message_id
        except OSError as e:
            logger.error(f"Cannot read document {path}: {e}")
        except TelegramError as e:
            logger.error(f"Failed to send document to {chat_id}: {e}")
        return None

    @retry_transport_call
    async def download_document(self, file_ref: str) -> bytes:
        try:
            telegram_file = await self.bot.get_file(file_ref)
            data = await telegram_file.download_as_bytearray()
        except NetworkError as e:
            raise TransientNetworkError("telegram", str(e))
        return bytes(data)
