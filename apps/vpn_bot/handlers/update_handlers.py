# vpn_bot/handlers/update_handlers.py - Translate Telegram updates into inbound events
import logging
from typing import Optional

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from ..models.events import ButtonClick, DocumentUpload, InboundEvent, TextMessage

logger = logging.getLogger(__name__)

CONTAINER_KEY = "container"


def build_event(update: Update) -> Optional[InboundEvent]:
    """Returns the inbound event carried by ``update``, or None if it carries nothing the bot handles."""
    query = update.callback_query
    if query is not None:
        if query.from_user is None or query.message is None:
            return None
        return ButtonClick(user_id=query.from_user.id, chat_id=query.message.chat_id, data=query.data or "")

    message = update.message
    if message is None or message.from_user is None:
        return None
    user_id = message.from_user.id
    if message.document is not None:
        return DocumentUpload(
            user_id=user_id,
            chat_id=message.chat_id,
            file_ref=message.document.file_id,
            file_name=message.document.file_name,
        )
    if message.text is not None:
        return TextMessage.parse(user_id, message.chat_id, message.text)
    return None


async def button_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handler for inline keyboard buttons."""
    try:
        await update.callback_query.answer()
    except TelegramError as e:
        logger.warning(f"Failed to answer callback query: {e}")
    await _dispatch(update, context)


async def message_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handler for text messages, commands and documents."""
    await _dispatch(update, context)


async def _dispatch(update: Update, context: ContextTypes.DEFAULT_TYPE):
    event = build_event(update)
    if event is None:
        logger.debug(f"Ignoring update {update.update_id}")
        return
    container = context.application.bot_data[CONTAINER_KEY]
    await container.conversation_service.process_event(event)
