# vpn_bot/handlers/error_handlers.py - Error handlers
import logging

from telegram.error import BadRequest, Forbidden, NetworkError
from telegram.ext import ContextTypes

logger = logging.getLogger(__name__)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Logs errors raised outside the conversation core."""
    if isinstance(context.error, NetworkError):
        logger.error(f"Network error talking to Telegram: {context.error}")
    elif isinstance(context.error, BadRequest):
        if "Query is too old" in str(context.error):
            logger.warning("Ignoring outdated callback query")
            return
        logger.error(f"Bad request error: {context.error}")
    elif isinstance(context.error, Forbidden):
        logger.warning(f"Bot was blocked: {context.error}")
    else:
        logger.error(f"Unhandled error: {context.error}", exc_info=context.error)
