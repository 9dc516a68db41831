# vpn_bot/__main__.py - Main bot application
#
# Required environment variables (or BOT_CONFIG_FILE with bot_token/admin_id):
# - BOT_TOKEN: Telegram bot token from @BotFather
# - ADMIN_ID: Telegram user id of the administrator
#
# Optional environment variables:
# - PAYMENT_PROJECT / PAYMENT_API_KEY: payment gateway credentials
# - PROVISIONING_API_URL / PROVISIONING_API_KEY(_FILE): VPN backend API
# - WEBHOOK_URL: public webhook URL; long polling is used when it is not set
# - LOG_LEVEL: logging level (default: INFO)
import logging
import os
import sys

from telegram.ext import Application, CallbackQueryHandler, MessageHandler, filters

from config.services_config import get_service_config
from exceptions import ConfigurationException
from logging_config import setup_logging

from .di_container import DIContainer
from .handlers.error_handlers import error_handler
from .handlers.update_handlers import CONTAINER_KEY, button_handler, message_handler

logger = logging.getLogger(__name__)


def build_application(config) -> Application:
    container = DIContainer(config)

    async def post_init(application: Application) -> None:
        await container.initialize(application.bot)
        application.bot_data[CONTAINER_KEY] = container

        job_queue = application.job_queue
        if job_queue:
            maintenance = config.maintenance
            job_queue.run_repeating(
                container.scheduler_service.expiry_sweep_task,
                interval=maintenance.expiry_sweep_interval,
                first=maintenance.expiry_sweep_first_delay,
            )
            job_queue.run_repeating(
                container.scheduler_service.backup_task,
                interval=maintenance.backup_interval,
                first=maintenance.backup_first_delay,
            )
            logger.info(f"Registered expiry sweep task (every {maintenance.expiry_sweep_interval} seconds)")
            logger.info(f"Registered backup task (every {maintenance.backup_interval} seconds)")
        else:
            logger.warning("JobQueue is not available, maintenance jobs are disabled")

    async def post_stop(application: Application) -> None:
        logger.info("Stopping application and closing resources...")
        await container.shutdown()
        logger.info("All resources freed")

    application = (
        Application.builder()
        .token(config.bot.bot_token)
        .concurrent_updates(True)
        .post_init(post_init)
        .post_stop(post_stop)
        .build()
    )
    application.add_handler(CallbackQueryHandler(button_handler))
    application.add_handler(MessageHandler(filters.TEXT | filters.Document.ALL, message_handler))
    application.add_error_handler(error_handler)
    return application


def main():
    setup_logging()
    logger.info("=== BOT STARTUP BEGINNING ===")
    logger.info(f"Python version: {sys.version}")
    logger.info(f"Current working directory: {os.getcwd()}")

    try:
        config = get_service_config()
        config.validate()
    except ConfigurationException as e:
        logger.error(e.message)
        logger.error("Set BOT_TOKEN and ADMIN_ID in the environment or point BOT_CONFIG_FILE at the bot config.")
        sys.exit(1)

    logger.info(f"Admin id configured: {'Yes' if config.bot.admin_id else 'No'}")
    application = build_application(config)

    try:
        if config.bot.webhook_url:
            logger.info("Bot started in Webhook mode")
            application.run_webhook(**config.bot.webhook_config)
        else:
            logger.info("Bot started in polling mode")
            application.run_polling()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Interrupted by user or system...")
    except Exception as e:
        logger.error(f"Error: {e}")
        raise


if __name__ == "__main__":
    main()
