import logging
import os
import sys


def setup_logging(level: str = None):
    """Global logging setup for the entire application."""
    level = level or os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),  # Convert string to level
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),  # Output to stderr for systemd/journalctl
        ],
    )
    # python-telegram-bot logs every getUpdates round trip through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
