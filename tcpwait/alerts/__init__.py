"""Alerting integrations.

Currently includes Telegram alerts for failed waits.
"""

from .telegram import (
    TelegramAlerter,
    TelegramLogHandler,
    chunk_text,
    install_telegram_log_handler_from_env,
)

__all__ = [
    "TelegramAlerter",
    "TelegramLogHandler",
    "chunk_text",
    "install_telegram_log_handler_from_env",
]
