"""Telegram alerts for failed waits.

When a bot token and chat id are configured, ERROR records from the run
(timeouts, invalid addresses, failed post-check commands) are forwarded to a
Telegram chat so pipelines waiting on services get a notification.

Environment variables (see .env.example):
- TELEGRAM_BOT_TOKEN: Bot token for the Telegram bot
- TELEGRAM_CHAT_ID: Target chat ID (channel/group/user)
- TELEGRAM_PARSE_MODE: Optional ("HTML" or "MarkdownV2")

Telegram caps messages at 4096 characters; longer texts are split and sent
in order.
"""

import logging
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import requests

from tcpwait.config import load_environment

LOGGER = logging.getLogger(__name__)

MAX_MESSAGE_LEN = 4096
API_URL = "https://api.telegram.org/bot{token}/sendMessage"


def chunk_text(text: str, limit: int = MAX_MESSAGE_LEN) -> List[str]:
    """Split ``text`` into chunks of at most ``limit`` characters.

    Breaks at the last newline inside the limit when one exists in its second
    half, otherwise hard-splits.
    """
    chunks: List[str] = []
    remaining = text
    while len(remaining) > limit:
        split_at = remaining.rfind("\n", 0, limit)
        if split_at < limit // 2:
            split_at = limit
        chunks.append(remaining[:split_at])
        remaining = remaining[split_at:].lstrip("\n")
    if remaining or not chunks:
        chunks.append(remaining)
    return chunks


@dataclass(frozen=True)
class TelegramSettings:
    token: str
    chat_id: str
    parse_mode: Optional[str] = None  # "HTML" or "MarkdownV2"


def load_telegram_settings(env_file: Optional[Path] = None) -> Optional[TelegramSettings]:
    """Load Telegram credentials from the merged environment and dotenv file."""
    env_values = load_environment(env_file)
    token = env_values.get("TELEGRAM_BOT_TOKEN")
    chat_id = env_values.get("TELEGRAM_CHAT_ID")
    if not token or not chat_id:
        return None
    return TelegramSettings(
        token=token,
        chat_id=chat_id,
        parse_mode=env_values.get("TELEGRAM_PARSE_MODE") or None,
    )


class TelegramAlerter:
    """Minimal Telegram Bot API client.

    Example:
        alerter = TelegramAlerter.from_env()
        alerter.send_text("tcpwait: db:5432 did not come up")
    """

    def __init__(self, token: str, chat_id: str, *, parse_mode: Optional[str] = None, timeout: float = 10.0) -> None:
        self._url = API_URL.format(token=token)
        self._chat_id = chat_id
        self._parse_mode = parse_mode
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: TelegramSettings) -> "TelegramAlerter":
        return cls(settings.token, settings.chat_id, parse_mode=settings.parse_mode)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "TelegramAlerter":
        """Create an alerter from TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID."""
        settings = load_telegram_settings(env_file)
        if settings is None:
            raise ValueError("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID must be set in environment.")
        return cls.from_settings(settings)

    def send_text(self, text: str) -> bool:
        """Send text, chunking as needed. Returns True if all chunks succeed."""
        ok_all = True
        for chunk in chunk_text(text):
            payload = {"chat_id": self._chat_id, "text": chunk}
            if self._parse_mode:
                payload["parse_mode"] = self._parse_mode
            resp = requests.post(self._url, json=payload, timeout=self._timeout)
            if resp.status_code != 200 or not resp.json().get("ok", False):
                ok_all = False
        return ok_all


class TelegramLogHandler(logging.Handler):
    """Logging handler that forwards ERROR records about a wait to Telegram.

    Messages are prefixed with the app name, the local host name and the run
    id so alerts from several machines can be told apart.
    """

    def __init__(
        self,
        sender,
        *,
        app_name: str = "tcpwait",
        run_id: Optional[str] = None,
        level: int = logging.ERROR,
    ) -> None:
        super().__init__(level=level)
        self._sender = sender
        self._app_name = app_name
        self._run_id = run_id
        self._hostname = socket.gethostname()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._sender.send_text(self.render(record))
        except Exception:  # never raise inside logging
            self.handleError(record)

    def render(self, record: logging.LogRecord) -> str:
        prefix = f"[{record.levelname}] {self._app_name}@{self._hostname}"
        run_id = self._run_id or getattr(record, "run_id", None)
        if run_id:
            prefix += f" [run={run_id}]"
        text = f"{prefix}: {record.getMessage()}"
        if record.exc_info:
            text += "\n\n" + logging.Formatter().formatException(record.exc_info)
        return text


def install_telegram_log_handler_from_env(
    *,
    app_name: str = "tcpwait",
    run_id: Optional[str] = None,
    env_file: Optional[Path] = None,
    level: int = logging.ERROR,
) -> Optional[TelegramLogHandler]:
    """Attach a ``TelegramLogHandler`` to the root logger when configured.

    Returns the installed handler, or None when the settings are missing.
    """
    settings = load_telegram_settings(env_file)
    if settings is None:
        LOGGER.debug("Telegram alerts disabled: missing TELEGRAM_BOT_TOKEN and/or TELEGRAM_CHAT_ID")
        return None

    handler = TelegramLogHandler(
        TelegramAlerter.from_settings(settings),
        app_name=app_name,
        run_id=run_id,
        level=level,
    )
    logging.getLogger().addHandler(handler)
    LOGGER.debug("Telegram alert handler enabled for chat_id=%s", settings.chat_id)
    return handler


__all__ = [
    "TelegramAlerter",
    "TelegramLogHandler",
    "TelegramSettings",
    "chunk_text",
    "install_telegram_log_handler_from_env",
    "load_telegram_settings",
]
