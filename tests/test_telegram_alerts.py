import logging
from typing import List

import pytest

from tcpwait.alerts import telegram as telegram_mod
from tcpwait.alerts.telegram import (
    TelegramAlerter,
    TelegramLogHandler,
    chunk_text,
    install_telegram_log_handler_from_env,
    load_telegram_settings,
)


class DummySender:
    def __init__(self) -> None:
        self.messages: List[str] = []

    def send_text(self, text: str) -> bool:
        self.messages.append(text)
        return True


class DummyResp:
    def __init__(self, status_code=200, ok=True):
        self.status_code = status_code
        self._ok = ok

    def json(self):
        return {"ok": self._ok}


@pytest.fixture
def no_telegram_env(monkeypatch):
    for key in ("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID", "TELEGRAM_PARSE_MODE"):
        monkeypatch.delenv(key, raising=False)


def test_chunk_text_prefers_newlines():
    text = "line1\n" + ("x" * 4090) + "\nline3"
    chunks = chunk_text(text)
    assert len(chunks) >= 2
    assert all(len(c) <= 4096 for c in chunks)
    assert "line1" in chunks[0]
    assert "line3" in chunks[-1]


def test_chunk_text_short_and_empty():
    assert chunk_text("timeout error") == ["timeout error"]
    assert chunk_text("") == [""]


def test_log_handler_forwards_wait_failures():
    sender = DummySender()
    handler = TelegramLogHandler(sender, app_name="deploy-gate", run_id="r1")

    logger = logging.getLogger("tests.telegram")
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("successfully connected to 127.0.0.1:5432")
    logger.error("timeout error")

    assert len(sender.messages) == 1
    message = sender.messages[0]
    assert message.startswith("[ERROR] deploy-gate@")
    assert "[run=r1]" in message
    assert message.endswith(": timeout error")


def test_log_handler_includes_traceback():
    sender = DummySender()
    handler = TelegramLogHandler(sender)
    logger = logging.getLogger("tests.telegram.tb")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("command failed")

    sent = "\n".join(sender.messages)
    assert "command failed" in sent
    assert "Traceback" in sent and "RuntimeError: boom" in sent


def test_alerter_chunks_and_calls_requests(monkeypatch):
    calls = []

    def fake_post(url, json, timeout):  # noqa: A002 - shadow builtins in test OK
        calls.append((url, json, timeout))
        return DummyResp()

    monkeypatch.setattr(telegram_mod.requests, "post", fake_post)

    alerter = TelegramAlerter(token="tkn", chat_id="cid", parse_mode="HTML")
    assert alerter.send_text("A" * 5000) is True
    assert len(calls) == 2
    assert calls[0][0] == "https://api.telegram.org/bottkn/sendMessage"
    assert calls[0][1]["parse_mode"] == "HTML"


def test_alerter_reports_api_failure(monkeypatch):
    monkeypatch.setattr(telegram_mod.requests, "post", lambda url, json, timeout: DummyResp(ok=False))
    assert TelegramAlerter(token="tkn", chat_id="cid").send_text("timeout error") is False


def test_load_telegram_settings_reads_dotenv(tmp_path, no_telegram_env):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "\n".join(
            [
                "TELEGRAM_BOT_TOKEN=dot_token",
                "TELEGRAM_CHAT_ID=dot_chat",
                "TELEGRAM_PARSE_MODE=MarkdownV2",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_telegram_settings(env_file=env_file)
    assert settings is not None
    assert settings.token == "dot_token"
    assert settings.chat_id == "dot_chat"
    assert settings.parse_mode == "MarkdownV2"


def test_load_telegram_settings_prefers_environment_over_dotenv(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("TELEGRAM_BOT_TOKEN=file_token\nTELEGRAM_CHAT_ID=file_chat\n", encoding="utf-8")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "env_token")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "env_chat")

    settings = load_telegram_settings(env_file=env_file)
    assert settings is not None
    assert settings.token == "env_token"
    assert settings.chat_id == "env_chat"


def test_alerter_from_env_requires_settings(tmp_path, no_telegram_env):
    env_file = tmp_path / ".env"
    env_file.write_text("TELEGRAM_BOT_TOKEN=only_token", encoding="utf-8")

    with pytest.raises(ValueError):
        TelegramAlerter.from_env(env_file=env_file)


def test_install_handler_only_when_configured(tmp_path, no_telegram_env):
    empty = tmp_path / "empty.env"
    empty.write_text("", encoding="utf-8")
    assert install_telegram_log_handler_from_env(env_file=empty) is None

    configured = tmp_path / "configured.env"
    configured.write_text("TELEGRAM_BOT_TOKEN=t\nTELEGRAM_CHAT_ID=c\n", encoding="utf-8")
    handler = install_telegram_log_handler_from_env(env_file=configured, run_id="r2")
    assert isinstance(handler, TelegramLogHandler)
    assert handler in logging.getLogger().handlers
