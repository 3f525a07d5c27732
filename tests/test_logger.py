import logging

import notifiers.logging

from buildbridge import config
from buildbridge.logger import get_log_handlers, setup_logging


def test_no_handlers_without_token(monkeypatch):
    monkeypatch.setattr(config, "TELEGRAM_TOKEN", None)
    logger = logging.getLogger("buildbridge.test.no_token")

    assert get_log_handlers(logger) == []
    assert logger.handlers == []


def test_telegram_handler_attached_once(monkeypatch):
    monkeypatch.setattr(config, "TELEGRAM_TOKEN", "token")
    monkeypatch.setattr(config, "TELEGRAM_CHAT_ID", "123")
    logger = logging.getLogger("buildbridge.test.telegram")

    try:
        handlers = setup_logging(logger)
        assert len(handlers) == 1
        assert isinstance(handlers[0], notifiers.logging.NotificationHandler)
        assert handlers[0].level == logging.WARNING

        assert setup_logging(logger) == []
        assert logger.handlers == handlers
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
