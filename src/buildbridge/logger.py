import logging

import notifiers.logging

from buildbridge import config

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s - %(message)s"


def get_log_handlers(logger):
    if config.TELEGRAM_TOKEN is None:
        return []
    if any(
        isinstance(h, notifiers.logging.NotificationHandler) for h in logger.handlers
    ):
        return []
    handler = notifiers.logging.NotificationHandler(
        "telegram",
        defaults={
            "token": config.TELEGRAM_TOKEN,
            "chat_id": config.TELEGRAM_CHAT_ID,
        },
    )
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter("%(name)s %(levelname)s - %(message)s"))
    logger.addHandler(handler)
    return [handler]


def setup_logging(*loggers):
    """Apply ``OVERRIDE_LOGGING`` and attach notification handlers.

    Warnings and errors from the given loggers (typically ``buildbridge`` and
    sanic's root logger) are forwarded to Telegram when a token is configured.
    """
    logging.basicConfig(format=LOG_FORMAT, level=logging.INFO)
    logging.getLogger().setLevel(config.OVERRIDE_LOGGING)
    handlers = []
    for logger in loggers:
        logger.setLevel(config.OVERRIDE_LOGGING)
        handlers += get_log_handlers(logger)
    return handlers
