# PURPOSE: logging for the foxlist core.
# - Messages are "event k=v ..." so they grep well.
# - Only the `foxlist` logger is configured; an embedding app keeps its root setup.

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"
HANDLER_NAME = "foxlist-stdout"


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level!r}")
    return value


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Set the `foxlist` logger level and give it a stdout handler if nobody logs yet.

    Safe to call repeatedly. SQLAlchemy statement echo stays off unless `level`
    is DEBUG.
    """
    numeric = _resolve_level(level)
    logger = logging.getLogger("foxlist")
    logger.setLevel(numeric)

    has_own = any(h.get_name() == HANDLER_NAME for h in logger.handlers)
    # a configured root (host app, pytest) already receives our records
    if not has_own and not logging.getLogger().handlers:
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
        logger.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING
    )
    return logger
