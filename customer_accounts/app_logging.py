import logging
from typing import Any, Union

from pythonjsonlogger.json import JsonFormatter

ACTIVITY_LOGGER = 'customer_accounts.activity'
"""Audit trail of account lifecycle events."""


def setup_logger(level: Union[int, str] = logging.INFO) -> None:
    logger = logging.getLogger()
    if any(isinstance(handler.formatter, JsonFormatter)
           for handler in logger.handlers):
        logger.setLevel(_level(level))
        return
    logHandler = logging.StreamHandler()
    formatter = JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s',
                              rename_fields={'levelname': 'level', 'asctime': 'timestamp'})
    logHandler.setFormatter(formatter)
    logger.addHandler(logHandler)
    logger.setLevel(_level(level))


def activity_event(uid: str, event: str, **data: Any) -> None:
    """Record an account activity event, e.g. ``account.deleted``."""
    extra = dict(data, uid=uid, event=event)
    logging.getLogger(ACTIVITY_LOGGER).info(event, extra=extra)


def _level(level: Union[int, str]) -> Union[int, str]:
    # LOGLEVEL may come from the environment as a numeric string.
    if isinstance(level, str) and level.isdigit():
        return int(level)
    return level
