"""Shared logger for the rational calculator."""
import logging
import sys
from typing import Union

LOGGER_NAME = "rational_calculator"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

logger: logging.Logger = logging.getLogger(LOGGER_NAME)
# Library code stays silent unless the application configures a handler
logger.addHandler(logging.NullHandler())


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Attach a stderr stream handler to the project logger.

    Calling this more than once replaces the previously installed handler instead of stacking them.

    :param level: Logging level name or number

    :return: The configured project logger
    :rtype: logging.Logger
    """
    if isinstance(level, str):
        level = level.upper()

    for handler in list(logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
