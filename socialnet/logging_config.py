"""
Logging configuration for the social network backend.

One stream handler sits on the ``socialnet`` package logger; module loggers
propagate to it.
"""
import logging

from socialnet.config import settings

PACKAGE_LOGGER = "socialnet"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name, level=None):
    """Return the logger for ``name``, installing the package handler once"""
    if level is None:
        level = logging.DEBUG if settings.ENV == "development" else logging.INFO

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
        package_logger.setLevel(level)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger


def log_user_action(logger, user_id, action, details=None):
    """Audit trail entry for a state-changing user action"""
    log_msg = f"User {user_id} performed: {action}"
    if details:
        log_msg += f" | Details: {details}"
    logger.info(log_msg)
