import logging
import sys

LOGGER_NAME = "spotify_token"

PLAIN_FORMAT = "%(message)s"
DEBUG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logger = logging.getLogger(LOGGER_NAME)


def setup_logging(debug: bool = False, stream=None) -> logging.Logger:
    """Send everything to stderr so stdout carries nothing but the token."""

    level = logging.DEBUG if debug else logging.INFO
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(DEBUG_FORMAT if debug else PLAIN_FORMAT, datefmt=DATE_FORMAT))

    # package loggers (spotify_token.*) inherit this handler
    for old in list(_logger.handlers):
        _logger.removeHandler(old)
    _logger.addHandler(handler)
    _logger.setLevel(level)
    _logger.propagate = False

    return _logger


def log_debug(message: str) -> None:
    _logger.debug(message)


def log_info(message: str) -> None:
    _logger.info(message)


def log_warning(message: str) -> None:
    _logger.warning(f"WARNING: {message}")


def log_error(message: str) -> None:
    _logger.error(f"ERROR: {message}")
