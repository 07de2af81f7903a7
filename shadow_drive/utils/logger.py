"""
Logging for the Shadow Drive SDK.

Every subsystem (accounts, instructions, transaction, coordinator, auth,
rpc, client) logs under the "shadow_drive" namespace. As a library the SDK
only installs a NullHandler; applications opt in to colored console output
(and an optional log file) with setup_logging().
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO, Union

import colorlog


ROOT_LOGGER = "shadow_drive"

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def _console_handler(level: int, stream: Optional[TextIO]) -> logging.Handler:
    handler = colorlog.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s",
            datefmt=DATE_FORMAT,
            log_colors=LOG_COLORS,
        )
    )
    return handler


def _file_handler(log_file: Path, level: int) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the SDK logger.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path of a log file, None for console only
        stream: Console stream, stdout by default

    Returns:
        The "shadow_drive" logger
    """
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.setLevel(level)
    root.addHandler(_console_handler(level, stream))
    if log_file is not None:
        root.addHandler(_file_handler(Path(log_file), level))
    return root


def get_logger(name: str) -> logging.Logger:
    """Logger for a subsystem, e.g. get_logger("auth") -> shadow_drive.auth"""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
