"""Logging setup shared by all tools."""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(message)s"
DATE_FORMAT = "[%X]"

ROOT_LOGGER_NAME = "tools"


def setup_logger(
    name: Optional[str] = None,
    level: Union[str, int] = "INFO",
) -> logging.Logger:
    """
    Configure logging with a rich console handler.

    The handler is attached to the ``tools`` root logger so every module
    logger created with :func:`get_logger` shares it. Calling this more than
    once only updates the level.

    Args:
        name: Logger name to return (defaults to the root tools logger)
        level: Log level name or number

    Returns:
        Configured logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
        root.propagate = False

    return get_logger(name)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger under the tools hierarchy."""
    if not name or name == "__main__":
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
