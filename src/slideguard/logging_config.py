"""Logging setup for the slideguard package and its HTTP stack."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Set up logging configuration for slideguard.

    Log records go to stderr so that ``--json`` output on stdout stays
    machine-readable. aiohttp's loggers are held at WARNING unless
    ``level`` is DEBUG.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for logging output
        force: If True, replace handlers installed by an earlier call

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger("slideguard")
    logger.setLevel(numeric_level)

    if force or not logger.handlers:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

        handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
        if log_file:
            handlers.append(logging.FileHandler(log_file))
        for handler in handlers:
            handler.setLevel(numeric_level)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)

    logging.getLogger("aiohttp").setLevel(logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING)

    # Prevent propagation to root logger to avoid duplicate logs
    logger.propagate = False

    return logger
