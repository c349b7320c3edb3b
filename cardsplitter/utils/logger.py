"""Logging setup for the command line entry point.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
attached here, once, by whoever runs the engine.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str = "cardsplitter", log_file: Optional[str] = None,
                 level: int = logging.INFO, console: bool = True) -> logging.Logger:
    """
    Configure and return the ``name`` logger.
    Args:
        name: Logger name; ``cardsplitter`` covers every module of the package.
        log_file: Optional path of a file that receives the same records.
        level: Minimum level to emit.
        console: Whether to log to stderr.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    # Calling twice must not duplicate output.
    logger.handlers.clear()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
