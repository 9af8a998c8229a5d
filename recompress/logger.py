"""
Logging setup for recompress
Logs to stderr and, optionally, a log file (overwritten on each run)
"""

import logging
import sys
import tempfile
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

# Handlers installed by setup_logging, removed again by close_logging
_handlers = []


def _open_file_handler(log_path: Path) -> logging.FileHandler:
    """Open log file, falling back to the temp directory if unwritable"""
    try:
        return logging.FileHandler(log_path, mode='w', encoding='utf-8')
    except OSError:
        fallback = Path(tempfile.gettempdir()) / log_path.name
        return logging.FileHandler(fallback, mode='w', encoding='utf-8')


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configure the ``recompress`` logger.

    Calling again replaces the handlers from the previous call.

    Args:
        level: Logging level or level name
        log_file: Optional file to log to as well as stderr

    Returns:
        The package logger
    """
    close_logging()

    logger = logging.getLogger("recompress")
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    _handlers.append(stream_handler)

    if log_file is not None:
        file_handler = _open_file_handler(Path(log_file))
        file_handler.setFormatter(formatter)
        _handlers.append(file_handler)

    for handler in _handlers:
        logger.addHandler(handler)
    return logger


def close_logging():
    """Detach and close handlers installed by setup_logging"""
    logger = logging.getLogger("recompress")
    while _handlers:
        handler = _handlers.pop()
        logger.removeHandler(handler)
        handler.close()
