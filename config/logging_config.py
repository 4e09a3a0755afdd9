"""
Logging configuration for the budget engine.

Engine modules only create module loggers (``logging.getLogger(__name__)``);
handlers are installed here, once, by the embedding application or a script.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import List, Optional, Union

from config.defaults import LOG_FORMAT, DATE_FORMAT, ROOT_LOGGER_NAMES

# Track if logging is already configured and which handlers we own
_LOGGING_CONFIGURED = False
_installed_handlers: List[logging.Handler] = []


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure console (and optionally file) logging for the engine packages.

    Args:
        level: Level applied to the engine loggers, e.g. ``"DEBUG"``.
        log_file: If given, a rotating log file is written there as well.

    Returns:
        The root logger the handlers were attached to.
    """
    global _LOGGING_CONFIGURED

    root_logger = logging.getLogger()
    if _LOGGING_CONFIGURED:
        return root_logger

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root_logger.addHandler(console)
    _installed_handlers.append(console)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        _installed_handlers.append(file_handler)

    for name in ROOT_LOGGER_NAMES:
        logging.getLogger(name).setLevel(level)

    _LOGGING_CONFIGURED = True
    return root_logger


def reset_logging() -> None:
    """Remove the handlers installed by setup_logging."""
    global _LOGGING_CONFIGURED

    root_logger = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()
    for name in ROOT_LOGGER_NAMES:
        logging.getLogger(name).setLevel(logging.NOTSET)
    _LOGGING_CONFIGURED = False
