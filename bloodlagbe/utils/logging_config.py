# bloodlagbe/utils/logging_config.py

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_FILENAME = "bloodlagbe.log"

# Marks handlers installed here so repeated calls replace rather than stack them
_HANDLER_FLAG = "_bloodlagbe_handler"


def _resolve_level(value):
    level = logging.getLevelName(str(value or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _tag(handler):
    setattr(handler, _HANDLER_FLAG, True)
    return handler


def setup_logging(app):
    """Configure app.logger from LOG_LEVEL, ENABLE_CONSOLE_LOGGING and ENABLE_FILE_LOGGING.

    Safe to call more than once; earlier handlers installed by this function
    are removed first.
    """
    level = _resolve_level(app.config.get("LOG_LEVEL"))
    formatter = logging.Formatter(LOG_FORMAT)

    logger = app.logger
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            logger.removeHandler(handler)
            handler.close()

    if app.config.get("ENABLE_CONSOLE_LOGGING", True):
        console = _tag(logging.StreamHandler(stream=sys.stderr))
        console.setLevel(level)
        console.setFormatter(formatter)
        logger.addHandler(console)

    if app.config.get("ENABLE_FILE_LOGGING", False):
        log_dir = app.config.get("LOG_DIR") or os.path.join(app.instance_path, "logs")
        os.makedirs(log_dir, exist_ok=True)
        file_handler = _tag(
            RotatingFileHandler(
                os.path.join(log_dir, LOG_FILENAME),
                maxBytes=5 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.setLevel(level)
    logger.debug("Logging configured (level=%s)", logging.getLevelName(level))
    return logger
