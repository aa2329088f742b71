"""
Logging setup for cgpt
Console output is kept to warnings so stdout only carries replies
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from cgpt.errors import ConfigError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "cgpt.log"


def setup_logging(log_dir: str, level: str = "INFO") -> logging.Logger:
    """
    Configure the root logger with a console handler and a rotating file handler
    Returns the cgpt package logger
    """
    log_dir = os.path.expanduser(log_dir)
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Log directory {log_dir} could not be created: {e}") from e

    # Create a formatter
    formatter = logging.Formatter(LOG_FORMAT)

    # Create a handler for console output
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.WARNING)
    # Records logged with extra={"console": False} are already shown to the user
    console_handler.addFilter(lambda record: getattr(record, "console", True))

    # Create a handler for file output with rotation
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, LOG_FILE),
        maxBytes=10485760,  # 10MB
        backupCount=10,
        encoding="utf-8",
        delay=True,
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)

    # Configure the root logger
    logging.basicConfig(
        level=level,
        handlers=[console_handler, file_handler],
    )

    # httpx logs every request at INFO; the client logs its own summary
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logging.getLogger("cgpt")
