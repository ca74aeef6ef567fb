import logging
import os
from typing import Optional

RESET = '\033[0m'

# (timestamp color, level color, message color) per level
LEVEL_STYLES = {
    logging.DEBUG: ('\033[0;34m', '\033[1;34m', ''),
    logging.INFO: ('\033[0;32m', '\033[1;32m', '\033[0;36m'),
    logging.WARNING: ('\033[0;33m', '\033[1;33m', ''),
    logging.ERROR: ('\033[0;31m', '\033[1;31m', ''),
    logging.CRITICAL: ('\033[1;31m', '\033[1;31m', '\033[1;31m'),
}

# Loggers that are too chatty at INFO for a polling client
NOISY_LOGGERS = ('httpx', 'httpcore', 'urllib3', 'uvicorn', 'asyncio')


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the timestamp, level and message by log level."""

    def __init__(self, datefmt: str = '%H:%M:%S'):
        super().__init__(datefmt=datefmt)
        self._formatters = {}
        for level, (time_color, level_color, message_color) in LEVEL_STYLES.items():
            fmt = (
                f"{time_color}%(asctime)s {level_color}[%(levelname)s]{RESET} "
                f"%(name)s: {message_color}%(message)s{RESET}"
            )
            self._formatters[level] = logging.Formatter(fmt, datefmt=datefmt)

    def format(self, record):
        formatter = self._formatters.get(record.levelno)
        if formatter is None:
            return super().format(record)
        return formatter.format(record)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger with colored output.

    Args:
        level: Log level name; falls back to the LOG_LEVEL environment variable

    Returns:
        The package logger
    """
    log_level = (level or os.environ.get('LOG_LEVEL', 'INFO')).upper()

    logging.basicConfig(level=getattr(logging, log_level, logging.INFO))
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if root_logger.handlers:
        root_logger.handlers[0].setFormatter(ColoredFormatter())

    return logging.getLogger('comfy_video')
