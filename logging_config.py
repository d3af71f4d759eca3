"""
Logging Configuration
Sets up the package logger and the bridge to UI log windows.
"""
import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "kvlmesh"


class CallbackHandler(logging.Handler):
    """Forwards formatted records to a UI callback taking a single string."""

    def __init__(self, callback):
        super().__init__()
        self.callback = callback

    def emit(self, record):
        self.callback(self.format(record))


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None,
                  log_callback=None) -> logging.Logger:
    """
    Configures the package logger.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
        log_callback: Optional callable receiving each formatted message.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Avoid duplicate output when called more than once
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if log_callback:
        handler = CallbackHandler(log_callback)
        handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
        logger.addHandler(handler)

    logger.debug("Logging initialized.")
    return logger
