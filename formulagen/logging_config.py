# formulagen/logging_config.py
"""
Logging Configuration
Sets up the package logger for the service.
"""
import logging
import sys


def setup_logging(level: int | str = logging.INFO) -> None:
    """
    Configures the logger for the 'formulagen' namespace.

    Args:
        level: Logging level, either a number or a name such as "DEBUG".
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("formulagen")
    logger.setLevel(level)

    # uvicorn --reload imports the app more than once
    if logger.hasHandlers():
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    ))
    logger.addHandler(console_handler)

    logger.debug("Logging initialized.")
