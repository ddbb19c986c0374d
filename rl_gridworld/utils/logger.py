"""
Logging setup

Attaches a console handler (and optionally a log file) to the package
logger. Modules log through ``logging.getLogger(__name__)``.
"""

import logging
import os
from typing import Optional, Union


LOG_FORMAT = "%(asctime)s %(levelname)s %(module)s - %(funcName)s: %(message)s"
DATE_FORMAT = "%m/%d/%Y %I:%M:%S %p"
PACKAGE_LOGGER = "rl_gridworld"


def configure_logging(
    level: Union[int, str, None] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the package logger once; later calls only change the level.

    Args:
        level: Logging level; defaults to the RL_GRIDWORLD_LOG_LEVEL
            environment variable, then INFO
        log_file: Optional path of a file to log into as well

    Returns:
        The package logger
    """
    if level is None:
        level = os.environ.get("RL_GRIDWORLD_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    if not logger.handlers:
        fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(fmt)
        logger.addHandler(console_handler)

        if log_file:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
            file_handler.setFormatter(fmt)
            logger.addHandler(file_handler)

    return logger
