"""
Logging for record_extractor: one "record_extractor" logger writing to
stdout, and a child logger per extractor module.
"""

import logging
import sys
from typing import Optional, Union


def setup_logger(
    name: str = "record_extractor",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the named logger and return it.

    The first call installs the handlers. Later calls, such as the CLI's
    --log-level, only change the level.
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


logger = setup_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """Child logger such as "record_extractor.tree_extractor"."""
    return logging.getLogger(f"record_extractor.{module_name}")
