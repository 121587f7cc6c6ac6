"""Project-wide logger shared by the evaluator and the command line runner."""
import logging
import sys
from typing import Union

LOGGER_NAME: str = "expression_evaluator"
LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _build_logger() -> logging.Logger:
    """
    Create the named project logger with a single stderr handler.

    :return: Configured logger
    :rtype: logging.Logger
    """
    project_logger = logging.getLogger(LOGGER_NAME)
    # Importing the module twice must not stack handlers
    if not project_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        project_logger.addHandler(handler)
    project_logger.setLevel(logging.WARNING)
    project_logger.propagate = False
    return project_logger


def set_log_level(level: Union[int, str]) -> None:
    """
    Change the verbosity of the project logger.

    :param Union[int, str] level: Level number or name such as "DEBUG" or "INFO"

    :return: None
    :raises ValueError: If the level name is unknown
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    logger.setLevel(level)


logger: logging.Logger = _build_logger()
