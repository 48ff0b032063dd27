# RepoSync Logging
# Rich log handler setup for the command line

import logging
from typing import Optional

from rich.console import Console as RichConsole
from rich.logging import RichHandler

LOGGER_NAME = "reposync"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(*, verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``reposync`` logger.

    Records go to stderr through a Rich handler and, optionally, to a plain
    text log file. Calling this again replaces the previous handlers.

    Args:
        verbose: Log every visited resource (DEBUG).
        quiet: Only log warnings and errors.
        log_file: Optional path of a log file receiving every record.

    Returns:
        The configured package logger.
    """
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=RichConsole(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=verbose,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(level)

    return logger
