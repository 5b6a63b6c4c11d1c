"""
Logging for the virodiv command.

Records go to stderr tagged ``[LEVEL]`` (colored on a terminal) and,
optionally, to a plain timestamped log file.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "virodiv"

RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[0;90m",
    logging.INFO: "\033[0;32m",
    logging.WARNING: "\033[1;33m",
    logging.ERROR: "\033[0;31m",
    logging.CRITICAL: "\033[0;31m",
}


class LevelTagFormatter(logging.Formatter):
    """Prefix each message with its bracketed level name."""

    def __init__(self, use_colors: bool = False):
        super().__init__("%(message)s")
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        tag = f"[{record.levelname}]"
        if self.use_colors:
            tag = f"{LEVEL_COLORS.get(record.levelno, RESET)}{tag}{RESET}"
        return f"{tag} {super().format(record)}"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    use_colors: bool = True,
    verbose: bool = False,
) -> logging.Logger:
    """
    Configure the package logger; calling it again replaces the handlers.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional path of a plain-text log file
        use_colors: Color the console tags when stderr is a terminal
        verbose: Log at DEBUG, overriding ``level``

    Returns:
        The ``virodiv`` logger
    """
    if verbose:
        level = logging.DEBUG

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(LevelTagFormatter(use_colors and sys.stderr.isatty()))
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger
