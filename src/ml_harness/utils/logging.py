"""
Consistent logging setup for the evaluation harness.

Library modules use ``logging.getLogger(__name__)`` and never attach handlers.
Applications embedding the harness call ``setup_logger`` once to configure the
root ``ml_harness`` logger.
"""

import logging
import sys
from pathlib import Path


def setup_logger(
    name: str = "ml_harness",
    level: int | str = logging.INFO,
    log_file: Path | str | None = None,
    format_string: str | None = None,
) -> logging.Logger:
    """
    Setup a logger with console and optional file output.

    Args:
        name: Logger name (typically "ml_harness")
        level: Logging level, as int or name (default: INFO)
        log_file: Optional path to log file
        format_string: Custom format string (default: timestamp + level + message)

    Returns:
        Configured logger instance with handlers attached
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown logging level: {level}")

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    # Child loggers propagate here; stop at this logger to avoid double output
    logger.propagate = False

    if format_string is None:
        format_string = "[%(asctime)s] %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_section(logger: logging.Logger, title: str, width: int = 80, char: str = "="):
    """Log a section header."""
    logger.info(char * width)
    logger.info(title)
    logger.info(char * width)
