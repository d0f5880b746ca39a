"""
Logging Configuration
=====================
Sets up the 'gaussnormals' logger for the command-line runs.

The console handler writes to stderr: stdout only carries the report
(header and value line), so the output of several runs can be collected
into one data file.
"""
import logging
import sys
from typing import Optional

LOGGER_NAME = "gaussnormals"

# Format: Time - Module - Level - Message
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
# --verbose adds the emitting function, useful to follow the timed blocks
VERBOSE_FORMAT = '%(asctime)s.%(msecs)03d - %(name)s:%(funcName)s:%(lineno)d - %(levelname)s - %(message)s'


def get_formatter(level: int) -> logging.Formatter:
    """Formatter matching the verbosity: DEBUG and below get the verbose layout."""
    if level <= logging.DEBUG:
        return logging.Formatter(VERBOSE_FORMAT, datefmt='%H:%M:%S')
    return logging.Formatter(DEFAULT_FORMAT, datefmt='%H:%M:%S')


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the logger of the 'gaussnormals' namespace.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file. The file always gets
            the verbose layout.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(get_formatter(level))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(get_formatter(logging.DEBUG))
        logger.addHandler(file_handler)

    logger.debug(f"Logging initialized (level {logging.getLevelName(level)}).")
    return logger
