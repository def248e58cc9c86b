import logging
import os
import sys

LOGGER_NAME = "proctimeline"


def _file_handler(log_file: str, level: int) -> logging.FileHandler:
    file_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    file_handler.setFormatter(file_formatter)
    return file_handler


def _has_file_handler(logger: logging.Logger, log_file: str) -> bool:
    path = os.path.abspath(log_file)
    return any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == path
        for handler in logger.handlers
    )


def setup_logging(level: int = logging.WARNING, log_file: str | None = None) -> logging.Logger:
    """
    Sets up logging to stderr and, optionally, to a file.

    stdout is left alone so the trace document can be piped. Calling it
    again updates the level and attaches log_file if it is not yet handled.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Prevent adding handlers multiple times
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        if log_file and not _has_file_handler(logger, log_file):
            logger.addHandler(_file_handler(log_file, level))
        return logger

    console_formatter = logging.Formatter("%(levelname)s: %(message)s")
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        logger.addHandler(_file_handler(log_file, level))

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Returns a child logger for specific modules.
    e.g. get_logger("ingest") -> "proctimeline.ingest"
    """
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
