"""
Pytest configuration and shared fixtures.

Detaches handlers installed by setup_logging so each test starts with a
clean proctimeline logger and output captured by pytest.
"""
import logging

import pytest

from proctimeline.logging_config import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_logging():
    """Remove proctimeline log handlers after each test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
