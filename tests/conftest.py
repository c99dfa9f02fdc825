"""Test configuration for pytest."""

import logging
import os
import pytest


@pytest.fixture(autouse=True)
def configure_test_logging():
    """Configure logging for tests to be minimal."""
    # Set environment variable to ensure minimal logging during tests
    os.environ['VIRTUAL_PROXY_LOG_LEVEL'] = 'WARNING'

    # Also configure root logger to be quiet
    logging.getLogger().setLevel(logging.WARNING)

    # Violations and hidden keys are expected in most tests
    for logger_name in ['virtual_proxy.proxy', 'virtual_proxy.scenario']:
        logging.getLogger(logger_name).setLevel(logging.ERROR)
