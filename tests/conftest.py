"""Shared pytest fixtures for ffstack tests."""
import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_logging():
    """CLI invocations configure logging against streams that close with the invocation."""
    yield
    logging.getLogger("ffstack").handlers.clear()
    structlog.reset_defaults()
