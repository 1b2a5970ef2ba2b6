"""Shared test plumbing."""

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Drop global structlog config so a stream bound during one test's
    output capture isn't reused after pytest closes it."""
    yield
    structlog.reset_defaults()
