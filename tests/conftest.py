"""Root pytest configuration for all tests.

This conftest applies to all test types (unit and integration).
"""

import logging

import pytest

from tests.fixtures.sample_pages import make_converted

# Keep atlassian-python-api request logging out of test output
logging.getLogger("atlassian").setLevel(logging.WARNING)


@pytest.fixture
def converted_page():
    """A converted page ready for a sink."""
    return make_converted("1001", "Release Notes", "# Release Notes\n\nShipped.\n")
