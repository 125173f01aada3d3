"""
Root pytest configuration and fixtures for adkstream.

Provides common fixtures for the test suite.
"""

import copy
import os
from pathlib import Path
import sys

import pytest
import responses

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.utils.factories import BAR_CHART  # noqa: E402


@pytest.fixture
def base_url():
    """Test agent server URL."""
    return "http://agents.test:8000"


@pytest.fixture
def bar_chart():
    return copy.deepcopy(BAR_CHART)


@pytest.fixture(autouse=True)
def clean_environment():
    """Clean environment variables before each test."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("ADKSTREAM_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def no_retry_sleep(monkeypatch):
    """Skip backoff delays in retry tests."""
    monkeypatch.setattr("adkstream._http._INITIAL_BACKOFF", 0)


@pytest.fixture
def mock_requests():
    """Mock HTTP requests using responses library."""
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def client(base_url):
    """A client pointed at the test server."""
    from adkstream import CoordinatorClient

    return CoordinatorClient(base_url=base_url, app_name="coordinator", timeout=5)
