"""Fixtures for integration tests against a running ADK API server."""

import os
import time

import pytest
import requests

from adkstream import CoordinatorClient


def get_backend_url() -> str:
    return os.getenv("ADK_BACKEND_URL", "http://localhost:8000")


@pytest.fixture(scope="session")
def backend_url():
    """Verify the agent server is running and return its URL."""
    url = get_backend_url()
    for attempt in range(5):
        try:
            if requests.get(f"{url}/list-apps", timeout=2).status_code == 200:
                return url
        except requests.exceptions.RequestException:
            if attempt < 4:
                time.sleep(1)
    pytest.skip(f"Agent server not available at {url}. Start with: adk api_server --port 8000")


@pytest.fixture
def live_client(backend_url):
    client = CoordinatorClient(base_url=backend_url, timeout=120)
    yield client
    client.close()
