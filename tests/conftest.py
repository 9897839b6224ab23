"""Pytest fixtures and shared test configuration.

Fixtures:
    - chat_settings: Client settings with the default route filter ceiling
    - graph_config: Graph configuration with a dummy API key
    - async_client: HTTPX client for API testing
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from ragchat.api.app import create_app
from ragchat.config import ChatSettings, GraphConfig


@pytest.fixture
def chat_settings() -> ChatSettings:
    return ChatSettings(api_base_url="http://test", route_payload_max_length=240)


@pytest.fixture
def graph_config(tmp_path: Path) -> GraphConfig:
    return GraphConfig(api_key="sk-test-key", data_dir=tmp_path, retrieval_k=5)


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
