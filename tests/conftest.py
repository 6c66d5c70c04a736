"""Shared fixtures for the proxy tests."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app

API_KEY = "test-fal-key"
GENERATION_URL = "https://queue.fal.run/fal-ai/nano-banana"
EDIT_URL = "https://queue.fal.run/fal-ai/nano-banana/edit"
STORAGE_URL = "https://fal.run/storage/upload"


@pytest.fixture
def settings() -> Settings:
    return Settings(fal_api_key=API_KEY, max_concurrent_upstream=4)


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    """App with a configured key; lifespan runs so the gateway is open."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def unconfigured_client() -> Iterator[TestClient]:
    with TestClient(create_app(Settings(fal_api_key=None))) as test_client:
        yield test_client
