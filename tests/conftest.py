"""Shared pytest fixtures for firebolt_client tests."""

from __future__ import annotations

import pytest

from firebolt_client.config import ClientConfig

from tests.fixtures.mock_service import (
    API_ENDPOINT,
    AUTH_URL,
    ENGINE_URL,
    MockFireboltService,
)


class FakeClock:
    """Manually advanced clock for credential expiry tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_config():
    """Factory fixture for creating ClientConfig instances pointed at the mock service."""
    def _factory(**kwargs) -> ClientConfig:
        values = {
            "client_id": "test-client",
            "client_secret": "test-secret",
            "auth_url": AUTH_URL,
            "api_endpoint": API_ENDPOINT,
            "engine_url": ENGINE_URL,
            "engine_name": None,
            "database": "test_db",
            "account_id": None,
            "account_name": None,
            "audience": None,
            "timeout": 5.0,
        }
        values.update(kwargs)
        return ClientConfig(**values)
    return _factory


@pytest.fixture
def config(make_config) -> ClientConfig:
    return make_config()


@pytest.fixture
def mock_service() -> MockFireboltService:
    return MockFireboltService()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
