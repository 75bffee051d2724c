"""Pytest configuration and fixtures."""

import os

import pytest
import pytest_asyncio

# Set test environment
os.environ["SUIROUTE_NETWORK"] = "LOCAL"
os.environ["SUIROUTE_DEBUG"] = "true"

from suiroute.config import Settings
from suiroute.router.provider import Router
from suiroute.router.transport import HttpTransport

from tests.factories import API_ROOT, MockBackend


@pytest.fixture
def backend() -> MockBackend:
    """Fresh mock backend per test."""
    return MockBackend()


@pytest.fixture
def settings() -> Settings:
    return Settings(api_url=API_ROOT, lock_timeout=1.0, request_timeout=5.0)


@pytest_asyncio.fixture
async def router(backend: MockBackend, settings: Settings):
    """Router wired to the mock backend."""
    transport = HttpTransport(f"{API_ROOT}/router", transport=backend.transport)
    router = Router(transport=transport, settings=settings)

    yield router

    await router.aclose()
