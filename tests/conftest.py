"""Pytest configuration and shared fixtures."""

import pytest

from src.models.data_models import FetchRequest, SourceMode
from tests.fixtures.fakes import FakeAdapter


@pytest.fixture
def men_request() -> FetchRequest:
    return FetchRequest.build(category=["men"], sort_key="price-lowtohigh")


@pytest.fixture
def primary_adapter() -> FakeAdapter:
    return FakeAdapter(SourceMode.PRIMARY)


@pytest.fixture
def fallback_adapter() -> FakeAdapter:
    return FakeAdapter(SourceMode.FALLBACK)


@pytest.fixture
def sample_config():
    """Provide a sample configuration for testing."""
    from src.models.config import StorefrontConfig

    return StorefrontConfig(
        primary={"name": "primary", "url": "http://store.test/api/shop/products"},
        fallback={"name": "fallback", "url": "http://store.test/api/shop/products"},
        connect_timeout=1.0,
        read_timeout=2.0,
        page_size=20,
        log_level="WARNING",
    )
