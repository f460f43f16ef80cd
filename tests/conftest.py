"""
Shared pytest fixtures for the subscriber webhook tests.

Every test gets its own temporary data directory, so no state leaks
between tests and nothing touches ./data.
"""

import pytest
from pathlib import Path

from fastapi.testclient import TestClient

from api.main import create_app
from subscribers.admin import SubscriberAdmin
from subscribers.config import Settings
from subscribers.registry import ProductRegistry, build_registry
from subscribers.storage import JsonFileStorage
from subscribers.store import SubscriberStore


ADMIN_KEY = "test-admin-key"
SELLER_ID = "seller-123"


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Empty data directory for this test."""
    return tmp_path / "data"


@pytest.fixture
def settings(data_dir: Path) -> Settings:
    """Multi-product settings with an admin key and an expected seller."""
    return Settings(
        _env_file=None,
        data_dir=data_dir,
        admin_key=ADMIN_KEY,
        gumroad_seller_id=SELLER_ID,
    )


@pytest.fixture
def registry(settings: Settings) -> ProductRegistry:
    return build_registry(settings)


@pytest.fixture
def storage(data_dir: Path) -> JsonFileStorage:
    return JsonFileStorage(data_dir)


@pytest.fixture
def store(storage: JsonFileStorage) -> SubscriberStore:
    return SubscriberStore(storage)


@pytest.fixture
def admin(settings: Settings, registry: ProductRegistry, store: SubscriberStore) -> SubscriberAdmin:
    return SubscriberAdmin(settings, registry, store)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Key": ADMIN_KEY}


@pytest.fixture
def client(settings: Settings):
    """Test client over a fresh app; runs the startup lifespan."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


# =============================================================================
# Product Fixtures
# =============================================================================

@pytest.fixture
def automation_product() -> str:
    """Store Automation MCP, second product in the default registry."""
    return "cemyz"


@pytest.fixture
def screenshot_product() -> str:
    """Store Screenshot MCP, first product in the default registry."""
    return "store-screenshot-mcp"
