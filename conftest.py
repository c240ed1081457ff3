from datetime import datetime

import httpx
import pytest

from library_admin.coordinator import auto_confirm
from library_admin.sandbox import CatalogStore, create_app
from library_admin.services.catalog_service import CatalogService
from library_admin.session import AdminSession

FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0)
BASE_URL = "http://catalog.test"


@pytest.fixture
def store():
    # Each test gets its own empty in-memory catalog with a frozen clock
    return CatalogStore(clock=lambda: FIXED_NOW)


@pytest.fixture
def sandbox_transport(store):
    return httpx.ASGITransport(app=create_app(store))


@pytest.fixture
def make_session():
    def build(transport, confirm=auto_confirm):
        service = CatalogService(base_url=BASE_URL, transport=transport)
        return AdminSession(service, confirm=confirm)
    return build


@pytest.fixture
def mock_catalog():
    """Build an httpx.MockTransport around ``handler`` and record every request it sees."""
    def build(handler):
        calls = []

        def recorder(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return handler(request)

        return httpx.MockTransport(recorder), calls
    return build
