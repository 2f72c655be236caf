import pytest
from fastapi.testclient import TestClient

from api_helpers import JWT_SECRET, WEBHOOK_SECRET, InMemoryContainer
from bookings_api.api.app import create_app
from bookings_api.shared.config.settings import Settings


@pytest.fixture
def api_settings() -> Settings:
    return Settings(
        _env_file=None,
        JWT_SECRET=JWT_SECRET,
        STRIPE_API_KEY="sk_test_123",
        STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET,
    )


@pytest.fixture
def container() -> InMemoryContainer:
    return InMemoryContainer()


@pytest.fixture
def client(api_settings: Settings, container: InMemoryContainer):
    application = create_app(api_settings, container=container)
    with TestClient(application) as test_client:
        yield test_client
