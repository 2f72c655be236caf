from fastapi.middleware.cors import CORSMiddleware
from fastapi.testclient import TestClient

from bookings_api.api import app as app_module
from bookings_api.shared.config.settings import Settings
from api_helpers import InMemoryContainer


def test_create_app_registers_booking_payment_and_health_routes() -> None:
    application = app_module.create_app(Settings(_env_file=None), container=InMemoryContainer())
    route_paths = {route.path for route in application.routes}

    assert "/api/v1/health" in route_paths
    assert "/api/v1/bookings" in route_paths
    assert "/api/v1/bookings/{booking_id}" in route_paths
    for action in ("accept", "decline", "on-the-way", "start", "complete", "cancel", "authorize", "pay"):
        assert f"/api/v1/bookings/{{booking_id}}/{action}" in route_paths
    assert "/api/v1/bookings/{booking_id}/status" in route_paths
    assert "/api/v1/payments/webhook" in route_paths


def test_create_app_enables_cors_middleware_when_origins_are_configured() -> None:
    app_settings = Settings(
        _env_file=None,
        CORS_ALLOWED_ORIGINS="http://localhost:3000,http://localhost:5173",
    )

    application = app_module.create_app(app_settings, container=InMemoryContainer())
    middleware_types = {middleware.cls for middleware in application.user_middleware}

    assert CORSMiddleware in middleware_types


def test_lifespan_starts_and_stops_container(api_settings) -> None:
    container = InMemoryContainer()

    with TestClient(app_module.create_app(api_settings, container=container)) as test_client:
        assert container.started is True
        response = test_client.get("/api/v1/health")

    assert response.json() == {"status": "ok", "payments": "configured"}
    assert container.started is False
