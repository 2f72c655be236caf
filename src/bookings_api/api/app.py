import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from bookings_api.api.middleware import (
    ErrorHandlerMiddleware,
    HTTPSEnforcerMiddleware,
    validation_exception_handler,
)
from bookings_api.api.routers.bookings import router as bookings_router
from bookings_api.api.routers.health import router as health_router
from bookings_api.api.routers.payments import router as payments_router
from bookings_api.shared.config.container import ApplicationContainer
from bookings_api.shared.config.settings import Settings, settings

API_PREFIX = "/api/v1"

logger = logging.getLogger(__name__)


def create_app(
    app_settings: Settings = settings,
    container: ApplicationContainer | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application instance."""
    container = container or ApplicationContainer(app_settings)

    @asynccontextmanager
    async def app_lifespan(app: FastAPI):
        """Initialize and release shared app resources."""
        app.state.container = container
        app.state.settings = app_settings
        app.state.session_factory = container.session_factory
        app.state.create_booking_use_case_factory = container.create_create_booking_use_case
        app.state.get_booking_use_case_factory = container.create_get_booking_use_case
        app.state.transition_booking_use_case_factory = (
            container.create_transition_booking_use_case
        )
        app.state.authorize_payment_use_case_factory = container.create_authorize_payment_use_case
        app.state.confirm_payment_use_case_factory = container.create_confirm_payment_use_case
        await container.startup()
        if not app_settings.payments_configured:
            logger.warning("payments_not_configured payment endpoints will return 503")
        try:
            yield
        finally:
            await container.shutdown()

    app = FastAPI(
        title=app_settings.app_name,
        debug=app_settings.app_debug,
        version=app_settings.app_version,
        lifespan=app_lifespan,
    )
    if app_settings.cors_allowed_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=app_settings.cors_allowed_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_middleware(
        HTTPSEnforcerMiddleware,
        force_https=app_settings.force_https,
        exempt_paths=(f"{API_PREFIX}/health",),
    )
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(bookings_router, prefix=API_PREFIX)
    app.include_router(payments_router, prefix=API_PREFIX)
    return app
