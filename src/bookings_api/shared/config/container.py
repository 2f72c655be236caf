import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from bookings_api.application import (
    AuthorizePaymentUseCase,
    ConfirmPaymentUseCase,
    CreateBookingUseCase,
    GetBookingUseCase,
    TransitionBookingUseCase,
)
from bookings_api.application.hooks import BookingNotificationHook
from bookings_api.infrastructure.db.session import create_session_factory
from bookings_api.infrastructure.gateways import (
    StripePaymentGateway,
    StripeRequestError,
    StripeServerError,
)
from bookings_api.infrastructure.notifications import SQLNotificationEmitter
from bookings_api.infrastructure.repositories import SQLBookingStore, SQLProDirectory
from bookings_api.infrastructure.resilience import CircuitBreaker, RetryPolicy
from bookings_api.shared.config.settings import Settings, settings
from bookings_api.shared.logging import AuditLogger


class ApplicationContainer:
    """Dependency container for stores, gateways and use cases."""

    def __init__(
        self,
        app_settings: Settings = settings,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        stripe_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = app_settings
        self._stripe_transport = stripe_transport
        self.session_factory = session_factory or create_session_factory(app_settings)
        self._audit_logger = AuditLogger()
        self._stripe_client: httpx.AsyncClient | None = None
        self._stripe_circuit_breaker = self.create_circuit_breaker()

    async def startup(self) -> None:
        """Initialize the payment provider HTTP client when a key is configured."""
        if self._stripe_client is None and self.settings.payments_configured:
            self._stripe_client = httpx.AsyncClient(
                base_url=self.settings.stripe_api_base_url.rstrip("/"),
                headers={"Authorization": f"Bearer {self.settings.stripe_api_key}"},
                limits=httpx.Limits(max_connections=self.settings.http_max_connections),
                timeout=self.settings.external_api_timeout_seconds,
                transport=self._stripe_transport,
            )

    async def shutdown(self) -> None:
        """Close long-lived HTTP clients and dispose of the engine."""
        if self._stripe_client is not None:
            await self._stripe_client.aclose()
            self._stripe_client = None
        engine = self.session_factory.kw.get("bind")
        if engine is not None:
            await engine.dispose()

    def create_booking_store(self) -> SQLBookingStore:
        return SQLBookingStore(
            self.session_factory,
            timeout_seconds=self.settings.store_timeout_seconds,
        )

    def create_pro_directory(self) -> SQLProDirectory:
        return SQLProDirectory(
            self.session_factory,
            timeout_seconds=self.settings.store_timeout_seconds,
        )

    def create_notification_hook(self) -> BookingNotificationHook:
        """Create the hook that fans booking changes out to recipients."""
        emitter = SQLNotificationEmitter(
            self.session_factory,
            timeout_seconds=self.settings.store_timeout_seconds,
        )
        return BookingNotificationHook(emitter=emitter)

    def create_circuit_breaker(self) -> CircuitBreaker:
        """Create circuit breaker from configured thresholds."""
        return CircuitBreaker(
            name="stripe",
            failure_threshold=self.settings.circuit_breaker_failure_threshold,
            recovery_timeout_seconds=self.settings.circuit_breaker_recovery_seconds,
            ignored_exceptions=(StripeRequestError,),
        )

    def create_retry_policy(self) -> RetryPolicy:
        """Create retry policy for idempotent provider reads."""
        return RetryPolicy(
            max_retries=self.settings.retry_max_attempts,
            retry_on=(httpx.TransportError, StripeServerError),
        )

    def create_payment_gateway(self) -> StripePaymentGateway | None:
        """Create Stripe payment gateway adapter, or ``None`` when payments are not configured."""
        if not self.settings.payments_configured:
            return None
        if self._stripe_client is None:
            raise RuntimeError("Container not started. Call startup() before requesting gateways.")
        return StripePaymentGateway(
            client=self._stripe_client,
            circuit_breaker=self._stripe_circuit_breaker,
            retry_policy=self.create_retry_policy(),
            timeout_seconds=self.settings.external_api_timeout_seconds,
        )

    def create_create_booking_use_case(self) -> CreateBookingUseCase:
        return CreateBookingUseCase(
            store=self.create_booking_store(),
            pro_directory=self.create_pro_directory(),
            notification_hook=self.create_notification_hook(),
            audit_logger=self._audit_logger,
        )

    def create_get_booking_use_case(self) -> GetBookingUseCase:
        return GetBookingUseCase(store=self.create_booking_store())

    def create_transition_booking_use_case(self) -> TransitionBookingUseCase:
        return TransitionBookingUseCase(
            store=self.create_booking_store(),
            notification_hook=self.create_notification_hook(),
            audit_logger=self._audit_logger,
        )

    def create_authorize_payment_use_case(self) -> AuthorizePaymentUseCase:
        """Create payment authorization use case; it rejects calls if payments are off."""
        return AuthorizePaymentUseCase(
            store=self.create_booking_store(),
            pro_directory=self.create_pro_directory(),
            payment_gateway=self.create_payment_gateway(),
            audit_logger=self._audit_logger,
            currency=self.settings.payment_currency,
            platform_fee_rate=self.settings.platform_fee_rate,
        )

    def create_confirm_payment_use_case(self) -> ConfirmPaymentUseCase:
        return ConfirmPaymentUseCase(
            store=self.create_booking_store(),
            notification_hook=self.create_notification_hook(),
            audit_logger=self._audit_logger,
        )
