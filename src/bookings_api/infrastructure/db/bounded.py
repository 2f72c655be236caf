import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import InterfaceError, OperationalError

from bookings_api.domain.errors import BookingStoreUnavailableError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def bounded_store_call(operation: str, timeout_seconds: float) -> AsyncIterator[None]:
    """Run a storage round-trip under ``asyncio.timeout``.

    Timeouts and lost connections surface as ``BookingStoreUnavailableError``
    so callers can answer with a retryable 503.
    """
    try:
        async with asyncio.timeout(timeout_seconds):
            yield
    except TimeoutError as exc:
        logger.warning("store_timeout operation=%s", operation)
        raise BookingStoreUnavailableError("Booking store timed out") from exc
    except (OperationalError, InterfaceError) as exc:
        logger.warning("store_unavailable operation=%s", operation)
        raise BookingStoreUnavailableError("Booking store is unavailable") from exc
