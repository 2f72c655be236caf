import logging
import re
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from bookings_api.api.schemas import ErrorResponseDTO
from bookings_api.application import CreateBookingPersistenceError
from bookings_api.domain.errors import (
    BookingConflictError,
    BookingError,
    BookingForbiddenError,
    BookingNotFoundError,
    InvalidPaymentAmountError,
    InvalidPaymentStateError,
    PaymentUpstreamError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

BOOKING_ERROR_RESPONSES: tuple[tuple[type[BookingError], int, str], ...] = (
    (BookingNotFoundError, 404, "Not found"),
    (BookingForbiddenError, 403, "Forbidden"),
    (BookingConflictError, 409, "Conflict"),
    (InvalidPaymentStateError, 409, "Invalid payment state"),
    (InvalidPaymentAmountError, 400, "Invalid payment amount"),
    (ServiceUnavailableError, 503, "Service unavailable"),
    (PaymentUpstreamError, 502, "Payment provider error"),
)


def _mask_sensitive(text: str) -> str:
    masked = re.sub(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})", r"\1***@\2", text)
    masked = re.sub(r"\b\d{12,19}\b", "****MASKED_CARD****", masked)
    masked = re.sub(r"(?i)(cvv|password|token|secret)\s*[:=]\s*[^,\s]+", r"\1=***", masked)
    masked = re.sub(r"\b(pi_[A-Za-z0-9]+)_secret_[A-Za-z0-9]+", r"\1_secret_***", masked)
    return masked


def _request_id(request: Request) -> str:
    existing = getattr(request.state, "request_id", None)
    if existing:
        return existing
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    return request_id


def booking_error_response(exc: BookingError, request_id: str | None) -> JSONResponse:
    """Map a booking error to its HTTP status and error body."""
    status_code, error = 500, "Internal server error"
    for error_type, mapped_status, mapped_error in BOOKING_ERROR_RESPONSES:
        if isinstance(exc, error_type):
            status_code, error = mapped_status, mapped_error
            break
    current = exc.current_status.canonical.value if exc.current_status is not None else None
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponseDTO(
            error=error,
            message=exc.message,
            code=exc.code,
            request_id=request_id,
            current_status=current,
        ).model_dump(),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = _request_id(request)
        try:
            response = await call_next(request)
        except RequestValidationError as exc:
            self._log_exception("validation_error", request, exc)
            return JSONResponse(
                status_code=422,
                content=build_validation_error_response(request_id).model_dump(),
            )
        except BookingError as exc:
            self._log_booking_error(request, exc)
            return booking_error_response(exc, request_id)
        except ValueError as exc:
            self._log_exception("business_error", request, exc)
            return JSONResponse(
                status_code=400,
                content=ErrorResponseDTO(
                    error="Bad request",
                    message=str(exc) or "Business rule validation failed",
                    code="BAD_REQUEST",
                    request_id=request_id,
                ).model_dump(),
            )
        except (CreateBookingPersistenceError, SQLAlchemyError) as exc:
            self._log_exception("database_error", request, exc)
            return JSONResponse(
                status_code=500,
                content=ErrorResponseDTO(
                    error="Internal server error",
                    message="Unable to process request. Please try again later.",
                    code="DATABASE_ERROR",
                    request_id=request_id,
                ).model_dump(),
            )
        except Exception as exc:
            self._log_exception("unexpected_error", request, exc)
            return JSONResponse(
                status_code=500,
                content=ErrorResponseDTO(
                    error="Internal server error",
                    message="Unable to process request. Please try again later.",
                    code="INTERNAL_ERROR",
                    request_id=request_id,
                ).model_dump(),
            )
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        return response

    @staticmethod
    def _log_booking_error(request: Request, exc: BookingError) -> None:
        log = logger.warning if isinstance(exc, ServiceUnavailableError | PaymentUpstreamError) else logger.info
        log(
            "booking_error code=%s method=%s path=%s detail=%s",
            exc.code,
            request.method,
            request.url.path,
            _mask_sensitive(exc.message),
        )

    @staticmethod
    def _log_exception(error_type: str, request: Request, exc: Exception) -> None:
        logger.exception(
            "api_error type=%s method=%s path=%s detail=%s",
            error_type,
            request.method,
            request.url.path,
            _mask_sensitive(str(exc)),
        )


def build_validation_error_response(request_id: str | None = None) -> ErrorResponseDTO:
    return ErrorResponseDTO(
        error="Validation error",
        message="Request validation failed",
        code="VALIDATION_ERROR",
        request_id=request_id,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    ErrorHandlerMiddleware._log_exception("validation_error", request, exc)
    return JSONResponse(
        status_code=422,
        content=build_validation_error_response(_request_id(request)).model_dump(),
    )
