from collections.abc import Callable
from typing import Annotated, Any, TypeVar

from fastapi import APIRouter, Body, Depends, Request, status

from bookings_api.api.dependencies import CurrentActor
from bookings_api.api.schemas import (
    BookingResponseDTO,
    BookingStatusUpdateDTO,
    CompleteBookingRequestDTO,
    CreateBookingRequestDTO,
    ErrorResponseDTO,
    PaymentAuthorizationResponseDTO,
)
from bookings_api.application import (
    AuthorizePaymentRequest,
    AuthorizePaymentUseCase,
    CreateBookingRequest,
    CreateBookingUseCase,
    GetBookingUseCase,
    PaymentAuthorization,
    PaymentPurpose,
    TransitionBookingRequest,
    TransitionBookingUseCase,
)
from bookings_api.domain.entities import Actor
from bookings_api.domain.state_machine import BookingOperation
from bookings_api.domain.value_objects import BookingId

router = APIRouter(prefix="/bookings", tags=["bookings"])

T = TypeVar("T")

STATUS_UPDATE_OPERATIONS = {
    "ACCEPTED": BookingOperation.ACCEPT,
    "ON_THE_WAY": BookingOperation.ON_THE_WAY,
    "IN_PROGRESS": BookingOperation.START,
    "COMPLETED": BookingOperation.COMPLETE,
}

TRANSITION_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponseDTO, "description": "Invalid booking id"},
    401: {"description": "Missing or invalid bearer token"},
    403: {"model": ErrorResponseDTO, "description": "Caller is not the assigned party"},
    404: {"model": ErrorResponseDTO, "description": "Booking not found"},
    409: {"model": ErrorResponseDTO, "description": "Transition not valid from current status"},
    503: {"model": ErrorResponseDTO, "description": "Booking store unavailable"},
}

PAYMENT_RESPONSES: dict[int | str, dict[str, Any]] = {
    **TRANSITION_RESPONSES,
    400: {"model": ErrorResponseDTO, "description": "Invalid id or booking amount"},
    409: {"model": ErrorResponseDTO, "description": "Booking not in a payable state"},
    502: {"model": ErrorResponseDTO, "description": "Payment provider rejected the request"},
    503: {"model": ErrorResponseDTO, "description": "Payment provider unavailable or not configured"},
}


def _resolve(request: Request, factory_name: str, factory_type: type[T]) -> T:
    """Build a use case from the factory the app registered at startup."""
    factory: Callable[[], T] | None = getattr(request.app.state, factory_name, None)
    if factory is None:
        raise RuntimeError(f"Application not started: missing {factory_name}")
    return factory()


def get_create_booking_use_case(request: Request) -> CreateBookingUseCase:
    return _resolve(request, "create_booking_use_case_factory", CreateBookingUseCase)


def get_get_booking_use_case(request: Request) -> GetBookingUseCase:
    return _resolve(request, "get_booking_use_case_factory", GetBookingUseCase)


def get_transition_booking_use_case(request: Request) -> TransitionBookingUseCase:
    return _resolve(request, "transition_booking_use_case_factory", TransitionBookingUseCase)


def get_authorize_payment_use_case(request: Request) -> AuthorizePaymentUseCase:
    return _resolve(request, "authorize_payment_use_case_factory", AuthorizePaymentUseCase)


TransitionUseCase = Annotated[TransitionBookingUseCase, Depends(get_transition_booking_use_case)]
AuthorizeUseCase = Annotated[AuthorizePaymentUseCase, Depends(get_authorize_payment_use_case)]


async def _transition(
    use_case: TransitionBookingUseCase,
    booking_id: str,
    operation: BookingOperation,
    actor: Actor,
    final_price: Any = None,
) -> BookingResponseDTO:
    booking = await use_case.execute(
        TransitionBookingRequest(
            booking_id=BookingId(booking_id),
            operation=operation,
            actor=actor,
            final_price=final_price,
        )
    )
    return BookingResponseDTO.from_domain(booking)


def _authorization_response(result: PaymentAuthorization) -> PaymentAuthorizationResponseDTO:
    return PaymentAuthorizationResponseDTO(
        booking_id=result.booking_id,
        payment_intent_id=result.payment_intent_id,
        client_secret=result.client_secret,
        intent_status=result.intent_status,
        payment_status=result.payment_status,
        amount=result.amount,
        application_fee_amount=result.application_fee_amount,
        transfer_destination=result.transfer_destination,
        reused=result.reused,
    )


@router.post(
    "",
    response_model=BookingResponseDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Request a service pro",
    description="Create a booking in `requested`; the price comes from the pro's starting price.",
    responses={
        400: {"model": ErrorResponseDTO, "description": "Unsafe text or pro without a price"},
        403: {"model": ErrorResponseDTO, "description": "Caller is not a customer"},
        404: {"model": ErrorResponseDTO, "description": "Service pro not found"},
        422: {"model": ErrorResponseDTO, "description": "Validation error"},
    },
)
async def create_booking(
    payload: CreateBookingRequestDTO,
    actor: CurrentActor,
    use_case: Annotated[CreateBookingUseCase, Depends(get_create_booking_use_case)],
) -> BookingResponseDTO:
    booking = await use_case.execute(
        CreateBookingRequest(
            actor=actor,
            pro_id=payload.pro_id,
            service_date=payload.service_date,
            service_time=payload.service_time,
            address=payload.address,
            notes=payload.notes,
        )
    )
    return BookingResponseDTO.from_domain(booking)


@router.get(
    "/{booking_id}",
    response_model=BookingResponseDTO,
    summary="Get booking",
    description="Current status, timestamps and history; visible to either assigned party.",
    responses=TRANSITION_RESPONSES,
)
async def get_booking(
    booking_id: str,
    actor: CurrentActor,
    use_case: Annotated[GetBookingUseCase, Depends(get_get_booking_use_case)],
) -> BookingResponseDTO:
    booking = await use_case.execute(BookingId(booking_id), actor)
    return BookingResponseDTO.from_domain(booking)


@router.post(
    "/{booking_id}/accept",
    response_model=BookingResponseDTO,
    summary="Accept booking",
    responses=TRANSITION_RESPONSES,
)
async def accept_booking(
    booking_id: str, actor: CurrentActor, use_case: TransitionUseCase
) -> BookingResponseDTO:
    return await _transition(use_case, booking_id, BookingOperation.ACCEPT, actor)


@router.post(
    "/{booking_id}/decline",
    response_model=BookingResponseDTO,
    summary="Decline booking",
    responses=TRANSITION_RESPONSES,
)
async def decline_booking(
    booking_id: str, actor: CurrentActor, use_case: TransitionUseCase
) -> BookingResponseDTO:
    return await _transition(use_case, booking_id, BookingOperation.DECLINE, actor)


@router.post(
    "/{booking_id}/on-the-way",
    response_model=BookingResponseDTO,
    summary="Mark pro on the way",
    responses=TRANSITION_RESPONSES,
)
async def mark_on_the_way(
    booking_id: str, actor: CurrentActor, use_case: TransitionUseCase
) -> BookingResponseDTO:
    return await _transition(use_case, booking_id, BookingOperation.ON_THE_WAY, actor)


@router.post(
    "/{booking_id}/start",
    response_model=BookingResponseDTO,
    summary="Start job",
    responses=TRANSITION_RESPONSES,
)
async def start_booking(
    booking_id: str, actor: CurrentActor, use_case: TransitionUseCase
) -> BookingResponseDTO:
    return await _transition(use_case, booking_id, BookingOperation.START, actor)


@router.post(
    "/{booking_id}/complete",
    response_model=BookingResponseDTO,
    summary="Complete job",
    description="Moves the booking to `awaiting_payment`; `final_price` replaces the quoted price.",
    responses=TRANSITION_RESPONSES,
)
async def complete_booking(
    booking_id: str,
    actor: CurrentActor,
    use_case: TransitionUseCase,
    payload: Annotated[CompleteBookingRequestDTO | None, Body()] = None,
) -> BookingResponseDTO:
    final_price = payload.final_price if payload is not None else None
    return await _transition(use_case, booking_id, BookingOperation.COMPLETE, actor, final_price)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponseDTO,
    summary="Cancel booking",
    responses=TRANSITION_RESPONSES,
)
async def cancel_booking(
    booking_id: str, actor: CurrentActor, use_case: TransitionUseCase
) -> BookingResponseDTO:
    return await _transition(use_case, booking_id, BookingOperation.CANCEL, actor)


@router.patch(
    "/{booking_id}/status",
    response_model=BookingResponseDTO,
    summary="Advance booking status",
    description="Pro-side status update addressed by target status instead of operation.",
    responses=TRANSITION_RESPONSES,
)
async def update_booking_status(
    booking_id: str,
    payload: BookingStatusUpdateDTO,
    actor: CurrentActor,
    use_case: TransitionUseCase,
) -> BookingResponseDTO:
    operation = STATUS_UPDATE_OPERATIONS[payload.next_status]
    final_price = payload.final_price if operation == BookingOperation.COMPLETE else None
    if payload.final_price is not None and final_price is None:
        raise ValueError("final_price is only accepted when completing a booking")
    return await _transition(use_case, booking_id, operation, actor, final_price)


@router.post(
    "/{booking_id}/authorize",
    response_model=PaymentAuthorizationResponseDTO,
    summary="Pre-authorize payment",
    description="Create or reuse a manual-capture payment intent for an active booking.",
    responses=PAYMENT_RESPONSES,
)
async def authorize_payment(
    booking_id: str, actor: CurrentActor, use_case: AuthorizeUseCase
) -> PaymentAuthorizationResponseDTO:
    result = await use_case.execute(
        AuthorizePaymentRequest(
            booking_id=BookingId(booking_id),
            actor=actor,
            purpose=PaymentPurpose.AUTHORIZE,
        )
    )
    return _authorization_response(result)


@router.post(
    "/{booking_id}/pay",
    response_model=PaymentAuthorizationResponseDTO,
    summary="Pay for completed job",
    description="Capture a pre-authorized intent or create an automatic-capture one.",
    responses=PAYMENT_RESPONSES,
)
async def pay_booking(
    booking_id: str, actor: CurrentActor, use_case: AuthorizeUseCase
) -> PaymentAuthorizationResponseDTO:
    result = await use_case.execute(
        AuthorizePaymentRequest(
            booking_id=BookingId(booking_id),
            actor=actor,
            purpose=PaymentPurpose.PAY,
        )
    )
    return _authorization_response(result)
