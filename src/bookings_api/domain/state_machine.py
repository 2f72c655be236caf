from dataclasses import dataclass
from enum import StrEnum

from bookings_api.domain.enums import ActorRole, BookingStatus


class BookingOperation(StrEnum):
    ACCEPT = "accept"
    DECLINE = "decline"
    ON_THE_WAY = "on_the_way"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"


@dataclass(slots=True, frozen=True)
class TransitionRule:
    """Who may trigger an operation, from which statuses, and what it writes."""

    operation: BookingOperation
    actors: frozenset[ActorRole]
    valid_from: frozenset[BookingStatus]
    target: BookingStatus
    timestamp_field: str | None = None

    def allows_from(self, status: BookingStatus) -> bool:
        return status in self.valid_from


_PRO = frozenset({ActorRole.PRO})
_EITHER_PARTY = frozenset({ActorRole.PRO, ActorRole.CUSTOMER})

TRANSITION_RULES: dict[BookingOperation, TransitionRule] = {
    BookingOperation.ACCEPT: TransitionRule(
        operation=BookingOperation.ACCEPT,
        actors=_PRO,
        valid_from=frozenset({BookingStatus.REQUESTED, BookingStatus.PENDING}),
        target=BookingStatus.ACCEPTED,
        timestamp_field="accepted_at",
    ),
    BookingOperation.DECLINE: TransitionRule(
        operation=BookingOperation.DECLINE,
        actors=_PRO,
        valid_from=frozenset({BookingStatus.REQUESTED, BookingStatus.PENDING}),
        target=BookingStatus.DECLINED,
    ),
    BookingOperation.ON_THE_WAY: TransitionRule(
        operation=BookingOperation.ON_THE_WAY,
        actors=_PRO,
        valid_from=frozenset({BookingStatus.ACCEPTED}),
        target=BookingStatus.ON_THE_WAY,
        timestamp_field="en_route_at",
    ),
    BookingOperation.START: TransitionRule(
        operation=BookingOperation.START,
        actors=_PRO,
        valid_from=frozenset(
            {BookingStatus.ACCEPTED, BookingStatus.ON_THE_WAY, BookingStatus.PRO_EN_ROUTE}
        ),
        target=BookingStatus.IN_PROGRESS,
        timestamp_field="started_at",
    ),
    BookingOperation.COMPLETE: TransitionRule(
        operation=BookingOperation.COMPLETE,
        actors=_PRO,
        valid_from=frozenset({BookingStatus.IN_PROGRESS}),
        target=BookingStatus.AWAITING_PAYMENT,
        timestamp_field="completed_at",
    ),
    BookingOperation.CANCEL: TransitionRule(
        operation=BookingOperation.CANCEL,
        actors=_EITHER_PARTY,
        valid_from=frozenset(
            {
                BookingStatus.REQUESTED,
                BookingStatus.PENDING,
                BookingStatus.ACCEPTED,
                BookingStatus.ON_THE_WAY,
                BookingStatus.PRO_EN_ROUTE,
                BookingStatus.IN_PROGRESS,
            }
        ),
        target=BookingStatus.CANCELLED,
        timestamp_field="cancelled_at",
    ),
}

# Statuses from which the owning customer may pre-authorize (hold) the payment.
PRE_CAPTURE_STATUSES = frozenset(
    {
        BookingStatus.ACCEPTED,
        BookingStatus.ON_THE_WAY,
        BookingStatus.PRO_EN_ROUTE,
        BookingStatus.IN_PROGRESS,
    }
)
# Statuses from which the owning customer may finalize the charge.
CAPTURE_STATUSES = frozenset({BookingStatus.AWAITING_PAYMENT})


def rule_for(operation: BookingOperation) -> TransitionRule:
    return TRANSITION_RULES[operation]


def successors_of(status: BookingStatus) -> set[BookingStatus]:
    """Return every status reachable from ``status`` in one operation."""
    return {rule.target for rule in TRANSITION_RULES.values() if rule.allows_from(status)}
