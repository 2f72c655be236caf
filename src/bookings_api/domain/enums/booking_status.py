from enum import StrEnum


class BookingStatus(StrEnum):
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    ON_THE_WAY = "on_the_way"
    IN_PROGRESS = "in_progress"
    AWAITING_PAYMENT = "awaiting_payment"
    COMPLETED = "completed"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    # Legacy values still present in stored rows.
    PENDING = "pending"
    PRO_EN_ROUTE = "pro_en_route"

    @property
    def canonical(self) -> "BookingStatus":
        """Return the canonical status for legacy aliases."""
        return _ALIASES.get(self, self)

    @property
    def is_terminal(self) -> bool:
        return self.canonical in {
            BookingStatus.COMPLETED,
            BookingStatus.DECLINED,
            BookingStatus.CANCELLED,
        }


_ALIASES = {
    BookingStatus.PENDING: BookingStatus.REQUESTED,
    BookingStatus.PRO_EN_ROUTE: BookingStatus.ON_THE_WAY,
}


class PaymentStatus(StrEnum):
    UNPAID = "UNPAID"
    REQUIRES_ACTION = "REQUIRES_ACTION"
    PAID = "PAID"

    @classmethod
    def from_intent_status(cls, intent_status: str) -> "PaymentStatus":
        """Map a provider payment-intent status onto the booking payment status."""
        if intent_status == "succeeded":
            return cls.PAID
        if intent_status == "requires_action":
            return cls.REQUIRES_ACTION
        return cls.UNPAID
