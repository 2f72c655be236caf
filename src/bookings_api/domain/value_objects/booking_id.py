import uuid
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BookingId:
    """Immutable value object for canonical UUID booking identifiers."""

    value: str

    def __post_init__(self) -> None:
        normalized = self._normalize(self.value)
        if normalized is None:
            raise ValueError("Booking id must be a valid UUID")
        object.__setattr__(self, "value", normalized)

    @classmethod
    def new(cls) -> "BookingId":
        return cls(str(uuid.uuid4()))

    @staticmethod
    def _normalize(value: str) -> str | None:
        if not isinstance(value, str):
            return None
        try:
            return str(uuid.UUID(value.strip()))
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value
