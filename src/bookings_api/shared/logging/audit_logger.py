import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

SENSITIVE_KEY_TOKENS = (
    "email",
    "phone",
    "card",
    "cvv",
    "token",
    "password",
    "secret",
    "address",
)


class AuditLogger:
    """Structured audit logger for booking and payment changes.

    Context values under sensitive keys are masked before the event is logged.

    Example:
        ```python
        audit = AuditLogger()
        audit.log_booking_transitioned(booking_id=booking.id.value, actor="pro-1")
        ```
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger("bookings_api.audit")
        self._clock = clock or (lambda: datetime.now(UTC))

    def log_booking_created(
        self,
        *,
        booking_id: str,
        actor: str,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        self._emit(action="BOOKING_CREATED", booking_id=booking_id, actor=actor, context=context)

    def log_booking_transitioned(
        self,
        *,
        booking_id: str,
        actor: str,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        self._emit(
            action="BOOKING_TRANSITIONED", booking_id=booking_id, actor=actor, context=context
        )

    def log_payment_authorized(
        self,
        *,
        booking_id: str,
        actor: str,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        self._emit(action="PAYMENT_AUTHORIZED", booking_id=booking_id, actor=actor, context=context)

    def log_payment_confirmed(
        self,
        *,
        booking_id: str,
        actor: str,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        """Emit the audit event for a provider-confirmed payment outcome."""
        self._emit(action="PAYMENT_CONFIRMED", booking_id=booking_id, actor=actor, context=context)

    def _emit(
        self,
        *,
        action: str,
        booking_id: str,
        actor: str,
        context: Mapping[str, Any] | None,
    ) -> None:
        event = {
            "timestamp": self._clock().astimezone(UTC).isoformat(),
            "action": action,
            "booking_id": booking_id,
            "actor": actor,
            "context": self.mask_sensitive_data(dict(context or {})),
        }
        self._logger.info("audit_event", extra={"audit_event": event})

    @classmethod
    def mask_sensitive_data(cls, value: Any, key: str | None = None) -> Any:
        """Recursively mask sensitive values based on key names."""
        if isinstance(value, dict):
            return {k: cls.mask_sensitive_data(v, key=k) for k, v in value.items()}
        if isinstance(value, list):
            return [cls.mask_sensitive_data(item, key=key) for item in value]
        if isinstance(value, tuple):
            return tuple(cls.mask_sensitive_data(item, key=key) for item in value)
        if isinstance(value, str) and cls._is_sensitive_key(key):
            return cls._mask_string(value, key or "")
        return value

    @staticmethod
    def _is_sensitive_key(key: str | None) -> bool:
        if not key:
            return False
        lowered = key.lower()
        return any(token in lowered for token in SENSITIVE_KEY_TOKENS)

    @staticmethod
    def _mask_string(raw: str, key: str) -> str:
        lowered_key = key.lower()
        if "email" in lowered_key:
            local_part, _, domain = raw.partition("@")
            if not domain:
                return "***"
            prefix = local_part[:1] or "*"
            return f"{prefix}***@{domain}"
        if "phone" in lowered_key:
            digits = "".join(ch for ch in raw if ch.isdigit())
            if len(digits) <= 2:
                return "***"
            return f"{'*' * (len(digits) - 2)}{digits[-2:]}"
        return "***MASKED***"
