from bookings_api.shared.security.input_sanitizer import (
    sanitize_and_validate_text,
    sanitize_text,
    validate_text_is_safe,
)

__all__ = [
    "sanitize_and_validate_text",
    "sanitize_text",
    "validate_text_is_safe",
]
