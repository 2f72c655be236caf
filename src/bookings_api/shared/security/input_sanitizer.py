import re

XSS_PATTERNS = (
    re.compile(r"(?is)<\s*script[^>]*>.*?<\s*/\s*script\s*>"),
    re.compile(r"(?i)javascript:"),
    re.compile(r"(?i)on\w+\s*="),
)

SQL_INJECTION_PATTERN = re.compile(
    r"(?is)("
    r"/\*|\*/|"
    r"\bunion\s+select\b|"
    r"\bdrop\s+table\b|"
    r"\btruncate\s+table\b|"
    r"'\s*(or|and)\s+[\w']+\s*=\s*[\w']+|"
    r";\s*(select|insert|update|delete|drop|alter|truncate|union)\b"
    r")"
)

WHITESPACE_RUN = re.compile(r"[ \t]+")


def sanitize_text(value: str) -> str:
    """Strip markup and collapse runs of blanks in user-entered text."""
    cleaned = value.replace("\x00", "").strip()
    for pattern in XSS_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    cleaned = cleaned.replace("<", "").replace(">", "")
    return WHITESPACE_RUN.sub(" ", cleaned).strip()


def validate_text_is_safe(value: str) -> None:
    """Raise error when SQL-injection patterns are detected."""
    if SQL_INJECTION_PATTERN.search(value):
        raise ValueError("Input contains possible SQL injection pattern")


def sanitize_and_validate_text(value: str, max_length: int | None = None) -> str:
    """Sanitize and validate a free-text booking field in one step.

    Example:
        ```python
        safe = sanitize_and_validate_text("  Ring the <b>side</b> door ", max_length=255)
        ```
    """
    cleaned = sanitize_text(value)
    validate_text_is_safe(cleaned)
    if max_length is not None and len(cleaned) > max_length:
        raise ValueError(f"Text must be at most {max_length} characters")
    return cleaned
