from decimal import ROUND_HALF_UP, Decimal

DEFAULT_PLATFORM_FEE_RATE = Decimal("0.15")
_ONE = Decimal("1")


def to_minor_units(price: Decimal) -> int:
    """Return ``round(price * 100)`` with halves rounded up."""
    return int((Decimal(price) * 100).quantize(_ONE, rounding=ROUND_HALF_UP))


def platform_fee(amount: int, rate: Decimal = DEFAULT_PLATFORM_FEE_RATE) -> int:
    """Return the platform's share of ``amount`` minor units."""
    if rate < 0 or rate > 1:
        raise ValueError("platform fee rate must be between 0 and 1")
    return int((Decimal(amount) * rate).quantize(_ONE, rounding=ROUND_HALF_UP))
