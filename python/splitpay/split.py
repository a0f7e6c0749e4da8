"""Amount splitting for split payments."""

import math
from decimal import ROUND_FLOOR, Decimal, InvalidOperation, localcontext

from .constants import BPS_DENOMINATOR, FEE_BPS, RECIPIENT_BPS
from .errors import InvalidAmount

# Enough significant digits that scaling by 10^precision never rounds
ATOMIC_CONTEXT_PRECISION = 96


def parse_amount(amount: Decimal | float | int | str) -> Decimal:
    """Convert a user-facing amount to a positive finite ``Decimal``.

    Floats go through ``str`` so that 10.5 is 10.5 and not its binary
    approximation.

    Raises:
        InvalidAmount: If the amount is not a number, not finite, or <= 0.
    """
    if isinstance(amount, bool):
        raise InvalidAmount(f"Invalid amount: {amount!r}")
    if isinstance(amount, float) and not math.isfinite(amount):
        raise InvalidAmount(f"Invalid amount: {amount!r}")

    try:
        if isinstance(amount, float):
            value = Decimal(repr(amount))
        elif isinstance(amount, str):
            value = Decimal(amount.strip())
        else:
            value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Invalid amount: {amount!r}") from None

    if not value.is_finite():
        raise InvalidAmount(f"Invalid amount: {amount!r}")
    if value <= 0:
        raise InvalidAmount(f"Amount must be greater than 0, got {amount!r}")
    return value


def to_atomic(value: Decimal, precision: int) -> int:
    """floor(value * 10^precision)."""
    with localcontext() as ctx:
        ctx.prec = ATOMIC_CONTEXT_PRECISION
        scaled = value * (Decimal(10) ** precision)
        return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def split_amounts(
    amount: Decimal | float | int | str,
    precision: int,
) -> tuple[int, int]:
    """Split ``amount`` into (recipient, fee) atomic amounts, 99% / 1%.

    Each share is truncated independently, then the pair is capped at
    floor(float(amount) * 10^precision). When the cap bites, the fee leg
    absorbs the difference.

    Args:
        amount: Amount in user units (> 0).
        precision: Asset decimals (>= 0).

    Returns:
        Tuple of (recipient_atomic, fee_atomic).

    Raises:
        InvalidAmount: If amount <= 0 or precision < 0.
    """
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise InvalidAmount(f"precision must be an integer, got {precision!r}")
    if precision < 0:
        raise InvalidAmount(f"precision must be >= 0, got {precision}")

    value = parse_amount(amount)
    with localcontext() as ctx:
        ctx.prec = ATOMIC_CONTEXT_PRECISION
        recipient_share = value * RECIPIENT_BPS / BPS_DENOMINATOR
        fee_share = value * FEE_BPS / BPS_DENOMINATOR

    recipient = to_atomic(recipient_share, precision)
    fee = to_atomic(fee_share, precision)

    cap = _float_cap(value, precision)
    if cap is not None and recipient + fee > cap:
        recipient = min(recipient, cap)
        fee = cap - recipient
    return recipient, fee


def _float_cap(value: Decimal, precision: int) -> int | None:
    """floor(float(value) * 10^precision), or None when it overflows.

    Wallet UIs compute the total from the float amount, so 32.3 at 3
    decimals is 32299, not 32300. The split never exceeds that figure.
    """
    try:
        scaled = float(value) * 10**precision
        if not math.isfinite(scaled):
            return None
        return math.floor(scaled)
    except OverflowError:
        return None
