"""Pure integer arithmetic shared by the ledger kernels.

All division floors (Python ``//``). Every amount path in the ledger rounds
down, so the ledger never pays out more than it holds.
"""

from __future__ import annotations

from .errors import InvalidAmountError

MINUTE: int = 60
HOUR: int = 60 * MINUTE
DAY: int = 24 * HOUR
WEEK: int = 7 * DAY


def require_amount(amount: object, *, name: str = "amount") -> int:
    """Validate a strictly positive integer amount."""
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidAmountError(f"{name} must be a positive int, got {amount!r}")
    return amount


def mul_div(a: int, b: int, denominator: int) -> int:
    """``a * b // denominator`` with a zero-denominator guard."""
    if denominator <= 0:
        raise ZeroDivisionError("mul_div denominator must be positive")
    return (a * b) // denominator


def capped(elapsed: int, cap: int | None) -> int:
    """Clamp an elapsed duration to an optional upper bound."""
    if cap is None:
        return elapsed
    return min(elapsed, cap)
