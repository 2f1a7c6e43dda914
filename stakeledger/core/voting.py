"""Commitment score (voting power): balance x time held, normalized."""

from __future__ import annotations

from typing import Optional

from .math import capped, mul_div


def commitment_age(commitment_start: Optional[int], as_of: int, lookback: Optional[int] = None) -> int:
    """Seconds counted towards the score, 0 before the start or with no stake."""
    if commitment_start is None or as_of < commitment_start:
        return 0
    return capped(as_of - commitment_start, lookback)


def voting_power(
    balance: int,
    commitment_start: Optional[int],
    as_of: int,
    normalization: int,
    lookback: Optional[int] = None,
) -> int:
    """``balance * age // normalization``.

    Timing noise shorter than `normalization` rounds away for small balances.
    """
    if balance <= 0:
        return 0
    return mul_div(balance, commitment_age(commitment_start, as_of, lookback), normalization)
