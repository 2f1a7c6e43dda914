"""
Stake ledger kernel: per-participant balance and commitment start.

The commitment start is recomputed as a value from
(old balance, old start, new balance, now) on every balance change:

- first deposit (old balance 0): start = now
- top-up: start = now - old * elapsed // new   (score unchanged at the instant)
- partial withdrawal: start = now - elapsed * new // old   (age decays proportionally)
- full withdrawal: start = None

Floor division shortens the counted elapsed time, so rounding always works
against the participant.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .errors import InsufficientBalanceError
from .math import capped, mul_div, require_amount


@dataclass(frozen=True)
class Participant:
    balance: int = 0
    commitment_start: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.balance, int) or isinstance(self.balance, bool):
            raise TypeError("balance must be an int")
        if self.balance < 0:
            raise ValueError("balance must be non-negative")
        if (self.commitment_start is None) != (self.balance == 0):
            raise ValueError("commitment_start must be None iff balance == 0")


EMPTY_PARTICIPANT = Participant()


def rebalance_commitment_start(
    old_balance: int,
    old_start: Optional[int],
    new_balance: int,
    now: int,
    lookback: Optional[int] = None,
) -> Optional[int]:
    """Commitment start after a balance change from `old_balance` to `new_balance`."""
    if new_balance == 0:
        return None
    if old_balance == 0 or old_start is None:
        return now
    elapsed = capped(max(now - old_start, 0), lookback)
    if new_balance >= old_balance:
        return now - mul_div(old_balance, elapsed, new_balance)
    return now - mul_div(elapsed, new_balance, old_balance)


def apply_deposit(
    participant: Participant, amount: int, now: int, lookback: Optional[int] = None
) -> Participant:
    require_amount(amount)
    new_balance = participant.balance + amount
    return replace(
        participant,
        balance=new_balance,
        commitment_start=rebalance_commitment_start(
            participant.balance, participant.commitment_start, new_balance, now, lookback
        ),
    )


def apply_withdraw(
    participant: Participant, amount: int, now: int, lookback: Optional[int] = None
) -> Participant:
    require_amount(amount)
    if amount > participant.balance:
        raise InsufficientBalanceError(
            f"withdraw {amount} exceeds deposited balance {participant.balance}"
        )
    new_balance = participant.balance - amount
    return replace(
        participant,
        balance=new_balance,
        commitment_start=rebalance_commitment_start(
            participant.balance, participant.commitment_start, new_balance, now, lookback
        ),
    )
