"""
Claim/debt accounting over a per-asset accumulator.

Debts are kept in scaled units (balance * accumulator), so

    pending = (balance * acc_per_share - debt) // scale

Rebasing on a balance change adds ``(new - old) * acc_per_share`` to the debt,
which keeps the pending amount (including its sub-unit fraction) unchanged.
A claim adds ``paid * scale``, leaving the fraction claimable later.
"""

from __future__ import annotations

from typing import Dict, Iterator, Tuple

ParticipantId = str
AssetId = str


def pending_reward(balance: int, acc_per_share: int, debt: int, scale: int) -> int:
    return max((balance * acc_per_share - debt) // scale, 0)


def rebase_debt(debt: int, old_balance: int, new_balance: int, acc_per_share: int) -> int:
    return debt + (new_balance - old_balance) * acc_per_share


def debt_after_claim(debt: int, paid: int, scale: int) -> int:
    return debt + paid * scale


class DebtTable:
    """
    Signed debt table mapping (participant, asset) -> scaled debt.

    Zero debts are omitted; a missing entry reads as 0.
    """

    def __init__(self, entries: Dict[Tuple[ParticipantId, AssetId], int] | None = None) -> None:
        self._debts: Dict[Tuple[ParticipantId, AssetId], int] = {}
        for (participant, asset), debt in (entries or {}).items():
            self.set(participant, asset, debt)

    def get(self, participant: ParticipantId, asset: AssetId) -> int:
        return self._debts.get((participant, asset), 0)

    def set(self, participant: ParticipantId, asset: AssetId, debt: int) -> None:
        if not isinstance(debt, int) or isinstance(debt, bool):
            raise TypeError(f"debt must be an int, got {type(debt).__name__}")
        if debt == 0:
            self._debts.pop((participant, asset), None)
        else:
            self._debts[(participant, asset)] = debt

    def copy(self) -> "DebtTable":
        table = DebtTable()
        table._debts = dict(self._debts)
        return table

    def items(self) -> Iterator[Tuple[Tuple[ParticipantId, AssetId], int]]:
        return iter(sorted(self._debts.items()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DebtTable):
            return NotImplemented
        return self._debts == other._debts

    def __len__(self) -> int:
        return len(self._debts)

    def __repr__(self) -> str:
        return f"DebtTable({len(self._debts)} entries)"
