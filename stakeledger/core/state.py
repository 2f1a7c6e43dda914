"""Ledger state aggregate and its plain-dict serialization.

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping

from .claims import DebtTable
from .stake import EMPTY_PARTICIPANT, Participant
from .streams import RewardStream

STREAM_FIELD_NAMES: tuple[str, ...] = tuple(f.name for f in fields(RewardStream))


@dataclass(frozen=True)
class LedgerState:
    """Complete accounting state of one ledger instance.

    Instances are never mutated after construction; transitions build a new
    state and the shell swaps the reference.
    """

    participants: Mapping[str, Participant] = field(default_factory=dict)
    total_staked: int = 0
    streams: Mapping[str, RewardStream] = field(default_factory=dict)
    debts: DebtTable = field(default_factory=DebtTable)

    def participant(self, participant_id: str) -> Participant:
        return self.participants.get(participant_id, EMPTY_PARTICIPANT)

    def reserves(self, asset: str) -> int:
        stream = self.streams.get(asset)
        return 0 if stream is None else stream.reserves


def initial_state() -> LedgerState:
    return LedgerState()


def state_to_dict(state: LedgerState) -> Dict[str, Any]:
    """Serialize to JSON-compatible primitives with deterministic ordering."""
    return {
        "total_staked": state.total_staked,
        "participants": {
            pid: {"balance": p.balance, "commitment_start": p.commitment_start}
            for pid, p in sorted(state.participants.items())
            if p.balance > 0
        },
        "streams": {
            asset: {name: getattr(s, name) for name in STREAM_FIELD_NAMES}
            for asset, s in sorted(state.streams.items())
        },
        "debts": [[pid, asset, debt] for (pid, asset), debt in state.debts.items()],
    }


def state_from_dict(d: Mapping[str, Any]) -> LedgerState:
    """Deserialize a dict produced by `state_to_dict`. Raises KeyError on missing fields."""
    participants = {
        str(pid): Participant(balance=int(p["balance"]), commitment_start=p["commitment_start"])
        for pid, p in d["participants"].items()
    }
    streams = {str(asset): RewardStream(**dict(s)) for asset, s in d["streams"].items()}
    for asset, stream in streams.items():
        if stream.asset != asset:
            raise ValueError(f"stream key {asset!r} does not match record asset {stream.asset!r}")
    debt_rows: List[Any] = list(d["debts"])
    debts = DebtTable({(str(pid), str(asset)): int(debt) for pid, asset, debt in debt_rows})
    total = int(d["total_staked"])
    return LedgerState(participants=participants, total_staked=total, streams=streams, debts=debts)
