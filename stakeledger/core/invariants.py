"""Invariant checkers for the ledger state.

Each function returns True when the invariant holds; `check_all()` returns the
list of violated invariant IDs (empty = all pass).

Custody-backed invariants (escrow, reserves) only run when a custody balance
snapshot is supplied. Funds can leave custody without the ledger's help, so
the shell does not require them to hold outright; it uses
`custody_regressions()` to reject only transitions that widen a shortfall.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from .claims import pending_reward
from .config import LedgerConfig
from .state import LedgerState


@dataclass(frozen=True)
class InvariantContext:
    state: LedgerState
    config: LedgerConfig
    # asset -> amount held by the custody account
    custody: Optional[Mapping[str, int]] = None


def inv_total_matches_balances(ctx: InvariantContext) -> bool:
    return ctx.state.total_staked == sum(p.balance for p in ctx.state.participants.values())


def inv_commitment_start_iff_balance(ctx: InvariantContext) -> bool:
    return all(
        (p.commitment_start is None) == (p.balance == 0) for p in ctx.state.participants.values()
    )


def inv_stream_conservation(ctx: InvariantContext) -> bool:
    # credited == claimed + vested-unclaimed + unvested
    return all(
        s.credited_total == s.claimed_total + s.available_pool + s.unvested
        for s in ctx.state.streams.values()
    )


def inv_archived_streams_drained(ctx: InvariantContext) -> bool:
    return all(s.reserves == 0 for s in ctx.state.streams.values() if s.archived)


def inv_pending_covered_by_pool(ctx: InvariantContext) -> bool:
    state = ctx.state
    scale = ctx.config.acc_scale
    for asset, stream in state.streams.items():
        # Fully withdrawn participants keep their accrued rewards in the debt table.
        holders = set(state.participants) | {pid for (pid, a), _ in state.debts.items() if a == asset}
        owed = sum(
            pending_reward(
                state.participant(pid).balance, stream.acc_per_share, state.debts.get(pid, asset), scale
            )
            for pid in holders
        )
        if owed > stream.available_pool:
            return False
    return True


def escrow_shortfall(state: LedgerState, config: LedgerConfig, custody: Mapping[str, int]) -> int:
    """Base-asset units custody lacks to cover stake plus base-asset reward reserves."""
    base = config.base_asset
    return max(state.total_staked + state.reserves(base) - custody.get(base, 0), 0)


def reserve_shortfalls(state: LedgerState, config: LedgerConfig, custody: Mapping[str, int]) -> dict[str, int]:
    """Per reward asset, units custody lacks to cover that stream's reserves."""
    base = config.base_asset
    out: dict[str, int] = {}
    for asset, stream in state.streams.items():
        held = custody.get(asset, 0)
        if asset == base:
            held -= state.total_staked
        out[asset] = max(stream.reserves - held, 0)
    return out


def inv_escrow_covered(ctx: InvariantContext) -> bool:
    if ctx.custody is None:
        return True
    return escrow_shortfall(ctx.state, ctx.config, ctx.custody) == 0


def inv_reserves_covered(ctx: InvariantContext) -> bool:
    if ctx.custody is None:
        return True
    return not any(reserve_shortfalls(ctx.state, ctx.config, ctx.custody).values())


INVARIANT_REGISTRY: dict[str, Callable[[InvariantContext], bool]] = {
    "inv_total_matches_balances": inv_total_matches_balances,
    "inv_commitment_start_iff_balance": inv_commitment_start_iff_balance,
    "inv_stream_conservation": inv_stream_conservation,
    "inv_archived_streams_drained": inv_archived_streams_drained,
    "inv_pending_covered_by_pool": inv_pending_covered_by_pool,
    "inv_escrow_covered": inv_escrow_covered,
    "inv_reserves_covered": inv_reserves_covered,
}


def check_all(
    state: LedgerState,
    config: LedgerConfig,
    custody: Optional[Mapping[str, int]] = None,
) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    ctx = InvariantContext(state=state, config=config, custody=custody)
    return [inv_id for inv_id, check_fn in INVARIANT_REGISTRY.items() if not check_fn(ctx)]


def accumulators_monotone(before: LedgerState, after: LedgerState) -> bool:
    """Accumulators never decrease and streams are never dropped."""
    for asset, prev in before.streams.items():
        nxt = after.streams.get(asset)
        if nxt is None or nxt.acc_per_share < prev.acc_per_share:
            return False
    return True


def custody_regressions(
    before: LedgerState,
    before_custody: Mapping[str, int],
    after: LedgerState,
    after_custody: Mapping[str, int],
    config: LedgerConfig,
) -> list[str]:
    """Custody-backed invariant IDs whose shortfall grew from `before` to `after`.

    Funds moved out of custody by someone else leave a shortfall the ledger did
    not cause; a transition is only at fault when it makes that gap larger.
    """
    violations = []
    if escrow_shortfall(after, config, after_custody) > escrow_shortfall(before, config, before_custody):
        violations.append("inv_escrow_covered")
    prev = reserve_shortfalls(before, config, before_custody)
    if any(gap > prev.get(asset, 0) for asset, gap in reserve_shortfalls(after, config, after_custody).items()):
        violations.append("inv_reserves_covered")
    return violations
