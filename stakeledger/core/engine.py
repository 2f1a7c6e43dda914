"""
Pure ledger transitions (functional core).

Every mutating transition first settles all active reward streams at `now`,
then applies its balance change, then rebases the affected debts. The inputs
are never mutated; each function returns a fresh `LedgerState`.

Custody interaction (measuring received amounts, checking escrow, moving
funds) is the caller's job; see `stakeledger.integration.ledger`.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from .claims import DebtTable, debt_after_claim, pending_reward, rebase_debt
from .config import LedgerConfig
from .errors import (
    InsufficientEscrowError,
    InvalidAmountError,
    RewardAssetLimitError,
    StreamNotArchivableError,
)
from .math import require_amount
from .stake import Participant, apply_deposit, apply_withdraw
from .state import LedgerState
from .streams import RewardStream, archive, credit_stream, new_stream, pay_out, settle_stream


def active_reward_assets(state: LedgerState) -> List[str]:
    return sorted(asset for asset, s in state.streams.items() if not s.archived)


def settle_all(state: LedgerState, now: int, config: LedgerConfig) -> LedgerState:
    """Settle every non-archived stream up to `now`."""
    if not state.streams:
        return state
    streams = {
        asset: settle_stream(s, now, state.total_staked, config.acc_scale)
        for asset, s in state.streams.items()
    }
    return replace(state, streams=streams)


def _with_balance(
    state: LedgerState, participant_id: str, updated: Participant
) -> Tuple[Dict[str, Participant], DebtTable]:
    old_balance = state.participant(participant_id).balance
    participants = dict(state.participants)
    if updated.balance == 0:
        participants.pop(participant_id, None)
    else:
        participants[participant_id] = updated

    debts = state.debts.copy()
    for asset, stream in state.streams.items():
        debts.set(
            participant_id,
            asset,
            rebase_debt(debts.get(participant_id, asset), old_balance, updated.balance, stream.acc_per_share),
        )
    return participants, debts


def deposit(
    state: LedgerState, participant_id: str, amount: int, now: int, config: LedgerConfig
) -> LedgerState:
    """Credit `amount` (already received by custody) to `participant_id`."""
    require_amount(amount)
    settled = settle_all(state, now, config)
    updated = apply_deposit(
        settled.participant(participant_id), amount, now, config.max_commitment_lookback
    )
    participants, debts = _with_balance(settled, participant_id, updated)
    return replace(
        settled,
        participants=participants,
        total_staked=settled.total_staked + amount,
        debts=debts,
    )


def withdraw(
    state: LedgerState,
    participant_id: str,
    amount: int,
    now: int,
    config: LedgerConfig,
    escrow_available: Optional[int] = None,
) -> LedgerState:
    """Remove `amount` from `participant_id`. Accrued rewards stay claimable.

    `escrow_available` is the base-asset amount custody can actually release;
    a shortfall raises `InsufficientEscrowError`.
    """
    current = state.participant(participant_id)
    updated = apply_withdraw(current, amount, now, config.max_commitment_lookback)
    if escrow_available is not None and amount > escrow_available:
        raise InsufficientEscrowError(
            f"withdraw {amount} exceeds escrowed base asset {escrow_available}"
        )
    settled = settle_all(state, now, config)
    participants, debts = _with_balance(settled, participant_id, updated)
    return replace(
        settled,
        participants=participants,
        total_staked=settled.total_staked - amount,
        debts=debts,
    )


def credit_new_reward(
    state: LedgerState,
    asset: str,
    amount: int,
    now: int,
    config: LedgerConfig,
    unaccounted: Optional[int] = None,
) -> LedgerState:
    """Start a new vesting window for `asset` (mid-stream top-ups included).

    `unaccounted` is the measured custody balance of `asset` not yet tracked by
    the ledger; declaring more than that is rejected.
    """
    require_amount(amount)
    if unaccounted is not None and amount > unaccounted:
        raise InvalidAmountError(
            f"credit of {amount} {asset} exceeds unaccounted custody balance {unaccounted}"
        )
    existing = state.streams.get(asset)
    if asset != config.base_asset and (existing is None or existing.archived):
        active = [a for a in active_reward_assets(state) if a != config.base_asset]
        if len(active) >= config.max_reward_assets:
            raise RewardAssetLimitError(
                f"cannot add reward asset {asset}: {len(active)} of {config.max_reward_assets} slots in use"
            )

    settled = settle_all(state, now, config)
    stream = settled.streams.get(asset) or new_stream(asset)
    streams = dict(settled.streams)
    streams[asset] = credit_stream(
        stream, amount, now, config.reward_window, settled.total_staked, config.acc_scale
    )
    return replace(settled, streams=streams)


def claimable(
    state: LedgerState, participant_id: str, asset: str, now: int, config: LedgerConfig
) -> int:
    """Pending reward of `asset` as of `now`, settled on a local copy."""
    stream = state.streams.get(asset)
    if stream is None:
        return 0
    settled = settle_stream(stream, now, state.total_staked, config.acc_scale)
    return pending_reward(
        state.participant(participant_id).balance,
        settled.acc_per_share,
        state.debts.get(participant_id, asset),
        config.acc_scale,
    )


def claim(
    state: LedgerState,
    participant_id: str,
    assets: Iterable[str],
    now: int,
    config: LedgerConfig,
) -> Tuple[LedgerState, Dict[str, int]]:
    """Pay out pending rewards for `assets`. Returns (next_state, payouts).

    Unknown assets are skipped; an empty list is a no-op.
    """
    requested = list(dict.fromkeys(assets))
    if not requested:
        return state, {}

    settled = settle_all(state, now, config)
    balance = settled.participant(participant_id).balance
    streams: Dict[str, RewardStream] = dict(settled.streams)
    debts = settled.debts.copy()
    payouts: Dict[str, int] = {}
    for asset in requested:
        stream = streams.get(asset)
        if stream is None:
            continue
        debt = debts.get(participant_id, asset)
        pending = pending_reward(balance, stream.acc_per_share, debt, config.acc_scale)
        if pending == 0:
            continue
        streams[asset] = pay_out(stream, pending)
        debts.set(participant_id, asset, debt_after_claim(debt, pending, config.acc_scale))
        payouts[asset] = pending
    return replace(settled, streams=streams, debts=debts), payouts


def archive_stream(state: LedgerState, asset: str, now: int, config: LedgerConfig) -> LedgerState:
    settled = settle_all(state, now, config)
    stream = settled.streams.get(asset)
    if stream is None:
        raise StreamNotArchivableError(f"unknown reward asset {asset}")
    streams = dict(settled.streams)
    streams[asset] = archive(stream, now)
    return replace(settled, streams=streams)
