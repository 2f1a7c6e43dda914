"""
Staking ledger (imperative shell around the pure kernels in `stakeledger.core`).

Responsibilities:
- read the clock once per entry point,
- measure custody balances instead of trusting requested amounts,
- serialize entry points (one at a time per instance, no re-entry),
- check invariants on the candidate state, send custody outflows only after
  the check passes and commit by swapping a single reference, so a failed
  call leaves the previous state untouched,
- log one structured event per successful mutation.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ..core import engine
from ..core.config import LedgerConfig
from ..core.errors import (
    InsufficientEscrowError,
    InsufficientReserveError,
    InvalidAmountError,
    LedgerError,
    LedgerInvariantError,
    ReentrantCallError,
)
from ..core.invariants import accumulators_monotone, check_all, custody_regressions
from ..core.math import require_amount
from ..core.state import LedgerState, initial_state
from ..core.streams import RewardStream, reward_rate, settle_stream
from ..core.voting import voting_power
from ..state.custody import Custody
from ..state.snapshot import compute_state_root
from .events import log_event


log = logging.getLogger("stakeledger.ledger")

Clock = Callable[[], int]


def _wall_clock() -> int:
    return int(time.time())


class StakingLedger:
    def __init__(
        self,
        custody: Custody,
        *,
        config: LedgerConfig = LedgerConfig(),
        clock: Optional[Clock] = None,
        state: Optional[LedgerState] = None,
    ) -> None:
        self._custody = custody
        self._config = config
        self._clock = clock or _wall_clock
        self._state = state if state is not None else initial_state()
        self._lock = threading.Lock()
        self._owner: Optional[int] = None

    @property
    def config(self) -> LedgerConfig:
        return self._config

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def base_asset(self) -> str:
        return self._config.base_asset

    def _now(self) -> int:
        now = self._clock()
        if not isinstance(now, int) or isinstance(now, bool) or now < 0:
            raise TypeError(f"clock must return a non-negative int, got {now!r}")
        return now

    @contextmanager
    def _entry(self, op: str) -> Iterator[None]:
        me = threading.get_ident()
        if self._owner == me:
            raise ReentrantCallError(f"{op} called while another ledger entry point is running")
        with self._lock:
            self._owner = me
            try:
                yield
            finally:
                self._owner = None

    # -- custody measurement -------------------------------------------------

    def _custody_snapshot(self, *states: LedgerState) -> Dict[str, int]:
        assets = {self.base_asset}
        for state in states:
            assets.update(state.streams)
        return {asset: self._custody.balance_of(asset) for asset in sorted(assets)}

    def _unaccounted(self, state: LedgerState, asset: str) -> int:
        tracked = state.reserves(asset)
        if asset == self.base_asset:
            tracked += state.total_staked
        return max(self._custody.balance_of(asset) - tracked, 0)

    def _commit(
        self,
        candidate: LedgerState,
        outflows: Iterable[Tuple[str, str, int]] = (),
        baseline: Optional[Dict[str, int]] = None,
    ) -> None:
        """Check `candidate`, perform `outflows` (asset, to, amount), then swap it in.

        `baseline` is the custody snapshot taken before the call moved anything
        in; it defaults to the current balances.
        """
        outflows = list(outflows)
        current = self._custody_snapshot(self._state, candidate)
        projected = dict(current)
        for asset, _, amount in outflows:
            projected[asset] = projected.get(asset, 0) - amount
        for asset, held in projected.items():
            if held >= 0:
                continue
            error = InsufficientEscrowError if asset == self.base_asset else InsufficientReserveError
            raise error(f"custody holds {current[asset]} {asset}, payouts need {current[asset] - held}")
        if self._config.check_invariants:
            before = dict(current)
            if baseline is not None:
                before.update(baseline)
            violations = check_all(candidate, self._config)
            violations += custody_regressions(self._state, before, candidate, projected, self._config)
            if not accumulators_monotone(self._state, candidate):
                violations.append("inv_accumulator_monotone")
            if violations:
                log.error("ledger invariant violations: %s", ", ".join(violations))
                raise LedgerInvariantError(violations)
        for asset, to, amount in outflows:
            self._custody.transfer(asset, to, amount)
        self._state = candidate

    # -- mutating entry points ----------------------------------------------

    def deposit(self, participant: str, amount: int) -> int:
        """Pull `amount` of the base asset from `participant` and stake what arrived.

        Returns the measured amount credited (less than `amount` for
        fee-on-transfer base assets). If the stake cannot be committed the
        received amount is sent back before the error propagates.
        """
        with self._entry("deposit"):
            require_amount(amount)
            now = self._now()
            baseline = self._custody_snapshot(self._state)
            before = baseline[self.base_asset]
            self._custody.collect(self.base_asset, participant, amount)
            received = self._custody.balance_of(self.base_asset) - before
            if received <= 0:
                raise InvalidAmountError(f"deposit of {amount} delivered nothing to custody")
            try:
                self._commit(
                    engine.deposit(self._state, participant, received, now, self._config), baseline=baseline
                )
            except LedgerError:
                self._custody.transfer(self.base_asset, participant, received)
                raise
            log_event(
                log,
                "Deposited",
                participant=participant,
                requested=amount,
                received=received,
                balance=self._state.participant(participant).balance,
                total=self._state.total_staked,
                at=now,
            )
            return received

    def withdraw(self, participant: str, amount: int, recipient: Optional[str] = None) -> int:
        """Unstake `amount` and send it to `recipient` (default: the participant).

        Rewards are not auto-claimed. Returns the participant's new voting power.
        """
        with self._entry("withdraw"):
            now = self._now()
            escrow = self._custody.balance_of(self.base_asset) - self._state.reserves(self.base_asset)
            candidate = engine.withdraw(
                self._state, participant, amount, now, self._config, escrow_available=escrow
            )
            to = recipient if recipient is not None else participant
            self._commit(candidate, [(self.base_asset, to, amount)])
            after = candidate.participant(participant)
            power = voting_power(
                after.balance,
                after.commitment_start,
                now,
                self._config.voting_power_normalization,
                self._config.max_commitment_lookback,
            )
            log_event(
                log,
                "Withdrawn",
                participant=participant,
                recipient=to,
                amount=amount,
                balance=after.balance,
                voting_power=power,
                total=candidate.total_staked,
                at=now,
            )
            return power

    def credit_new_reward(self, asset: str, amount: int) -> None:
        """Start vesting `amount` of `asset` that a collaborator already delivered."""
        with self._entry("credit_new_reward"):
            now = self._now()
            self._credit(asset, amount, now)

    def accrue_rewards(self, asset: str) -> int:
        """Credit whatever `asset` balance custody holds beyond tracked reserves."""
        with self._entry("accrue_rewards"):
            now = self._now()
            unaccounted = self._unaccounted(self._state, asset)
            if unaccounted == 0:
                return 0
            self._credit(asset, unaccounted, now)
            return unaccounted

    def _credit(self, asset: str, amount: int, now: int) -> None:
        unaccounted = self._unaccounted(self._state, asset)
        self._commit(
            engine.credit_new_reward(self._state, asset, amount, now, self._config, unaccounted=unaccounted)
        )
        stream = self._state.streams[asset]
        log_event(
            log,
            "RewardCredited",
            asset=asset,
            amount=amount,
            stream_total=stream.stream_total,
            stream_end=stream.stream_end,
            at=now,
        )

    def claim(self, participant: str, assets: Iterable[str], recipient: Optional[str] = None) -> Dict[str, int]:
        """Pay out pending rewards for `assets`. Returns {asset: amount paid}."""
        with self._entry("claim"):
            requested = list(assets)
            if not requested:
                return {}
            now = self._now()
            candidate, payouts = engine.claim(self._state, participant, requested, now, self._config)
            to = recipient if recipient is not None else participant
            self._commit(candidate, [(asset, to, paid) for asset, paid in payouts.items()])
            if payouts:
                log_event(log, "RewardsClaimed", participant=participant, recipient=to, payouts=payouts, at=now)
            return payouts

    def archive_stream(self, asset: str) -> None:
        with self._entry("archive_stream"):
            now = self._now()
            self._commit(engine.archive_stream(self._state, asset, now, self._config))
            log_event(log, "StreamArchived", asset=asset, at=now)

    # -- read-only views -----------------------------------------------------

    def balance_of(self, participant: str) -> int:
        return self._state.participant(participant).balance

    def commitment_start_of(self, participant: str) -> Optional[int]:
        return self._state.participant(participant).commitment_start

    def total_deposited(self) -> int:
        return self._state.total_staked

    def reward_assets(self) -> List[str]:
        return engine.active_reward_assets(self._state)

    def stream(self, asset: str) -> Optional[RewardStream]:
        """Stream record settled to the current time (not committed)."""
        s = self._state.streams.get(asset)
        if s is None:
            return None
        return settle_stream(s, self._now(), self._state.total_staked, self._config.acc_scale)

    def claimable(self, participant: str, asset: str) -> int:
        return engine.claimable(self._state, participant, asset, self._now(), self._config)

    def voting_power(self, participant: str, as_of: Optional[int] = None) -> int:
        p = self._state.participant(participant)
        return voting_power(
            p.balance,
            p.commitment_start,
            self._now() if as_of is None else as_of,
            self._config.voting_power_normalization,
            self._config.max_commitment_lookback,
        )

    def outstanding_rewards(self, asset: str) -> Tuple[int, int]:
        """(vested claimable pool, custody balance not yet credited)."""
        s = self.stream(asset)
        available = 0 if s is None else s.available_pool
        return available, self._unaccounted(self._state, asset)

    def reward_rate(self, asset: str) -> int:
        s = self.stream(asset)
        return 0 if s is None else reward_rate(s, self._now())

    def state_root(self) -> str:
        return compute_state_root(self._state)
