"""Property tests: random operation sequences against a ledger with real custody.

Every committed step is invariant-checked by the ledger itself; these tests add
end-of-run conservation checks once all rewards have vested and been claimed.
"""

from __future__ import annotations

import hypothesis.strategies as st
from hypothesis import given, settings

from stakeledger.core.config import LedgerConfig
from stakeledger.core.math import DAY, WEEK
from stakeledger.integration.commands import LedgerCommand, step
from stakeledger.integration.ledger import StakingLedger
from stakeledger.state.custody import InMemoryCustody

CONFIG = LedgerConfig(base_asset="LEVR", reward_window=WEEK)
STAKERS = ("alice", "bob", "carol")

_op = st.tuples(
    st.sampled_from(["deposit", "withdraw", "reward", "claim"]),
    st.sampled_from(STAKERS),
    st.integers(min_value=1, max_value=10**6),
    st.integers(min_value=0, max_value=2 * WEEK),
)


class Clock:
    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now


def _run(ops):
    custody = InMemoryCustody()
    for who in STAKERS:
        custody.mint(who, "LEVR", 10**9)
    custody.mint("closer", "LEVR", 1)
    custody.mint("treasury", "WETH", 10**12)
    clock = Clock()
    ledger = StakingLedger(custody, config=CONFIG, clock=clock)
    delivered = 0
    paid = 0
    for kind, who, amount, dt in ops:
        clock.now += dt
        if kind == "deposit":
            step(ledger, LedgerCommand("deposit", {"participant": who, "amount": amount}))
        elif kind == "withdraw":
            bal = ledger.balance_of(who)
            step(ledger, LedgerCommand("withdraw", {"participant": who, "amount": min(amount, bal)}))
        elif kind == "reward":
            delivered += custody.send("WETH", "treasury", custody.account, amount)
            assert ledger.accrue_rewards("WETH") == amount
        else:
            paid += sum(ledger.claim(who, ["WETH"]).values())
        assert custody.balance_of("LEVR") == ledger.total_deposited()
    return ledger, custody, clock, delivered, paid


@settings(max_examples=50, deadline=None)
@given(st.lists(_op, min_size=1, max_size=30))
def test_rewards_are_conserved(ops) -> None:
    ledger, custody, clock, delivered, paid = _run(ops)

    ledger.deposit("closer", 1)
    clock.now += WEEK + 1
    holders = sorted(set(ledger.state.participants) | {pid for (pid, _), _ in ledger.state.debts.items()})
    for who in holders:
        paid += sum(ledger.claim(who, ["WETH"]).values())

    stream = ledger.stream("WETH")
    if delivered == 0:
        assert stream is None
        return
    assert stream.unvested == 0
    assert stream.credited_total == delivered
    assert stream.claimed_total == paid
    assert paid + stream.available_pool == delivered
    assert custody.balance_of("WETH") == stream.available_pool
    # Only sub-unit remainders stay behind, at most one per holder.
    assert stream.available_pool <= len(holders)
    for who in holders:
        assert ledger.claimable(who, "WETH") == 0


@settings(max_examples=50, deadline=None)
@given(st.lists(_op, min_size=1, max_size=30))
def test_voting_power_bounded_by_commitment_age(ops) -> None:
    ledger, _, clock, _, _ = _run(ops)
    for who in STAKERS:
        start = ledger.commitment_start_of(who)
        power = ledger.voting_power(who)
        if start is None:
            assert power == 0
            continue
        assert start <= clock.now
        assert power == ledger.balance_of(who) * (clock.now - start) // DAY
