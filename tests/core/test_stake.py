"""Tests for stakeledger/core/stake.py: balance bookkeeping and commitment start."""

import pytest

from stakeledger.core.errors import InsufficientBalanceError, InvalidAmountError
from stakeledger.core.math import DAY
from stakeledger.core.stake import (
    EMPTY_PARTICIPANT,
    Participant,
    apply_deposit,
    apply_withdraw,
    rebalance_commitment_start,
)


class TestParticipantRecord:
    def test_empty(self):
        assert EMPTY_PARTICIPANT.balance == 0
        assert EMPTY_PARTICIPANT.commitment_start is None

    def test_balance_without_start_rejected(self):
        with pytest.raises(ValueError):
            Participant(balance=5)

    def test_start_without_balance_rejected(self):
        with pytest.raises(ValueError):
            Participant(balance=0, commitment_start=10)

    def test_negative_balance_rejected(self):
        with pytest.raises(ValueError):
            Participant(balance=-1, commitment_start=0)


class TestDeposit:
    def test_first_deposit_starts_now(self):
        p = apply_deposit(EMPTY_PARTICIPANT, 1000, now=50)
        assert p == Participant(balance=1000, commitment_start=50)

    def test_top_up_uses_weighted_average(self):
        p = apply_deposit(Participant(balance=1000, commitment_start=0), 1000, now=100)
        assert p.balance == 2000
        assert p.commitment_start == 50

    def test_top_up_truncates_against_depositor(self):
        now = 100 * DAY
        p = apply_deposit(Participant(balance=1000, commitment_start=0), 1, now=now)
        # 1000 * 8_640_000 // 1001 == 8_631_368 (floor of 8_631_368.63)
        assert p.commitment_start == now - 8_631_368

    def test_zero_amount_rejected(self):
        with pytest.raises(InvalidAmountError):
            apply_deposit(EMPTY_PARTICIPANT, 0, now=1)

    def test_bool_amount_rejected(self):
        with pytest.raises(InvalidAmountError):
            apply_deposit(EMPTY_PARTICIPANT, True, now=1)


class TestWithdraw:
    def test_partial_withdraw_scales_elapsed(self):
        p = apply_withdraw(Participant(balance=1000, commitment_start=0), 300, now=1000)
        assert p.balance == 700
        assert p.commitment_start == 300

    def test_full_withdraw_clears_start(self):
        p = apply_withdraw(Participant(balance=1000, commitment_start=0), 1000, now=1000)
        assert p == EMPTY_PARTICIPANT

    def test_over_withdraw_rejected(self):
        with pytest.raises(InsufficientBalanceError):
            apply_withdraw(Participant(balance=10, commitment_start=0), 11, now=5)

    def test_zero_withdraw_rejected(self):
        with pytest.raises(InvalidAmountError):
            apply_withdraw(Participant(balance=10, commitment_start=0), 0, now=5)


class TestRebalanceCommitmentStart:
    def test_zero_new_balance(self):
        assert rebalance_commitment_start(100, 0, 0, 50) is None

    def test_from_zero_balance(self):
        assert rebalance_commitment_start(0, None, 100, 50) == 50

    def test_lookback_caps_elapsed(self):
        assert rebalance_commitment_start(1000, 0, 2000, 1000, lookback=100) == 950

    def test_start_in_future_counts_no_time(self):
        assert rebalance_commitment_start(1000, 200, 2000, 100) == 100

    def test_deposit_withdraw_cycles_never_gain_age(self):
        p = Participant(balance=1000, commitment_start=0)
        now = 10 * DAY
        age_before = now - p.commitment_start
        for _ in range(20):
            p = apply_deposit(p, 777, now)
            p = apply_withdraw(p, 777, now)
        assert p.balance == 1000
        assert now - p.commitment_start <= age_before
