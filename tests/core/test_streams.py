"""Tests for stakeledger/core/streams.py: per-asset vesting windows."""

from dataclasses import replace

import pytest

from stakeledger.core.errors import InsufficientReserveError, InvalidAmountError, StreamNotArchivableError
from stakeledger.core.math import DAY, WEEK
from stakeledger.core.streams import (
    RewardStream,
    archive,
    credit_stream,
    is_archivable,
    new_stream,
    pay_out,
    reward_rate,
    settle_stream,
)

SCALE = 10**18


def _credited(amount: int, *, now: int = 0, window: int = WEEK, staked: int = 1000) -> RewardStream:
    return credit_stream(new_stream("WETH"), amount, now, window, staked, SCALE)


class TestRecord:
    def test_new_stream_is_zeroed(self):
        s = new_stream("WETH")
        assert s.reserves == 0
        assert s.acc_per_share == 0
        assert not s.archived

    def test_vested_above_total_rejected(self):
        with pytest.raises(ValueError):
            RewardStream(asset="WETH", stream_total=1, vested=2)

    def test_negative_field_rejected(self):
        with pytest.raises(ValueError):
            RewardStream(asset="WETH", available_pool=-1)


class TestSettle:
    def test_linear_vesting(self):
        s = settle_stream(_credited(1000), 3 * DAY, 1000, SCALE)
        assert s.vested == 428
        assert s.available_pool == 428
        assert s.acc_per_share == 428 * SCALE // 1000
        assert s.last_settled == 3 * DAY

    def test_idempotent(self):
        once = settle_stream(_credited(1000), 3 * DAY, 1000, SCALE)
        assert settle_stream(once, 3 * DAY, 1000, SCALE) == once

    def test_paused_without_depositors(self):
        s = _credited(1000, staked=0)
        assert settle_stream(s, 5 * DAY, 0, SCALE) is s

    def test_full_total_vests_at_end(self):
        s = settle_stream(_credited(1001), WEEK + 10, 3, SCALE)
        assert s.vested == 1001
        assert s.unvested == 0
        assert s.last_settled == WEEK

    def test_nothing_before_start(self):
        s = _credited(1000, now=100)
        assert settle_stream(s, 100, 1000, SCALE) is s

    def test_scaled_remainder_is_carried(self):
        s = credit_stream(new_stream("WETH"), 1, 0, 1, 3, 10)
        s = settle_stream(s, 1, 3, 10)
        assert s.acc_per_share == 3
        assert s.carry == 1
        assert settle_stream(s, 2, 3, 10) == s
        # Fewer depositors later: the remainder is released.
        s = settle_stream(s, 2, 1, 10)
        assert s.acc_per_share == 4
        assert s.carry == 0


class TestCredit:
    def test_zero_rejected(self):
        with pytest.raises(InvalidAmountError):
            _credited(0)

    def test_mid_stream_top_up_keeps_unvested_remainder(self):
        s = _credited(3000, window=3 * DAY)
        s = credit_stream(s, 1000, DAY, 3 * DAY, 1000, SCALE)
        assert s.available_pool == 1000
        assert s.stream_total == 3000
        assert s.vested == 0
        assert (s.stream_start, s.stream_end, s.last_settled) == (DAY, 4 * DAY, DAY)
        assert s.credited_total == 4000

    def test_credit_while_paused_keeps_everything(self):
        s = _credited(1000, staked=0)
        s = credit_stream(s, 500, 10 * DAY, WEEK, 0, SCALE)
        assert s.stream_total == 1500
        assert s.available_pool == 0

    def test_credit_after_window_starts_clean(self):
        s = _credited(1000)
        s = credit_stream(s, 200, 2 * WEEK, WEEK, 1000, SCALE)
        assert s.available_pool == 1000
        assert s.stream_total == 200


class TestPayOut:
    def test_pay_out(self):
        s = settle_stream(_credited(1000), WEEK, 1000, SCALE)
        s = pay_out(s, 400)
        assert s.available_pool == 600
        assert s.claimed_total == 400

    def test_over_pool_rejected(self):
        s = settle_stream(_credited(1000), DAY, 1000, SCALE)
        with pytest.raises(InsufficientReserveError):
            pay_out(s, s.available_pool + 1)


class TestArchive:
    def test_requires_drained_finished_stream(self):
        s = settle_stream(_credited(1000), WEEK, 1000, SCALE)
        assert not is_archivable(s, WEEK)
        with pytest.raises(StreamNotArchivableError):
            archive(s, WEEK)
        drained = pay_out(s, 1000)
        assert is_archivable(drained, WEEK)
        archived = archive(drained, WEEK)
        assert archived.archived
        assert archived.acc_per_share == s.acc_per_share

    def test_archived_stream_does_not_settle(self):
        s = replace(new_stream("WETH"), archived=True)
        assert settle_stream(s, 100, 10, SCALE) is s


def test_reward_rate() -> None:
    s = _credited(5 * 3 * DAY, window=3 * DAY)
    assert reward_rate(s, 0) == 5
    assert reward_rate(s, 3 * DAY) == 0
