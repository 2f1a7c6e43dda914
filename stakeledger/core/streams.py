"""
Reward stream kernel (one independent vesting window per reward asset).

Each `RewardStream` owns its own window. Crediting asset B never touches the
record of asset A, so a top-up of one asset cannot reset the vesting clock of
another.

Settlement semantics:
- nothing vests while the pool has no depositors (the watermark stays put, so
  the paused share is released to whoever deposits next),
- vesting is cumulative over the window (`vested` is recomputed from the
  window start), so the full `stream_total` is vested exactly at `stream_end`,
- the accumulator carries its scaled rounding remainder (`carry`) into the next
  accrual instead of dropping it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .errors import InsufficientReserveError, StreamNotArchivableError
from .math import mul_div, require_amount


@dataclass(frozen=True)
class RewardStream:
    """Per-asset stream state."""

    asset: str
    available_pool: int = 0
    stream_total: int = 0
    vested: int = 0
    stream_start: int = 0
    stream_end: int = 0
    last_settled: int = 0
    acc_per_share: int = 0
    carry: int = 0
    credited_total: int = 0
    claimed_total: int = 0
    archived: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.asset, str) or not self.asset:
            raise TypeError("asset must be a non-empty str")
        for name in (
            "available_pool",
            "stream_total",
            "vested",
            "stream_start",
            "stream_end",
            "last_settled",
            "acc_per_share",
            "carry",
            "credited_total",
            "claimed_total",
        ):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
        if self.vested > self.stream_total:
            raise ValueError("vested must be <= stream_total")
        if self.stream_start > self.stream_end:
            raise ValueError("stream_start must be <= stream_end")

    @property
    def unvested(self) -> int:
        return self.stream_total - self.vested

    @property
    def reserves(self) -> int:
        """Everything the custody must hold for this stream."""
        return self.available_pool + self.unvested


def new_stream(asset: str) -> RewardStream:
    return RewardStream(asset=asset)


def settle_stream(stream: RewardStream, now: int, total_staked: int, scale: int) -> RewardStream:
    """Vest everything due up to `now` and advance the accumulator.

    Pure and idempotent: settling twice at the same `now` with the same
    `total_staked` returns an equal record.
    """
    if stream.archived or total_staked == 0:
        return stream
    if stream.stream_end <= stream.stream_start or now <= stream.stream_start:
        return stream

    settle_to = min(now, stream.stream_end)
    if settle_to >= stream.stream_end:
        target = stream.stream_total
    else:
        duration = stream.stream_end - stream.stream_start
        target = mul_div(stream.stream_total, settle_to - stream.stream_start, duration)
    just_vested = max(target - stream.vested, 0)

    scaled = just_vested * scale + stream.carry
    delta_acc = scaled // total_staked
    carry = scaled - delta_acc * total_staked

    if just_vested == 0 and delta_acc == 0 and settle_to <= stream.last_settled:
        return stream
    return replace(
        stream,
        available_pool=stream.available_pool + just_vested,
        vested=stream.vested + just_vested,
        acc_per_share=stream.acc_per_share + delta_acc,
        carry=carry,
        last_settled=max(settle_to, stream.last_settled),
    )


def credit_stream(
    stream: RewardStream,
    amount: int,
    now: int,
    window: int,
    total_staked: int,
    scale: int,
) -> RewardStream:
    """Start a fresh window holding `amount` plus the old unvested remainder."""
    require_amount(amount)
    settled = settle_stream(stream, now, total_staked, scale)
    remainder = settled.unvested
    return replace(
        settled,
        stream_total=amount + remainder,
        vested=0,
        stream_start=now,
        stream_end=now + window,
        last_settled=now,
        credited_total=settled.credited_total + amount,
        archived=False,
    )


def pay_out(stream: RewardStream, amount: int) -> RewardStream:
    """Remove a claimed amount from the vested pool."""
    if amount < 0:
        raise ValueError(f"payout must be non-negative: {amount}")
    if amount > stream.available_pool:
        raise InsufficientReserveError(
            f"claim of {amount} {stream.asset} exceeds vested pool {stream.available_pool}"
        )
    return replace(
        stream,
        available_pool=stream.available_pool - amount,
        claimed_total=stream.claimed_total + amount,
    )


def is_archivable(stream: RewardStream, now: int) -> bool:
    return (
        not stream.archived
        and now >= stream.stream_end
        and stream.available_pool == 0
        and stream.unvested == 0
    )


def archive(stream: RewardStream, now: int) -> RewardStream:
    """Mark a drained, finished stream as archived. The accumulator is kept."""
    if not is_archivable(stream, now):
        raise StreamNotArchivableError(
            f"stream {stream.asset} is still active or holds unclaimed rewards"
        )
    return replace(stream, archived=True)


def reward_rate(stream: RewardStream, now: int) -> int:
    """Unvested amount released per second over the rest of the window."""
    if stream.archived or now >= stream.stream_end or stream.unvested == 0:
        return 0
    return stream.unvested // (stream.stream_end - max(now, stream.stream_start))
