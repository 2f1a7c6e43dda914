"""
Ledger configuration.

`LedgerConfig` is immutable and validated on construction. Deployments keep it
in a YAML file and load it with `load_config()`.

Example::

    base_asset: LEVR
    reward_window: 604800          # seconds
    acc_scale: 1000000000000000000
    voting_power_normalization: 86400
    max_commitment_lookback: null  # seconds, null = uncapped
    max_reward_assets: 10
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .math import DAY, WEEK


@dataclass(frozen=True)
class LedgerConfig:
    """Runtime parameters for one ledger instance."""

    base_asset: str = "base"
    # Length of every reward vesting window (the business timeout).
    reward_window: int = WEEK
    acc_scale: int = 10**18
    voting_power_normalization: int = DAY
    # Upper bound on the elapsed time counted towards commitment score.
    max_commitment_lookback: Optional[int] = None
    # Active reward streams allowed besides the base asset.
    max_reward_assets: int = 10
    # Re-check every invariant before each commit. The pending-reward check
    # walks every holder of every stream, so a commit costs O(holders x streams);
    # large deployments that verify offline can turn this off.
    check_invariants: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.base_asset, str) or not self.base_asset:
            raise TypeError("base_asset must be a non-empty str")
        for name in ("reward_window", "acc_scale", "voting_power_normalization"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v <= 0:
                raise ValueError(f"{name} must be positive: {v}")
        lookback = self.max_commitment_lookback
        if lookback is not None:
            if not isinstance(lookback, int) or isinstance(lookback, bool):
                raise TypeError("max_commitment_lookback must be an int or None")
            if lookback <= 0:
                raise ValueError(f"max_commitment_lookback must be positive: {lookback}")
        if not isinstance(self.max_reward_assets, int) or isinstance(self.max_reward_assets, bool):
            raise TypeError("max_reward_assets must be an int")
        if self.max_reward_assets < 0:
            raise ValueError(f"max_reward_assets must be non-negative: {self.max_reward_assets}")
        if not isinstance(self.check_invariants, bool):
            raise TypeError("check_invariants must be a bool")


_CONFIG_KEYS = frozenset(f.name for f in fields(LedgerConfig))


def config_from_mapping(obj: Mapping[str, Any]) -> LedgerConfig:
    """Build a config from a plain mapping. Unknown keys are rejected."""
    if not isinstance(obj, Mapping):
        raise TypeError("ledger config must be a mapping")
    unknown = sorted(set(obj) - _CONFIG_KEYS)
    if unknown:
        raise ValueError(f"unknown ledger config keys: {', '.join(unknown)}")
    return LedgerConfig(**dict(obj))


def load_config(path: Path | str) -> LedgerConfig:
    """Load a `LedgerConfig` from a YAML file. An empty file yields the defaults."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return LedgerConfig()
    return config_from_mapping(obj)
