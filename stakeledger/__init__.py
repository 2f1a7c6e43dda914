"""
stakeledger: staking ledger with multi-asset reward streams and a
time-weighted commitment score.

Public API:
- `StakingLedger(custody, config=..., clock=...)`
- `LedgerConfig`, `load_config(path)`
- `InMemoryCustody`
"""

from .core import (
    CustodyError,
    InsufficientBalanceError,
    InsufficientEscrowError,
    InsufficientFundsError,
    InsufficientReserveError,
    InvalidAmountError,
    LedgerConfig,
    LedgerError,
    LedgerInvariantError,
    LedgerState,
    ReentrantCallError,
    RewardAssetLimitError,
    StreamNotArchivableError,
    load_config,
)
from .integration import LedgerCommand, LedgerStepResult, StakingLedger, step, step_or_raise
from .state import Custody, InMemoryCustody, compute_state_root

__all__ = [
    "CustodyError",
    "InsufficientBalanceError",
    "InsufficientEscrowError",
    "InsufficientFundsError",
    "InsufficientReserveError",
    "InvalidAmountError",
    "LedgerConfig",
    "LedgerError",
    "LedgerInvariantError",
    "LedgerState",
    "ReentrantCallError",
    "RewardAssetLimitError",
    "StreamNotArchivableError",
    "load_config",
    "LedgerCommand",
    "LedgerStepResult",
    "StakingLedger",
    "step",
    "step_or_raise",
    "Custody",
    "InMemoryCustody",
    "compute_state_root",
]
