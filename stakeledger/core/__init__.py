"""
Core accounting kernels (pure, integer-only).
"""

from .claims import DebtTable, pending_reward
from .config import LedgerConfig, config_from_mapping, load_config
from .engine import (
    active_reward_assets,
    archive_stream,
    claim,
    claimable,
    credit_new_reward,
    deposit,
    settle_all,
    withdraw,
)
from .errors import (
    CustodyError,
    InsufficientBalanceError,
    InsufficientEscrowError,
    InsufficientFundsError,
    InsufficientReserveError,
    InvalidAmountError,
    LedgerError,
    LedgerInvariantError,
    ReentrantCallError,
    RewardAssetLimitError,
    StreamNotArchivableError,
)
from .invariants import INVARIANT_REGISTRY, check_all
from .stake import Participant, rebalance_commitment_start
from .state import LedgerState, initial_state, state_from_dict, state_to_dict
from .streams import RewardStream, credit_stream, settle_stream
from .voting import commitment_age, voting_power

__all__ = [
    "DebtTable",
    "pending_reward",
    "LedgerConfig",
    "config_from_mapping",
    "load_config",
    "active_reward_assets",
    "archive_stream",
    "claim",
    "claimable",
    "credit_new_reward",
    "deposit",
    "settle_all",
    "withdraw",
    "CustodyError",
    "InsufficientBalanceError",
    "InsufficientEscrowError",
    "InsufficientFundsError",
    "InsufficientReserveError",
    "InvalidAmountError",
    "LedgerError",
    "LedgerInvariantError",
    "ReentrantCallError",
    "RewardAssetLimitError",
    "StreamNotArchivableError",
    "INVARIANT_REGISTRY",
    "check_all",
    "Participant",
    "rebalance_commitment_start",
    "LedgerState",
    "initial_state",
    "state_from_dict",
    "state_to_dict",
    "RewardStream",
    "credit_stream",
    "settle_stream",
    "commitment_age",
    "voting_power",
]
