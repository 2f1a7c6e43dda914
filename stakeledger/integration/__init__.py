"""
Stateful ledger shell and command dispatch
"""

from .commands import LedgerCommand, LedgerStepResult, command_from_mapping, step, step_or_raise
from .ledger import StakingLedger

__all__ = [
    "LedgerCommand",
    "LedgerStepResult",
    "command_from_mapping",
    "step",
    "step_or_raise",
    "StakingLedger",
]
