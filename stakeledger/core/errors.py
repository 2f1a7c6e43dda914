"""Exception types for the staking ledger.

Validation errors are raised before any state change. State-insufficiency
errors are raised atomically: the ledger keeps its previous state. There are
no retriable internal errors.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class. ``code`` is the stable, language-neutral error kind."""

    code: str = "LedgerError"


class InvalidAmountError(LedgerError):
    """Zero, negative, non-integer or over-declared amount."""

    code = "InvalidAmount"


class InsufficientBalanceError(LedgerError):
    """Withdrawal exceeds the participant's deposited balance."""

    code = "InsufficientBalance"


class InsufficientEscrowError(LedgerError):
    """Custody holds less of the base asset than the withdrawal needs."""

    code = "InsufficientEscrow"


class InsufficientReserveError(LedgerError):
    """A claim exceeds the vested pool. Indicates an accounting defect."""

    code = "InsufficientReserve"


class RewardAssetLimitError(LedgerError):
    """Crediting a new reward asset would exceed ``max_reward_assets``."""

    code = "RewardAssetLimit"


class StreamNotArchivableError(LedgerError):
    code = "StreamNotArchivable"


class CustodyError(LedgerError):
    """Custody could not move funds."""

    code = "Custody"


class InsufficientFundsError(CustodyError):
    """A holder (or the custody account) has less than the requested transfer."""

    code = "InsufficientFunds"


class ReentrantCallError(LedgerError):
    """An entry point was re-entered while another one was running."""

    code = "Reentrancy"


class LedgerInvariantError(LedgerError):
    """Raised when a committed state violates one or more invariants."""

    code = "Invariant"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
