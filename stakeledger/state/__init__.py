"""
Custody and state encoding for the staking ledger
"""

from .custody import Custody, InMemoryCustody
from .snapshot import compute_state_root

__all__ = [
    "Custody",
    "InMemoryCustody",
    "compute_state_root",
]
