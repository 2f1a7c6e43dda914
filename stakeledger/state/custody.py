"""
Asset custody collaborator.

The ledger only relies on the `Custody` protocol. `InMemoryCustody` is a
complete in-process implementation used by tests, the replay tool and
embedders without an external settlement layer. It supports fee-on-transfer
assets: a per-asset fee (in bps) is withheld from every movement, so the
receiving side sees strictly less than requested.
"""

from __future__ import annotations

from typing import Dict, Mapping, Protocol, Tuple, runtime_checkable

from ..core.errors import InsufficientFundsError

# Type aliases
HolderId = str
AssetId = str
Amount = int

BPS_DENOM = 10_000


@runtime_checkable
class Custody(Protocol):
    def balance_of(self, asset: AssetId) -> Amount:
        """Amount of `asset` held by the custody account."""

    def transfer(self, asset: AssetId, to: HolderId, amount: Amount) -> None:
        """Send `amount` out of custody. `to` may receive less.

        Failures raise a `CustodyError` subclass.
        """

    def collect(self, asset: AssetId, from_: HolderId, amount: Amount) -> None:
        """Pull `amount` from `from_` into custody. Custody may receive less.

        Raises `InsufficientFundsError` when `from_` cannot cover `amount`.
        """


class InMemoryCustody:
    """
    Balance table mapping (holder, asset) -> amount, with one custody account.

    Zero balances are omitted to keep the table sparse.
    """

    def __init__(self, account: HolderId = "ledger", fee_bps: Mapping[AssetId, int] | None = None) -> None:
        self.account = account
        self._fee_bps: Dict[AssetId, int] = {}
        for asset, bps in (fee_bps or {}).items():
            self.set_fee_bps(asset, bps)
        self._balances: Dict[Tuple[HolderId, AssetId], Amount] = {}

    def set_fee_bps(self, asset: AssetId, bps: int) -> None:
        if not isinstance(bps, int) or isinstance(bps, bool) or not (0 <= bps < BPS_DENOM):
            raise ValueError(f"fee_bps must be an int in [0, {BPS_DENOM}): {bps!r}")
        self._fee_bps[asset] = bps

    def holder_balance(self, holder: HolderId, asset: AssetId) -> Amount:
        return self._balances.get((holder, asset), 0)

    def balance_of(self, asset: AssetId) -> Amount:
        return self.holder_balance(self.account, asset)

    def balances(self) -> Dict[AssetId, Amount]:
        """All custody-account balances keyed by asset."""
        return {a: amount for (h, a), amount in self._balances.items() if h == self.account}

    def _set(self, holder: HolderId, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((holder, asset), None)
        else:
            self._balances[(holder, asset)] = amount

    def mint(self, holder: HolderId, asset: AssetId, amount: Amount) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"mint amount must be a non-negative int: {amount!r}")
        self._set(holder, asset, self.holder_balance(holder, asset) + amount)

    def send(self, asset: AssetId, from_: HolderId, to: HolderId, amount: Amount) -> Amount:
        """Move `amount` from `from_` to `to`, withholding the asset fee. Returns the delivered amount."""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"transfer amount must be a non-negative int: {amount!r}")
        current = self.holder_balance(from_, asset)
        if amount > current:
            raise InsufficientFundsError(f"Insufficient {asset} balance for {from_}: {current} < {amount}")
        fee = (amount * self._fee_bps.get(asset, 0)) // BPS_DENOM
        delivered = amount - fee
        self._set(from_, asset, current - amount)
        self._set(to, asset, self.holder_balance(to, asset) + delivered)
        return delivered

    def transfer(self, asset: AssetId, to: HolderId, amount: Amount) -> None:
        self.send(asset, self.account, to, amount)

    def collect(self, asset: AssetId, from_: HolderId, amount: Amount) -> None:
        self.send(asset, from_, self.account, amount)

    def __repr__(self) -> str:
        return f"InMemoryCustody({self.account!r}, {len(self._balances)} entries)"
