"""
Multi-asset balance tracking for the reference custodian.

Implements BalanceTable[PubKey, AssetId] -> Amount
"""

from typing import Dict, Tuple


# Type aliases
PubKey = str  # BLS12-381 public key as hex string
AssetId = str  # 32-byte hex string (0x...)
Amount = int  # Non-negative integer (arbitrary precision)


class BalanceTable:
    """
    Balance table mapping (holder, asset) -> amount.

    Zero balances are not stored. Callers that hash or serialize the table
    must sort entries explicitly; dict order is not part of the contract.
    """

    def __init__(self):
        self._balances: Dict[Tuple[PubKey, AssetId], Amount] = {}

    def get(self, holder: PubKey, asset: AssetId) -> Amount:
        """Get balance for (holder, asset). Returns 0 if not found."""
        return self._balances.get((holder, asset), 0)

    def set(self, holder: PubKey, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (holder, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((holder, asset), None)
        else:
            self._balances[(holder, asset)] = amount

    def credit(self, holder: PubKey, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Credit must be non-negative: {amount}")
        self.set(holder, asset, self.get(holder, asset) + amount)

    def debit(self, holder: PubKey, asset: AssetId, amount: Amount) -> None:
        """
        Remove *amount* from (holder, asset).

        Raises:
            ValueError: If amount is negative or exceeds the balance
        """
        if amount < 0:
            raise ValueError(f"Debit must be non-negative: {amount}")
        current = self.get(holder, asset)
        if amount > current:
            raise ValueError(f"Insufficient balance: {current} < {amount}")
        self.set(holder, asset, current - amount)

    def move(self, source: PubKey, dest: PubKey, asset: AssetId, amount: Amount) -> None:
        """Debit *source* and credit *dest*; the table is unchanged on failure."""
        self.debit(source, asset, amount)
        self.credit(dest, asset, amount)

    def get_all_balances(self) -> Dict[Tuple[PubKey, AssetId], Amount]:
        return dict(self._balances)

    def copy(self) -> "BalanceTable":
        out = BalanceTable()
        out._balances = dict(self._balances)
        return out

    def restore(self, snapshot: "BalanceTable") -> None:
        """Replace every entry with the entries of *snapshot* (in place)."""
        self._balances = dict(snapshot._balances)

    def total_supply(self, asset: AssetId) -> Amount:
        return sum(amount for (_, a), amount in self._balances.items() if a == asset)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
