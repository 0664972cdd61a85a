"""
Holder balance and allowance tracking for in-memory fungible tokens.

Implements BalanceTable[Address] -> Amount and AllowanceTable[(owner, spender)] -> Amount
"""

from typing import Dict, Tuple


# Type aliases
Address = str  # 20-byte hex string (0x...)
Amount = int  # Non-negative integer (arbitrary precision)


class BalanceTable:
    """
    Sparse balance table mapping holder -> amount for a single token.

    Zero balances are not stored; `holders()` is sorted so callers never
    depend on dict insertion order.
    """

    def __init__(self):
        """Initialize empty balance table."""
        self._balances: Dict[Address, Amount] = {}

    def get(self, holder: Address) -> Amount:
        """Get balance of holder. Returns 0 if not found."""
        return self._balances.get(holder, 0)

    def set(self, holder: Address, amount: Amount) -> None:
        """
        Set balance of holder.

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop(holder, None)
        else:
            self._balances[holder] = amount

    def credit(self, holder: Address, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Credit must be non-negative: {amount}")
        self.set(holder, self.get(holder) + amount)

    def debit(self, holder: Address, amount: Amount) -> None:
        """
        Subtract amount from holder's balance.

        Raises:
            ValueError: If amount is negative or exceeds the balance
        """
        if amount < 0:
            raise ValueError(f"Debit must be non-negative: {amount}")
        current = self.get(holder)
        if amount > current:
            raise ValueError(f"Insufficient balance: {current} < {amount}")
        self.set(holder, current - amount)

    def move(self, sender: Address, recipient: Address, amount: Amount) -> None:
        """Debit sender and credit recipient; nothing changes if the debit fails."""
        self.debit(sender, amount)
        self.credit(recipient, amount)

    def total(self) -> Amount:
        return sum(self._balances.values())

    def holders(self) -> list:
        return sorted(self._balances)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} holders)"


class AllowanceTable:
    """Spending allowances: (owner, spender) -> amount."""

    def __init__(self):
        self._allowances: Dict[Tuple[Address, Address], Amount] = {}

    def get(self, owner: Address, spender: Address) -> Amount:
        return self._allowances.get((owner, spender), 0)

    def set(self, owner: Address, spender: Address, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Allowance cannot be negative: {amount}")
        if amount == 0:
            self._allowances.pop((owner, spender), None)
        else:
            self._allowances[(owner, spender)] = amount

    def spend(self, owner: Address, spender: Address, amount: Amount) -> None:
        """
        Consume allowance.

        Raises:
            ValueError: If the allowance is smaller than amount
        """
        current = self.get(owner, spender)
        if amount > current:
            raise ValueError(f"Insufficient allowance: {current} < {amount}")
        self.set(owner, spender, current - amount)
