"""
In-memory fungible token with allowance semantics.

Models the collateral assets and the DSC token for the engine. Calls take
the acting address explicitly (``sender``/``spender``/``owner``) since there
is no implicit message sender.

Failures raise ``TokenError`` subclasses and leave balances untouched.
``fail_transfers`` makes ``transfer``/``transfer_from`` return False instead
of moving funds, for exercising callers' failure paths.
"""

from __future__ import annotations

from typing import Callable

from ..state.balances import AllowanceTable, BalanceTable
from .dsc.types import Address

TransferHook = Callable[[Address, Address, int], None]


class TokenError(Exception):
    """Base class for token-level failures."""


class InsufficientBalance(TokenError):
    pass


class InsufficientAllowance(TokenError):
    pass


class ERC20Token:
    """Balances, allowances and total supply of one token."""

    def __init__(self, name: str, symbol: str, address: Address, decimals: int = 18) -> None:
        self.name = name
        self.symbol = symbol
        self.address = address
        self.decimals = decimals
        self.fail_transfers = False
        self.on_transfer: TransferHook | None = None
        self._balances = BalanceTable()
        self._allowances = AllowanceTable()
        self._total_supply = 0

    def balance_of(self, owner: Address) -> int:
        return self._balances.get(owner)

    def total_supply(self) -> int:
        return self._total_supply

    def allowance(self, owner: Address, spender: Address) -> int:
        return self._allowances.get(owner, spender)

    def approve(self, owner: Address, spender: Address, amount: int) -> bool:
        self._allowances.set(owner, spender, amount)
        return True

    def transfer(self, sender: Address, recipient: Address, amount: int) -> bool:
        if self.fail_transfers:
            return False
        self._require_balance(sender, amount)
        self._run_hook(sender, recipient, amount)
        self._balances.move(sender, recipient, amount)
        return True

    def transfer_from(self, spender: Address, sender: Address, recipient: Address, amount: int) -> bool:
        if self.fail_transfers:
            return False
        self._require_balance(sender, amount)
        if self._allowances.get(sender, spender) < amount:
            raise InsufficientAllowance(
                f"{spender} may spend {self._allowances.get(sender, spender)} of {sender}'s {self.symbol}, not {amount}"
            )
        self._run_hook(sender, recipient, amount)
        self._allowances.spend(sender, spender, amount)
        self._balances.move(sender, recipient, amount)
        return True

    def _mint(self, to: Address, amount: int) -> None:
        self._balances.credit(to, amount)
        self._total_supply += amount

    def _burn(self, owner: Address, amount: int) -> None:
        self._require_balance(owner, amount)
        self._balances.debit(owner, amount)
        self._total_supply -= amount

    def _require_balance(self, owner: Address, amount: int) -> None:
        if amount < 0:
            raise TokenError(f"amount must be non-negative: {amount}")
        if self._balances.get(owner) < amount:
            raise InsufficientBalance(f"{owner} holds {self._balances.get(owner)} {self.symbol}, needs {amount}")

    def _run_hook(self, sender: Address, recipient: Address, amount: int) -> None:
        if self.on_transfer is not None:
            self.on_transfer(sender, recipient, amount)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol}, {self.address})"


class MintableToken(ERC20Token):
    """Collateral token with an unrestricted faucet ``mint``."""

    def mint(self, to: Address, amount: int) -> None:
        self._mint(to, amount)
