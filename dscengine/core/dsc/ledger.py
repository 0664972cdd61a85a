"""
Collateral and debt ledgers with buffered transactions.

``Ledger`` is the committed store: ``(account, token) -> collateral`` and
``account -> dsc_minted``, both sparse (zero balances are not stored).

Mutations never touch the committed store directly. ``Ledger.begin()`` returns
a ``LedgerTransaction`` that records writes in its own overlay and reads
through to the committed store. ``commit()`` publishes the overlay in one
step; dropping the transaction discards it.
"""

from __future__ import annotations

from typing import Dict, Tuple

from .math import checked_add, checked_sub
from .types import Address


class Ledger:
    """
    Committed per-account collateral and debt balances.

    Owned by a single engine; the only writer is ``LedgerTransaction.commit``.
    """

    def __init__(self) -> None:
        self._collateral: Dict[Tuple[Address, Address], int] = {}
        self._dsc_minted: Dict[Address, int] = {}

    def collateral(self, user: Address, token: Address) -> int:
        """Collateral of ``token`` deposited by ``user``. Returns 0 if none."""
        return self._collateral.get((user, token), 0)

    def dsc_minted(self, user: Address) -> int:
        return self._dsc_minted.get(user, 0)

    def begin(self) -> "LedgerTransaction":
        return LedgerTransaction(self)

    def _write_collateral(self, key: Tuple[Address, Address], amount: int) -> None:
        if amount == 0:
            self._collateral.pop(key, None)
        else:
            self._collateral[key] = amount

    def _write_dsc_minted(self, user: Address, amount: int) -> None:
        if amount == 0:
            self._dsc_minted.pop(user, None)
        else:
            self._dsc_minted[user] = amount

    def __repr__(self) -> str:
        return f"Ledger({len(self._collateral)} collateral entries, {len(self._dsc_minted)} debtors)"


class LedgerTransaction:
    """Speculative view over a ``Ledger``; see module docstring."""

    def __init__(self, base: Ledger) -> None:
        self._base = base
        self._collateral: Dict[Tuple[Address, Address], int] = {}
        self._dsc_minted: Dict[Address, int] = {}
        self._closed = False

    # -- reads ---------------------------------------------------------------

    def collateral(self, user: Address, token: Address) -> int:
        key = (user, token)
        if key in self._collateral:
            return self._collateral[key]
        return self._base.collateral(user, token)

    def dsc_minted(self, user: Address) -> int:
        if user in self._dsc_minted:
            return self._dsc_minted[user]
        return self._base.dsc_minted(user)

    # -- writes --------------------------------------------------------------

    def add_collateral(self, user: Address, token: Address, amount: int) -> None:
        self._require_open()
        self._collateral[(user, token)] = checked_add(self.collateral(user, token), amount)

    def remove_collateral(self, user: Address, token: Address, amount: int) -> None:
        """Raises ``ArithmeticUnderflow`` if ``amount`` exceeds the balance."""
        self._require_open()
        self._collateral[(user, token)] = checked_sub(self.collateral(user, token), amount)

    def add_dsc_minted(self, user: Address, amount: int) -> None:
        self._require_open()
        self._dsc_minted[user] = checked_add(self.dsc_minted(user), amount)

    def remove_dsc_minted(self, user: Address, amount: int) -> None:
        self._require_open()
        self._dsc_minted[user] = checked_sub(self.dsc_minted(user), amount)

    # -- lifecycle -----------------------------------------------------------

    def commit(self) -> None:
        self._require_open()
        for key, amount in self._collateral.items():
            self._base._write_collateral(key, amount)
        for user, amount in self._dsc_minted.items():
            self._base._write_dsc_minted(user, amount)
        self._closed = True

    def discard(self) -> None:
        self._collateral.clear()
        self._dsc_minted.clear()
        self._closed = True

    def _require_open(self) -> None:
        if self._closed:
            raise RuntimeError("ledger transaction already closed")
