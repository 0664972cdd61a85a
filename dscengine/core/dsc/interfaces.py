"""Protocols for the engine's external collaborators.

Transfers may signal failure either by returning False or by raising; the
engine treats both as ``TransferFailed`` (``MintFailed`` for DSC minting).
"""

from __future__ import annotations

from typing import Protocol

from .types import Address


class CollateralToken(Protocol):
    """Fungible asset movement with allowance semantics."""

    address: Address

    def balance_of(self, owner: Address) -> int: ...

    def transfer(self, sender: Address, recipient: Address, amount: int) -> bool: ...

    def transfer_from(self, spender: Address, sender: Address, recipient: Address, amount: int) -> bool: ...


class StablecoinController(CollateralToken, Protocol):
    """The DSC token. ``mint``/``burn`` only succeed when ``caller`` is the owner."""

    def mint(self, caller: Address, to: Address, amount: int) -> bool: ...

    def burn(self, caller: Address, amount: int) -> None: ...
