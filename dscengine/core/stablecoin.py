"""
Decentralized stablecoin (DSC) token.

A burnable fungible token whose ``mint`` and ``burn`` are restricted to a
single owner. After deployment the owner is the engine, which makes the
engine the only issuer: it mints against collateral and burns DSC it has
pulled into its own custody.
"""

from __future__ import annotations

import logging

from .dsc.types import ZERO_ADDRESS, Address
from .erc20 import ERC20Token, TokenError

logger = logging.getLogger(__name__)

DSC_NAME = "DecentralizedStableCoin"
DSC_SYMBOL = "DSC"


class StablecoinError(TokenError):
    """Base class for DSC access and amount errors."""


class MustBeMoreThanZero(StablecoinError):
    pass


class BurnAmountExceedsBalance(StablecoinError):
    pass


class NotZeroAddress(StablecoinError):
    pass


class UnauthorizedAccount(StablecoinError):
    def __init__(self, account: Address) -> None:
        self.account = account
        super().__init__(f"{account} is not the owner")


class DecentralizedStableCoin(ERC20Token):
    """DSC: owner-only ``mint``/``burn`` on top of ``ERC20Token``."""

    def __init__(self, address: Address, owner: Address) -> None:
        super().__init__(DSC_NAME, DSC_SYMBOL, address)
        self.owner = owner

    def transfer_ownership(self, caller: Address, new_owner: Address) -> None:
        self._only_owner(caller)
        if new_owner == ZERO_ADDRESS:
            raise NotZeroAddress("new owner is the zero address")
        logger.info("DSC ownership %s -> %s", self.owner, new_owner)
        self.owner = new_owner

    def mint(self, caller: Address, to: Address, amount: int) -> bool:
        self._only_owner(caller)
        if to == ZERO_ADDRESS:
            raise NotZeroAddress("cannot mint to the zero address")
        if amount <= 0:
            raise MustBeMoreThanZero(f"mint amount must be more than zero: {amount}")
        self._mint(to, amount)
        return True

    def burn(self, caller: Address, amount: int) -> None:
        """Destroy ``amount`` DSC held by the owner."""
        self._only_owner(caller)
        if amount <= 0:
            raise MustBeMoreThanZero(f"burn amount must be more than zero: {amount}")
        if self.balance_of(caller) < amount:
            raise BurnAmountExceedsBalance(f"owner holds {self.balance_of(caller)}, cannot burn {amount}")
        self._burn(caller, amount)

    def _only_owner(self, caller: Address) -> None:
        if caller != self.owner:
            raise UnauthorizedAccount(caller)
