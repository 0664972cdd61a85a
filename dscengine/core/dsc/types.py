"""Data types for the DSC engine.

All types are frozen dataclasses (immutable).

Units/conventions:
- token and DSC amounts are integer wei (18 decimals),
- `*_usd` values are USD scaled by 1e18,
- `health_factor` is scaled by 1e18 (``MIN_HEALTH_FACTOR`` == 1.0).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Union

Address = str

ZERO_ADDRESS: Address = "0x" + "00" * 20


@unique
class Action(Enum):
    """One member per public mutating engine operation."""
    DEPOSIT_COLLATERAL = "deposit_collateral"
    MINT_DSC = "mint_dsc"
    DEPOSIT_COLLATERAL_AND_MINT_DSC = "deposit_collateral_and_mint_dsc"
    REDEEM_COLLATERAL = "redeem_collateral"
    BURN_DSC = "burn_dsc"
    REDEEM_COLLATERAL_FOR_DSC = "redeem_collateral_for_dsc"
    LIQUIDATE = "liquidate"


@dataclass(frozen=True)
class CollateralDeposited:
    user: Address
    token: Address
    amount: int


@dataclass(frozen=True)
class CollateralRedeemed:
    """``redeemed_from != redeemed_to`` marks a liquidation seizure."""

    redeemed_from: Address
    redeemed_to: Address
    token: Address
    amount: int


Event = Union[CollateralDeposited, CollateralRedeemed]


@dataclass(frozen=True)
class AccountInformation:
    total_dsc_minted: int
    collateral_value_in_usd: int


@dataclass(frozen=True)
class ActionParams:
    """Parameters for an action. Unused fields default to empty/0."""

    action: Action
    caller: Address
    token: Address = ""           # collateral operations / liquidate
    amount_collateral: int = 0    # deposit / redeem
    amount_dsc: int = 0           # mint / burn
    user: Address = ""            # liquidate target
    debt_to_cover: int = 0        # liquidate


@dataclass(frozen=True)
class StepResult:
    """Result of a single engine step."""

    accepted: bool
    events: tuple[Event, ...] = ()
    rejection: str | None = None
