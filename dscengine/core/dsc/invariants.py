"""Invariant checkers for the DSC engine.

Each function returns True when the invariant holds for one account snapshot,
and `check_all()` returns the list of violated invariant IDs (empty = all
pass). Before committing, the engine runs them on every account the
operation must leave healthy: the caller after a mint, redeem or burn and
the liquidator after a liquidation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping

from .math import UINT256_MAX, calculate_health_factor, is_health_factor_broken
from .types import Address


@dataclass(frozen=True)
class AccountSnapshot:
    """One account as seen by the post-state of an operation."""

    user: Address
    dsc_minted: int
    collateral_value_in_usd: int
    collateral: Mapping[Address, int] = field(default_factory=dict)

    @property
    def health_factor(self) -> int:
        return calculate_health_factor(self.dsc_minted, self.collateral_value_in_usd)


def inv_collateral_in_range(s: AccountSnapshot) -> bool:
    return all(0 <= amount <= UINT256_MAX for amount in s.collateral.values())


def inv_debt_in_range(s: AccountSnapshot) -> bool:
    return 0 <= s.dsc_minted <= UINT256_MAX


def inv_health_factor(s: AccountSnapshot) -> bool:
    return not is_health_factor_broken(s.health_factor)


INVARIANT_REGISTRY: dict[str, Callable[[AccountSnapshot], bool]] = {
    "inv_collateral_in_range": inv_collateral_in_range,
    "inv_debt_in_range": inv_debt_in_range,
    "inv_health_factor": inv_health_factor,
}


def check_all(snapshot: AccountSnapshot) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(snapshot)
    ]
