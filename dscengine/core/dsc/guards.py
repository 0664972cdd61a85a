"""Guard functions for the DSC engine.

Predicates return True iff the PRE-state and parameters allow the operation.
The ``require_*`` variants raise the matching engine error instead.
"""

from __future__ import annotations

from typing import Mapping

from .errors import (
    AmountMustBeMoreThanZero,
    BreaksHealthFactor,
    HealthFactorNotBroken,
    HealthFactorNotImproved,
    InsufficientBalanceToBurn,
    TokenNotAllowed,
)
from .math import MIN_HEALTH_FACTOR
from .types import Address


def more_than_zero(amount: int) -> bool:
    return amount > 0


def is_allowed_token(price_feeds: Mapping[Address, object], token: Address) -> bool:
    return token in price_feeds


def can_burn(dsc_minted: int, amount: int) -> bool:
    return dsc_minted >= amount


def health_factor_ok(health_factor: int) -> bool:
    return health_factor >= MIN_HEALTH_FACTOR


def health_factor_improved(starting: int, ending: int) -> bool:
    return ending > starting


def require_more_than_zero(amount: int) -> None:
    if not more_than_zero(amount):
        raise AmountMustBeMoreThanZero(f"amount must be more than zero: {amount}")


def require_allowed_token(price_feeds: Mapping[Address, object], token: Address) -> None:
    if not is_allowed_token(price_feeds, token):
        raise TokenNotAllowed(token)


def require_can_burn(dsc_minted: int, amount: int) -> None:
    if not can_burn(dsc_minted, amount):
        raise InsufficientBalanceToBurn(f"cannot burn {amount}, only {dsc_minted} minted")


def require_health_factor_ok(user: Address, health_factor: int) -> None:
    if not health_factor_ok(health_factor):
        raise BreaksHealthFactor(user, health_factor)


def require_health_factor_broken(user: Address, health_factor: int) -> None:
    if health_factor_ok(health_factor):
        raise HealthFactorNotBroken(user, health_factor)


def require_health_factor_improved(user: Address, starting: int, ending: int) -> None:
    if not health_factor_improved(starting, ending):
        raise HealthFactorNotImproved(user, starting, ending)
