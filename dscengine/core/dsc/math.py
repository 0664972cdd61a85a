"""Pure fixed-point arithmetic for the DSC engine.

Every function is stateless and operates on plain Python ints that model
uint256 values. Monetary quantities use 18 fractional digits; feed prices
use 8 and are lifted with ``ADDITIONAL_FEED_PRECISION``.

Rounding is always floor division (`//`). Results outside
``[0, UINT256_MAX]`` raise instead of wrapping.
"""

from __future__ import annotations

from .errors import ArithmeticOverflow, ArithmeticUnderflow, InvalidPrice

UINT256_MAX: int = 2**256 - 1

PRECISION: int = 10**18
FEED_PRECISION: int = 10**8
FEED_DECIMALS: int = 8
ADDITIONAL_FEED_PRECISION: int = 10**10

LIQUIDATION_THRESHOLD: int = 50  # 200% overcollateralized
LIQUIDATION_BONUS: int = 10  # 10% of the covered debt, in collateral
LIQUIDATION_PRECISION: int = 100
MIN_HEALTH_FACTOR: int = PRECISION


# -- Checked uint256 arithmetic ----------------------------------------------

def _checked(value: int) -> int:
    if value < 0:
        raise ArithmeticUnderflow(f"uint256 underflow: {value}")
    if value > UINT256_MAX:
        raise ArithmeticOverflow(f"uint256 overflow: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    return _checked(a + b)


def checked_sub(a: int, b: int) -> int:
    return _checked(a - b)


def checked_mul(a: int, b: int) -> int:
    return _checked(a * b)


def checked_div(a: int, b: int) -> int:
    """Floor division; division by zero is an arithmetic error, not a crash."""
    if b == 0:
        raise ArithmeticOverflow("division by zero")
    return _checked(a // b)


def uint_price(answer: int) -> int:
    """Convert a signed feed answer to an unsigned price, rejecting ``<= 0``."""
    if answer <= 0:
        raise InvalidPrice(f"feed answer must be positive: {answer}")
    return _checked(answer)


# -- Valuation ---------------------------------------------------------------

def usd_value(price: int, amount: int) -> int:
    """USD value (1e18) of ``amount`` tokens at an 8-decimal ``price``.

    ``price * 1e10 * amount / 1e18``
    """
    return checked_div(
        checked_mul(checked_mul(price, ADDITIONAL_FEED_PRECISION), amount),
        PRECISION,
    )


def token_amount_from_usd(price: int, usd_amount_in_wei: int) -> int:
    """Token amount worth ``usd_amount_in_wei`` at an 8-decimal ``price``.

    ``usd * 1e18 / (price * 1e10)``
    """
    return checked_div(
        checked_mul(usd_amount_in_wei, PRECISION),
        checked_mul(price, ADDITIONAL_FEED_PRECISION),
    )


# -- Health factor -----------------------------------------------------------

def collateral_adjusted_for_threshold(collateral_value_in_usd: int) -> int:
    """Share of the collateral value that counts toward covering debt."""
    return checked_div(
        checked_mul(collateral_value_in_usd, LIQUIDATION_THRESHOLD),
        LIQUIDATION_PRECISION,
    )


def calculate_health_factor(total_dsc_minted: int, collateral_value_in_usd: int) -> int:
    """Health factor scaled by 1e18; ``UINT256_MAX`` when there is no debt."""
    if total_dsc_minted == 0:
        return UINT256_MAX
    adjusted = collateral_adjusted_for_threshold(collateral_value_in_usd)
    return checked_div(checked_mul(adjusted, PRECISION), total_dsc_minted)


def is_health_factor_broken(health_factor: int) -> bool:
    return health_factor < MIN_HEALTH_FACTOR


# -- Liquidation -------------------------------------------------------------

def liquidation_bonus(token_amount: int) -> int:
    """Bonus collateral paid on top of ``token_amount``."""
    return checked_div(checked_mul(token_amount, LIQUIDATION_BONUS), LIQUIDATION_PRECISION)


def total_collateral_to_redeem(price: int, debt_to_cover: int) -> int:
    """Collateral seized for repaying ``debt_to_cover``, bonus included."""
    token_amount = token_amount_from_usd(price, debt_to_cover)
    return checked_add(token_amount, liquidation_bonus(token_amount))
