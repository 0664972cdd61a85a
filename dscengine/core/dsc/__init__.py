"""`dsc`: overcollateralized stablecoin engine.

- deterministic, integer-only (uint256-checked) arithmetic,
- immutable value types (frozen dataclasses),
- fail-closed guards, post-state invariant checks and all-or-nothing
  operations with buffered ledger writes.

Public API:
- `DSCEngine(collateral_tokens, price_feeds, dsc, *, address, clock, ledger)`
- `DSCEngine.step(params) -> StepResult`
- `DSCEngine.step_or_raise(params) -> StepResult` (raises on rejection)
"""

from .engine import ENGINE_ADDRESS, DSCEngine
from .errors import (
    AmountMustBeMoreThanZero,
    ArithmeticOverflow,
    ArithmeticUnderflow,
    ArraysMustBeSameLength,
    BreaksHealthFactor,
    DSCEngineError,
    HealthFactorNotBroken,
    HealthFactorNotImproved,
    InsufficientBalanceToBurn,
    InvalidPrice,
    InvariantViolation,
    MintFailed,
    ReentrantCall,
    StalePrice,
    TokenNotAllowed,
    TransferFailed,
)
from .ledger import Ledger, LedgerTransaction
from .oracle import TIMEOUT, PriceQuote, PriceSource, RoundData
from .types import (
    AccountInformation,
    Action,
    ActionParams,
    Address,
    CollateralDeposited,
    CollateralRedeemed,
    Event,
    StepResult,
    ZERO_ADDRESS,
)

__all__ = [
    "DSCEngine",
    "ENGINE_ADDRESS",
    "Ledger",
    "LedgerTransaction",
    "TIMEOUT",
    "PriceQuote",
    "PriceSource",
    "RoundData",
    "AccountInformation",
    "Action",
    "ActionParams",
    "Address",
    "CollateralDeposited",
    "CollateralRedeemed",
    "Event",
    "StepResult",
    "ZERO_ADDRESS",
    "DSCEngineError",
    "AmountMustBeMoreThanZero",
    "ArithmeticOverflow",
    "ArithmeticUnderflow",
    "ArraysMustBeSameLength",
    "BreaksHealthFactor",
    "HealthFactorNotBroken",
    "HealthFactorNotImproved",
    "InsufficientBalanceToBurn",
    "InvalidPrice",
    "InvariantViolation",
    "MintFailed",
    "ReentrantCall",
    "StalePrice",
    "TokenNotAllowed",
    "TransferFailed",
]
