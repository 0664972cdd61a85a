"""Exception types for the DSC engine.

Every engine error carries a stable ``code`` used as the rejection reason by
``DSCEngine.step()``. Raising any of them aborts the current operation; the
engine discards all speculative ledger changes before the error propagates.
"""

from __future__ import annotations


class DSCEngineError(Exception):
    """Base class for every engine rejection."""

    code: str = "DSCEngine"


class AmountMustBeMoreThanZero(DSCEngineError):
    code = "AmountMustBeMoreThanZero"


class ArraysMustBeSameLength(DSCEngineError):
    """Raised when token and price-feed lists differ in length."""

    code = "ArraysMustBeSameLength"

    def __init__(self, n_tokens: int, n_feeds: int) -> None:
        self.n_tokens = n_tokens
        self.n_feeds = n_feeds
        super().__init__(f"{n_tokens} token addresses but {n_feeds} price feeds")


class TokenNotAllowed(DSCEngineError):
    code = "TokenNotAllowed"

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"token not allowed as collateral: {token}")


class TransferFailed(DSCEngineError):
    code = "TransferFailed"


class MintFailed(DSCEngineError):
    code = "MintFailed"


class BreaksHealthFactor(DSCEngineError):
    """Raised when an account ends an operation below ``MIN_HEALTH_FACTOR``."""

    code = "BreaksHealthFactor"

    def __init__(self, user: str, health_factor: int) -> None:
        self.user = user
        self.health_factor = health_factor
        super().__init__(f"health factor of {user} would be {health_factor}")


class HealthFactorNotBroken(DSCEngineError):
    code = "HealthFactorNotBroken"

    def __init__(self, user: str, health_factor: int) -> None:
        self.user = user
        self.health_factor = health_factor
        super().__init__(f"{user} is not liquidatable (health factor {health_factor})")


class HealthFactorNotImproved(DSCEngineError):
    code = "HealthFactorNotImproved"

    def __init__(self, user: str, starting: int, ending: int) -> None:
        self.user = user
        self.starting = starting
        self.ending = ending
        super().__init__(f"health factor of {user} went from {starting} to {ending}")


class InsufficientBalanceToBurn(DSCEngineError):
    code = "InsufficientBalanceToBurn"


class StalePrice(DSCEngineError):
    """Raised when a feed's latest round is older than the staleness timeout."""

    code = "StalePrice"

    def __init__(self, feed: str, age_seconds: int) -> None:
        self.feed = feed
        self.age_seconds = age_seconds
        super().__init__(f"price feed {feed} is stale ({age_seconds}s old)")


class InvalidPrice(DSCEngineError):
    code = "InvalidPrice"


class ReentrantCall(DSCEngineError):
    code = "ReentrantCall"


class ArithmeticOverflow(DSCEngineError):
    code = "ArithmeticOverflow"


class ArithmeticUnderflow(DSCEngineError):
    code = "ArithmeticUnderflow"


class InvariantViolation(DSCEngineError):
    """Raised when an account post-state violates invariants other than health."""

    code = "InvariantViolation"

    def __init__(self, user: str, violations: list[str]) -> None:
        self.user = user
        self.violations = violations
        super().__init__(f"invariant violations for {user}: {', '.join(violations)}")
