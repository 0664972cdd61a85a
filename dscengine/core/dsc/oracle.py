"""
Price feed staleness adapter.

This module is intentionally small:
- The functional core decides freshness deterministically from
  ``(updated_at, now)``.
- Feeds are injected as ``PriceSource`` objects; the engine supplies ``now``
  from its clock, so tests can pin both sides.

A quote whose last update is older than ``TIMEOUT`` seconds is rejected with
``StalePrice``; there is no fallback price.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .errors import StalePrice
from .math import uint_price

TIMEOUT: int = 3 * 60 * 60  # 3 hours, in seconds


@dataclass(frozen=True)
class RoundData:
    """Latest round as reported by an aggregator-style feed."""

    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


@dataclass(frozen=True)
class PriceQuote:
    """Validated price (8 decimals, unsigned) and its update time."""

    price: int
    updated_at: int


class PriceSource(Protocol):
    """One external price source per collateral asset."""

    address: str
    decimals: int

    def latest_round_data(self) -> RoundData: ...


def seconds_since(updated_at: int, now: int) -> int:
    return now - updated_at


def is_fresh(updated_at: int, now: int, timeout: int = TIMEOUT) -> bool:
    """Return True if ``updated_at`` is within ``timeout`` seconds of ``now``.

    An update from the future is not fresh.
    """
    if updated_at > now:
        return False
    return seconds_since(updated_at, now) <= timeout


def stale_check_latest_round_data(feed: PriceSource, now: int) -> RoundData:
    """Read the feed's latest round, raising ``StalePrice`` if too old."""
    round_data = feed.latest_round_data()
    if not is_fresh(round_data.updated_at, now):
        raise StalePrice(feed.address, seconds_since(round_data.updated_at, now))
    return round_data


def quote(feed: PriceSource, now: int) -> PriceQuote:
    """Fresh, positive price quote from ``feed``."""
    round_data = stale_check_latest_round_data(feed, now)
    return PriceQuote(price=uint_price(round_data.answer), updated_at=round_data.updated_at)
