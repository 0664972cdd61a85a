"""
In-memory aggregator-style price feed.

Stands in for a live feed wherever a deterministic price source is needed
(tools, tests). Every update starts a new round stamped with the injected
clock; ``update_round_data`` sets a round verbatim, which is how a stale or
future-dated round is produced.
"""

from __future__ import annotations

import time
from typing import Callable

from ..core.dsc.oracle import RoundData


def _now() -> int:
    return int(time.time())


class InMemoryPriceFeed:
    """Single-asset feed with 8-decimal answers by default."""

    def __init__(
        self,
        address: str,
        initial_answer: int,
        *,
        decimals: int = 8,
        clock: Callable[[], int] | None = None,
        description: str = "",
    ) -> None:
        self.address = address
        self.decimals = decimals
        self.description = description
        self._clock = clock if clock is not None else _now
        self._round = RoundData(round_id=0, answer=0, started_at=0, updated_at=0, answered_in_round=0)
        self.update_answer(initial_answer)

    @property
    def latest_answer(self) -> int:
        return self._round.answer

    @property
    def latest_timestamp(self) -> int:
        return self._round.updated_at

    @property
    def latest_round(self) -> int:
        return self._round.round_id

    def update_answer(self, answer: int) -> None:
        now = self._clock()
        round_id = self._round.round_id + 1
        self._round = RoundData(
            round_id=round_id,
            answer=answer,
            started_at=now,
            updated_at=now,
            answered_in_round=round_id,
        )

    def update_round_data(self, round_id: int, answer: int, updated_at: int, started_at: int) -> None:
        self._round = RoundData(
            round_id=round_id,
            answer=answer,
            started_at=started_at,
            updated_at=updated_at,
            answered_in_round=round_id,
        )

    def latest_round_data(self) -> RoundData:
        return self._round

    def __repr__(self) -> str:
        return f"InMemoryPriceFeed({self.address}, answer={self._round.answer}, round={self._round.round_id})"
