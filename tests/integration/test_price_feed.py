"""Tests for dscengine/integration/price_feed.py."""

from dscengine.core.dsc.oracle import RoundData
from dscengine.integration.price_feed import InMemoryPriceFeed

FEED = "0x" + "f1" * 20


class _Clock:
    def __init__(self) -> None:
        self.now = 1_000

    def __call__(self) -> int:
        return self.now


def test_initial_round() -> None:
    feed = InMemoryPriceFeed(FEED, 2_000 * 10**8, clock=lambda: 1_000, description="ETH / USD")
    assert feed.latest_round_data() == RoundData(
        round_id=1, answer=2_000 * 10**8, started_at=1_000, updated_at=1_000, answered_in_round=1,
    )
    assert feed.decimals == 8
    assert feed.description == "ETH / USD"


def test_update_answer_starts_new_round_at_clock_time() -> None:
    clock = _Clock()
    feed = InMemoryPriceFeed(FEED, 2_000 * 10**8, clock=clock)
    clock.now = 1_500
    feed.update_answer(1_800 * 10**8)
    assert feed.latest_answer == 1_800 * 10**8
    assert feed.latest_timestamp == 1_500
    assert feed.latest_round == 2


def test_update_round_data_verbatim() -> None:
    feed = InMemoryPriceFeed(FEED, 1, clock=lambda: 1_000)
    feed.update_round_data(round_id=9, answer=-3, updated_at=50, started_at=40)
    round_data = feed.latest_round_data()
    assert (round_data.round_id, round_data.answer, round_data.started_at, round_data.updated_at) == (9, -3, 40, 50)
    assert round_data.answered_in_round == 9
