"""
Wire an engine from an ``EngineConfig`` with in-memory collaborators.

Creates one ``MintableToken`` and one ``InMemoryPriceFeed`` per configured
collateral entry, the DSC token owned by the deployer, then the engine, and
finally hands DSC ownership to the engine so it is the sole issuer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..config import EngineConfig
from ..core.dsc.engine import DSCEngine
from ..core.erc20 import MintableToken
from ..core.stablecoin import DecentralizedStableCoin
from .price_feed import InMemoryPriceFeed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deployment:
    engine: DSCEngine
    dsc: DecentralizedStableCoin
    tokens: dict[str, MintableToken]
    feeds: dict[str, InMemoryPriceFeed]

    def token(self, symbol_or_address: str) -> MintableToken:
        if symbol_or_address in self.tokens:
            return self.tokens[symbol_or_address]
        for token in self.tokens.values():
            if token.address == symbol_or_address:
                return token
        raise KeyError(symbol_or_address)

    def feed(self, symbol: str) -> InMemoryPriceFeed:
        return self.feeds[symbol]


def deploy(config: EngineConfig, *, clock: Callable[[], int] | None = None) -> Deployment:
    """Deploy DSC, collateral tokens, feeds and engine; engine owns DSC."""
    tokens: dict[str, MintableToken] = {}
    feeds: dict[str, InMemoryPriceFeed] = {}
    for c in config.collateral:
        symbol = c.symbol or c.token_address
        if c.initial_answer <= 0:
            raise ValueError(f"in-memory feed for {symbol} needs a positive initial_answer")
        tokens[symbol] = MintableToken(symbol, symbol, c.token_address)
        feeds[symbol] = InMemoryPriceFeed(
            c.price_feed_address,
            c.initial_answer,
            decimals=c.feed_decimals,
            clock=clock,
            description=f"{symbol} / USD",
        )

    dsc = DecentralizedStableCoin(config.dsc_address, owner=config.deployer)
    engine = DSCEngine(
        list(tokens.values()),
        list(feeds.values()),
        dsc,
        address=config.engine_address,
        clock=clock,
    )
    dsc.transfer_ownership(config.deployer, engine.address)
    logger.info("deployed %r with collateral %s", engine, ", ".join(tokens))
    return Deployment(engine=engine, dsc=dsc, tokens=tokens, feeds=feeds)
