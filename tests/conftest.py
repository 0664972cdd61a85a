"""Shared test fixtures: an in-memory DSC deployment on a pinned clock."""
from __future__ import annotations

from typing import Callable

import pytest

from dscengine.config import CollateralConfig, EngineConfig
from dscengine.core.dsc import DSCEngine
from dscengine.core.erc20 import MintableToken
from dscengine.core.stablecoin import DecentralizedStableCoin
from dscengine.integration.deployment import Deployment, deploy
from dscengine.integration.price_feed import InMemoryPriceFeed

WEI = 10**18

USER = "0x" + "aa" * 20
LIQUIDATOR = "0x" + "bb" * 20
DEPLOYER = "0x" + "de" * 20

WETH_ADDRESS = "0x" + "11" * 20
WBTC_ADDRESS = "0x" + "22" * 20
ETH_USD_ADDRESS = "0x" + "f1" * 20
BTC_USD_ADDRESS = "0x" + "f2" * 20

ETH_USD_PRICE = 2_000 * 10**8
BTC_USD_PRICE = 1_000 * 10**8

COLLATERAL_AMOUNT = 10 * WEI
AMOUNT_TO_MINT = 100 * WEI
COLLATERAL_TO_COVER = 20 * WEI

START_TIME = 1_700_000_000


class FakeClock:
    """Settable unix-seconds clock."""

    def __init__(self, now: int = START_TIME) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Deployment fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def engine_config() -> EngineConfig:
    return EngineConfig(
        deployer=DEPLOYER,
        collateral=(
            CollateralConfig(
                token_address=WETH_ADDRESS,
                price_feed_address=ETH_USD_ADDRESS,
                symbol="WETH",
                initial_answer=ETH_USD_PRICE,
            ),
            CollateralConfig(
                token_address=WBTC_ADDRESS,
                price_feed_address=BTC_USD_ADDRESS,
                symbol="WBTC",
                initial_answer=BTC_USD_PRICE,
            ),
        ),
    )


@pytest.fixture()
def deployment(engine_config: EngineConfig, clock: FakeClock) -> Deployment:
    d = deploy(engine_config, clock=clock)
    for token in d.tokens.values():
        token.mint(USER, COLLATERAL_AMOUNT)
    return d


@pytest.fixture()
def engine(deployment: Deployment) -> DSCEngine:
    return deployment.engine


@pytest.fixture()
def dsc(deployment: Deployment) -> DecentralizedStableCoin:
    return deployment.dsc


@pytest.fixture()
def weth(deployment: Deployment) -> MintableToken:
    return deployment.tokens["WETH"]


@pytest.fixture()
def wbtc(deployment: Deployment) -> MintableToken:
    return deployment.tokens["WBTC"]


@pytest.fixture()
def eth_usd(deployment: Deployment) -> InMemoryPriceFeed:
    return deployment.feeds["WETH"]


@pytest.fixture()
def btc_usd(deployment: Deployment) -> InMemoryPriceFeed:
    return deployment.feeds["WBTC"]


# ---------------------------------------------------------------------------
# Position fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def deposit(engine: DSCEngine) -> Callable[[MintableToken, str, int], None]:
    """Approve and deposit ``amount`` of ``token`` for ``who``."""

    def _deposit(token: MintableToken, who: str, amount: int) -> None:
        token.approve(who, engine.address, amount)
        engine.deposit_collateral(who, token.address, amount)

    return _deposit


@pytest.fixture()
def collateral_deposited(engine: DSCEngine, weth: MintableToken, deposit) -> DSCEngine:
    deposit(weth, USER, COLLATERAL_AMOUNT)
    return engine


@pytest.fixture()
def collateral_deposited_and_minted(engine: DSCEngine, weth: MintableToken) -> DSCEngine:
    weth.approve(USER, engine.address, COLLATERAL_AMOUNT)
    engine.deposit_collateral_and_mint_dsc(USER, weth.address, COLLATERAL_AMOUNT, AMOUNT_TO_MINT)
    return engine


@pytest.fixture()
def liquidator_ready(engine: DSCEngine, weth: MintableToken, dsc: DecentralizedStableCoin) -> DSCEngine:
    """Liquidator holds AMOUNT_TO_MINT DSC backed by COLLATERAL_TO_COVER WETH, approved to the engine."""
    weth.mint(LIQUIDATOR, COLLATERAL_TO_COVER)
    weth.approve(LIQUIDATOR, engine.address, COLLATERAL_TO_COVER)
    engine.deposit_collateral_and_mint_dsc(LIQUIDATOR, weth.address, COLLATERAL_TO_COVER, AMOUNT_TO_MINT)
    dsc.approve(LIQUIDATOR, engine.address, AMOUNT_TO_MINT)
    return engine


def ledger_state(engine: DSCEngine, dsc: DecentralizedStableCoin, tokens: list[MintableToken], users: list[str]) -> dict:
    """Everything an aborted operation must leave untouched."""
    state: dict = {"events": engine.events, "dsc_supply": dsc.total_supply()}
    for who in users + [engine.address]:
        state[("dsc", who)] = dsc.balance_of(who)
        state[("debt", who)] = engine.get_dsc_minted(who)
        for token in tokens:
            state[(token.symbol, who)] = token.balance_of(who)
            state[("collateral", token.symbol, who)] = engine.get_collateral_balance_of_user(who, token.address)
    return state


@pytest.fixture()
def snapshot_state(engine: DSCEngine, dsc: DecentralizedStableCoin, weth: MintableToken, wbtc: MintableToken):
    return lambda: ledger_state(engine, dsc, [weth, wbtc], [USER, LIQUIDATOR])
