"""Liquidation tests for DSCEngine.

USER deposits 10 WETH at $2000 and mints 100 DSC; the liquidator holds 100
DSC backed by 20 WETH. Crashing ETH to $18 puts USER at a 0.9 health factor.
"""

import pytest

from dscengine.core.dsc import (
    AmountMustBeMoreThanZero,
    ArithmeticUnderflow,
    BreaksHealthFactor,
    CollateralRedeemed,
    HealthFactorNotBroken,
    HealthFactorNotImproved,
    StalePrice,
    TIMEOUT,
    TokenNotAllowed,
    TransferFailed,
)
from dscengine.core.dsc.math import MIN_HEALTH_FACTOR, UINT256_MAX

WEI = 10**18
USER = "0x" + "aa" * 20
LIQUIDATOR = "0x" + "bb" * 20
OTHER = "0x" + "cc" * 20
COLLATERAL_AMOUNT = 10 * WEI
AMOUNT_TO_MINT = 100 * WEI
COLLATERAL_TO_COVER = 20 * WEI

CRASH_PRICE = 18 * 10**8
# $100 at $18/ETH plus the 10% bonus
SEIZED_FOR_FULL_COVER = 6_111_111_111_111_111_110


@pytest.fixture()
def liquidatable(collateral_deposited_and_minted, liquidator_ready, eth_usd):
    eth_usd.update_answer(CRASH_PRICE)
    return collateral_deposited_and_minted


class TestLiquidationGuards:
    def test_zero_debt_to_cover(self, liquidatable, weth):
        with pytest.raises(AmountMustBeMoreThanZero):
            liquidatable.liquidate(LIQUIDATOR, weth.address, USER, 0)

    def test_unapproved_collateral(self, liquidatable):
        with pytest.raises(TokenNotAllowed):
            liquidatable.liquidate(LIQUIDATOR, OTHER, USER, AMOUNT_TO_MINT)

    def test_healthy_user(self, collateral_deposited_and_minted, liquidator_ready, weth):
        with pytest.raises(HealthFactorNotBroken) as exc_info:
            liquidator_ready.liquidate(LIQUIDATOR, weth.address, USER, AMOUNT_TO_MINT)
        assert exc_info.value.health_factor == 100 * WEI

    def test_user_without_debt(self, liquidatable, weth):
        with pytest.raises(HealthFactorNotBroken) as exc_info:
            liquidatable.liquidate(LIQUIDATOR, weth.address, OTHER, AMOUNT_TO_MINT)
        assert exc_info.value.health_factor == UINT256_MAX

    def test_starting_health_factor(self, liquidatable):
        assert liquidatable.get_health_factor(USER) == 9 * 10**17


class TestLiquidation:
    def test_full_cover(self, liquidatable, weth, dsc):
        engine = liquidatable
        engine.liquidate(LIQUIDATOR, weth.address, USER, AMOUNT_TO_MINT)

        assert weth.balance_of(LIQUIDATOR) == SEIZED_FOR_FULL_COVER
        assert engine.get_usd_value(weth.address, SEIZED_FOR_FULL_COVER) == 109_999_999_999_999_999_980
        assert engine.get_collateral_balance_of_user(USER, weth.address) == COLLATERAL_AMOUNT - SEIZED_FOR_FULL_COVER
        assert engine.get_dsc_minted(USER) == 0
        assert engine.get_health_factor(USER) == UINT256_MAX

        # the liquidator paid with its DSC but still owes its own debt
        assert dsc.balance_of(LIQUIDATOR) == 0
        assert engine.get_dsc_minted(LIQUIDATOR) == AMOUNT_TO_MINT
        assert engine.get_collateral_balance_of_user(LIQUIDATOR, weth.address) == COLLATERAL_TO_COVER
        # USER keeps the DSC it minted; total supply equals outstanding debt
        assert dsc.balance_of(USER) == AMOUNT_TO_MINT
        assert dsc.total_supply() == AMOUNT_TO_MINT
        assert dsc.balance_of(engine.address) == 0

    def test_emits_seizure_event(self, liquidatable, weth):
        liquidatable.liquidate(LIQUIDATOR, weth.address, USER, AMOUNT_TO_MINT)
        assert liquidatable.events[-1] == CollateralRedeemed(
            redeemed_from=USER,
            redeemed_to=LIQUIDATOR,
            token=weth.address,
            amount=SEIZED_FOR_FULL_COVER,
        )

    def test_partial_cover_improves_but_stays_liquidatable(self, liquidatable, weth):
        engine = liquidatable
        engine.liquidate(LIQUIDATOR, weth.address, USER, 10 * WEI)
        health_factor = engine.get_health_factor(USER)
        assert 9 * 10**17 < health_factor < MIN_HEALTH_FACTOR
        assert engine.get_dsc_minted(USER) == 90 * WEI

        # a second liquidator pass finishes the job
        engine.liquidate(LIQUIDATOR, weth.address, USER, 90 * WEI)
        assert engine.get_dsc_minted(USER) == 0

    def test_small_cover_allowed(self, liquidatable, weth):
        liquidatable.liquidate(LIQUIDATOR, weth.address, USER, WEI)
        assert liquidatable.get_dsc_minted(USER) == AMOUNT_TO_MINT - WEI
        assert liquidatable.get_health_factor(USER) > 9 * 10**17

    def test_cover_seizing_nothing_does_not_improve(self, liquidatable, weth):
        # 1 wei of debt buys 0 WETH at $18; the floored health factor does not move
        with pytest.raises(HealthFactorNotImproved):
            liquidatable.liquidate(LIQUIDATOR, weth.address, USER, 1)


class TestLiquidationFailures:
    def test_not_improved_when_undercollateralized(self, collateral_deposited_and_minted, liquidator_ready, eth_usd, weth, snapshot_state):
        # at $10 USER holds exactly the debt in collateral; the 10% bonus makes things worse
        eth_usd.update_answer(10 * 10**8)
        before = snapshot_state()
        with pytest.raises(HealthFactorNotImproved) as exc_info:
            liquidator_ready.liquidate(LIQUIDATOR, weth.address, USER, 50 * WEI)
        assert exc_info.value.ending < exc_info.value.starting
        assert snapshot_state() == before

    def test_more_than_seizable(self, collateral_deposited_and_minted, liquidator_ready, eth_usd, weth, snapshot_state):
        # at $5 covering 100 DSC would seize 22 WETH from a 10 WETH position
        eth_usd.update_answer(5 * 10**8)
        before = snapshot_state()
        with pytest.raises(ArithmeticUnderflow):
            liquidator_ready.liquidate(LIQUIDATOR, weth.address, USER, AMOUNT_TO_MINT)
        assert snapshot_state() == before

    def test_cover_more_than_user_debt(self, liquidatable, weth, dsc):
        dsc.approve(LIQUIDATOR, liquidatable.address, 2 * AMOUNT_TO_MINT)
        with pytest.raises(ArithmeticUnderflow):
            liquidatable.liquidate(LIQUIDATOR, weth.address, USER, 2 * AMOUNT_TO_MINT)

    def test_liquidator_without_dsc_allowance(self, liquidatable, weth, dsc, snapshot_state):
        dsc.approve(LIQUIDATOR, liquidatable.address, 0)
        before = snapshot_state()
        with pytest.raises(TransferFailed):
            liquidatable.liquidate(LIQUIDATOR, weth.address, USER, AMOUNT_TO_MINT)
        assert snapshot_state() == before

    def test_liquidator_must_stay_healthy(self, collateral_deposited_and_minted, engine, wbtc, weth, dsc, eth_usd, btc_usd, snapshot_state):
        # liquidator backs its DSC with 1 WBTC, then both assets crash
        wbtc.mint(LIQUIDATOR, WEI)
        wbtc.approve(LIQUIDATOR, engine.address, WEI)
        engine.deposit_collateral_and_mint_dsc(LIQUIDATOR, wbtc.address, WEI, AMOUNT_TO_MINT)
        dsc.approve(LIQUIDATOR, engine.address, AMOUNT_TO_MINT)
        eth_usd.update_answer(CRASH_PRICE)
        btc_usd.update_answer(150 * 10**8)

        before = snapshot_state()
        with pytest.raises(BreaksHealthFactor) as exc_info:
            engine.liquidate(LIQUIDATOR, weth.address, USER, AMOUNT_TO_MINT)
        assert exc_info.value.user == LIQUIDATOR
        assert snapshot_state() == before

    def test_stale_collateral_price(self, liquidatable, weth, clock, snapshot_state):
        clock.advance(TIMEOUT + 1)
        before = snapshot_state()
        with pytest.raises(StalePrice):
            liquidatable.liquidate(LIQUIDATOR, weth.address, USER, AMOUNT_TO_MINT)
        assert snapshot_state() == before

    def test_stale_price_of_liquidator_collateral(self, collateral_deposited_and_minted, engine, wbtc, weth, dsc, eth_usd, clock, snapshot_state):
        # the liquidator's own debt is backed by WBTC, whose feed goes quiet
        wbtc.mint(LIQUIDATOR, WEI)
        wbtc.approve(LIQUIDATOR, engine.address, WEI)
        engine.deposit_collateral_and_mint_dsc(LIQUIDATOR, wbtc.address, WEI, AMOUNT_TO_MINT)
        dsc.approve(LIQUIDATOR, engine.address, AMOUNT_TO_MINT)
        clock.advance(TIMEOUT + 1)
        eth_usd.update_answer(CRASH_PRICE)

        before = snapshot_state()
        with pytest.raises(StalePrice):
            engine.liquidate(LIQUIDATOR, weth.address, USER, AMOUNT_TO_MINT)
        assert snapshot_state() == before
