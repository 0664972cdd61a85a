#!/usr/bin/env python3
"""Offline DSC scenario: deposit, mint, price crash, liquidation.

Loads a deployment config, wires in-memory tokens and feeds, and prints the
account state after each phase as JSON.
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dscengine.config import load_config
from dscengine.core.dsc import Action, ActionParams
from dscengine.integration.deployment import Deployment, deploy
from dscengine.logging_setup import configure_logging

USER = "0x" + "aa" * 20
LIQUIDATOR = "0x" + "bb" * 20
WEI = 10**18


def _now() -> int:
    return int(time.time())


def _account(d: Deployment, who: str) -> dict[str, object]:
    info = d.engine.get_account_information(who)
    return {
        "account": who,
        "dsc_minted": info.total_dsc_minted,
        "collateral_value_in_usd": info.collateral_value_in_usd,
        "health_factor": d.engine.get_health_factor(who),
        "collateral": {
            symbol: d.engine.get_collateral_balance_of_user(who, token.address)
            for symbol, token in d.tokens.items()
        },
        "dsc_balance": d.dsc.balance_of(who),
    }


def _print(phase: str, d: Deployment) -> None:
    print(json.dumps({"phase": phase, "user": _account(d, USER), "liquidator": _account(d, LIQUIDATOR)}, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--config", default=str(ROOT / "config.example.yaml"), help="deployment config (YAML)")
    parser.add_argument("--collateral", default=None, help="collateral symbol (default: first configured)")
    parser.add_argument("--deposit", type=int, default=10, help="whole tokens the user deposits")
    parser.add_argument("--mint", type=int, default=100, help="whole DSC the user mints")
    parser.add_argument("--crash-answer", type=int, default=18 * 10**8, help="feed answer after the crash (8 decimals)")
    parser.add_argument(
        "--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="default: config log_level",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    configure_logging(args.log_level or config.log_level)

    d = deploy(config, clock=_now)
    symbol = args.collateral or next(iter(d.tokens))
    token = d.token(symbol)
    engine = d.engine

    deposit = args.deposit * WEI
    mint = args.mint * WEI

    token.mint(USER, deposit)
    token.approve(USER, engine.address, deposit)
    engine.deposit_collateral_and_mint_dsc(USER, token.address, deposit, mint)
    _print("minted", d)

    d.feed(symbol).update_answer(args.crash_answer)
    _print("crashed", d)

    # The liquidator brings twice the user's collateral and mints the DSC it repays with.
    token.mint(LIQUIDATOR, 2 * deposit)
    token.approve(LIQUIDATOR, engine.address, 2 * deposit)
    engine.deposit_collateral_and_mint_dsc(LIQUIDATOR, token.address, 2 * deposit, mint)
    d.dsc.approve(LIQUIDATOR, engine.address, mint)
    result = engine.step(
        ActionParams(
            action=Action.LIQUIDATE,
            caller=LIQUIDATOR,
            token=token.address,
            user=USER,
            debt_to_cover=mint,
        )
    )
    if not result.accepted:
        print(f"[dsc-demo] liquidation rejected: {result.rejection}")
        return 1
    _print("liquidated", d)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
