"""Deployment configuration: reads a YAML file, interpolates env vars, validates.

One file describes one deployment: the engine, DSC and deployer addresses
and the collateral registry as two parallel lists (token addresses, price
feed addresses), the shape the engine itself is constructed from.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .core.dsc.engine import ENGINE_ADDRESS
from .core.dsc.errors import ArraysMustBeSameLength
from .core.dsc.math import FEED_DECIMALS

logger = logging.getLogger(__name__)

DEFAULT_DSC_ADDRESS = "0x" + "dc" * 20
DEFAULT_DEPLOYER = "0x" + "de" * 20

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CollateralConfig:
    token_address: str
    price_feed_address: str
    symbol: str = ""
    feed_decimals: int = FEED_DECIMALS
    # Opening answer for in-memory feeds (8 decimals); unused for live feeds.
    initial_answer: int = 0


@dataclass(frozen=True)
class EngineConfig:
    engine_address: str = ENGINE_ADDRESS
    dsc_address: str = DEFAULT_DSC_ADDRESS
    deployer: str = DEFAULT_DEPLOYER
    collateral: tuple[CollateralConfig, ...] = ()
    log_level: str = "INFO"

    @property
    def token_addresses(self) -> list[str]:
        return [c.token_address for c in self.collateral]

    @property
    def price_feed_addresses(self) -> list[str]:
        return [c.price_feed_address for c in self.collateral]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "EngineConfig":
        cfg = cls(
            engine_address=str(raw.get("engine_address", ENGINE_ADDRESS)),
            dsc_address=str(raw.get("dsc_address", DEFAULT_DSC_ADDRESS)),
            deployer=str(raw.get("deployer", DEFAULT_DEPLOYER)),
            collateral=_build_collateral(raw.get("collateral") or {}),
            log_level=str(raw.get("log_level", "INFO")).upper(),
        )
        _validate(cfg)
        return cfg


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_collateral(raw: Mapping[str, Any]) -> tuple[CollateralConfig, ...]:
    tokens = list(raw.get("token_addresses", []))
    feeds = list(raw.get("price_feed_addresses", []))
    if len(tokens) != len(feeds):
        raise ArraysMustBeSameLength(len(tokens), len(feeds))

    symbols = list(raw.get("symbols", [""] * len(tokens)))
    answers = list(raw.get("initial_answers", [0] * len(tokens)))
    decimals = list(raw.get("feed_decimals", [FEED_DECIMALS] * len(tokens)))
    for name, values in (("symbols", symbols), ("initial_answers", answers), ("feed_decimals", decimals)):
        if len(values) != len(tokens):
            raise ValueError(f"collateral.{name} has {len(values)} entries, expected {len(tokens)}")

    return tuple(
        CollateralConfig(
            token_address=str(token),
            price_feed_address=str(feed),
            symbol=str(symbol),
            feed_decimals=int(decimal),
            initial_answer=int(answer),
        )
        for token, feed, symbol, decimal, answer in zip(tokens, feeds, symbols, decimals, answers)
    )


def _validate(cfg: EngineConfig) -> None:
    """Raise on invalid configuration."""
    for name in ("engine_address", "dsc_address", "deployer"):
        if not getattr(cfg, name):
            raise ValueError(f"{name} must be set")

    seen: set[str] = set()
    for c in cfg.collateral:
        if not c.token_address or not c.price_feed_address:
            raise ValueError(f"collateral entry {c.symbol or '?'} needs a token and a price feed address")
        if c.token_address in seen:
            raise ValueError(f"duplicate collateral token: {c.token_address}")
        seen.add(c.token_address)
        if c.initial_answer < 0:
            raise ValueError(f"initial answer for {c.token_address} must be non-negative")
        if c.feed_decimals != FEED_DECIMALS:
            raise ValueError(f"price feed for {c.token_address} must quote {FEED_DECIMALS} decimals, got {c.feed_decimals}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path) -> EngineConfig:
    """Load and validate a deployment configuration from YAML.

    A ``.env`` file next to the YAML is loaded first; variables already set
    in the environment take precedence over it.
    """
    config_path = Path(config_path)
    load_dotenv(config_path.with_name(".env"))
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise TypeError("config YAML must be a mapping")

    cfg = EngineConfig.from_mapping(_interpolate_env(raw))
    logger.info("Configuration loaded from %s (%d collateral tokens)", config_path, len(cfg.collateral))
    return cfg
