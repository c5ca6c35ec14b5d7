"""
Shared fixtures for pricing and risk tests.

A BTC/USD book valued on 21 Jun 2019 against the 28 Jun 2019 expiry
(08:00 UTC settlement), seven days out.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from coinrisk.derivatives.contracts import (
    CallOrPut,
    Coin,
    Contract,
    Pair,
    Position,
    future_contract,
    option_contract,
    perp_contract,
)

BTC_USD = Pair(Coin.BTC, Coin.USD)
ETH_USD = Pair(Coin.ETH, Coin.USD)

ASOF = datetime(2019, 6, 21, 12, 0, tzinfo=timezone.utc)
EXPIRY = datetime(2019, 6, 28, 8, 0, tzinfo=timezone.utc)

SPOT = 5_500.0
FORWARD = 5_500.0
VOL = 0.8


# ─────────────────────────────────────────────────────────
# Independent Black-76 reference (zero rate)
# ─────────────────────────────────────────────────────────

def reference_black76(forward: float, strike: float, t: float, sigma: float, is_call: bool) -> float:
    """Textbook Black-76 with r = 0, erf-based normal CDF."""
    def n_cdf(x: float) -> float:
        return 0.5 * (1.0 + math.erf(x / math.sqrt(2.0)))

    vsqrt = sigma * math.sqrt(t)
    d1 = (math.log(forward / strike) + 0.5 * sigma * sigma * t) / vsqrt
    d2 = d1 - vsqrt
    if is_call:
        return forward * n_cdf(d1) - strike * n_cdf(d2)
    return strike * n_cdf(-d2) - forward * n_cdf(-d1)


# ─────────────────────────────────────────────────────────
# Pytest Fixtures
# ─────────────────────────────────────────────────────────

@pytest.fixture
def asof() -> datetime:
    return ASOF


@pytest.fixture
def btc_call() -> Contract:
    """BTC-28JUN19-5000-C"""
    return option_contract(BTC_USD, EXPIRY, 5000, CallOrPut.CALL)


@pytest.fixture
def btc_put() -> Contract:
    """BTC-28JUN19-5000-P"""
    return option_contract(BTC_USD, EXPIRY, 5000, CallOrPut.PUT)


@pytest.fixture
def btc_atm_call() -> Contract:
    """BTC-28JUN19-5500-C"""
    return option_contract(BTC_USD, EXPIRY, 5500, CallOrPut.CALL)


@pytest.fixture
def btc_future() -> Contract:
    """BTC-28JUN19"""
    return future_contract(BTC_USD, EXPIRY)


@pytest.fixture
def btc_perp() -> Contract:
    return perp_contract(BTC_USD)


@pytest.fixture
def long_call(btc_call: Contract) -> Position:
    return Position(btc_call, quantity=2.0, entry_price=0.12)


@pytest.fixture
def short_put(btc_put: Contract) -> Position:
    return Position(btc_put, quantity=-3.0, entry_price=0.02)


@pytest.fixture
def long_future(btc_future: Contract) -> Position:
    """10,000 USD of the June future bought at 5000."""
    return Position(btc_future, quantity=10_000.0, entry_price=5_000.0)


@pytest.fixture
def short_perp(btc_perp: Contract) -> Position:
    return Position(btc_perp, quantity=-5_000.0, entry_price=5_400.0)
