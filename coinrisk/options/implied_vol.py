"""
Implied Volatility: Newton-Raphson inversion of the forward pricer.

Failures never raise: the float API returns NaN (no time value, not an
option, no convergence) or 0.0 (premium at or below intrinsic), and
``solve_implied_vol`` reports which of those happened.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from coinrisk.derivatives.contracts import CallOrPut, Contract
from coinrisk.options.pricing import forward_option_price
from coinrisk.utils.logger import get_logger

logger = get_logger(__name__)

VOL_BUMP = 0.005
SEED_VOL = 1.0
MAX_ITERATIONS = 1000
TOLERANCE = 0.00001
MAX_VOL = 5.0
VEGA_FLOOR = 0.00001


class SolveStatus(str, Enum):
    VALUED = "valued"
    ZERO_FLOOR = "zero_floor"           # premium at or below intrinsic
    NOT_APPLICABLE = "not_applicable"   # contract is not an option
    DEGENERATE = "degenerate"           # no time left or no forward to invert
    NON_CONVERGENT = "non_convergent"


@dataclass(frozen=True)
class ImpliedVolResult:
    status: SolveStatus
    value: float = math.nan
    iterations: int = 0

    @property
    def ok(self) -> bool:
        return self.status in (SolveStatus.VALUED, SolveStatus.ZERO_FLOOR)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "value": self.value,
            "iterations": self.iterations,
        }


def option_vega(expiry_days: int, strike: float, spot: float, forward: float, vol: float) -> float:
    """Change in spot-value premium for a 1% vol move.

    Always priced as a call; vega is the same for puts under this model.
    """
    if forward <= 0.0:
        return math.nan
    up = forward_option_price(expiry_days, strike, forward, vol + VOL_BUMP, CallOrPut.CALL)
    down = forward_option_price(expiry_days, strike, forward, vol - VOL_BUMP, CallOrPut.CALL)
    return spot / forward * (up - down)


def solve_implied_vol(
    expiry_days: int,
    strike: float,
    spot: float,
    forward: float,
    premium: float,
    call_put: CallOrPut,
    seed_vol: float = SEED_VOL,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
    max_vol: float = MAX_VOL,
    vega_floor: float = VEGA_FLOOR,
) -> ImpliedVolResult:
    """Recover the vol that reprices ``premium`` (quote coin, spot value)."""
    if expiry_days <= 0 or forward <= 0.0:
        return ImpliedVolResult(SolveStatus.DEGENERATE)

    floor_prm = spot / forward * forward_option_price(expiry_days, strike, forward, 0.0, call_put)
    if premium <= floor_prm:
        return ImpliedVolResult(SolveStatus.ZERO_FLOOR, 0.0)

    guess_vol = seed_vol
    for i in range(max_iterations):
        guess_prm = spot / forward * forward_option_price(expiry_days, strike, forward, guess_vol, call_put)
        vega = option_vega(expiry_days, strike, spot, forward, guess_vol)
        vega = max(vega, vega_floor * spot)
        guess_vol -= (guess_prm - premium) / (vega * 100.0)
        guess_vol = min(max(guess_vol, 0.0), max_vol)
        if abs(guess_prm - premium) / forward < tolerance:
            return ImpliedVolResult(SolveStatus.VALUED, guess_vol, i + 1)

    logger.warning(
        "implied_vol_not_converged",
        expiry_days=expiry_days,
        strike=strike,
        forward=forward,
        premium=premium,
        call_put=call_put.value,
        last_guess=guess_vol,
    )
    return ImpliedVolResult(SolveStatus.NON_CONVERGENT, iterations=max_iterations)


def option_implied_vol(
    expiry_days: int,
    strike: float,
    spot: float,
    forward: float,
    premium: float,
    call_put: CallOrPut,
) -> float:
    return solve_implied_vol(expiry_days, strike, spot, forward, premium, call_put).value


def solve_contract_implied_vol(
    contract: Contract,
    asof: datetime,
    spot: float,
    forward: float,
    premium: float,
    in_base_coin: bool = False,
    **solver_kwargs: Any,
) -> ImpliedVolResult:
    if not contract.is_option:
        return ImpliedVolResult(SolveStatus.NOT_APPLICABLE)
    # exchange quotes option premiums in base coin
    quote_premium = premium * spot if in_base_coin else premium
    return solve_implied_vol(
        contract.expiry_days(asof),
        contract.strike,
        spot,
        forward,
        quote_premium,
        contract.call_put,
        **solver_kwargs,
    )


def implied_volatility(
    contract: Contract,
    asof: datetime,
    spot: float,
    forward: float,
    premium: float,
    in_base_coin: bool = False,
) -> float:
    """Implied vol of an option contract, NaN if not an option or unsolvable."""
    return solve_contract_implied_vol(contract, asof, spot, forward, premium, in_base_coin).value
