from __future__ import annotations

import math
from datetime import datetime

from scipy.stats import norm

from coinrisk.derivatives.contracts import CallOrPut, Contract

DAYS_PER_YEAR = 365.0


def cum_norm_dist(x: float) -> float:
    return float(norm.cdf(x))


def forward_option_price(
    expiry_days: int,
    strike: float,
    forward: float,
    vol: float,
    call_put: CallOrPut,
) -> float:
    """Undiscounted Black-76 premium in quote coin, forward value.

    The base coin is the numeraire with zero carry, so there is no
    discount factor. Expired or zero-vol options are worth intrinsic.
    A non-positive forward has no price and gives NaN; a non-positive
    strike takes the limit of the closed form (call worth the forward).
    """
    if forward <= 0.0 or math.isnan(forward):
        return math.nan
    if strike <= 0.0:
        # ln(F/K) -> +inf, so N(d1) = N(d2) = 1
        return forward if call_put == CallOrPut.CALL else 0.0

    if expiry_days <= 0:
        vol = 0.0

    t = expiry_days / DAYS_PER_YEAR
    vol_sqrt_t = vol * math.sqrt(t) if t > 0 else 0.0
    if vol_sqrt_t == 0.0:
        # limit of N(+/-inf) in the closed form
        if call_put == CallOrPut.CALL:
            return max(forward - strike, 0.0)
        return max(strike - forward, 0.0)

    d1 = (math.log(forward / strike) + 0.5 * vol * vol * t) / vol_sqrt_t
    d2 = d1 - vol_sqrt_t
    if call_put == CallOrPut.CALL:
        return forward * cum_norm_dist(d1) - strike * cum_norm_dist(d2)
    return -forward * cum_norm_dist(-d1) + strike * cum_norm_dist(-d2)


def option_price(contract: Contract, asof: datetime, spot: float, forward: float, vol: float) -> float:
    """Premium of an option contract in quote coin, spot value.

    NaN when the contract is not an option or the forward is zero.
    """
    if not contract.is_option or forward == 0.0:
        return math.nan
    days = contract.expiry_days(asof)
    return forward_option_price(days, contract.strike, forward, vol, contract.call_put) * spot / forward


def simple_delta(contract: Contract, asof: datetime, forward: float, vol: float) -> float:
    """Quick analytic delta N(ln(F/K) / (vol * sqrt(t))), less one for puts."""
    if not contract.is_option or forward <= 0.0:
        return math.nan
    if contract.strike <= 0.0:
        return 1.0 if contract.is_call else 0.0
    days = contract.expiry_days(asof)
    vol_sqrt_t = vol * math.sqrt(max(days, 0) / DAYS_PER_YEAR)
    moneyness = math.log(forward / contract.strike)
    if vol_sqrt_t == 0.0:
        d = math.copysign(math.inf, moneyness) if moneyness != 0.0 else 0.0
    else:
        d = moneyness / vol_sqrt_t
    if contract.is_call:
        return cum_norm_dist(d)
    return cum_norm_dist(d) - 1.0
