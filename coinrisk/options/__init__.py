"""Forward option pricing and implied volatility."""

from coinrisk.options.implied_vol import (
    ImpliedVolResult,
    SolveStatus,
    implied_volatility,
    option_implied_vol,
    option_vega,
    solve_implied_vol,
)
from coinrisk.options.pricing import forward_option_price, option_price, simple_delta

__all__ = [
    "ImpliedVolResult", "SolveStatus",
    "implied_volatility", "option_implied_vol", "option_vega", "solve_implied_vol",
    "forward_option_price", "option_price", "simple_delta",
]
