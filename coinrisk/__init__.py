"""Coin-margined derivatives pricing, implied volatility and risk."""

from coinrisk.derivatives import (
    CallOrPut,
    Coin,
    Contract,
    Pair,
    Position,
    bucket_delta,
    position_delta,
    position_gamma,
    position_theta,
    position_vega,
    underlying_future,
    value_position,
)
from coinrisk.options import implied_volatility
from coinrisk.options import option_price as price_option

__version__ = "0.1.0"

__all__ = [
    "CallOrPut", "Coin", "Contract", "Pair", "Position",
    "bucket_delta", "position_delta", "position_gamma", "position_theta",
    "position_vega", "underlying_future", "value_position",
    "implied_volatility", "price_option",
]
