"""
Position Risk: valuation and bump-and-revalue Greeks.

Every Greek is a central difference of position PV. The bump sizes and
the x100 scaling are part of the reported numbers:
  • spot and forward bumped together by ±0.5%
  • vol bumped by ±0.005 (50bp)
  • theta rolls the valuation date forward one day
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta

from coinrisk.derivatives.contracts import Contract, Position, underlying_future
from coinrisk.derivatives.naming import display_name
from coinrisk.options.pricing import option_price

SPOT_BUMP = 0.005
VOL_BUMP = 0.005
THETA_STEP = timedelta(days=1)
CASH_BUCKET = "CASH"

# Linear contracts are sized in 1 USD of notional each.
LINEAR_CONTRACT_SIZE = 1.0


def _reciprocal(x: float) -> float:
    if x == 0.0:
        return math.copysign(math.inf, x)
    return 1.0 / x


def value_position(position: Position, asof: datetime, spot: float, forward: float, vol: float) -> float:
    """PV in quote coin, spot value.

    Options are worth premium x quantity. Linear contracts are inverse
    quoted, so P&L is the difference of reciprocal prices converted at
    spot. No discounting: the base coin carries zero rate.
    """
    if position.contract.is_option:
        return option_price(position.contract, asof, spot, forward, vol) * position.quantity
    return (
        (_reciprocal(position.entry_price) - _reciprocal(forward))
        * spot
        * position.quantity
        * LINEAR_CONTRACT_SIZE
    )


def position_vega(position: Position, asof: datetime, spot: float, forward: float, vol: float) -> float:
    # quote coin spot value
    return (
        value_position(position, asof, spot, forward, vol + VOL_BUMP)
        - value_position(position, asof, spot, forward, vol - VOL_BUMP)
    )


def _delta_fiat(position: Position, asof: datetime, spot: float, forward: float, vol: float) -> float:
    up = value_position(position, asof, spot * (1 + SPOT_BUMP), forward * (1 + SPOT_BUMP), vol)
    down = value_position(position, asof, spot * (1 - SPOT_BUMP), forward * (1 - SPOT_BUMP), vol)
    return (up - down) * 100.0


def position_delta(position: Position, asof: datetime, spot: float, forward: float, vol: float) -> float:
    # base coin spot value
    return _delta_fiat(position, asof, spot, forward, vol) * _reciprocal(spot)


def position_gamma(position: Position, asof: datetime, spot: float, forward: float, vol: float) -> float:
    return (
        position_delta(position, asof, spot * (1 + SPOT_BUMP), forward * (1 + SPOT_BUMP), vol)
        - position_delta(position, asof, spot * (1 - SPOT_BUMP), forward * (1 - SPOT_BUMP), vol)
    )


def position_theta(position: Position, asof: datetime, spot: float, forward: float, vol: float) -> float:
    return (
        value_position(position, asof + THETA_STEP, spot, forward, vol)
        - value_position(position, asof, spot, forward, vol)
    )


def bucket_key(contract: Contract) -> str:
    return display_name(underlying_future(contract))


def bucket_delta(
    position: Position,
    asof: datetime,
    spot: float,
    forward: float,
    vol: float,
) -> dict[str, float]:
    """Split delta into a spot-only CASH bucket and the forward residual.

    The residual is keyed by the name of the underlying future; the two
    buckets sum to ``position_delta``.
    """
    total = _delta_fiat(position, asof, spot, forward, vol)
    cash = (
        value_position(position, asof, spot * (1 + SPOT_BUMP), forward, vol)
        - value_position(position, asof, spot * (1 - SPOT_BUMP), forward, vol)
    ) * 100.0
    return {
        CASH_BUCKET: cash * _reciprocal(spot),
        bucket_key(position.contract): (total - cash) * _reciprocal(spot),
    }
