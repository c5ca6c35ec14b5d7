"""
Portfolio Risk Engine: Greeks and implied vols across many positions.

Wraps the pure position functions with solver settings, per-underlying
market snapshots and portfolio aggregation for risk reports.
"""
from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Sequence

import pandas as pd

from coinrisk.derivatives.contracts import Contract, Position
from coinrisk.derivatives.naming import display_name
from coinrisk.derivatives.risk import (
    bucket_delta,
    bucket_key,
    position_delta,
    position_gamma,
    position_theta,
    position_vega,
    value_position,
)
from coinrisk.options.implied_vol import (
    MAX_ITERATIONS,
    MAX_VOL,
    SEED_VOL,
    TOLERANCE,
    VEGA_FLOOR,
    ImpliedVolResult,
    solve_contract_implied_vol,
)
from coinrisk.utils.config import Settings
from coinrisk.utils.exceptions import MarketDataError
from coinrisk.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MarketSnapshot:
    """Market inputs for one underlying future (or perpetual)."""
    asof: datetime
    spot: float
    forward: float
    vol: float = 0.0

    def __post_init__(self) -> None:
        for name in ("spot", "forward"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise MarketDataError(f"{name} must be positive and finite, got {value}", field=name)
        if not math.isfinite(self.vol) or self.vol < 0:
            raise MarketDataError(f"vol must be non-negative and finite, got {self.vol}", field="vol")


@dataclass
class PositionRisk:
    """Valuation and Greeks for one position."""
    name: str
    quantity: float
    pv: float
    delta: float
    gamma: float
    vega: float
    theta: float
    buckets: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "pv": round(self.pv, 6),
            "delta": round(self.delta, 6),
            "gamma": round(self.gamma, 6),
            "vega": round(self.vega, 6),
            "theta": round(self.theta, 6),
        }


@dataclass
class PortfolioRisk:
    """Summed Greeks and merged delta buckets."""
    pv: float = 0.0
    delta: float = 0.0
    gamma: float = 0.0
    vega: float = 0.0
    theta: float = 0.0
    buckets: dict[str, float] = field(default_factory=dict)
    positions: list[PositionRisk] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pv": round(self.pv, 6),
            "delta": round(self.delta, 6),
            "gamma": round(self.gamma, 6),
            "vega": round(self.vega, 6),
            "theta": round(self.theta, 6),
            "buckets": {k: round(v, 6) for k, v in self.buckets.items()},
            "positions": len(self.positions),
        }


class RiskEngine:
    """Compute position and portfolio risk.

    Features:
    • Per-position PV, delta, gamma, vega, theta and delta buckets
    • Portfolio aggregation with CASH / expiry bucket merging
    • Implied vol with configurable Newton-Raphson settings
    • DataFrame risk report
    """

    def __init__(
        self,
        seed_vol: float = SEED_VOL,
        max_iterations: int = MAX_ITERATIONS,
        tolerance: float = TOLERANCE,
        max_vol: float = MAX_VOL,
        vega_floor: float = VEGA_FLOOR,
    ) -> None:
        self.seed_vol = seed_vol
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.max_vol = max_vol
        self.vega_floor = vega_floor

    @classmethod
    def from_settings(cls, settings: Settings) -> "RiskEngine":
        return cls(
            seed_vol=settings.iv_seed_vol,
            max_iterations=settings.iv_max_iterations,
            tolerance=settings.iv_tolerance,
            max_vol=settings.iv_max_vol,
            vega_floor=settings.iv_vega_floor,
        )

    def implied_vol(
        self,
        contract: Contract,
        market: MarketSnapshot,
        premium: float,
        in_base_coin: bool = False,
    ) -> ImpliedVolResult:
        return solve_contract_implied_vol(
            contract,
            market.asof,
            market.spot,
            market.forward,
            premium,
            in_base_coin,
            seed_vol=self.seed_vol,
            max_iterations=self.max_iterations,
            tolerance=self.tolerance,
            max_vol=self.max_vol,
            vega_floor=self.vega_floor,
        )

    def position_risk(self, position: Position, market: MarketSnapshot) -> PositionRisk:
        args = (position, market.asof, market.spot, market.forward, market.vol)
        return PositionRisk(
            name=display_name(position.contract),
            quantity=position.quantity,
            pv=value_position(*args),
            delta=position_delta(*args),
            gamma=position_gamma(*args),
            vega=position_vega(*args),
            theta=position_theta(*args),
            buckets=bucket_delta(*args),
        )

    def portfolio_risk(
        self,
        positions: Sequence[Position],
        markets: Mapping[str, MarketSnapshot],
    ) -> PortfolioRisk:
        """Aggregate risk; ``markets`` is keyed by underlying future name."""
        result = PortfolioRisk()
        buckets: dict[str, float] = defaultdict(float)

        for position in positions:
            key = bucket_key(position.contract)
            market = markets.get(key)
            if market is None:
                raise MarketDataError(f"No market snapshot for {key}", field=key)

            risk = self.position_risk(position, market)
            result.positions.append(risk)
            result.pv += risk.pv
            result.delta += risk.delta
            result.gamma += risk.gamma
            result.vega += risk.vega
            result.theta += risk.theta
            for bucket, value in risk.buckets.items():
                buckets[bucket] += value

        result.buckets = dict(buckets)
        logger.debug(
            "portfolio_risk_computed",
            positions=len(result.positions),
            pv=result.pv,
            delta=result.delta,
        )
        return result

    def risk_report(
        self,
        positions: Sequence[Position],
        markets: Mapping[str, MarketSnapshot],
    ) -> pd.DataFrame:
        """One row per position plus a bucket column per delta bucket."""
        portfolio = self.portfolio_risk(positions, markets)
        rows = []
        for risk in portfolio.positions:
            row = risk.to_dict()
            # a position has no exposure to buckets it does not carry
            for bucket in portfolio.buckets:
                row[f"delta[{bucket}]"] = risk.buckets.get(bucket, 0.0)
            rows.append(row)
        return pd.DataFrame(rows)
