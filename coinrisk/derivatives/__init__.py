"""
Derivatives Layer: contract model, valuation and risk.

Provides:
• Contract / Position model for options, dated futures and perpetuals
• Instrument naming and an injectable contract cache
• Bump-and-revalue PV, delta, gamma, vega, theta and bucket delta
• Portfolio Risk Engine with DataFrame reports
"""

from coinrisk.derivatives.contracts import (
    CallOrPut,
    Coin,
    Contract,
    Pair,
    Position,
    call_put_mirror,
    future_contract,
    option_contract,
    perp_contract,
    underlying_future,
)
from coinrisk.derivatives.naming import (
    ContractCache,
    contract_from_identity,
    contract_from_name,
    display_name,
    positions_from_names,
)
from coinrisk.derivatives.risk import (
    bucket_delta,
    position_delta,
    position_gamma,
    position_theta,
    position_vega,
    value_position,
)
from coinrisk.derivatives.risk_engine import (
    MarketSnapshot,
    PortfolioRisk,
    PositionRisk,
    RiskEngine,
)

__all__ = [
    "CallOrPut", "Coin", "Contract", "Pair", "Position",
    "call_put_mirror", "future_contract", "option_contract", "perp_contract",
    "underlying_future",
    "ContractCache", "contract_from_identity", "contract_from_name",
    "display_name", "positions_from_names",
    "bucket_delta", "position_delta", "position_gamma", "position_theta",
    "position_vega", "value_position",
    "MarketSnapshot", "PortfolioRisk", "PositionRisk", "RiskEngine",
]
