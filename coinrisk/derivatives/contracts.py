"""
Contract Models: Instrument and position descriptors.

Canonical immutable data structures for coin-margined options, dated
futures and perpetuals, and the positions that reference them.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from coinrisk.utils.dates import expiry_days, utc_now
from coinrisk.utils.exceptions import ContractError


class Coin(str, Enum):
    BTC = "BTC"
    ETH = "ETH"
    USD = "USD"


class CallOrPut(str, Enum):
    CALL = "C"
    PUT = "P"
    NA = "N"      # futures and perpetuals


@dataclass(frozen=True)
class Pair:
    """Base ("LHS") coin quoted in a quote ("RHS") coin, e.g. BTC/USD."""
    coin: Coin
    quote: Coin = Coin.USD

    def __str__(self) -> str:
        return f"{self.coin.value}/{self.quote.value}"


@dataclass(frozen=True)
class Contract:
    """Immutable instrument descriptor.

    Every Position references a Contract; many positions may share one.
    Non-options always carry ``call_put == NA`` and ``strike == 0``.
    """
    is_option: bool
    underlying: Pair
    expiry: datetime
    delivery: Optional[datetime] = None
    strike: float = 0.0
    call_put: CallOrPut = CallOrPut.NA
    perp: bool = False

    def __post_init__(self) -> None:
        if self.delivery is None:
            object.__setattr__(self, "delivery", self.expiry)
        if self.is_option:
            if self.call_put == CallOrPut.NA:
                raise ContractError("Option contract needs CALL or PUT", field="call_put")
            if self.perp:
                raise ContractError("Option contract cannot be perpetual", field="perp")
        else:
            if self.call_put != CallOrPut.NA:
                raise ContractError("Non-option contract must be NA", field="call_put")
            if self.strike != 0.0:
                raise ContractError("Non-option contract must have zero strike", field="strike")

    @property
    def is_call(self) -> bool:
        return self.call_put == CallOrPut.CALL

    @property
    def is_put(self) -> bool:
        return self.call_put == CallOrPut.PUT

    @property
    def is_linear(self) -> bool:
        return not self.is_option

    def expiry_days(self, asof: datetime) -> int:
        """Rounded UTC day count from ``asof`` to expiry."""
        return expiry_days(self.expiry, asof)

    def intrinsic_value(self, forward: float) -> float:
        if not self.is_option:
            return math.nan
        if self.is_call:
            return max(forward - self.strike, 0.0)
        return max(self.strike - forward, 0.0)


@dataclass(frozen=True)
class Position:
    """A signed quantity of a contract entered at a price.

    ``entry_price`` is quote coin per base coin for linear contracts; for
    options it is the premium paid, which is not used by valuation since
    the exchange books option premium in the cash balance.
    """
    contract: Contract
    quantity: float = 0.0       # positive = long, negative = short
    entry_price: float = 0.0

    @property
    def is_long(self) -> bool:
        return self.quantity > 0

    @property
    def is_short(self) -> bool:
        return self.quantity < 0


def option_contract(pair: Pair, expiry: datetime, strike: float, call_put: CallOrPut) -> Contract:
    return Contract(
        is_option=True,
        underlying=pair,
        expiry=expiry,
        delivery=expiry,
        strike=float(strike),
        call_put=call_put,
    )


def future_contract(pair: Pair, expiry: datetime) -> Contract:
    return Contract(is_option=False, underlying=pair, expiry=expiry, delivery=expiry)


def perp_contract(pair: Pair) -> Contract:
    """Perpetual swap; its expiry is the construction time and carries no meaning."""
    return Contract(is_option=False, underlying=pair, expiry=utc_now(), perp=True)


def underlying_future(contract: Contract) -> Contract:
    """Strip the option fields, leaving the dated future the option settles against."""
    if not contract.is_option:
        return contract
    return Contract(
        is_option=False,
        underlying=contract.underlying,
        expiry=contract.expiry,
        delivery=contract.delivery,
    )


def call_put_mirror(contract: Contract) -> Contract:
    """If a call, the identical put, and vice versa. Non-options are returned as-is."""
    if not contract.is_option:
        return contract
    flipped = CallOrPut.PUT if contract.is_call else CallOrPut.CALL
    return replace(contract, call_put=flipped)
