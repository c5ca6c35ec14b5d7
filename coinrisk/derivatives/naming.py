"""
Instrument Naming: exchange-style identifiers and an injectable cache.

Names follow the exchange convention:
    BTC-28JUN19-5000-C    option
    BTC-28JUN19           dated future
    BTC-PERPETUAL         perpetual
"""
from __future__ import annotations

import re
import threading
from datetime import datetime, timezone
from typing import Optional, Sequence

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
from coinrisk.utils.exceptions import ContractParseError
from coinrisk.utils.logger import get_logger

logger = get_logger(__name__)

EXPIRY_HOUR_UTC = 8     # 08:00 London settlement
PERPETUAL = "PERPETUAL"

_COINS = {"BTC": Pair(Coin.BTC, Coin.USD), "ETH": Pair(Coin.ETH, Coin.USD)}
_CALL_PUT = {"C": CallOrPut.CALL, "P": CallOrPut.PUT}
_MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")
_EXPIRY_RE = re.compile(r"(\d{1,2})([A-Z]{3})(\d{2})")


def _format_expiry(expiry: datetime) -> str:
    if expiry.tzinfo is not None:
        expiry = expiry.astimezone(timezone.utc)
    return f"{expiry.day}{_MONTHS[expiry.month - 1]}{expiry.year % 100:02d}"


def _parse_expiry(text: str, name: str) -> datetime:
    match = _EXPIRY_RE.fullmatch(text)
    if match is None or match.group(2) not in _MONTHS:
        raise ContractParseError(f"Bad expiry {text!r}", name)
    day, month, year = match.groups()
    try:
        return datetime(
            2000 + int(year),
            _MONTHS.index(month) + 1,
            int(day),
            EXPIRY_HOUR_UTC,
            tzinfo=timezone.utc,
        )
    except ValueError as e:
        raise ContractParseError(f"Bad expiry {text!r}", name) from e


def display_name(contract: Contract) -> str:
    coin = contract.underlying.coin.value
    if contract.is_option:
        return f"{coin}-{_format_expiry(contract.expiry)}-{contract.strike:.0f}-{contract.call_put.value}"
    if contract.perp:
        return f"{coin}-{PERPETUAL}"
    return f"{coin}-{_format_expiry(contract.expiry)}"


def contract_from_identity(
    pair: Pair,
    expiry: datetime,
    strike: float = 0.0,
    call_put: CallOrPut = CallOrPut.NA,
) -> Contract:
    """Option when a call/put flag is given, otherwise the dated future."""
    if call_put == CallOrPut.NA:
        return future_contract(pair, expiry)
    return option_contract(pair, expiry, strike, call_put)


def contract_from_name(name: str) -> Contract:
    parts = name.strip().upper().split("-")
    if len(parts) not in (2, 4):
        raise ContractParseError("Not a good contract formation", name)

    pair = _COINS.get(parts[0])
    if pair is None:
        raise ContractParseError(f"Do not recognise coin {parts[0]!r}", name)

    if parts[1] == PERPETUAL:
        if len(parts) != 2:
            raise ContractParseError("Perpetual takes no strike or call/put", name)
        return perp_contract(pair)

    expiry = _parse_expiry(parts[1], name)
    if len(parts) == 2:
        return future_contract(pair, expiry)

    try:
        strike = float(parts[2])
    except ValueError as e:
        raise ContractParseError(f"Bad strike {parts[2]!r}", name) from e

    call_put = _CALL_PUT.get(parts[3])
    if call_put is None:
        raise ContractParseError("Need C or P", name)
    return option_contract(pair, expiry, strike, call_put)


class ContractCache:
    """Parse-once map from instrument name to Contract.

    Owned by the caller and safe to share between threads. Perpetuals are
    cached like any other contract, so their expiry is the time of the
    first lookup.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._contracts: dict[str, Contract] = {}

    def get(self, name: str) -> Contract:
        with self._lock:
            contract = self._contracts.get(name)
            if contract is None:
                logger.debug("contract_cache_miss", name=name)
                contract = contract_from_name(name)
                self._contracts[name] = contract
            return contract

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._contracts

    def __len__(self) -> int:
        with self._lock:
            return len(self._contracts)

    def clear(self) -> None:
        with self._lock:
            self._contracts.clear()


def positions_from_names(
    names: Sequence[str],
    quantities: Optional[Sequence[float]] = None,
    prices: Optional[Sequence[float]] = None,
    cache: Optional[ContractCache] = None,
) -> list[Position]:
    """Build positions by name; zero quantity and price when either list is missing."""
    lookup = cache.get if cache is not None else contract_from_name
    positions: list[Position] = []
    for i, name in enumerate(names):
        contract = lookup(name)
        if quantities is None or prices is None:
            positions.append(Position(contract))
        else:
            positions.append(Position(contract, quantities[i], prices[i]))
    return positions
