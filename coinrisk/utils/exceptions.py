from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    CONTRACT = "contract"
    PARSE = "parse"
    DATA = "data"
    CONFIG = "config"


class CoinRiskError(Exception):
    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.DATA,
        field: Optional[str] = None,
    ) -> None:
        self.message = message
        self.category = category
        self.field = field
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.category.value}] {self.message}"]
        if self.field:
            parts.append(f"Field: {self.field}")
        return " | ".join(parts)


class ContractError(CoinRiskError):
    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message, ErrorCategory.CONTRACT, field)


class ContractParseError(CoinRiskError):
    def __init__(self, message: str, name: Optional[str] = None) -> None:
        self.name = name
        super().__init__(message, ErrorCategory.PARSE)

    def __str__(self) -> str:
        base = super().__str__()
        if self.name is not None:
            return f"{base} | Name: {self.name!r}"
        return base


class MarketDataError(CoinRiskError):
    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message, ErrorCategory.DATA, field)
