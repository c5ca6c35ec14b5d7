from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")
    log_json: bool = Field(default=True, description="JSON log lines, console rendering when false")

    iv_seed_vol: float = Field(default=1.0, description="Newton-Raphson starting volatility")
    iv_max_iterations: int = Field(default=1000, gt=0, description="Newton-Raphson iteration budget")
    iv_tolerance: float = Field(default=0.00001, gt=0.0, description="Convergence test on premium error / forward")
    iv_max_vol: float = Field(default=5.0, gt=0.0, description="Upper clamp on the volatility guess")
    iv_vega_floor: float = Field(default=0.00001, ge=0.0, description="Vega floor as a fraction of spot")

    model_config = {
        "env_prefix": "COINRISK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    global _settings
    _settings = Settings()
    return _settings
