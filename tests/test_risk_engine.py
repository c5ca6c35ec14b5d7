"""
Integration tests for the portfolio Risk Engine, settings and logging.
"""

from __future__ import annotations

import logging
import math

import pandas as pd
import pytest
import structlog

from coinrisk.derivatives.contracts import Position
from coinrisk.derivatives.risk import CASH_BUCKET, bucket_delta, position_delta, value_position
from coinrisk.derivatives.risk_engine import MarketSnapshot, PortfolioRisk, RiskEngine
from coinrisk.options.implied_vol import SolveStatus
from coinrisk.options.pricing import option_price
from coinrisk.utils import config as config_module
from coinrisk.utils.config import Settings, get_settings, reload_settings
from coinrisk.utils.exceptions import ErrorCategory, MarketDataError
from coinrisk.utils.logger import get_logger, setup_logging
from tests.conftest import FORWARD, SPOT, VOL


@pytest.fixture
def market(asof) -> MarketSnapshot:
    return MarketSnapshot(asof=asof, spot=SPOT, forward=FORWARD, vol=VOL)


@pytest.fixture
def markets(asof, market) -> dict[str, MarketSnapshot]:
    return {
        "BTC-28JUN19": market,
        "BTC-PERPETUAL": MarketSnapshot(asof=asof, spot=SPOT, forward=5_510.0),
    }


@pytest.fixture
def book(long_call, short_put, long_future, short_perp) -> list[Position]:
    return [long_call, short_put, long_future, short_perp]


# ═══════════════════════════════════════════════════════════
# 1. MARKET SNAPSHOT
# ═══════════════════════════════════════════════════════════

class TestMarketSnapshot:

    @pytest.mark.parametrize("spot,forward,vol", [
        (0.0, 5500.0, 0.5), (5500.0, -1.0, 0.5), (math.nan, 5500.0, 0.5), (5500.0, 5500.0, -0.1),
    ])
    def test_rejects_bad_inputs(self, asof, spot, forward, vol):
        with pytest.raises(MarketDataError) as exc:
            MarketSnapshot(asof=asof, spot=spot, forward=forward, vol=vol)
        assert exc.value.category == ErrorCategory.DATA


# ═══════════════════════════════════════════════════════════
# 2. RISK ENGINE
# ═══════════════════════════════════════════════════════════

class TestRiskEngine:

    def test_position_risk_matches_functions(self, long_call, market, asof):
        risk = RiskEngine().position_risk(long_call, market)
        assert risk.name == "BTC-28JUN19-5000-C"
        assert risk.pv == pytest.approx(value_position(long_call, asof, SPOT, FORWARD, VOL))
        assert risk.delta == pytest.approx(position_delta(long_call, asof, SPOT, FORWARD, VOL))
        assert risk.buckets == bucket_delta(long_call, asof, SPOT, FORWARD, VOL)

    def test_portfolio_sums_positions(self, book, markets):
        portfolio = RiskEngine().portfolio_risk(book, markets)
        assert isinstance(portfolio, PortfolioRisk)
        assert len(portfolio.positions) == 4
        assert portfolio.pv == pytest.approx(sum(p.pv for p in portfolio.positions))
        assert portfolio.vega == pytest.approx(sum(p.vega for p in portfolio.positions))

    def test_portfolio_buckets_merge(self, book, markets):
        portfolio = RiskEngine().portfolio_risk(book, markets)
        assert set(portfolio.buckets) == {CASH_BUCKET, "BTC-28JUN19", "BTC-PERPETUAL"}
        assert sum(portfolio.buckets.values()) == pytest.approx(portfolio.delta, rel=1e-9, abs=1e-6)

    def test_missing_market_raises(self, book, market):
        with pytest.raises(MarketDataError, match="BTC-PERPETUAL"):
            RiskEngine().portfolio_risk(book, {"BTC-28JUN19": market})

    def test_empty_portfolio(self, markets):
        portfolio = RiskEngine().portfolio_risk([], markets)
        assert portfolio.pv == 0.0
        assert portfolio.buckets == {}
        assert portfolio.to_dict()["positions"] == 0

    def test_risk_report_frame(self, book, markets):
        report = RiskEngine().risk_report(book, markets)
        assert isinstance(report, pd.DataFrame)
        assert len(report) == 4
        for column in ("name", "pv", "delta", "gamma", "vega", "theta", f"delta[{CASH_BUCKET}]"):
            assert column in report.columns
        assert list(report["name"]) == [
            "BTC-28JUN19-5000-C", "BTC-28JUN19-5000-P", "BTC-28JUN19", "BTC-PERPETUAL",
        ]

    def test_risk_report_keeps_nan_greeks(self, btc_future, long_call, markets, asof):
        unpriced = Position(btc_future, 1_000.0, math.nan)
        report = RiskEngine().risk_report([long_call, unpriced], markets)
        assert report.loc[0, "pv"] == pytest.approx(value_position(long_call, asof, SPOT, FORWARD, VOL))
        assert math.isnan(report.loc[1, "pv"])
        assert math.isnan(report.loc[1, "delta"])

    def test_risk_report_zero_for_absent_buckets(self, book, markets):
        report = RiskEngine().risk_report(book, markets)
        assert report.loc[0, "delta[BTC-PERPETUAL]"] == 0.0
        assert report.loc[3, "delta[BTC-28JUN19]"] == 0.0
        assert report.loc[3, "delta[BTC-PERPETUAL]"] != 0.0

    def test_empty_report(self, markets):
        assert RiskEngine().risk_report([], markets).empty

    def test_implied_vol(self, btc_call, market, asof):
        premium = option_price(btc_call, asof, SPOT, FORWARD, 0.65)
        result = RiskEngine().implied_vol(btc_call, market, premium)
        assert result.status == SolveStatus.VALUED
        assert result.value == pytest.approx(0.65, abs=1e-4)

    def test_from_settings_applies_solver_budget(self, btc_call, market, asof):
        engine = RiskEngine.from_settings(Settings(iv_max_iterations=1))
        premium = option_price(btc_call, asof, SPOT, FORWARD, 0.3)
        result = engine.implied_vol(btc_call, market, premium)
        assert engine.max_iterations == 1
        assert result.status == SolveStatus.NON_CONVERGENT


# ═══════════════════════════════════════════════════════════
# 3. SETTINGS & LOGGING
# ═══════════════════════════════════════════════════════════

class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert settings.iv_seed_vol == 1.0
        assert settings.iv_max_iterations == 1000
        assert settings.iv_tolerance == 0.00001
        assert settings.iv_max_vol == 5.0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("COINRISK_IV_MAX_ITERATIONS", "50")
        monkeypatch.setenv("COINRISK_LOG_LEVEL", "DEBUG")
        try:
            settings = reload_settings()
            assert settings.iv_max_iterations == 50
            assert settings.log_level == "DEBUG"
            assert get_settings() is settings
        finally:
            monkeypatch.delenv("COINRISK_IV_MAX_ITERATIONS")
            monkeypatch.delenv("COINRISK_LOG_LEVEL")
            config_module._settings = None

    def test_invalid_budget_rejected(self):
        with pytest.raises(ValueError):
            Settings(iv_max_iterations=0)


class TestLogging:

    def test_setup_logging_writes_file(self, tmp_path, monkeypatch):
        log_file = tmp_path / "logs" / "coinrisk.log"
        monkeypatch.setenv("COINRISK_LOG_FILE", str(log_file))
        reload_settings()
        root = logging.getLogger()
        existing = list(root.handlers)
        try:
            setup_logging()
            assert log_file.parent.is_dir()
            get_logger("test").info("hello")
        finally:
            for handler in root.handlers[:]:
                if handler not in existing:
                    root.removeHandler(handler)
                    handler.close()
            structlog.reset_defaults()
            config_module._settings = None
