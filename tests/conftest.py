#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
pytest shared configuration

Provides the synthetic factor models and the config / logging isolation
used across the suite.
"""

import logging
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from factorrisk import logging_utils
from factorrisk.config_manager import CONFIG_ENV_VAR, ConfigManager
from factorrisk.models import fit_ffm, fit_tsfm


# ===== Isolation =====


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config manager at a missing file so built-in defaults apply."""
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing_config.json"))
    ConfigManager._instance = None
    yield
    ConfigManager._instance = None


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo ``setup_logging`` so caplog sees package records."""
    yield
    logger = logging.getLogger(logging_utils.PACKAGE_LOGGER)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    logging_utils._initialized = False


# ===== Synthetic data =====


def _make_returns(n_assets, n_factors, n_periods, seed, resid_scale=0.02):
    rng = np.random.default_rng(seed)
    dates = pd.date_range("2020-01-01", periods=n_periods, freq="B")
    factor_names = [f"F{k + 1}" for k in range(n_factors)]
    asset_names = [f"A{i + 1}" for i in range(n_assets)]

    factors = pd.DataFrame(
        rng.normal(0.002, 0.03, size=(n_periods, n_factors)), index=dates, columns=factor_names
    )
    beta = pd.DataFrame(
        rng.uniform(0.2, 1.5, size=(n_assets, n_factors)), index=asset_names, columns=factor_names
    )
    alpha = rng.normal(0.0, 0.001, size=n_assets)
    noise = rng.normal(0.0, resid_scale, size=(n_periods, n_assets))
    assets = pd.DataFrame(
        factors.to_numpy() @ beta.to_numpy().T + alpha + noise, index=dates, columns=asset_names
    )
    return assets, factors, beta


@pytest.fixture
def make_returns():
    """Factory: ``make_returns(n_assets, n_factors, n_periods, seed)`` -> (assets, factors, beta)."""
    return _make_returns


@pytest.fixture
def tsfm_data():
    return _make_returns(n_assets=4, n_factors=3, n_periods=120, seed=42)


@pytest.fixture
def tsfm_fit(tsfm_data):
    """4 assets on 3 factors."""
    assets, factors, _ = tsfm_data
    return fit_tsfm(assets, factors)


@pytest.fixture
def large_tsfm_fit():
    """30 assets on 3 factors."""
    assets, factors, _ = _make_returns(n_assets=30, n_factors=3, n_periods=150, seed=7)
    return fit_tsfm(assets, factors)


SECTORS = ["Energy", "Tech", "Util"]


def _make_panel(n_dates=24, n_assets=12, seed=3, noise=0.01):
    rng = np.random.default_rng(seed)
    dates = pd.date_range("2021-01-01", periods=n_dates, freq="B")
    tickers = [f"S{i + 1:02d}" for i in range(n_assets)]
    sectors = [SECTORS[i % len(SECTORS)] for i in range(n_assets)]

    rows = []
    true_returns = {}
    for date in dates:
        f_roe, f_bp = rng.normal(0.0, 0.01, size=2)
        f_sector = dict(zip(SECTORS, rng.normal(0.001, 0.02, size=len(SECTORS))))
        true_returns[date] = {"ROE": f_roe, "BP": f_bp, **f_sector}
        for ticker, sector in zip(tickers, sectors):
            roe = rng.normal(0.0, 1.0)
            bp = rng.normal(0.0, 1.0)
            ret = f_roe * roe + f_bp * bp + f_sector[sector] + rng.normal(0.0, noise)
            rows.append(
                {"DATE": date, "TICKER": ticker, "SECTOR": sector, "ROE": roe, "BP": bp, "RETURN": ret}
            )
    return pd.DataFrame(rows), pd.DataFrame.from_dict(true_returns, orient="index")


@pytest.fixture
def make_panel():
    """Factory: ``make_panel(n_dates, n_assets, seed, noise)`` -> (panel, true factor returns)."""
    return _make_panel


@pytest.fixture
def ffm_panel():
    panel, _ = _make_panel()
    return panel


@pytest.fixture
def ffm_fit(ffm_panel):
    """12 assets, ROE / BP plus three sector dummies."""
    return fit_ffm(
        ffm_panel,
        exposure_vars=["SECTOR", "ROE", "BP"],
        date_var="DATE",
        ret_var="RETURN",
        asset_var="TICKER",
    )
