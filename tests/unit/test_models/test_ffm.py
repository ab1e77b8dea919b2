#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Tests for models.ffm - cross-sectional (fundamental) factor model fitting."""

import logging

import numpy as np
import pandas as pd
import pytest

from factorrisk.exceptions import InvalidArgument
from factorrisk.models import FundamentalFactorModel, fit_ffm
from factorrisk.models.ffm import MARKET_FACTOR, _weighted_zscore, _wls_solve

FACTOR_COLUMNS = ["ROE", "BP", "Energy", "Tech", "Util"]


def _fit(panel, **kwargs):
    params = dict(
        exposure_vars=["SECTOR", "ROE", "BP"],
        date_var="DATE",
        ret_var="RETURN",
        asset_var="TICKER",
    )
    params.update(kwargs)
    return fit_ffm(panel, **params)


class TestWlsSolve:
    """Weighted least squares helper."""

    def test_matches_normal_equations(self):
        rng = np.random.default_rng(0)
        x = rng.normal(size=(50, 3))
        y = rng.normal(size=50)
        w = rng.uniform(0.5, 2.0, size=50)

        coef = _wls_solve(x, y, w)
        expected = np.linalg.solve(x.T @ (w[:, None] * x), x.T @ (w * y))
        np.testing.assert_allclose(coef, expected, rtol=1e-8)

    def test_non_positive_weights_drop_rows(self):
        x = np.array([[1.0], [1.0], [1.0]])
        y = np.array([1.0, 2.0, 100.0])
        w = np.array([1.0, 1.0, 0.0])
        assert np.isclose(_wls_solve(x, y, w)[0], 1.5)


class TestWeightedZscore:
    """Cross-sectional standardization helper."""

    def test_equal_weights(self):
        x = pd.Series([1.0, 2.0, 3.0, 4.0])
        z = _weighted_zscore(x, pd.Series(1.0, index=x.index))
        assert np.isclose(z.mean(), 0.0)
        assert np.isclose(z.std(ddof=0), 1.0)

    def test_constant_is_nan(self):
        x = pd.Series([2.0, 2.0, 2.0])
        assert _weighted_zscore(x, pd.Series(1.0, index=x.index)).isna().all()

    def test_single_observation_is_nan(self):
        x = pd.Series([2.0, np.nan])
        assert _weighted_zscore(x, pd.Series(1.0, index=x.index)).isna().all()


class TestFitFfm:
    """Per-date cross-sectional regression."""

    def test_structure(self, ffm_fit):
        assert isinstance(ffm_fit, FundamentalFactorModel)
        assert ffm_fit.model_type == "ffm"
        assert ffm_fit.factor_names == FACTOR_COLUMNS
        assert ffm_fit.asset_names == [f"S{i + 1:02d}" for i in range(12)]
        assert ffm_fit.beta.shape == (12, 5)
        assert len(ffm_fit.factor_returns) == 24
        assert ffm_fit.residuals.shape == (24, 12)
        assert ffm_fit.exposure_vars == ["SECTOR", "ROE", "BP"]

    def test_sector_dummies(self, ffm_fit):
        """Each asset loads 1 on its own sector and 0 elsewhere."""
        dummies = ffm_fit.beta[["Energy", "Tech", "Util"]]
        assert (dummies.sum(axis=1) == 1.0).all()
        assert ffm_fit.beta.loc["S01", "Energy"] == 1.0
        assert ffm_fit.beta.loc["S02", "Tech"] == 1.0

    def test_exposures_from_last_date(self, ffm_panel, ffm_fit):
        last = ffm_panel[ffm_panel["DATE"] == ffm_panel["DATE"].max()].set_index("TICKER")
        np.testing.assert_allclose(ffm_fit.beta["ROE"].to_numpy(), last.loc[ffm_fit.asset_names, "ROE"].to_numpy())

    def test_recovers_factor_returns_without_noise(self, make_panel):
        panel, true_returns = make_panel(noise=0.0)
        fit = _fit(panel)
        np.testing.assert_allclose(
            fit.factor_returns[FACTOR_COLUMNS].to_numpy(),
            true_returns[FACTOR_COLUMNS].to_numpy(),
            atol=1e-10,
        )
        np.testing.assert_allclose(fit.residuals.to_numpy(), 0.0, atol=1e-10)

    def test_resid_sd_is_sample_std(self, ffm_fit):
        expected = ffm_fit.residuals.std(ddof=1)
        np.testing.assert_allclose(ffm_fit.resid_sd.to_numpy(), expected.to_numpy())

    def test_z_score(self, ffm_panel):
        fit = _fit(ffm_panel, z_score=True)
        roe = fit.beta["ROE"]
        assert np.isclose(roe.mean(), 0.0, atol=1e-10)
        assert np.isclose(roe.std(ddof=0), 1.0)

    def test_weighted_regression_differs(self, ffm_panel):
        panel = ffm_panel.copy()
        panel["CAP"] = np.linspace(1.0, 50.0, len(panel))
        ols = _fit(panel)
        wls = _fit(panel, weight_var="CAP")
        assert not np.allclose(ols.factor_returns.to_numpy(), wls.factor_returns.to_numpy())

    def test_intercept(self, ffm_panel):
        fit = _fit(ffm_panel, exposure_vars=["ROE", "BP"], add_intercept=True)
        assert fit.factor_names == [MARKET_FACTOR, "ROE", "BP"]
        assert (fit.beta[MARKET_FACTOR] == 1.0).all()

    def test_intercept_collinear_with_categorical(self, ffm_panel):
        with pytest.raises(InvalidArgument, match="collinear"):
            _fit(ffm_panel, add_intercept=True)

    def test_two_categoricals_are_prefixed(self, ffm_panel):
        panel = ffm_panel.copy()
        panel["STYLE"] = np.where(panel["ROE"] > 0, "Growth", "Value")
        fit = _fit(panel, exposure_vars=["SECTOR", "STYLE", "ROE"])
        assert "SECTOR.Energy" in fit.factor_names
        assert "STYLE.Growth" in fit.factor_names

    def test_missing_columns(self, ffm_panel):
        with pytest.raises(InvalidArgument, match="not found"):
            _fit(ffm_panel, exposure_vars=["SECTOR", "SIZE"])

    def test_empty_exposures(self, ffm_panel):
        with pytest.raises(InvalidArgument):
            _fit(ffm_panel, exposure_vars=[])

    def test_sparse_date_is_skipped(self, ffm_panel, caplog):
        first = ffm_panel["DATE"].min()
        sparse = ffm_panel[(ffm_panel["DATE"] != first) | (ffm_panel["TICKER"].isin(["S01", "S02"]))]
        with caplog.at_level(logging.WARNING, logger="factorrisk"):
            fit = _fit(sparse)
        assert len(fit.factor_returns) == 23
        assert "Skipping" in caplog.text

    def test_no_estimable_date(self, ffm_panel):
        tiny = ffm_panel[ffm_panel["TICKER"].isin(["S01", "S02", "S03"])]
        with pytest.raises(InvalidArgument, match="No date"):
            _fit(tiny)
