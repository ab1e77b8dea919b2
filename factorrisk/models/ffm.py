#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Fundamental (cross-sectional) factor model.

For every date t the cross-section of returns is regressed on the asset
exposures known at t:

    r_t = X_t f_t + e_t

The per-date coefficients form the factor return history, the per-date
residuals the specific return history. Risk uses the exposures of the last
date. Categorical exposures (e.g. sector) become one dummy column per level.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype

from ..exceptions import InvalidArgument
from .base import FactorModelFit

logger = logging.getLogger(__name__)

MARKET_FACTOR = "Market"


class FundamentalFactorModel(FactorModelFit):
    """Result of ``fit_ffm``."""

    def __init__(
        self,
        exposures: pd.DataFrame,
        factor_returns: pd.DataFrame,
        residuals: pd.DataFrame,
        r_squared: pd.Series,
        exposure_vars: Sequence[str],
    ):
        self._exposures = exposures
        self._factor_returns = factor_returns
        self._residuals = residuals
        self._r_squared = r_squared
        self._exposure_vars = list(exposure_vars)
        self._resid_sd = residuals[list(exposures.index)].std(ddof=1).rename("resid_sd")

    @property
    def model_type(self) -> str:
        return "ffm"

    @property
    def asset_names(self) -> List[str]:
        return list(self._exposures.index)

    @property
    def factor_names(self) -> List[str]:
        return list(self._exposures.columns)

    @property
    def exposure_vars(self) -> List[str]:
        return self._exposure_vars

    @property
    def beta(self) -> pd.DataFrame:
        return self._exposures

    @property
    def factor_returns(self) -> pd.DataFrame:
        return self._factor_returns

    @property
    def residuals(self) -> pd.DataFrame:
        return self._residuals

    @property
    def resid_sd(self) -> pd.Series:
        return self._resid_sd

    @property
    def r_squared(self) -> pd.Series:
        """Cross-sectional R² per date."""
        return self._r_squared


def _wls_solve(x: np.ndarray, y: np.ndarray, w: np.ndarray) -> np.ndarray:
    """Minimize sum_i w_i * (y_i - x_i @ f)^2 by OLS on the sqrt(w)-scaled system."""
    w = np.where(np.isfinite(w) & (w > 0), w, 0.0)
    sqrt_w = np.sqrt(w)
    coef, *_ = np.linalg.lstsq(x * sqrt_w[:, None], y * sqrt_w, rcond=None)
    return coef


def _weighted_zscore(x: pd.Series, w: pd.Series) -> pd.Series:
    """Cross-sectional weighted z-score; NaN when the dispersion is degenerate."""
    mask = x.notna() & w.notna() & (w > 0)
    if mask.sum() < 2:
        return pd.Series(np.nan, index=x.index)

    xv = x[mask].astype(float)
    wv = w[mask].astype(float)
    mean = float((xv * wv).sum() / wv.sum())
    std = float(np.sqrt(((xv - mean) ** 2 * wv).sum() / wv.sum()))
    if not np.isfinite(std) or std <= 0:
        return pd.Series(np.nan, index=x.index)
    return (x - mean) / std


def fit_ffm(
    data: pd.DataFrame,
    exposure_vars: Sequence[str],
    date_var: str,
    ret_var: str,
    asset_var: str,
    weight_var: Optional[str] = None,
    z_score: bool = False,
    add_intercept: bool = False,
) -> FundamentalFactorModel:
    """Fit a fundamental factor model by per-date cross-sectional (W)LS.

    Args:
        data: long panel, one row per (date, asset)
        exposure_vars: exposure columns; non-numeric columns are treated as categorical
        date_var: date column
        ret_var: return column
        asset_var: asset identifier column
        weight_var: optional regression weight column (WLS), OLS when None
        z_score: standardize numeric exposures cross-sectionally per date
        add_intercept: add a ``Market`` column of ones; only without categorical exposures

    Returns:
        Fitted ``FundamentalFactorModel``

    Raises:
        InvalidArgument: missing columns, collinear intercept, or no estimable date
    """
    exposure_vars = list(exposure_vars)
    if not exposure_vars:
        raise InvalidArgument("exposure_vars must not be empty")

    required = [date_var, asset_var, ret_var] + exposure_vars + ([weight_var] if weight_var else [])
    missing = [c for c in required if c not in data.columns]
    if missing:
        raise InvalidArgument(f"Columns not found in data: {missing}")

    df = data[required].reset_index(drop=True)
    df[asset_var] = df[asset_var].astype(str)
    weights = df[weight_var].astype(float) if weight_var else pd.Series(1.0, index=df.index)

    numeric_vars = [v for v in exposure_vars if is_numeric_dtype(df[v])]
    categorical_vars = [v for v in exposure_vars if v not in numeric_vars]
    if add_intercept and categorical_vars:
        raise InvalidArgument("add_intercept is collinear with categorical exposures")

    if z_score:
        for v in numeric_vars:
            parts = [
                _weighted_zscore(g[v].astype(float), weights.loc[g.index])
                for _, g in df.groupby(date_var, sort=False)
            ]
            df[v] = pd.concat(parts)

    exposure_cols = list(numeric_vars)
    for v in categorical_vars:
        prefix_sep = "" if len(categorical_vars) == 1 else "."
        dummies = pd.get_dummies(
            df[v].astype(str),
            prefix="" if len(categorical_vars) == 1 else v,
            prefix_sep=prefix_sep,
            dtype=float,
        )
        df = pd.concat([df, dummies], axis=1)
        exposure_cols.extend(dummies.columns)
    if add_intercept:
        df[MARKET_FACTOR] = 1.0
        exposure_cols.insert(0, MARKET_FACTOR)

    K = len(exposure_cols)
    factor_rows = {}
    resid_rows = {}
    r2 = {}
    for date, g in df.groupby(date_var, sort=True):
        g = g.dropna(subset=[ret_var] + exposure_cols)
        if len(g) <= K:
            logger.warning(f"Skipping {date}: {len(g)} observations for {K} factors")
            continue

        x = g[exposure_cols].to_numpy(dtype=float)
        y = g[ret_var].to_numpy(dtype=float)
        w = weights.loc[g.index].to_numpy(dtype=float)

        coef = _wls_solve(x, y, w)
        resid = y - x @ coef
        factor_rows[date] = coef
        resid_rows[date] = pd.Series(resid, index=g[asset_var].to_numpy())

        sst = float(((y - y.mean()) ** 2).sum())
        r2[date] = 1.0 - float(resid @ resid) / sst if sst > 0 else np.nan

    if not factor_rows:
        raise InvalidArgument("No date has enough observations to estimate factor returns")

    factor_returns = pd.DataFrame.from_dict(factor_rows, orient="index", columns=exposure_cols)
    factor_returns.index.name = date_var
    residuals = pd.DataFrame(resid_rows).T
    residuals.index.name = date_var

    last_date = factor_returns.index[-1]
    last = df[df[date_var] == last_date].dropna(subset=exposure_cols)
    last = last.drop_duplicates(subset=asset_var, keep="last")
    exposures = last.set_index(asset_var)[exposure_cols].astype(float)
    exposures.index.name = None
    residuals = residuals.reindex(columns=exposures.index)

    logger.debug(
        f"Fitted ffm: {len(exposures)} assets, {K} factors, {len(factor_returns)} dates"
    )

    return FundamentalFactorModel(
        exposures=exposures,
        factor_returns=factor_returns,
        residuals=residuals,
        r_squared=pd.Series(r2, name="r_squared"),
        exposure_vars=exposure_vars,
    )
