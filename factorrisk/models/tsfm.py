#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Time-series factor model.

Each asset's (excess) return series is regressed on the factor return series
with an intercept:

    r_i,t - rf_t = alpha_i + beta_i' f_t + e_i,t

The residual standard error uses ddof = K + 1.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

import numpy as np
import pandas as pd

from ..exceptions import InvalidArgument
from .base import FactorModelFit

logger = logging.getLogger(__name__)

DEFAULT_MIN_OBS = 10


class TimeSeriesFactorModel(FactorModelFit):
    """Result of ``fit_tsfm``."""

    def __init__(
        self,
        alpha: pd.Series,
        beta: pd.DataFrame,
        r_squared: pd.Series,
        resid_sd: pd.Series,
        factor_returns: pd.DataFrame,
        residuals: pd.DataFrame,
        asset_returns: pd.DataFrame,
    ):
        self._alpha = alpha
        self._beta = beta
        self._r_squared = r_squared
        self._resid_sd = resid_sd
        self._factor_returns = factor_returns
        self._residuals = residuals
        self._asset_returns = asset_returns

    @property
    def model_type(self) -> str:
        return "tsfm"

    @property
    def asset_names(self) -> List[str]:
        return list(self._beta.index)

    @property
    def factor_names(self) -> List[str]:
        return list(self._beta.columns)

    @property
    def alpha(self) -> pd.Series:
        return self._alpha

    @property
    def beta(self) -> pd.DataFrame:
        return self._beta

    @property
    def r_squared(self) -> pd.Series:
        return self._r_squared

    @property
    def resid_sd(self) -> pd.Series:
        return self._resid_sd

    @property
    def factor_returns(self) -> pd.DataFrame:
        return self._factor_returns

    @property
    def residuals(self) -> pd.DataFrame:
        return self._residuals

    @property
    def asset_returns(self) -> pd.DataFrame:
        return self._asset_returns


def _ols_solve(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    coef, *_ = np.linalg.lstsq(x, y, rcond=None)
    return coef


def fit_tsfm(
    asset_returns: pd.DataFrame,
    factor_returns: pd.DataFrame,
    rf: Optional[Union[pd.Series, str]] = None,
    min_obs: int = DEFAULT_MIN_OBS,
) -> TimeSeriesFactorModel:
    """Fit a time-series factor model by per-asset OLS.

    Args:
        asset_returns: T × N asset returns
        factor_returns: T × K factor returns, may also hold the risk-free column
        rf: risk-free series, or the name of a ``factor_returns`` column holding it.
            When given, asset and factor returns are both taken in excess of it.
        min_obs: minimum complete observations per asset

    Returns:
        Fitted ``TimeSeriesFactorModel``

    Raises:
        InvalidArgument: empty inputs, no common dates, or too few observations
    """
    if asset_returns is None or asset_returns.empty:
        raise InvalidArgument("asset_returns is empty")
    if factor_returns is None or factor_returns.empty:
        raise InvalidArgument("factor_returns is empty")

    factor_returns = factor_returns.copy()
    if isinstance(rf, str):
        if rf not in factor_returns.columns:
            raise InvalidArgument(f"risk-free column {rf!r} not found in factor_returns")
        rf = factor_returns.pop(rf)

    assets, factors = asset_returns.align(factor_returns, join="inner", axis=0)
    if assets.empty:
        raise InvalidArgument("asset_returns and factor_returns share no dates")

    assets = assets.astype(float)
    factors = factors.astype(float)
    if rf is not None:
        rf_aligned = pd.Series(rf, dtype=float).reindex(assets.index)
        assets = assets.sub(rf_aligned, axis=0)
        factors = factors.sub(rf_aligned, axis=0)

    asset_names = [str(c) for c in assets.columns]
    factor_names = [str(c) for c in factors.columns]
    assets.columns = asset_names
    factors.columns = factor_names

    K = len(factor_names)
    X_full = np.column_stack([np.ones(len(factors)), factors.to_numpy()])

    alphas, betas, r2s, sds = [], [], [], []
    residuals = pd.DataFrame(np.nan, index=assets.index, columns=asset_names)

    for name in asset_names:
        y = assets[name].to_numpy()
        mask = np.isfinite(y) & np.isfinite(X_full).all(axis=1)
        n = int(mask.sum())
        if n < max(min_obs, K + 2):
            raise InvalidArgument(
                f"Insufficient observations for {name}: {n} < {max(min_obs, K + 2)}"
            )

        coef = _ols_solve(X_full[mask], y[mask])
        resid = y[mask] - X_full[mask] @ coef
        ssr = float(resid @ resid)
        sst = float(((y[mask] - y[mask].mean()) ** 2).sum())

        alphas.append(coef[0])
        betas.append(coef[1:])
        r2s.append(1.0 - ssr / sst if sst > 0 else np.nan)
        sds.append(np.sqrt(ssr / (n - K - 1)))
        residuals.loc[residuals.index[mask], name] = resid

    logger.debug(f"Fitted tsfm: {len(asset_names)} assets on {K} factors, T={len(assets)}")

    return TimeSeriesFactorModel(
        alpha=pd.Series(alphas, index=asset_names, name="alpha"),
        beta=pd.DataFrame(np.vstack(betas), index=asset_names, columns=factor_names),
        r_squared=pd.Series(r2s, index=asset_names, name="r_squared"),
        resid_sd=pd.Series(sds, index=asset_names, name="resid_sd"),
        factor_returns=factors,
        residuals=residuals,
        asset_returns=assets,
    )
