#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Euler decomposition of Sd, VaR and ES into factor and residual contributions.

Each asset (or the portfolio) is written as a linear combination of K+1
augmented factors:

    R = b* ' F*,   b* = [b, sigma_e],   F* = [f, e / sigma_e]

so the residual enters as one more "factor" with unit variance, uncorrelated
with the others:

    Sigma* = | Sigma_F  0 |
             |   0      1 |

For a risk measure RM homogeneous of degree one in b*:

    marginal   mRM_k = dRM / db*_k
    component  cRM_k = b*_k * mRM_k       (sum_k cRM_k == RM, Euler)
    percent   pcRM_k = 100 * cRM_k / RM   (sum_k pcRM_k == 100)

Sd:
    Sd = sqrt(b*' Sigma* b*),  mSd = Sigma* b* / Sd

VaR / ES, parametric normal (z = Phi^-1(p)):
    VaR = b*' mu* + z Sd,            mVaR = mu* + z Sigma* b* / Sd
    ES  = b*' mu* - Sd phi(z) / p,   mES  = mu* - Sigma* b* / Sd * phi(z) / p

VaR / ES, non-parametric, on the model return history R_t = b*' F*_t:
    VaR = empirical p-quantile of R
    mVaR = E[F* | R near VaR], scaled so that the components sum to VaR
    ES  = E[R | R <= VaR],     mES = E[F* | R <= VaR]

Portfolio loadings use b_p = B' w and sigma_e,p = sqrt(sum_i w_i^2 sigma_e,i^2);
per-asset loadings treat every asset on its own and ignore the weights.

References:
- Meucci, A. (2007) "Risk contributions from generic user-defined factors"
- Hallerbach, W. (2003) "Decomposing portfolio Value-at-Risk: a general analysis"
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats

from ..constants import (
    DEFAULT_P,
    DEFAULT_USE,
    PERCENT_SCALE,
    PORTFOLIO_ROW,
    RESIDUAL_COLUMN,
    Method,
    RiskMeasure,
)
from ..exceptions import UpstreamComputationFailure
from .covariance import augmented_covariance, check_positive_semidefinite

if TYPE_CHECKING:
    from ..models.base import FactorModelFit

logger = logging.getLogger(__name__)

WeightsLike = Union[Mapping, pd.Series, Sequence[float], np.ndarray]


@dataclass
class RiskDecomposition:
    """Contribution figures for one risk measure at one granularity.

    ``total`` is indexed by ``"Portfolio"`` or by asset; the three matrices share
    that index and have one column per factor plus ``"Residuals"``.
    """

    risk: RiskMeasure
    portfolio: bool
    total: pd.Series
    marginal: pd.DataFrame
    component: pd.DataFrame
    percent: pd.DataFrame


class RiskDecomposer:
    """Computes RiskDecomposition objects for any ``FactorModelFit``.

    Example:
        >>> decomposer = RiskDecomposer(fit)
        >>> port = decomposer.decompose(RiskMeasure.ES, weights=w, p=0.05)
        >>> port.percent.loc["Portfolio"].sum()
        100.0
    """

    def __init__(self, model: "FactorModelFit", use: str = DEFAULT_USE):
        self.model = model
        self.use = use

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def resolve_weights(self, weights: Optional[WeightsLike] = None) -> np.ndarray:
        """Weights aligned to the model's asset order; equal weights when None.

        No normalization is applied, assets absent from ``weights`` weigh 0.
        """
        names = self.model.asset_names
        n = len(names)
        if weights is None:
            return np.full(n, 1.0 / n)

        if isinstance(weights, Mapping):
            weights = pd.Series(dict(weights), dtype=float)
        elif not isinstance(weights, pd.Series):
            values = np.asarray(weights, dtype=float).ravel()
            if len(values) != n:
                raise UpstreamComputationFailure(
                    f"unnamed weights must have one entry per asset ({n}), got {len(values)}"
                )
            weights = pd.Series(values, index=names)

        weights = weights.astype(float)
        weights.index = weights.index.map(str)
        if weights.empty:
            raise UpstreamComputationFailure("weights are empty")

        unknown = [a for a in weights.index if a not in set(names)]
        if unknown:
            raise UpstreamComputationFailure(f"weights refer to assets not in the model: {unknown}")
        if not np.all(np.isfinite(weights.to_numpy())):
            raise UpstreamComputationFailure("weights contain NaN or infinite values")

        return weights.reindex(names).fillna(0.0).to_numpy()

    def _augmented_loadings(
        self, portfolio: bool, w: Optional[np.ndarray]
    ) -> Tuple[list, np.ndarray, pd.DataFrame]:
        """Row labels, b* (rows × K+1) and standardized residual history (T × rows)."""
        model = self.model
        beta = model.beta.loc[model.asset_names, model.factor_names].to_numpy(dtype=float)
        resid_sd = model.resid_sd.reindex(model.asset_names).to_numpy(dtype=float)
        residuals = model.residuals.reindex(columns=model.asset_names)

        if not np.all(np.isfinite(beta)):
            raise UpstreamComputationFailure("factor exposures contain NaN values")
        if not np.all(np.isfinite(resid_sd)) or np.any(resid_sd < 0):
            raise UpstreamComputationFailure("residual standard deviations are missing or negative")

        if not portfolio:
            b_star = np.column_stack([beta, resid_sd])
            with np.errstate(divide="ignore", invalid="ignore"):
                std_resid = residuals / np.where(resid_sd > 0, resid_sd, np.nan)
            return list(model.asset_names), b_star, std_resid

        held = w != 0
        b_p = w @ beta
        sd_p = float(np.sqrt(np.sum(w ** 2 * resid_sd ** 2)))
        resid_p = residuals.loc[:, held].to_numpy(dtype=float) @ w[held]
        std_resid = pd.DataFrame(
            resid_p / sd_p if sd_p > 0 else np.full(len(resid_p), np.nan),
            index=residuals.index,
            columns=[PORTFOLIO_ROW],
        )
        return [PORTFOLIO_ROW], np.append(b_p, sd_p)[None, :], std_resid

    def _augmented_factor_cov(self) -> np.ndarray:
        cov = augmented_covariance(self.model.factor_cov(self.use), RESIDUAL_COLUMN)
        check_positive_semidefinite(cov)
        return cov.to_numpy()

    # ------------------------------------------------------------------
    # Measures
    # ------------------------------------------------------------------

    @staticmethod
    def _sd(b_star: np.ndarray, cov_star: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        cov_b = b_star @ cov_star
        sd = np.sqrt(np.einsum("ij,ij->i", cov_b, b_star))
        if not np.all(np.isfinite(sd)) or np.any(sd <= 0):
            raise UpstreamComputationFailure("factor model standard deviation is zero or undefined")
        return sd, cov_b / sd[:, None]

    def _normal(
        self,
        risk: RiskMeasure,
        b_star: np.ndarray,
        cov_star: np.ndarray,
        std_resid: pd.DataFrame,
        p: float,
    ) -> Tuple[np.ndarray, np.ndarray]:
        sd, m_sd = self._sd(b_star, cov_star)

        factor_mean = self.model.factor_returns[self.model.factor_names].mean().to_numpy(dtype=float)
        resid_mean = std_resid.mean().fillna(0.0).to_numpy(dtype=float)
        mu_star = np.column_stack([np.tile(factor_mean, (len(b_star), 1)), resid_mean])
        mean = np.einsum("ij,ij->i", mu_star, b_star)

        z = stats.norm.ppf(p)
        if risk == RiskMeasure.VAR:
            return mean + z * sd, mu_star + z * m_sd

        tail = stats.norm.pdf(z) / p
        return mean - sd * tail, mu_star - m_sd * tail

    def _non_parametric(
        self,
        risk: RiskMeasure,
        b_star: np.ndarray,
        std_resid: pd.DataFrame,
        labels: list,
        p: float,
    ) -> Tuple[np.ndarray, np.ndarray]:
        F = self.model.factor_returns[self.model.factor_names]
        totals = np.empty(len(b_star))
        marginal = np.empty_like(b_star)

        for i, label in enumerate(labels):
            f_star = pd.concat([F, std_resid[label]], axis=1, join="inner").dropna().to_numpy(dtype=float)
            T = len(f_star)
            if T < 2:
                raise UpstreamComputationFailure(f"{label}: not enough complete observations for {risk.value}")

            r = f_star @ b_star[i]
            var = float(np.quantile(r, p))

            if risk == RiskMeasure.VAR:
                k = min(T, int(np.ceil(np.sqrt(T))))
                near = np.argsort(np.abs(r - var), kind="stable")[:k]
                m = f_star[near].mean(axis=0)
                r_near = float(r[near].mean())
                if not np.isfinite(r_near) or abs(r_near) < 1e-15:
                    raise UpstreamComputationFailure(f"{label}: degenerate VaR neighbourhood")
                totals[i] = var
                marginal[i] = m * var / r_near
            else:
                tail = r <= var
                if not tail.any():
                    raise UpstreamComputationFailure(f"{label}: empty tail for ES at p={p}")
                totals[i] = float(r[tail].mean())
                marginal[i] = f_star[tail].mean(axis=0)

        return totals, marginal

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def decompose(
        self,
        risk: Union[RiskMeasure, str],
        weights: Optional[WeightsLike] = None,
        p: float = DEFAULT_P,
        method: Union[Method, str] = Method.NP,
        invert: bool = False,
        portfolio: bool = True,
    ) -> RiskDecomposition:
        """Decompose one risk measure.

        Args:
            risk: Sd, VaR or ES
            weights: asset weights, used only when ``portfolio`` is True
            p: tail probability for VaR / ES
            method: ``np`` (empirical) or ``normal`` for VaR / ES
            invert: flip the sign of VaR / ES figures (percentages unchanged)
            portfolio: one ``Portfolio`` row when True, one row per asset otherwise

        Returns:
            RiskDecomposition

        Raises:
            UpstreamComputationFailure: the statistical computation failed
        """
        risk = RiskMeasure(risk)
        method = Method(method)
        if not 0 < p < 1:
            raise UpstreamComputationFailure(f"tail probability must lie in (0, 1), got {p}")

        w = self.resolve_weights(weights) if portfolio else None
        labels, b_star, std_resid = self._augmented_loadings(portfolio, w)

        if risk == RiskMeasure.SD:
            total, marginal = self._sd(b_star, self._augmented_factor_cov())
        elif method == Method.NORMAL:
            total, marginal = self._normal(risk, b_star, self._augmented_factor_cov(), std_resid, p)
        else:
            total, marginal = self._non_parametric(risk, b_star, std_resid, labels, p)

        if invert and risk != RiskMeasure.SD:
            total = -total
            marginal = -marginal

        component = marginal * b_star
        if np.any(total == 0) or not np.all(np.isfinite(total)):
            raise UpstreamComputationFailure(f"{risk.value} is zero or undefined, percentages are not defined")
        percent = PERCENT_SCALE * component / total[:, None]

        columns = list(self.model.factor_names) + [RESIDUAL_COLUMN]
        logger.debug(
            f"Decomposed {risk.value} ({method.value}, p={p}) for {len(labels)} row(s), portfolio={portfolio}"
        )
        return RiskDecomposition(
            risk=risk,
            portfolio=portfolio,
            total=pd.Series(total, index=labels, name=risk.value),
            marginal=pd.DataFrame(marginal, index=labels, columns=columns),
            component=pd.DataFrame(component, index=labels, columns=columns),
            percent=pd.DataFrame(percent, index=labels, columns=columns),
        )
