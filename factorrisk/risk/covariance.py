#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Factor covariance estimation with explicit missing-data handling.

The ``use`` modes follow the usual statistical-software conventions:

- ``everything``: NaN propagates into every entry touching an incomplete column
- ``all.obs``: any missing observation is an error
- ``complete.obs``: drop incomplete rows, error if none remain
- ``na.or.complete``: drop incomplete rows, all-NaN matrix if none remain
- ``pairwise.complete.obs``: each entry uses the rows complete for that pair
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from ..constants import COVARIANCE_USE_MODES, DEFAULT_USE
from ..exceptions import InvalidArgument, UpstreamComputationFailure

logger = logging.getLogger(__name__)


def factor_covariance(factor_returns: pd.DataFrame, use: str = DEFAULT_USE) -> pd.DataFrame:
    """Sample covariance (ddof=1) of factor returns.

    Args:
        factor_returns: T × K factor returns
        use: missing-data handling mode, see module docstring

    Returns:
        K × K covariance labelled by factor name
    """
    if use not in COVARIANCE_USE_MODES:
        raise InvalidArgument(
            f"Invalid args: use must be one of {', '.join(repr(u) for u in COVARIANCE_USE_MODES)}, got {use!r}"
        )

    F = factor_returns.astype(float)
    has_nan = F.isna()

    if use == "pairwise.complete.obs":
        return F.cov()

    if use == "everything":
        cov = F.cov()
        incomplete = has_nan.any(axis=0)
        if incomplete.any():
            cols = incomplete[incomplete].index
            cov.loc[cols, :] = np.nan
            cov.loc[:, cols] = np.nan
        return cov

    if use == "all.obs":
        if has_nan.to_numpy().any():
            raise UpstreamComputationFailure("missing observations in factor returns with use='all.obs'")
        return F.cov()

    complete = F.dropna(how="any")
    if len(complete) < 2:
        if use == "complete.obs":
            raise UpstreamComputationFailure("no complete factor return observations with use='complete.obs'")
        logger.debug("No complete observations, returning NaN covariance")
        return pd.DataFrame(np.nan, index=F.columns, columns=F.columns)
    return complete.cov()


def augmented_covariance(factor_cov: pd.DataFrame, residual_name: str) -> pd.DataFrame:
    """Block-diagonal covariance of the factors plus one standardized residual.

    The residual enters with unit variance and zero covariance with the factors.
    """
    names = list(factor_cov.columns) + [residual_name]
    k = len(factor_cov)
    out = np.zeros((k + 1, k + 1))
    out[:k, :k] = factor_cov.to_numpy(dtype=float)
    out[k, k] = 1.0
    return pd.DataFrame(out, index=names, columns=names)


def check_positive_semidefinite(cov: pd.DataFrame, tol: float = 1e-10) -> None:
    """Raise if the covariance is not usable for risk computation."""
    values = cov.to_numpy(dtype=float)
    if not np.all(np.isfinite(values)):
        raise UpstreamComputationFailure("factor covariance contains NaN or infinite values")
    eigvals = np.linalg.eigvalsh((values + values.T) / 2)
    scale = max(1.0, float(np.max(np.abs(eigvals)))) if eigvals.size else 1.0
    if eigvals.size and eigvals.min() < -tol * scale:
        raise UpstreamComputationFailure(
            f"factor covariance is not positive semi-definite (min eigenvalue {eigvals.min():.3g})"
        )
