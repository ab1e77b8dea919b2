"""
Fitted factor model interface.

Both model variants (time-series and fundamental) expose the same read-only
view, so the risk decomposition is written once against ``FactorModelFit``:

    r_t = alpha + B f_t + e_t

    B: N × K factor exposures
    f_t: K factor returns at time t
    e_t: N residual returns at time t, uncorrelated across assets
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

import pandas as pd

from ..constants import DEFAULT_USE
from ..risk.covariance import factor_covariance


class FactorModelFit(ABC):
    """Abstract fitted factor model."""

    @property
    @abstractmethod
    def model_type(self) -> str:
        """Short variant tag, ``"tsfm"`` or ``"ffm"``."""
        pass

    @property
    @abstractmethod
    def asset_names(self) -> List[str]:
        """Asset identifiers, in model order."""
        pass

    @property
    @abstractmethod
    def factor_names(self) -> List[str]:
        """Factor names, in model order."""
        pass

    @property
    @abstractmethod
    def beta(self) -> pd.DataFrame:
        """N × K exposures (index: assets, columns: factors)."""
        pass

    @property
    @abstractmethod
    def factor_returns(self) -> pd.DataFrame:
        """T × K factor returns."""
        pass

    @property
    @abstractmethod
    def residuals(self) -> pd.DataFrame:
        """T × N residual returns, NaN where an asset was not observed."""
        pass

    @property
    @abstractmethod
    def resid_sd(self) -> pd.Series:
        """Residual standard deviation per asset."""
        pass

    @property
    def n_assets(self) -> int:
        return len(self.asset_names)

    @property
    def n_factors(self) -> int:
        return len(self.factor_names)

    def factor_cov(self, use: str = DEFAULT_USE) -> pd.DataFrame:
        """K × K factor covariance estimated from the factor return history."""
        return factor_covariance(self.factor_returns[self.factor_names], use=use)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(assets={self.n_assets}, factors={self.n_factors}, "
            f"periods={len(self.factor_returns)})"
        )
