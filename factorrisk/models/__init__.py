"""Fitted factor models: time-series (tsfm) and fundamental (ffm) variants."""

from .base import FactorModelFit
from .tsfm import TimeSeriesFactorModel, fit_tsfm
from .ffm import FundamentalFactorModel, fit_ffm

SUPPORTED_MODEL_TYPES = (TimeSeriesFactorModel, FundamentalFactorModel)

__all__ = [
    "FactorModelFit",
    "TimeSeriesFactorModel",
    "FundamentalFactorModel",
    "fit_tsfm",
    "fit_ffm",
    "SUPPORTED_MODEL_TYPES",
]
