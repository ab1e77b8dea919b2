from __future__ import annotations

from enum import Enum


class RiskMeasure(str, Enum):
    """Risk measures supported by the decomposition."""

    SD = "Sd"
    VAR = "VaR"
    ES = "ES"


class Decomposition(str, Enum):
    """Decomposition modes."""

    FMCR = "FMCR"  # factor marginal contribution to risk
    FCR = "FCR"    # factor (component) contribution to risk
    FPCR = "FPCR"  # factor percent contribution to risk


class Method(str, Enum):
    """Estimation flavor for VaR / ES."""

    NP = "np"
    NORMAL = "normal"


class SliceBy(str, Enum):
    FACTOR = "factor"
    ASSET = "asset"


# Rows of a portfolio-only report always follow this order.
CANONICAL_RISK_ORDER: tuple[RiskMeasure, ...] = (
    RiskMeasure.SD,
    RiskMeasure.VAR,
    RiskMeasure.ES,
)

METHOD_LABELS = {
    Method.NP: "Non-Parametric",
    Method.NORMAL: "Parametric Normal",
}

COVARIANCE_USE_MODES: tuple[str, ...] = (
    "everything",
    "all.obs",
    "complete.obs",
    "na.or.complete",
    "pairwise.complete.obs",
)

PORTFOLIO_ROW = "Portfolio"
RESIDUAL_COLUMN = "Residuals"
RM_COLUMN = "RM"
TOTAL_COLUMN = "Total"

# Percent contributions are reported on a 0-100 scale.
PERCENT_SCALE = 100.0

DEFAULT_P = 0.05
DEFAULT_N_ROW_PRINT = 20
DEFAULT_USE = "pairwise.complete.obs"
DEFAULT_DECOMP = Decomposition.FPCR
DEFAULT_METHOD = Method.NP
DEFAULT_DIGITS_PERCENT = 1
DEFAULT_DIGITS_OTHER = 3

# First candidate column count for the chart panel grid.
MIN_LAYOUT_COLUMNS = 3
