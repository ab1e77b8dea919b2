"""
Factor risk decomposition report.

Decomposes portfolio Sd, VaR or ES into factor and residual contributions
(Euler allocation) for a fitted time-series or fundamental factor model, and
returns the table and / or draws a bar chart from the same assembled matrix.

Example:
    >>> from factorrisk.models import fit_tsfm
    >>> from factorrisk.report import rep_risk
    >>> fit = fit_tsfm(asset_returns, factor_returns)
    >>> rep_risk(fit, risk="ES", decomp="FPCR", n_row_print=10)
    >>> rep_risk(fit, weights, risk=["VaR", "ES"], decomp="FPCR", portfolio_only=True)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import matplotlib.pyplot as plt
import pandas as pd

from ..config_manager import ConfigManager
from ..exceptions import RenderingFailure
from ..risk.decomposer import WeightsLike
from .chart import plot_decomposition
from .dispatcher import ModeDispatcher
from .formatter import format_table
from .options import ReportOptions, TokenArg, validate_model

logger = logging.getLogger(__name__)


def rep_risk(
    model: Any,
    weights: Optional[WeightsLike] = None,
    risk: TokenArg = None,
    decomp: TokenArg = None,
    digits: Optional[int] = None,
    invert: bool = False,
    n_row_print: Optional[int] = None,
    p: Optional[float] = None,
    method: TokenArg = None,
    use: Optional[str] = None,
    sliceby: TokenArg = None,
    is_print: bool = True,
    is_plot: bool = False,
    layout: Optional[Sequence[int]] = None,
    portfolio_only: bool = False,
    plot_path: Optional[Union[str, Path]] = None,
) -> Optional[Dict[str, pd.DataFrame]]:
    """
    Decompose portfolio risk into factor contributions and report it.

    Args:
        model: fitted ``TimeSeriesFactorModel`` or ``FundamentalFactorModel``
        weights: asset -> weight mapping, equal weights when None
        risk: 'Sd', 'VaR' or 'ES'; several only with ``portfolio_only``
        decomp: 'FMCR', 'FCR' or 'FPCR' (default 'FPCR')
        digits: rounding of the table; 1 for FPCR, 3 otherwise when None
        invert: flip the sign of VaR / ES
        n_row_print: rows to print / plot, Portfolio included (default 20)
        p: tail probability for VaR / ES (default 0.05)
        method: 'np' (non-parametric) or 'normal' for VaR / ES
        use: missing-data mode for the factor covariance
        sliceby: 'factor' or 'asset', chart panels only
        is_print: return the table
        is_plot: draw the bar chart
        layout: chart grid (columns, rows[, pages])
        portfolio_only: portfolio row only, one row per requested measure
        plot_path: save the chart here instead of showing it

    Returns:
        ``{name: table}`` when ``is_print``, otherwise None

    Raises:
        InvalidArgument: unsupported model type or option token
        UpstreamComputationFailure: the risk computation failed
        RenderingFailure: the chart failed and no table was requested
    """
    validate_model(model)
    options = ReportOptions.from_args(
        risk=risk,
        decomp=decomp,
        method=method,
        p=p,
        use=use,
        n_row_print=n_row_print,
        digits=digits,
        sliceby=sliceby,
        invert=invert,
        layout=layout,
        portfolio_only=portfolio_only,
        is_print=is_print,
        is_plot=is_plot,
        defaults=ConfigManager().get_report_defaults(),
    )

    report = ModeDispatcher(model, options).assemble(weights)

    table = format_table(report, options) if options.is_print else None

    if options.is_plot:
        try:
            plot_decomposition(report, options, save_path=plot_path)
            if plot_path is None:
                _show()
        except RenderingFailure as e:
            if table is None:
                raise
            logger.error(f"Chart rendering failed, returning the table only: {e.message}")

    if table is not None:
        name, frame = next(iter(table.items()))
        logger.info(f"Report {name} ready: {frame.shape}")
    return table


def _show() -> None:
    try:
        plt.show()
    except Exception as e:
        plt.close("all")
        raise RenderingFailure(f"Failed to show chart: {e}") from e
